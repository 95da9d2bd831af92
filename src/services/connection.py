"""
Persistent connection to the game server.

* connect, and on an unclean close reconnect with exponential backoff until the attempts run out
* outbound messages sent while offline wait in a FIFO queue and are flushed, in order, on the next open
* keep-alive heartbeat while connected (fire-and-forget)

Runs on a single asyncio event loop. The socket itself hides behind the Transport protocol,
so tests can plug in a fake one.
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, Protocol, Self

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.typing import Subprotocol

from src.api.models import Heartbeat, OutboundMessage, encode
from src.core.exceptions import NORMAL_CLOSURE, TransportClosed
from src.services.notifier import Notifier

logger = logging.getLogger(__name__)

Frame = str | bytes
FrameHandler = Callable[[Frame], Awaitable[None]]
OpenHandler = Callable[[], Awaitable[None]]
SleepFn = Callable[[float], Awaitable[None]]


class Transport(Protocol):
    """Just the parts of a socket the connection manager needs"""

    async def send(self, frame: str) -> None: ...
    async def recv(self) -> Frame: ...
    async def close(self) -> None: ...


Connector = Callable[[str], Awaitable[Transport]]


class WebSocketTransport:
    """Adapter that wraps a websockets client connection to satisfy Transport."""

    def __init__(self, connection: ClientConnection) -> None:
        self._ws = connection

    @classmethod
    async def open(cls, url: str, subprotocol: str) -> Self:
        connection = await connect(url, subprotocols=[Subprotocol(subprotocol)])
        return cls(connection)

    async def send(self, frame: str) -> None:
        try:
            await self._ws.send(frame)
        except ConnectionClosed as exc:
            raise self._closed(exc) from exc

    async def recv(self) -> Frame:
        try:
            return await self._ws.recv()
        except ConnectionClosed as exc:
            raise self._closed(exc) from exc

    async def close(self) -> None:
        await self._ws.close(code=NORMAL_CLOSURE)

    @staticmethod
    def _closed(exc: ConnectionClosed) -> TransportClosed:
        # a close frame we received decides whether this was a clean shutdown
        close_frame = exc.rcvd or exc.sent
        if close_frame is None:
            return TransportClosed(None, "connection dropped")
        return TransportClosed(close_frame.code, close_frame.reason)


def websocket_connector(subprotocol: str) -> Connector:
    async def _connect(url: str) -> Transport:
        return await WebSocketTransport.open(url, subprotocol)

    return _connect


@dataclass(frozen=True)
class ReconnectPolicy:
    base_delay: float = 2.0
    max_delay: float = 30.0
    max_attempts: int = 5

    def delay(self, attempt: int) -> float:
        """Wait before the next try, after `attempt` consecutive failures: min(base * 2^attempt, max)"""
        return min(self.base_delay * 2**attempt, self.max_delay)

    def exhausted(self, attempt: int) -> bool:
        return attempt > self.max_attempts


@dataclass
class ConnectionState:
    transport: Optional[Transport] = None
    is_connected: bool = False
    reconnect_attempts: int = 0
    # encoded frames waiting for a live connection (in memory only)
    pending: deque[str] = field(default_factory=deque)
    heartbeat_task: Optional[asyncio.Task[None]] = None


class ConnectionManager:
    """Owns the socket, the reconnect policy, the pending queue and the heartbeat timer."""

    def __init__(
        self,
        url: str,
        on_frame: FrameHandler,
        notifier: Notifier,
        connector: Connector,
        policy: ReconnectPolicy = ReconnectPolicy(),
        heartbeat_interval: float = 25.0,
        on_open: Optional[OpenHandler] = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.url = url
        self.policy = policy
        self.heartbeat_interval = heartbeat_interval
        self.state = ConnectionState()
        self._on_frame = on_frame
        self._on_open = on_open
        self._notifier = notifier
        self._connector = connector
        self._sleep = sleep
        self._closing = False
        self._task: Optional[asyncio.Task[None]] = None

    # --- LIFECYCLE ---
    def start(self) -> asyncio.Task[None]:
        """Run the connection in the background. An attempt already in progress is cancelled and replaced."""
        if self._task is not None and not self._task.done():
            # sends from here on are queued until the replacement is open
            self._drop_connection()
            self._task.cancel()
        self._task = asyncio.create_task(self.run())
        return self._task

    def reconnect(self) -> asyncio.Task[None]:
        """Manual retry after the attempts ran out: the counter starts from zero again."""
        self.state.reconnect_attempts = 0
        return self.start()

    async def run(self) -> None:
        """Connect and keep the connection up until a clean close or until the reconnect attempts run out."""
        self._closing = False
        while True:
            logger.info("Connecting to %s", self.url)
            try:
                transport = await self._connector(self.url)
            except (OSError, TimeoutError, WebSocketException) as exc:
                logger.warning("Could not connect to %s: %s", self.url, exc)
                if not await self._wait_before_retry():
                    return
                continue

            closed = await self._serve(transport)
            self._drop_connection()

            if closed.clean or self._closing:
                logger.info("Connection closed cleanly (code %s)", closed.code)
                return
            logger.warning("Connection lost: code=%s %s", closed.code, closed.reason)
            if not await self._wait_before_retry():
                return

    async def close(self) -> None:
        """Clean disconnect: no reconnect, heartbeat stopped. Pending messages stay queued."""
        self._closing = True
        transport = self.state.transport
        self._drop_connection()
        if transport is not None:
            await transport.close()
        if (
            self._task is not None
            and not self._task.done()
            and self._task is not asyncio.current_task()
        ):
            self._task.cancel()

    # --- OUTBOUND ---
    async def send(self, message: OutboundMessage) -> bool:
        """
        Send now if the connection is up, otherwise queue the message.
        ---
        Returns whether the frame went out immediately. Queued frames are sent at most once, in order.
        """
        frame = encode(message)
        transport = self.state.transport
        if not self.state.is_connected or transport is None:
            logger.debug("Not connected, queueing %s", type(message).__name__)
            self.state.pending.append(frame)
            return False
        try:
            await transport.send(frame)
        except TransportClosed:
            self.state.is_connected = False
            self.state.pending.append(frame)
            return False
        return True

    # --- INTERNAL HELPERS ---
    async def _serve(self, transport: Transport) -> TransportClosed:
        """One connected period: flush, start the heartbeat, then read until the socket closes."""
        self.state.transport = transport
        self.state.reconnect_attempts = 0
        logger.info("Connected to %s", self.url)

        heartbeat: Optional[asyncio.Task[None]] = None
        try:
            try:
                await self._flush(transport)
            except TransportClosed as closed:
                return closed

            self.state.is_connected = True
            heartbeat = asyncio.create_task(self._heartbeat(transport))
            self.state.heartbeat_task = heartbeat
            if self._on_open is not None:
                await self._on_open()

            while True:
                try:
                    frame = await transport.recv()
                except TransportClosed as closed:
                    return closed
                await self._on_frame(frame)
        except asyncio.CancelledError:
            # replaced by start(): nobody reads this socket any more
            if self.state.transport is transport:
                self._drop_connection()
            if not self._closing:
                await transport.close()
            raise
        finally:
            if heartbeat is not None:
                heartbeat.cancel()

    async def _flush(self, transport: Transport) -> None:
        """Send queued frames oldest first. A frame leaves the queue only after it was sent."""
        if self.state.pending:
            logger.info("Flushing %d queued message(s)", len(self.state.pending))
        while self.state.pending:
            await transport.send(self.state.pending[0])
            self.state.pending.popleft()

    async def _heartbeat(self, transport: Transport) -> None:
        while True:
            await asyncio.sleep(self.heartbeat_interval)
            try:
                await transport.send(encode(Heartbeat()))
            except TransportClosed:
                # the read loop sees the close as well and takes care of reconnecting
                return

    async def _wait_before_retry(self) -> bool:
        """Back off before the next attempt. False once the attempts are used up (connection lost for good)."""
        self.state.reconnect_attempts += 1
        attempt = self.state.reconnect_attempts
        if self.policy.exhausted(attempt):
            logger.error("Giving up after %d reconnect attempts", attempt - 1)
            self._notifier.connection_lost()
            return False
        delay = self.policy.delay(attempt)
        logger.info(
            "Reconnecting in %.1fs (attempt %d/%d)",
            delay,
            attempt,
            self.policy.max_attempts,
        )
        await self._sleep(delay)
        return True

    def _drop_connection(self) -> None:
        self.state.is_connected = False
        self.state.transport = None
        if self.state.heartbeat_task is not None:
            self.state.heartbeat_task.cancel()
            self.state.heartbeat_task = None
