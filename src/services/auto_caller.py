"""Admin helper that keeps calling numbers on a fixed interval until stopped."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from src.core.exceptions import BingoError

logger = logging.getLogger(__name__)

CallFn = Callable[[], Awaitable[object]]


class AutoCaller:
    """
    Cancellable scheduled task with an explicit start / stop contract.
    ---
    At most one calling loop runs at a time: start() while running is a no-op.
    """

    def __init__(self, call: CallFn, interval: float) -> None:
        self._call = call
        self.interval = interval
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        logger.info("Auto-calling a number every %.1fs", self.interval)
        self._task = asyncio.create_task(self._run())

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
            logger.info("Auto-calling stopped")

    async def _run(self) -> None:
        while True:
            try:
                await self._call()
            except BingoError as exc:
                logger.error("Auto-calling stopped: %s", exc)
                self._task = None
                return
            await asyncio.sleep(self.interval)
