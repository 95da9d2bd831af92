"""Wire messages exchanged with the game server.

Every frame is a JSON object with a "type" field. Inbound frames are parsed into a closed union of
models, discriminated on that field, so the Dispatcher can route on the model class.
"""

import json
import logging
import time
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from src.core.shared_types import GameVariant, Pattern

logger = logging.getLogger(__name__)

PlayerName = str


def now_ms() -> int:
    return int(time.time() * 1000)


class WireModel(BaseModel):
    """The server speaks camelCase. Accept both the alias and the python name, ignore fields we do not know."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# --- INBOUND MESSAGES ---
class LoginSuccess(WireModel):
    type: Literal["login_success"]
    message: Optional[str] = None


class LoginFailed(WireModel):
    type: Literal["login_failed"]
    message: Optional[str] = None


class NumberCalled(WireModel):
    type: Literal["number_drawn", "number_called"]
    number: int = Field(ge=1, le=90)
    display: Optional[str] = None


class GameState(WireModel):
    type: Literal["game_state"]
    called_numbers: Optional[list[int]] = Field(default=None, alias="calledNumbers")
    game_active: Optional[bool] = Field(default=None, alias="gameActive")
    current_number: Optional[str] = Field(default=None, alias="currentNumber")
    player_count: Optional[int] = Field(default=None, alias="playerCount")
    stake: Optional[int] = None


class PlayerCount(WireModel):
    type: Literal["player_count", "player_joined"]
    count: int = Field(default=0, ge=0)


class WinnerAnnounced(WireModel):
    type: Literal["winner_announced", "game_end"]
    winner_name: PlayerName = Field(default="Unknown", alias="winnerName")
    pattern: str = "unknown"
    amount: int = 0


class ServerError(WireModel):
    type: Literal["error"]
    message: str = "An error occurred"


class Ping(WireModel):
    type: Literal["ping"]
    timestamp: Optional[int] = None


InboundMessage = Annotated[
    Union[
        LoginSuccess,
        LoginFailed,
        NumberCalled,
        GameState,
        PlayerCount,
        WinnerAnnounced,
        ServerError,
        Ping,
    ],
    Field(discriminator="type"),
]

INBOUND_ADAPTER: TypeAdapter[InboundMessage] = TypeAdapter(InboundMessage)

INBOUND_TYPES: frozenset[str] = frozenset(
    [
        "login_success",
        "login_failed",
        "number_drawn",
        "number_called",
        "game_state",
        "player_count",
        "player_joined",
        "winner_announced",
        "game_end",
        "error",
        "ping",
    ]
)


# --- OUTBOUND MESSAGES ---
class OutboundMessage(WireModel):
    timestamp: int = Field(default_factory=now_ms)


class PlayerConnect(OutboundMessage):
    """Sent on every (re)connect. Carries the identity once the player registered."""

    type: Literal["player_connect"] = "player_connect"
    player_name: Optional[PlayerName] = Field(default=None, alias="playerName")
    phone: Optional[str] = None


class PlayerJoin(OutboundMessage):
    type: Literal["player_join"] = "player_join"
    player_name: PlayerName = Field(alias="playerName")
    phone: str
    game_type: GameVariant = Field(alias="gameType")
    stake: int
    board_id: int = Field(alias="boardId")


class AdminLogin(OutboundMessage):
    type: Literal["admin_login"] = "admin_login"
    password: str


class DrawNumber(OutboundMessage):
    type: Literal["draw_number"] = "draw_number"


class WinClaim(OutboundMessage):
    type: Literal["announce_winner"] = "announce_winner"
    winner_name: PlayerName = Field(alias="winnerName")
    pattern: Pattern
    amount: int
    numbers: list[int] = Field(default_factory=list)


class StartGame(OutboundMessage):
    type: Literal["start_game"] = "start_game"
    game_type: Optional[GameVariant] = Field(default=None, alias="gameType")


class EndGame(OutboundMessage):
    type: Literal["end_game"] = "end_game"


class Heartbeat(OutboundMessage):
    type: Literal["heartbeat"] = "heartbeat"


class Pong(OutboundMessage):
    type: Literal["pong"] = "pong"


# --- CODEC ---
def encode(message: OutboundMessage) -> str:
    """JSON frame with the server's field names. Unset optional fields are left out."""
    return message.model_dump_json(by_alias=True, exclude_none=True)


def parse_frame(raw: str | bytes) -> Optional[InboundMessage]:
    """
    Turn a raw frame into a typed message.
    ---
    Returns None (frame dropped) when:
    * the frame is not JSON / not an object       -> silently (debug log)
    * the type is unknown                          -> logged and ignored, newer servers may send more types
    * a known type does not validate               -> warning
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.debug("Dropping malformed frame: %.80r", raw)
        return None

    if not isinstance(data, dict):
        logger.debug("Dropping frame that is not an object: %.80r", raw)
        return None

    message_type = data.get("type")
    if not isinstance(message_type, str) or message_type not in INBOUND_TYPES:
        logger.info("Unknown message type: %r", message_type)
        return None

    try:
        return INBOUND_ADAPTER.validate_python(data)
    except ValidationError as exc:
        logger.warning(
            "Dropping invalid %r message: %s", message_type, exc.errors()[0]["msg"]
        )
        return None
