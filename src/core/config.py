"""Client configuration, read from the environment (optionally seeded from a .env file)."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, TypeVar

from dotenv import load_dotenv

from src.core.exceptions import ConfigError

ENV_PREFIX = "BINGO_"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

T = TypeVar("T")


@dataclass(frozen=True)
class ClientConfig:
    server_url: str = "ws://localhost:8000"
    subprotocol: str = "bingo-protocol"
    # reconnect backoff: delay = min(base * 2^attempt, max), give up after max attempts
    reconnect_base_delay: float = 2.0
    reconnect_max_delay: float = 30.0
    max_reconnect_attempts: int = 5
    heartbeat_interval: float = 25.0
    auto_call_interval: float = 5.0
    auto_daub: bool = False
    auto_claim: bool = True
    database_url: str = "sqlite:///bingo_client.db"
    log_level: str = "WARNING"


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _read(name: str, default: T, convert: Callable[[str], T]) -> T:
    raw = os.environ.get(f"{ENV_PREFIX}{name}")
    if raw is None or raw == "":
        return default
    try:
        return convert(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid value for {ENV_PREFIX}{name}: {raw!r}") from exc


def load_config(env_file: Optional[Path] = None) -> ClientConfig:
    """Build the config from BINGO_* environment variables.

    Values already present in the environment win over the ones in the .env file.
    """
    if env_file is not None:
        load_dotenv(env_file)

    defaults = ClientConfig()
    config = ClientConfig(
        server_url=_read("SERVER_URL", defaults.server_url, str),
        subprotocol=_read("SUBPROTOCOL", defaults.subprotocol, str),
        reconnect_base_delay=_read(
            "RECONNECT_BASE_DELAY", defaults.reconnect_base_delay, float
        ),
        reconnect_max_delay=_read(
            "RECONNECT_MAX_DELAY", defaults.reconnect_max_delay, float
        ),
        max_reconnect_attempts=_read(
            "MAX_RECONNECT_ATTEMPTS", defaults.max_reconnect_attempts, int
        ),
        heartbeat_interval=_read(
            "HEARTBEAT_INTERVAL", defaults.heartbeat_interval, float
        ),
        auto_call_interval=_read(
            "AUTO_CALL_INTERVAL", defaults.auto_call_interval, float
        ),
        auto_daub=_read("AUTO_DAUB", defaults.auto_daub, _parse_bool),
        auto_claim=_read("AUTO_CLAIM", defaults.auto_claim, _parse_bool),
        database_url=_read("DATABASE_URL", defaults.database_url, str),
        log_level=_read("LOG_LEVEL", defaults.log_level, str).upper(),
    )

    if config.reconnect_base_delay < 0 or config.reconnect_max_delay < 0:
        raise ConfigError("Reconnect delays cannot be negative.")
    if config.max_reconnect_attempts < 0:
        raise ConfigError("MAX_RECONNECT_ATTEMPTS cannot be negative.")
    if config.log_level not in LOG_LEVELS:
        raise ConfigError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}.")
    if config.heartbeat_interval <= 0 or config.auto_call_interval <= 0:
        raise ConfigError("Timer intervals must be positive.")
    return config
