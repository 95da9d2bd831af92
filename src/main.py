"""Headless bingo client: join a game, print the card and play along (auto-daub / auto-claim come from the config)."""

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Optional

from src.bingo.session import STAKES
from src.core.config import load_config
from src.core.exceptions import ConfigError, RepositoryError, SessionStateError
from src.core.logging_utils import setup_logging
from src.core.models import ADMIN_CREDENTIAL, CredentialModel
from src.core.shared_types import GameVariant
from src.db.database import make_session_factory
from src.db.sql_repository import SQLCredentialRepository
from src.services.bingo_client import BingoClient

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Real-time multiplayer bingo client")
    parser.add_argument(
        "--variant",
        choices=[variant.value for variant in GameVariant],
        default=GameVariant.BALL_75.value,
    )
    parser.add_argument("--stake", type=int, choices=STAKES, default=STAKES[0])
    parser.add_argument("--name", default="")
    parser.add_argument("--phone", default="")
    parser.add_argument("--board", type=int, default=1, help="board number 1-100")
    parser.add_argument("--seed", type=int, default=None, help="seed for the card layout")
    parser.add_argument("--admin", action="store_true", help="log in with the stored admin token")
    parser.add_argument("--auto-call", action="store_true", help="admin: keep calling numbers")
    parser.add_argument(
        "--set-admin-token", metavar="TOKEN", help="store the admin token and exit"
    )
    parser.add_argument("--env-file", type=Path, default=None)
    parser.add_argument("-v", "--verbose", action="count", default=0)
    return parser


async def play(args: argparse.Namespace, client: BingoClient) -> None:
    connection = client.connect()
    await client.join(args.variant, args.stake, args.name, args.phone, args.board)
    board = await client.start_round(seed=args.seed)
    for row in board.to_rows():
        print(" ".join(f"{label:>3}" for label in row))
    if client.session.target_pattern is not None:
        print(f"Pattern to play: {client.session.target_pattern}")

    if args.auto_call:
        # login_success arrives after the connection opened
        while not client.session.is_admin and not connection.done():
            await asyncio.sleep(0.1)
        if client.session.is_admin:
            client.start_auto_call()

    try:
        await connection
    finally:
        await client.disconnect()


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = load_config(args.env_file)
    except ConfigError as exc:
        parser.error(str(exc))
    setup_logging(args.verbose, config.log_level)

    session_factory = make_session_factory(config.database_url)
    try:
        with session_factory() as db:
            credentials = SQLCredentialRepository(db)
            if args.set_admin_token:
                credentials.save_credential(
                    CredentialModel(name=ADMIN_CREDENTIAL, token=args.set_admin_token)
                )
                print("Admin token stored.")
                return
            client = BingoClient(config, credentials=credentials, admin=args.admin)
    except RepositoryError as exc:
        parser.error(str(exc))

    try:
        asyncio.run(play(args, client))
    except SessionStateError as exc:
        parser.error(str(exc))
    except KeyboardInterrupt:
        logger.info("Interrupted, bye.")


if __name__ == "__main__":
    main()
