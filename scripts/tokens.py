"""Operator utility for the refresh-token store.

Sub-commands:

1. ``list`` prints every enrolled Spotify user id with its last update time.
2. ``remove USER_ID`` deletes a stored refresh token, forcing that user to log
   in again through ``/login``.
3. ``check`` validates the settings in an env file and confirms the token
   store document parses, without modifying it.

Example usages::

    python -m scripts.tokens list
    python -m scripts.tokens remove 31abcxyz --store /srv/bridge/data/refreshTokens.json
    python -m scripts.tokens check --env-file /srv/bridge/.env
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from app.clients.token_store import JsonFileTokenStore
from app.core.config import AppSettings, StorageSettings, _load_env_file

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_STORE_ERROR = 3
EXIT_UNKNOWN_USER = 4
EXIT_RUNTIME_ERROR = 5


def _store_path(args: argparse.Namespace) -> Path:
    if args.store is not None:
        return args.store
    return Path(StorageSettings().token_store_path)


def _list_users(store: JsonFileTokenStore) -> int:
    users = store.list_users()
    if not users:
        print("No users enrolled.")
        return EXIT_OK
    for user in users:
        updated = user.last_updated.isoformat() if user.last_updated else "unknown"
        print(f"{user.user_id}\t{updated}")
    print(f"{len(users)} user(s) enrolled.")
    return EXIT_OK


def _remove_user(store: JsonFileTokenStore, user_id: str) -> int:
    if store.get(user_id) is None:
        print(f"No refresh token stored for {user_id}.", file=sys.stderr)
        return EXIT_UNKNOWN_USER
    store.remove(user_id)
    print(f"Removed refresh token for {user_id}.")
    return EXIT_OK


def _check(env_file: Path, store_path: Path) -> int:
    """Validate settings and parse the store without triggering its self-heal."""
    if not env_file.exists():
        print(
            f"Environment file {env_file} does not exist. "
            "Ensure the path is correct or create it before running this tool.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    _load_env_file(str(env_file))
    try:
        AppSettings()  # type: ignore[call-arg]
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR

    if store_path.exists():
        raw = store_path.read_bytes()
        try:
            data = json.loads(raw.decode("utf-8")) if raw.strip() else {}
        except (UnicodeDecodeError, json.JSONDecodeError):
            data = None
        if not isinstance(data, dict):
            print(
                f"Token store {store_path} is not a JSON object; the service "
                "will reset it to an empty store on its next read.",
                file=sys.stderr,
            )
            return EXIT_STORE_ERROR
        print(f"Token store OK ({len(data)} user(s)).")
    else:
        print(f"Token store {store_path} does not exist yet; it is created on first login.")

    print("Settings OK.")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Inspect and maintain stored Spotify refresh tokens."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_store_argument(subparser: argparse.ArgumentParser) -> None:
        subparser.add_argument(
            "--store",
            default=None,
            type=Path,
            help="Path to the token store (default: TOKEN_STORE_PATH or data/refreshTokens.json).",
        )

    list_parser = subparsers.add_parser("list", help="List enrolled users.")
    add_store_argument(list_parser)

    remove_parser = subparsers.add_parser(
        "remove", help="Delete the refresh token stored for a user."
    )
    remove_parser.add_argument("user_id", help="Spotify user id to remove.")
    add_store_argument(remove_parser)

    check_parser = subparsers.add_parser(
        "check", help="Validate settings and the token store document."
    )
    check_parser.add_argument(
        "--env-file",
        default=".env",
        type=Path,
        help="Path to the environment file (default: .env in the repo root).",
    )
    add_store_argument(check_parser)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    command: str = args.command
    handlers: dict[str, Callable[[], int]] = {
        "list": lambda: _list_users(JsonFileTokenStore(str(_store_path(args)))),
        "remove": lambda: _remove_user(
            JsonFileTokenStore(str(_store_path(args))), args.user_id
        ),
        "check": lambda: _check(args.env_file, _store_path(args)),
    }
    try:
        return handlers[command]()
    except OSError as exc:
        print(f"Unexpected error accessing the token store: {exc}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
