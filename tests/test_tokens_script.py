"""Tests for the refresh-token store maintenance script."""

from __future__ import annotations

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import json
from pathlib import Path

import pytest

from app.clients.token_store import JsonFileTokenStore
from scripts import tokens

REQUIRED_ENV_KEYS = [
    "SPOTIFY_CLIENT_ID",
    "SPOTIFY_CLIENT_SECRET",
    "SPOTIFY_REDIRECT_URI",
]


def _write_env(env_path: Path, **values: str) -> None:
    contents = "\n".join(f"{key}={value}" for key, value in values.items())
    env_path.write_text(contents + "\n", encoding="utf-8")


@pytest.fixture()
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "refreshTokens.json"


def test_list_reports_enrolled_users(store_path: Path, capsys) -> None:
    store = JsonFileTokenStore(str(store_path))
    store.save("user-a", "ra")
    store.save("user-b", "rb")

    exit_code = tokens.main(["list", "--store", str(store_path)])

    assert exit_code == tokens.EXIT_OK
    out = capsys.readouterr().out
    assert "user-a" in out
    assert "user-b" in out
    assert "2 user(s) enrolled." in out


def test_list_on_empty_store(store_path: Path, capsys) -> None:
    exit_code = tokens.main(["list", "--store", str(store_path)])

    assert exit_code == tokens.EXIT_OK
    assert "No users enrolled." in capsys.readouterr().out


def test_remove_deletes_only_the_named_user(store_path: Path) -> None:
    store = JsonFileTokenStore(str(store_path))
    store.save("user-a", "ra")
    store.save("user-b", "rb")

    exit_code = tokens.main(["remove", "user-a", "--store", str(store_path)])

    assert exit_code == tokens.EXIT_OK
    document = json.loads(store_path.read_text(encoding="utf-8"))
    assert set(document) == {"user-b"}


def test_remove_unknown_user_fails(store_path: Path) -> None:
    exit_code = tokens.main(["remove", "ghost", "--store", str(store_path)])

    assert exit_code == tokens.EXIT_UNKNOWN_USER


def test_check_requires_existing_env_file(tmp_path: Path, store_path: Path) -> None:
    exit_code = tokens.main(
        ["check", "--env-file", str(tmp_path / ".missing"), "--store", str(store_path)]
    )

    assert exit_code == tokens.EXIT_RUNTIME_ERROR


def test_check_reports_missing_settings(
    tmp_path: Path, store_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    for key in REQUIRED_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    env_file = tmp_path / ".env"
    _write_env(env_file, SPOTIFY_CLIENT_ID="client")

    exit_code = tokens.main(
        ["check", "--env-file", str(env_file), "--store", str(store_path)]
    )

    assert exit_code == tokens.EXIT_VALIDATION_ERROR


def test_check_flags_malformed_store_without_rewriting_it(
    tmp_path: Path, store_path: Path
) -> None:
    env_file = tmp_path / ".env"
    _write_env(env_file, SPOTIFY_CLIENT_ID="client")
    store_path.write_text("[1, 2]", encoding="utf-8")

    exit_code = tokens.main(
        ["check", "--env-file", str(env_file), "--store", str(store_path)]
    )

    assert exit_code == tokens.EXIT_STORE_ERROR
    assert store_path.read_text(encoding="utf-8") == "[1, 2]"


def test_check_accepts_valid_settings_and_store(
    tmp_path: Path, store_path: Path, capsys
) -> None:
    env_file = tmp_path / ".env"
    _write_env(env_file, SPOTIFY_CLIENT_ID="client")
    JsonFileTokenStore(str(store_path)).save("user-a", "ra")

    exit_code = tokens.main(
        ["check", "--env-file", str(env_file), "--store", str(store_path)]
    )

    assert exit_code == tokens.EXIT_OK
    out = capsys.readouterr().out
    assert "Token store OK (1 user(s))." in out
    assert "Settings OK." in out


def test_check_flags_undecodable_store(tmp_path: Path, store_path: Path) -> None:
    env_file = tmp_path / ".env"
    _write_env(env_file, SPOTIFY_CLIENT_ID="client")
    store_path.write_bytes(b'{"u1": \xff\xfe garbage')

    exit_code = tokens.main(
        ["check", "--env-file", str(env_file), "--store", str(store_path)]
    )

    assert exit_code == tokens.EXIT_STORE_ERROR
    assert store_path.read_bytes() == b'{"u1": \xff\xfe garbage'
