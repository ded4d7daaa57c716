"""Tests for the administrative command line."""

import json

import pytest

from social.graze.grantstore.app.cli import build_parser, create_client, realMain, run_command
from social.graze.grantstore.app.config import Settings
from social.graze.grantstore.errors import ClientNotFound
from social.graze.grantstore.store.sql import SQLClientRegistry, SQLTokenStore


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ("LOGGING_CONFIG_FILE", "METRICS_BACKEND", "SENTRY_DSN"):
        monkeypatch.delenv(name, raising=False)


def test_parser_collects_repeated_grants():
    args = vars(
        build_parser().parse_args(
            ["create-client", "https://cb", "--grant", "authorization_code", "--public"]
        )
    )

    assert args["command"] == "create-client"
    assert args["grants"] == ["authorization_code"]
    assert args["public"] is True


def test_parser_rejects_unknown_grant():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["create-client", "https://cb", "--grant", "password"])


async def test_create_client_defaults(database_session_maker):
    client = await create_client(database_session_maker, "https://client.example.com/cb")

    assert len(client.client_id) == 26
    assert client.client_secret
    assert client.grants == ["authorization_code", "refresh_token"]

    view = await SQLClientRegistry(database_session_maker).resolve_client(
        client.client_id, client.client_secret
    )
    assert view.redirect_uris == ["https://client.example.com/cb"]


async def test_create_public_client(database_session_maker):
    client = await create_client(
        database_session_maker, "https://cb", client_id="public-app", public=True
    )

    assert client.client_secret is None
    with pytest.raises(ClientNotFound):
        await SQLClientRegistry(database_session_maker).resolve_client(
            "public-app", "guess"
        )


async def test_run_command_show_and_revoke(database_session_maker):
    settings = Settings()
    await create_client(database_session_maker, "https://cb", client_id="c1")
    await SQLTokenStore(database_session_maker).issue_refresh_token(
        "rt-1", None, "read", "c1", "u1"
    )

    shown = await run_command(
        {"command": "show-client", "client_id": "c1"}, settings, database_session_maker
    )
    first = await run_command(
        {"command": "revoke-refresh-token", "token": "rt-1"},
        settings,
        database_session_maker,
    )
    second = await run_command(
        {"command": "revoke-refresh-token", "token": "rt-1"},
        settings,
        database_session_maker,
    )
    access = await run_command(
        {"command": "revoke-access-token", "token": "missing"},
        settings,
        database_session_maker,
    )

    assert shown == {
        "id": "c1",
        "grants": ["authorization_code", "refresh_token"],
        "redirectUris": ["https://cb"],
    }
    assert first == {"revoked": True}
    assert second == {"revoked": False}
    assert access == {"revoked": False}


async def test_real_main_round_trip(tmp_path, capsys):
    database_url = f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}"

    await realMain(["--database-url", database_url, "init-db"])
    await realMain(
        [
            "--database-url",
            database_url,
            "create-client",
            "https://client.example.com/cb",
            "--client-id",
            "cli-client",
            "--grant",
            "authorization_code",
        ]
    )
    created = json.loads(capsys.readouterr().out)

    await realMain(["--database-url", database_url, "show-client", "cli-client"])
    shown = json.loads(capsys.readouterr().out)

    assert created["client_id"] == "cli-client"
    assert created["client_secret"]
    assert created["grants"] == ["authorization_code"]
    assert shown == {
        "id": "cli-client",
        "grants": ["authorization_code"],
        "redirectUris": ["https://client.example.com/cb"],
    }
