import argparse
import asyncio
import json
import logging
import os
import secrets
from logging.config import dictConfig
from typing import Any, Dict, List, Optional, Sequence

import sentry_sdk
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from ulid import ULID

from social.graze.grantstore.app.config import Settings
from social.graze.grantstore.app.metrics import create_metrics_client
from social.graze.grantstore.issuer import CredentialIssuer, IssuerPolicy
from social.graze.grantstore.model.base import Base
from social.graze.grantstore.model.oauth import SUPPORTED_GRANTS, OAuthClient
from social.graze.grantstore.store.sql import (
    SQLAuthorizationCodeStore,
    SQLClientRegistry,
    SQLTokenStore,
    create_session_maker,
)

logger = logging.getLogger(__name__)


def configure_logging(debug: bool = False):
    logging_config_file = os.getenv("LOGGING_CONFIG_FILE", "")

    if len(logging_config_file) > 0:
        with open(logging_config_file) as fl:
            dictConfig(json.load(fl))
        return

    logging.basicConfig()
    logging.getLogger().setLevel(logging.DEBUG if debug else logging.INFO)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="grantstore", description="OAuth 2.0 grant store administration"
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="Database URL to use instead of PG_DSN / DATABASE_URL.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    _ = subparsers.add_parser("init-db", help="Create the credential tables")

    create_client = subparsers.add_parser("create-client", help="Register a client")
    create_client.add_argument("callback_url", help="The client's redirect URI.")
    create_client.add_argument(
        "--client-id", default=None, help="Client identifier. Defaults to a ULID."
    )
    create_client.add_argument(
        "--grant",
        dest="grants",
        action="append",
        choices=sorted(SUPPORTED_GRANTS),
        help="Grant the client may use. Repeatable. Defaults to all grants.",
    )
    create_client.add_argument(
        "--public", action="store_true", help="Register a client without a secret."
    )
    create_client.add_argument("--user-id", default=None, help="Owning user.")

    show_client = subparsers.add_parser("show-client", help="Show a client")
    show_client.add_argument("client_id", help="The client identifier.")

    revoke_refresh = subparsers.add_parser(
        "revoke-refresh-token", help="Revoke a refresh token"
    )
    revoke_refresh.add_argument("token", help="The refresh token.")

    revoke_access = subparsers.add_parser(
        "revoke-access-token", help="Revoke an access token"
    )
    revoke_access.add_argument("token", help="The access token.")

    return parser


async def create_client(
    database_session_maker: async_sessionmaker[AsyncSession],
    callback_url: str,
    client_id: Optional[str] = None,
    grants: Optional[List[str]] = None,
    public: bool = False,
    user_id: Optional[str] = None,
) -> OAuthClient:
    """Register a client, generating its identifier and secret when needed."""
    client = OAuthClient(
        client_id=client_id or str(ULID()),
        client_secret=None if public else secrets.token_urlsafe(32),
        callback_url=callback_url,
        grants=sorted(set(grants or SUPPORTED_GRANTS)),
        user_id=user_id,
    )
    return await SQLClientRegistry(database_session_maker).register_client(client)


async def run_command(
    args: Dict[str, Any],
    settings: Settings,
    database_session_maker: async_sessionmaker[AsyncSession],
) -> Dict[str, Any]:
    """Run an administrative command against the database and return its result."""
    command = args.get("command", None)

    if command == "create-client":
        client = await create_client(
            database_session_maker,
            args["callback_url"],
            client_id=args.get("client_id"),
            grants=args.get("grants"),
            public=args.get("public", False),
            user_id=args.get("user_id"),
        )
        return {
            "client_id": client.client_id,
            "client_secret": client.client_secret,
            "callback_url": client.callback_url,
            "grants": client.grants,
        }

    if command == "show-client":
        client_view = await SQLClientRegistry(database_session_maker).resolve_client(
            args["client_id"]
        )
        return client_view.to_external()

    metrics = create_metrics_client(
        settings.metrics_backend,
        host=settings.statsd_host,
        port=settings.statsd_port,
        debug=settings.debug,
    )
    await metrics.connect()
    try:
        issuer = CredentialIssuer(
            SQLClientRegistry(database_session_maker),
            SQLAuthorizationCodeStore(database_session_maker),
            SQLTokenStore(database_session_maker),
            policy=IssuerPolicy.from_settings(settings),
            metrics=metrics,
            metrics_prefix=settings.statsd_prefix,
        )
        if command == "revoke-refresh-token":
            return {"revoked": await issuer.revoke_refresh_token(args["token"])}
        if command == "revoke-access-token":
            return {"revoked": await issuer.revoke_access_token(args["token"])}
    finally:
        await metrics.close()

    raise ValueError(f"Unknown command: {command}")


async def realMain(argv: Optional[Sequence[str]] = None) -> None:
    args = vars(build_parser().parse_args(argv))

    settings = Settings()  # type: ignore
    configure_logging(settings.debug)

    if settings.sentry_dsn:
        sentry_sdk.init(dsn=settings.sentry_dsn)

    engine = create_async_engine(args.get("database_url") or str(settings.pg_dsn))
    try:
        if args.get("command") == "init-db":
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Created credential tables")
            return

        result = await run_command(args, settings, create_session_maker(engine))
        print(json.dumps(result, indent=2, default=str))
    finally:
        await engine.dispose()


def invoke():
    asyncio.run(realMain())


if __name__ == "__main__":
    invoke()
