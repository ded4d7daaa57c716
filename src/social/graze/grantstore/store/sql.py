"""
SQLAlchemy Store Backend

Implements the client registry, authorization code store and token store on
top of an async SQLAlchemy session factory. Each operation runs in its own
short transaction; nothing is held open between calls, so the stores can be
shared freely between concurrent requests, tasks and worker processes.

Consumption and revocation are single ``DELETE ... WHERE`` statements. The
statement's affected row count decides whether the caller removed the row,
which is what makes single-use authorization codes safe under concurrency.
A select followed by a delete would not be.

Any SQLAlchemy or connection failure is re-raised as StorageIntegrityError
with the original exception chained.
"""

import contextlib
import logging
from datetime import datetime
from typing import Iterator, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from social.graze.grantstore.errors import StorageIntegrityError
from social.graze.grantstore.model.oauth import (
    OAuthAccessToken,
    OAuthAuthorizationCode,
    OAuthClient,
    OAuthRefreshToken,
    consume_authorization_code_stmt,
    revoke_access_token_stmt,
    revoke_refresh_token_stmt,
)
from social.graze.grantstore.store.base import match_client
from social.graze.grantstore.views import ClientView

logger = logging.getLogger(__name__)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the session factory the SQL stores expect.

    Records are returned to callers after their transaction commits, so
    instances must not be expired on commit.
    """
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@contextlib.contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Storage failure during %s: %s", operation, type(e).__name__)
        raise StorageIntegrityError(f"{operation} failed: {type(e).__name__}") from e


class SQLClientRegistry:
    def __init__(self, database_session_maker: async_sessionmaker[AsyncSession]):
        self.database_session_maker = database_session_maker

    async def resolve_client(
        self, client_id: str, client_secret: Optional[str] = None
    ) -> ClientView:
        with storage_errors("resolve_client"):
            async with self.database_session_maker() as database_session:
                client = await database_session.get(OAuthClient, client_id)
        return match_client(client, client_secret)

    async def register_client(self, client: OAuthClient) -> OAuthClient:
        with storage_errors("register_client"):
            async with self.database_session_maker() as database_session:
                async with database_session.begin():
                    database_session.add(client)
        logger.info("Registered client %s", client.client_id)
        return client


class SQLAuthorizationCodeStore:
    def __init__(self, database_session_maker: async_sessionmaker[AsyncSession]):
        self.database_session_maker = database_session_maker

    async def issue(
        self,
        authorization_code: str,
        expires_at: datetime,
        redirect_uri: str,
        scope: str,
        client_id: str,
        user_id: str,
    ) -> OAuthAuthorizationCode:
        record = OAuthAuthorizationCode(
            authorization_code=authorization_code,
            expires_at=expires_at,
            redirect_uri=redirect_uri,
            scope=scope,
            client_id=client_id,
            user_id=user_id,
        )
        with storage_errors("issue_authorization_code"):
            async with self.database_session_maker() as database_session:
                async with database_session.begin():
                    database_session.add(record)
        return record

    async def lookup(self, authorization_code: str) -> Optional[OAuthAuthorizationCode]:
        with storage_errors("lookup_authorization_code"):
            async with self.database_session_maker() as database_session:
                return (
                    await database_session.scalars(
                        select(OAuthAuthorizationCode).where(
                            OAuthAuthorizationCode.authorization_code
                            == authorization_code
                        )
                    )
                ).one_or_none()

    async def consume(self, authorization_code: str) -> bool:
        with storage_errors("consume_authorization_code"):
            async with self.database_session_maker() as database_session:
                async with database_session.begin():
                    result = await database_session.execute(
                        consume_authorization_code_stmt(authorization_code)
                    )
        return result.rowcount == 1


class SQLTokenStore:
    def __init__(self, database_session_maker: async_sessionmaker[AsyncSession]):
        self.database_session_maker = database_session_maker

    async def issue_access_token(
        self,
        access_token: str,
        expires_at: datetime,
        scope: str,
        client_id: str,
        user_id: str,
    ) -> OAuthAccessToken:
        record = OAuthAccessToken(
            access_token=access_token,
            access_token_expires_at=expires_at,
            scope=scope,
            client_id=client_id,
            user_id=user_id,
        )
        await self.issue_tokens(record)
        return record

    async def issue_refresh_token(
        self,
        refresh_token: str,
        expires_at: Optional[datetime],
        scope: str,
        client_id: str,
        user_id: str,
    ) -> OAuthRefreshToken:
        record = OAuthRefreshToken(
            refresh_token=refresh_token,
            refresh_token_expires_at=expires_at,
            scope=scope,
            client_id=client_id,
            user_id=user_id,
        )
        with storage_errors("issue_refresh_token"):
            async with self.database_session_maker() as database_session:
                async with database_session.begin():
                    database_session.add(record)
        return record

    async def issue_tokens(
        self,
        access_token: OAuthAccessToken,
        refresh_token: Optional[OAuthRefreshToken] = None,
    ) -> None:
        with storage_errors("issue_tokens"):
            async with self.database_session_maker() as database_session:
                async with database_session.begin():
                    database_session.add(access_token)
                    if refresh_token is not None:
                        database_session.add(refresh_token)

    async def lookup_access_token(self, access_token: str) -> Optional[OAuthAccessToken]:
        with storage_errors("lookup_access_token"):
            async with self.database_session_maker() as database_session:
                return await database_session.get(OAuthAccessToken, access_token)

    async def lookup_refresh_token(
        self, refresh_token: str
    ) -> Optional[OAuthRefreshToken]:
        with storage_errors("lookup_refresh_token"):
            async with self.database_session_maker() as database_session:
                return await database_session.get(OAuthRefreshToken, refresh_token)

    async def revoke_access_token(self, access_token: str) -> bool:
        with storage_errors("revoke_access_token"):
            async with self.database_session_maker() as database_session:
                async with database_session.begin():
                    result = await database_session.execute(
                        revoke_access_token_stmt(access_token)
                    )
        return result.rowcount == 1

    async def revoke_refresh_token(self, refresh_token: str) -> bool:
        with storage_errors("revoke_refresh_token"):
            async with self.database_session_maker() as database_session:
                async with database_session.begin():
                    result = await database_session.execute(
                        revoke_refresh_token_stmt(refresh_token)
                    )
        return result.rowcount == 1

    async def rotate_refresh_token(
        self,
        refresh_token: str,
        access_token: OAuthAccessToken,
        replacement: OAuthRefreshToken,
    ) -> bool:
        with storage_errors("rotate_refresh_token"):
            async with self.database_session_maker() as database_session:
                async with database_session.begin():
                    result = await database_session.execute(
                        revoke_refresh_token_stmt(refresh_token)
                    )
                    if result.rowcount != 1:
                        return False
                    # Flushed on commit; a failed insert rolls back the delete.
                    database_session.add(access_token)
                    database_session.add(replacement)
        return True
