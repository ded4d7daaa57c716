"""OAuth 2.0 credential data models for the grant store.

Provides SQLAlchemy models for registered clients, authorization codes,
access tokens and refresh tokens, plus the conditional delete statements
used to consume and revoke credentials atomically.
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, Delete, Index, String, delete
from sqlalchemy.orm import Mapped, mapped_column

from social.graze.grantstore.model.base import Base, str512, str1024, tokenpk

GRANT_AUTHORIZATION_CODE = "authorization_code"
GRANT_REFRESH_TOKEN = "refresh_token"
SUPPORTED_GRANTS = frozenset({GRANT_AUTHORIZATION_CODE, GRANT_REFRESH_TOKEN})


class OAuthClient(Base):
    """Registered OAuth client.

    Provisioned out of band and read-only to the credential issuer. Public
    clients have no secret.
    """

    __tablename__ = "oauth_clients"

    client_id: Mapped[str] = mapped_column(String(512), primary_key=True)
    client_secret: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    callback_url: Mapped[str1024]
    grants: Mapped[List[str]] = mapped_column(JSON, nullable=False)
    user_id: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)


class OAuthAuthorizationCode(Base):
    """One-time authorization code tied to a client and user.

    Deleted when exchanged or revoked, never updated in place.
    """

    __tablename__ = "oauth_authorization_codes"

    authorization_code: Mapped[tokenpk]
    expires_at: Mapped[datetime]
    redirect_uri: Mapped[str1024]
    scope: Mapped[str1024]
    client_id: Mapped[str512]
    user_id: Mapped[str512]

    __table_args__ = (
        Index("idx_oauth_authorization_codes_client_id", "client_id"),
        Index("idx_oauth_authorization_codes_user_id", "user_id"),
    )


class OAuthAccessToken(Base):
    """Issued access token.

    Expiry is enforced by whoever verifies the token; expired rows remain
    until revoked.
    """

    __tablename__ = "oauth_access_tokens"

    access_token: Mapped[tokenpk]
    access_token_expires_at: Mapped[datetime]
    scope: Mapped[str1024]
    client_id: Mapped[str512]
    user_id: Mapped[str512]

    __table_args__ = (
        Index("idx_oauth_access_tokens_client_id", "client_id"),
        Index("idx_oauth_access_tokens_user_id", "user_id"),
    )


class OAuthRefreshToken(Base):
    """Issued refresh token. A null expiry means the token never expires."""

    __tablename__ = "oauth_refresh_tokens"

    refresh_token: Mapped[tokenpk]
    refresh_token_expires_at: Mapped[Optional[datetime]]
    scope: Mapped[str1024]
    client_id: Mapped[str512]
    user_id: Mapped[str512]

    __table_args__ = (
        Index("idx_oauth_refresh_tokens_client_id", "client_id"),
        Index("idx_oauth_refresh_tokens_user_id", "user_id"),
    )


def consume_authorization_code_stmt(authorization_code: str) -> Delete:
    """Create the delete statement that consumes an authorization code.

    The affected row count of the executed statement tells the caller whether
    it removed the code. Only one concurrent executor can see a count of one.
    """
    return delete(OAuthAuthorizationCode).where(
        OAuthAuthorizationCode.authorization_code == authorization_code
    )


def revoke_access_token_stmt(access_token: str) -> Delete:
    return delete(OAuthAccessToken).where(
        OAuthAccessToken.access_token == access_token
    )


def revoke_refresh_token_stmt(refresh_token: str) -> Delete:
    return delete(OAuthRefreshToken).where(
        OAuthRefreshToken.refresh_token == refresh_token
    )
