"""Store interfaces consumed by the credential issuer.

The issuer depends only on these protocols. Backends supply the persistence:
``sql.py`` for SQLAlchemy databases and ``memory.py`` for tests and isolated
instances. Lookups return ``None`` for missing records; the issuer decides
which named error that becomes.
"""
from datetime import datetime
import secrets
from typing import Optional, Protocol

from social.graze.grantstore.errors import ClientNotFound
from social.graze.grantstore.model.oauth import (
    OAuthAccessToken,
    OAuthAuthorizationCode,
    OAuthClient,
    OAuthRefreshToken,
)
from social.graze.grantstore.views import ClientView, client_view


def match_client(
    client: Optional[OAuthClient], client_secret: Optional[str] = None
) -> ClientView:
    """Apply the client matching rule shared by every registry backend.

    An empty or missing secret matches on identifier alone (public client
    flow). A supplied secret must equal the stored one.
    """
    if client is None:
        raise ClientNotFound()
    if client_secret:
        if client.client_secret is None or not secrets.compare_digest(
            client.client_secret.encode("utf-8"), client_secret.encode("utf-8")
        ):
            raise ClientNotFound()
    return client_view(client)


class ClientRegistry(Protocol):
    async def resolve_client(
        self, client_id: str, client_secret: Optional[str] = None
    ) -> ClientView:
        """Resolve a client, verifying the secret when one is supplied.

        Raises ClientNotFound for a missing client and for a secret mismatch.
        """
        ...

    async def register_client(self, client: OAuthClient) -> OAuthClient:
        """Provision a client. Administrative use only."""
        ...


class AuthorizationCodeStore(Protocol):
    async def issue(
        self,
        authorization_code: str,
        expires_at: datetime,
        redirect_uri: str,
        scope: str,
        client_id: str,
        user_id: str,
    ) -> OAuthAuthorizationCode: ...

    async def lookup(self, authorization_code: str) -> Optional[OAuthAuthorizationCode]: ...

    async def consume(self, authorization_code: str) -> bool:
        """Remove the code, returning True only for the caller that removed it."""
        ...


class TokenStore(Protocol):
    async def issue_access_token(
        self,
        access_token: str,
        expires_at: datetime,
        scope: str,
        client_id: str,
        user_id: str,
    ) -> OAuthAccessToken: ...

    async def issue_refresh_token(
        self,
        refresh_token: str,
        expires_at: Optional[datetime],
        scope: str,
        client_id: str,
        user_id: str,
    ) -> OAuthRefreshToken: ...

    async def issue_tokens(
        self,
        access_token: OAuthAccessToken,
        refresh_token: Optional[OAuthRefreshToken] = None,
    ) -> None:
        """Persist an access token and optional refresh token together.

        Either both records are stored or neither is.
        """
        ...

    async def lookup_access_token(self, access_token: str) -> Optional[OAuthAccessToken]: ...

    async def lookup_refresh_token(
        self, refresh_token: str
    ) -> Optional[OAuthRefreshToken]: ...

    async def revoke_access_token(self, access_token: str) -> bool: ...

    async def revoke_refresh_token(self, refresh_token: str) -> bool: ...

    async def rotate_refresh_token(
        self,
        refresh_token: str,
        access_token: OAuthAccessToken,
        replacement: OAuthRefreshToken,
    ) -> bool:
        """Replace a refresh token with a new access and refresh token.

        The removal and both writes happen together. Returns False, storing
        nothing, when ``refresh_token`` no longer exists.
        """
        ...
