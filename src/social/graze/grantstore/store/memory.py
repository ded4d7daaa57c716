"""In-process store backend.

Useful as a test double and for running isolated issuers without a database.
Every mutation completes without awaiting anything, so on a single event loop
each one is atomic: ``consume`` and ``revoke_*`` can only report True to one
caller. The backend is not shared between processes.
"""
from datetime import datetime
from typing import Dict, Optional

from social.graze.grantstore.errors import StorageIntegrityError
from social.graze.grantstore.model.oauth import (
    OAuthAccessToken,
    OAuthAuthorizationCode,
    OAuthClient,
    OAuthRefreshToken,
)
from social.graze.grantstore.store.base import match_client
from social.graze.grantstore.views import ClientView


class MemoryClientRegistry:
    def __init__(self) -> None:
        self.clients: Dict[str, OAuthClient] = {}

    async def resolve_client(
        self, client_id: str, client_secret: Optional[str] = None
    ) -> ClientView:
        return match_client(self.clients.get(client_id), client_secret)

    async def register_client(self, client: OAuthClient) -> OAuthClient:
        if client.client_id in self.clients:
            raise StorageIntegrityError(f"duplicate client {client.client_id}")
        self.clients[client.client_id] = client
        return client


class MemoryAuthorizationCodeStore:
    def __init__(self) -> None:
        self.codes: Dict[str, OAuthAuthorizationCode] = {}

    async def issue(
        self,
        authorization_code: str,
        expires_at: datetime,
        redirect_uri: str,
        scope: str,
        client_id: str,
        user_id: str,
    ) -> OAuthAuthorizationCode:
        if authorization_code in self.codes:
            raise StorageIntegrityError("duplicate authorization code")
        record = OAuthAuthorizationCode(
            authorization_code=authorization_code,
            expires_at=expires_at,
            redirect_uri=redirect_uri,
            scope=scope,
            client_id=client_id,
            user_id=user_id,
        )
        self.codes[authorization_code] = record
        return record

    async def lookup(self, authorization_code: str) -> Optional[OAuthAuthorizationCode]:
        return self.codes.get(authorization_code)

    async def consume(self, authorization_code: str) -> bool:
        return self.codes.pop(authorization_code, None) is not None


class MemoryTokenStore:
    def __init__(self) -> None:
        self.access_tokens: Dict[str, OAuthAccessToken] = {}
        self.refresh_tokens: Dict[str, OAuthRefreshToken] = {}

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
        if refresh_token in self.refresh_tokens:
            raise StorageIntegrityError("duplicate refresh token")
        record = OAuthRefreshToken(
            refresh_token=refresh_token,
            refresh_token_expires_at=expires_at,
            scope=scope,
            client_id=client_id,
            user_id=user_id,
        )
        self.refresh_tokens[refresh_token] = record
        return record

    async def issue_tokens(
        self,
        access_token: OAuthAccessToken,
        refresh_token: Optional[OAuthRefreshToken] = None,
    ) -> None:
        # Check both keys before writing either.
        if access_token.access_token in self.access_tokens:
            raise StorageIntegrityError("duplicate access token")
        if refresh_token is not None and refresh_token.refresh_token in self.refresh_tokens:
            raise StorageIntegrityError("duplicate refresh token")
        self.access_tokens[access_token.access_token] = access_token
        if refresh_token is not None:
            self.refresh_tokens[refresh_token.refresh_token] = refresh_token

    async def lookup_access_token(self, access_token: str) -> Optional[OAuthAccessToken]:
        return self.access_tokens.get(access_token)

    async def lookup_refresh_token(
        self, refresh_token: str
    ) -> Optional[OAuthRefreshToken]:
        return self.refresh_tokens.get(refresh_token)

    async def revoke_access_token(self, access_token: str) -> bool:
        return self.access_tokens.pop(access_token, None) is not None

    async def revoke_refresh_token(self, refresh_token: str) -> bool:
        return self.refresh_tokens.pop(refresh_token, None) is not None

    async def rotate_refresh_token(
        self,
        refresh_token: str,
        access_token: OAuthAccessToken,
        replacement: OAuthRefreshToken,
    ) -> bool:
        if refresh_token not in self.refresh_tokens:
            return False
        if access_token.access_token in self.access_tokens:
            raise StorageIntegrityError("duplicate access token")
        if replacement.refresh_token in self.refresh_tokens:
            raise StorageIntegrityError("duplicate refresh token")
        del self.refresh_tokens[refresh_token]
        self.access_tokens[access_token.access_token] = access_token
        self.refresh_tokens[replacement.refresh_token] = replacement
        return True
