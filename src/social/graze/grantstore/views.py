"""
External Credential Views

Storage records use snake_case column names; the grant-flow engine that calls
the issuer speaks camelCase (``authorizationCode``, ``expiresAt``,
``redirectUri`` and so on). The view models in this module are the only place
the two vocabularies meet.

Each view keeps snake_case attribute names for Python callers and exposes the
camelCase names through aliases, so ``view.to_external()`` produces the wire
vocabulary while ``view.client_id`` stays readable in code. The ``*_view``
functions perform the storage-to-view mapping explicitly, field by field.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from social.graze.grantstore.model.oauth import (
    OAuthAccessToken,
    OAuthAuthorizationCode,
    OAuthClient,
    OAuthRefreshToken,
)


class ExternalView(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    def to_external(self) -> Dict[str, Any]:
        """Serialize using the grant-flow engine's camelCase field names."""
        return self.model_dump(by_alias=True)


class ClientView(ExternalView):
    id: str
    grants: List[str]
    redirect_uris: List[str]


class AuthorizationCodeView(ExternalView):
    authorization_code: str
    expires_at: datetime
    redirect_uri: str
    scope: str
    client_id: str
    user_id: str


class AccessTokenView(ExternalView):
    access_token: str
    access_token_expires_at: datetime
    scope: str
    client_id: str
    user_id: str


class RefreshTokenView(ExternalView):
    refresh_token: str
    refresh_token_expires_at: Optional[datetime] = None
    scope: str
    client_id: str
    user_id: str


class TokenView(ExternalView):
    """Result of a code exchange or refresh.

    ``refresh_token`` is None when the client is not allowed the
    refresh_token grant.
    """

    access_token: str
    access_token_expires_at: datetime
    refresh_token: Optional[str] = None
    refresh_token_expires_at: Optional[datetime] = None
    scope: str
    client_id: str
    user_id: str


def client_view(client: OAuthClient) -> ClientView:
    return ClientView(
        id=client.client_id,
        grants=list(client.grants),
        redirect_uris=[client.callback_url],
    )


def authorization_code_view(record: OAuthAuthorizationCode) -> AuthorizationCodeView:
    return AuthorizationCodeView(
        authorization_code=record.authorization_code,
        expires_at=record.expires_at,
        redirect_uri=record.redirect_uri,
        scope=record.scope,
        client_id=record.client_id,
        user_id=record.user_id,
    )


def access_token_view(record: OAuthAccessToken) -> AccessTokenView:
    return AccessTokenView(
        access_token=record.access_token,
        access_token_expires_at=record.access_token_expires_at,
        scope=record.scope,
        client_id=record.client_id,
        user_id=record.user_id,
    )


def refresh_token_view(record: OAuthRefreshToken) -> RefreshTokenView:
    return RefreshTokenView(
        refresh_token=record.refresh_token,
        refresh_token_expires_at=record.refresh_token_expires_at,
        scope=record.scope,
        client_id=record.client_id,
        user_id=record.user_id,
    )


def token_view(
    access_token: OAuthAccessToken, refresh_token: Optional[OAuthRefreshToken]
) -> TokenView:
    """Combine an access token and its optional refresh token into one view."""
    return TokenView(
        access_token=access_token.access_token,
        access_token_expires_at=access_token.access_token_expires_at,
        refresh_token=refresh_token.refresh_token if refresh_token else None,
        refresh_token_expires_at=(
            refresh_token.refresh_token_expires_at if refresh_token else None
        ),
        scope=access_token.scope,
        client_id=access_token.client_id,
        user_id=access_token.user_id,
    )
