"""
Credential Issuer

This module implements the OAuth 2.0 credential lifecycle on top of the
client registry, authorization code store and token store. It is what a
grant-flow engine calls in response to protocol requests.

An authorization code moves through these states:

    REQUESTED -> CODE_ISSUED -> EXCHANGED
                            \\-> REVOKED
                            \\-> EXPIRED

Expiry is detected lazily when a code is exchanged; nothing sweeps expired
rows. A code leaves CODE_ISSUED exactly once because the store's ``consume``
reports removal to a single caller, and the issuer only issues tokens to
that caller.

Refresh tokens are static by default: ``refresh`` mints a new access token
and leaves the presented refresh token valid. With ``rotate_on_refresh`` the
presented token is swapped for a new one in a single store call, so a
failed write leaves the old token usable. Revoking a refresh token never
revokes access tokens issued under it; those stay valid until their own
expiry.

Access and refresh tokens issued together are written in one store call
that persists both or neither, so a failed refresh token write never leaves
an orphaned access token behind.

The issuer holds no mutable state of its own. All shared state lives in the
stores, so any number of issuers may run concurrently against one backend.
"""

import contextlib
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from time import time
from typing import Callable, Iterator, Optional

import sentry_sdk

from social.graze.grantstore.app.config import Settings
from social.graze.grantstore.app.metrics import MetricsClient, NoOpMetricsClient
from social.graze.grantstore.errors import (
    AccessTokenNotFound,
    CodeAlreadyUsed,
    CodeExpired,
    CodeNotFound,
    CredentialError,
    InvalidClient,
    InvalidRedirectUri,
    RefreshTokenExpired,
    RefreshTokenNotFound,
    StorageIntegrityError,
)
from social.graze.grantstore.model.oauth import (
    GRANT_AUTHORIZATION_CODE,
    GRANT_REFRESH_TOKEN,
    OAuthAccessToken,
    OAuthRefreshToken,
)
from social.graze.grantstore.store.base import (
    AuthorizationCodeStore,
    ClientRegistry,
    TokenStore,
)
from social.graze.grantstore.views import (
    AccessTokenView,
    AuthorizationCodeView,
    ClientView,
    TokenView,
    access_token_view,
    authorization_code_view,
    token_view,
)

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_token() -> str:
    return secrets.token_urlsafe(32)


@dataclass(frozen=True)
class IssuerPolicy:
    """Lifetimes and refresh behaviour applied by the issuer."""

    authorization_code_lifetime: timedelta = timedelta(seconds=600)
    access_token_lifetime: timedelta = timedelta(seconds=3600)
    refresh_token_lifetime: Optional[timedelta] = None
    rotate_on_refresh: bool = False
    refresh_token_leeway: timedelta = timedelta(0)

    @classmethod
    def from_settings(cls, settings: Settings) -> "IssuerPolicy":
        return cls(
            authorization_code_lifetime=timedelta(
                seconds=settings.authorization_code_lifetime
            ),
            access_token_lifetime=timedelta(seconds=settings.access_token_lifetime),
            refresh_token_lifetime=(
                timedelta(seconds=settings.refresh_token_lifetime)
                if settings.refresh_token_lifetime is not None
                else None
            ),
            rotate_on_refresh=settings.rotate_on_refresh,
            refresh_token_leeway=timedelta(seconds=settings.refresh_token_leeway),
        )


class CredentialIssuer:
    """
    Issue, exchange, refresh and revoke OAuth 2.0 credentials.

    Args:
        clients: Client registry used to validate clients and their grants
        codes: Authorization code store
        tokens: Access and refresh token store
        policy: Lifetimes and refresh behaviour
        token_generator: Produces code and token values; must be unpredictable
            in production
        clock: Returns the current timezone-aware time
        metrics: Receives a count and a timing for every operation
        metrics_prefix: Prefix for metric names
    """

    def __init__(
        self,
        clients: ClientRegistry,
        codes: AuthorizationCodeStore,
        tokens: TokenStore,
        policy: Optional[IssuerPolicy] = None,
        token_generator: Callable[[], str] = generate_token,
        clock: Callable[[], datetime] = utc_now,
        metrics: Optional[MetricsClient] = None,
        metrics_prefix: str = "grantstore",
    ) -> None:
        self.clients = clients
        self.codes = codes
        self.tokens = tokens
        self.policy = policy or IssuerPolicy()
        self.token_generator = token_generator
        self.clock = clock
        self.metrics = metrics or NoOpMetricsClient()
        self.metrics_prefix = metrics_prefix

    @contextlib.contextmanager
    def _observe(self, operation: str) -> Iterator[None]:
        start_time = time()
        outcome = "ok"
        logger.debug("%s started", operation)
        try:
            yield
        except StorageIntegrityError as e:
            outcome = e.kind
            sentry_sdk.capture_exception(e)
            logger.error("%s failed: %s", operation, e)
            raise
        except CredentialError as e:
            outcome = e.kind
            logger.info("%s rejected: %s", operation, e)
            raise
        except Exception as e:
            outcome = "exception"
            sentry_sdk.capture_exception(e)
            logger.exception("%s raised an unexpected exception", operation)
            raise
        finally:
            tags = {"outcome": outcome}
            self.metrics.timer(
                f"{self.metrics_prefix}.issuer.{operation}.time",
                time() - start_time,
                tag_dict=tags,
            )
            self.metrics.increment(
                f"{self.metrics_prefix}.issuer.{operation}.count", 1, tag_dict=tags
            )

    async def authorize(
        self,
        client_id: str,
        user_id: str,
        redirect_uri: Optional[str],
        scope: str,
        client_secret: Optional[str] = None,
    ) -> AuthorizationCodeView:
        """
        Issue an authorization code for a user of a client.

        ``redirect_uri`` may be omitted, in which case the client's registered
        callback is used. A supplied URI must match the registered one.

        Raises:
            ClientNotFound: Unknown client or secret mismatch
            InvalidClient: Client may not use the authorization_code grant
            InvalidRedirectUri: Redirect URI is not registered for the client
        """
        with self._observe("authorize"):
            client = await self.clients.resolve_client(client_id, client_secret)
            if GRANT_AUTHORIZATION_CODE not in client.grants:
                raise InvalidClient()

            if redirect_uri is None:
                redirect_uri = client.redirect_uris[0]
            elif redirect_uri not in client.redirect_uris:
                raise InvalidRedirectUri()

            record = await self.codes.issue(
                authorization_code=self.token_generator(),
                expires_at=self.clock() + self.policy.authorization_code_lifetime,
                redirect_uri=redirect_uri,
                scope=scope,
                client_id=client.id,
                user_id=user_id,
            )
            return authorization_code_view(record)

    async def exchange(
        self, authorization_code: str, client_id: Optional[str] = None
    ) -> TokenView:
        """
        Exchange an authorization code for an access token.

        A refresh token is included when the client allows the refresh_token
        grant. When ``client_id`` names the presenting client and it is not
        the client the code was issued to, the code is left untouched.

        An expired code is consumed before CodeExpired is raised, so it can
        not be retried. A code that has already been exchanged no longer
        exists and fails with CodeNotFound; losing a concurrent exchange
        fails with CodeAlreadyUsed, a subclass of CodeNotFound.

        A client that no longer holds the authorization_code grant gets
        InvalidClient and the code is left in place.
        """
        with self._observe("exchange"):
            record = await self.codes.lookup(authorization_code)
            if record is None:
                raise CodeNotFound()

            if client_id is not None and client_id != record.client_id:
                raise InvalidClient("Authorization code was issued to another client")

            if record.expires_at < self.clock():
                await self.codes.consume(authorization_code)
                raise CodeExpired()

            client = await self.clients.resolve_client(record.client_id)
            if GRANT_AUTHORIZATION_CODE not in client.grants:
                raise InvalidClient()

            if not await self.codes.consume(authorization_code):
                raise CodeAlreadyUsed()

            return await self._issue(client, record.user_id, record.scope)

    async def issue_credentials(
        self, client_id: str, user_id: str, scope: str
    ) -> TokenView:
        """Issue an access token, and a refresh token if the client allows it."""
        with self._observe("issue_credentials"):
            client = await self.clients.resolve_client(client_id)
            return await self._issue(client, user_id, scope)

    async def refresh(
        self, refresh_token: str, client_secret: Optional[str] = None
    ) -> TokenView:
        """
        Mint a new access token from a refresh token.

        A supplied ``client_secret`` is verified against the client the
        refresh token was issued to.

        Raises:
            RefreshTokenNotFound: Unknown, revoked, or (when rotating) already
                rotated refresh token
            RefreshTokenExpired: The refresh token's expiry, plus leeway, has
                passed
            ClientNotFound: Client no longer exists or the secret mismatched
            InvalidClient: Client may no longer use the refresh_token grant
        """
        with self._observe("refresh"):
            record = await self.tokens.lookup_refresh_token(refresh_token)
            if record is None:
                raise RefreshTokenNotFound()

            expires_at = record.refresh_token_expires_at
            if (
                expires_at is not None
                and expires_at + self.policy.refresh_token_leeway < self.clock()
            ):
                raise RefreshTokenExpired()

            client = await self.clients.resolve_client(record.client_id, client_secret)
            if GRANT_REFRESH_TOKEN not in client.grants:
                raise InvalidClient()

            if not self.policy.rotate_on_refresh:
                return await self._issue(
                    client, record.user_id, record.scope, refresh_token=record
                )

            access = self._new_access_token(client, record.user_id, record.scope)
            replacement = self._new_refresh_token(client, record.user_id, record.scope)
            if not await self.tokens.rotate_refresh_token(
                refresh_token, access, replacement
            ):
                raise RefreshTokenNotFound()
            return token_view(access, replacement)

    async def revoke_authorization_code(self, authorization_code: str) -> bool:
        """Delete an authorization code. Returns False if it did not exist."""
        with self._observe("revoke_authorization_code"):
            return await self.codes.consume(authorization_code)

    async def revoke_refresh_token(self, refresh_token: str) -> bool:
        """
        Delete a refresh token. Returns False if it did not exist.

        Access tokens issued under the refresh token are not revoked.
        """
        with self._observe("revoke_refresh_token"):
            return await self.tokens.revoke_refresh_token(refresh_token)

    async def revoke_access_token(self, access_token: str) -> bool:
        with self._observe("revoke_access_token"):
            return await self.tokens.revoke_access_token(access_token)

    async def introspect_access_token(self, access_token: str) -> AccessTokenView:
        """
        Look up an access token.

        Expired tokens are returned as-is; comparing ``access_token_expires_at``
        with the current time is the caller's decision.
        """
        with self._observe("introspect_access_token"):
            record = await self.tokens.lookup_access_token(access_token)
            if record is None:
                raise AccessTokenNotFound()
            return access_token_view(record)

    async def _issue(
        self,
        client: ClientView,
        user_id: str,
        scope: str,
        refresh_token: Optional[OAuthRefreshToken] = None,
    ) -> TokenView:
        # An existing refresh token is reused as-is; otherwise one is minted
        # only for clients allowed the refresh_token grant.
        access = self._new_access_token(client, user_id, scope)

        if refresh_token is not None:
            await self.tokens.issue_tokens(access)
            return token_view(access, refresh_token)

        refresh = None
        if GRANT_REFRESH_TOKEN in client.grants:
            refresh = self._new_refresh_token(client, user_id, scope)

        await self.tokens.issue_tokens(access, refresh)
        return token_view(access, refresh)

    def _new_access_token(
        self, client: ClientView, user_id: str, scope: str
    ) -> OAuthAccessToken:
        return OAuthAccessToken(
            access_token=self.token_generator(),
            access_token_expires_at=self.clock() + self.policy.access_token_lifetime,
            scope=scope,
            client_id=client.id,
            user_id=user_id,
        )

    def _new_refresh_token(
        self, client: ClientView, user_id: str, scope: str
    ) -> OAuthRefreshToken:
        lifetime = self.policy.refresh_token_lifetime
        return OAuthRefreshToken(
            refresh_token=self.token_generator(),
            refresh_token_expires_at=self.clock() + lifetime if lifetime else None,
            scope=scope,
            client_id=client.id,
            user_id=user_id,
        )
