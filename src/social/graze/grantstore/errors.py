"""Credential lifecycle errors.

Every failure reported by the issuer is a ``CredentialError`` with a stable
``kind`` and a message carrying a stable error code, for example
``error-grantstore-1201 Authorization code has expired``. Errors are scoped
to a single request; none of them are fatal to the process.
"""
from typing import ClassVar


class CredentialError(Exception):
    """Base class for all credential lifecycle failures."""

    kind: ClassVar[str] = "credential_error"
    code: ClassVar[int] = 1999
    default_message: ClassVar[str] = "Unexpected credential error"

    def __init__(self, message: str = "") -> None:
        self.detail = message or self.default_message
        super().__init__(f"error-grantstore-{self.code} {self.detail}")


class ClientNotFound(CredentialError):
    """No client matches the identifier, or the secret did not match.

    The two cases are deliberately indistinguishable.
    """

    kind = "client_not_found"
    code = 1000
    default_message = "Client not found"


class InvalidClient(CredentialError):
    """The client exists but may not use the requested grant."""

    kind = "invalid_client"
    code = 1001
    default_message = "Client is not permitted to use this grant"


class InvalidRedirectUri(CredentialError):
    kind = "invalid_redirect_uri"
    code = 1002
    default_message = "Redirect URI does not match the registered callback"


class CodeNotFound(CredentialError):
    kind = "code_not_found"
    code = 1200
    default_message = "Authorization code not found"


class CodeExpired(CredentialError):
    kind = "code_expired"
    code = 1201
    default_message = "Authorization code has expired"


class CodeAlreadyUsed(CodeNotFound):
    """Another caller consumed the code first.

    A replay after the winning exchange has finished finds no code at all and
    gets the parent CodeNotFound, so catching CodeNotFound covers every reuse.
    """

    kind = "code_already_used"
    code = 1202
    default_message = "Authorization code has already been used"


class AccessTokenNotFound(CredentialError):
    kind = "access_token_not_found"
    code = 1300
    default_message = "Access token not found"


class RefreshTokenNotFound(CredentialError):
    kind = "refresh_token_not_found"
    code = 1400
    default_message = "Refresh token not found"


class RefreshTokenExpired(CredentialError):
    kind = "refresh_token_expired"
    code = 1401
    default_message = "Refresh token has expired"


class StorageIntegrityError(CredentialError):
    """The backing store rejected or failed an operation.

    Raised for duplicate identities and connectivity failures alike. The
    original storage exception is chained as ``__cause__``.
    """

    kind = "storage_integrity_error"
    code = 1900
    default_message = "Storage operation failed"
