"""Exceptions raised by the certificate store and the token verifier."""

from __future__ import annotations


class FirebaseIdTokenError(Exception):
    """Base class for all errors raised by this package."""


class CertificatesRequestError(FirebaseIdTokenError):
    """Raised when the certificates endpoint cannot be fetched.

    ``status_code`` is the HTTP status of a non-200 response, or ``None``
    when the request failed at the transport level.
    """

    def __init__(self, status_code: int | None, message: str | None = None) -> None:
        self.status_code = status_code
        if message is None:
            if status_code is None:
                message = "Unable to reach the certificates endpoint."
            else:
                message = f"Certificates request failed with HTTP status {status_code}."
        super().__init__(message)


class CertificatesTtlError(FirebaseIdTokenError):
    """Raised when the certificates response advertises an unusable lifetime."""

    def __init__(self, message: str = "Certificates TTL is too short (must be more than 3600 seconds).") -> None:
        super().__init__(message)


class InvalidCertificatesError(FirebaseIdTokenError):
    """Raised when the certificates response body cannot be parsed."""


class NoCertificatesError(FirebaseIdTokenError):
    """Raised when certificates are needed but none are cached."""

    def __init__(self, message: str = "There's no certificates in the local cache.") -> None:
        super().__init__(message)


class CertificateNotFoundError(FirebaseIdTokenError):
    """Raised when a key ID is missing from a populated certificate cache."""

    def __init__(self, key_id: str | None) -> None:
        self.key_id = key_id
        super().__init__(f"Unable to find a certificate with `{key_id}`.")


class TokenVerificationError(FirebaseIdTokenError):
    """Raised by ``TokenVerifier.verify(..., raise_error=True)`` on rejection."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid ID token: {reason}")
