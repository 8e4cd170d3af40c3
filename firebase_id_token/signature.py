"""Firebase ID token verification.

A token is accepted only if its RS256 signature matches one of the cached
signing certificates and its claims match the configured project. Every
rejection looks the same to the caller (``None``), whatever the reason; the
reason is only logged at debug level. The exception is a store with no
certificates at all, which is a setup problem and raises
``NoCertificatesError``.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import jwt
from cryptography import x509

from .certificates import CertificateSource
from .config import Configuration
from .exceptions import CertificateNotFoundError, TokenVerificationError

logger = logging.getLogger(__name__)

ALGORITHM = "RS256"
MAX_SUBJECT_LENGTH = 128
REQUIRED_CLAIMS = ["exp", "iat", "aud", "iss", "sub"]


class _Rejected(Exception):
    """Internal signal carrying the reason a token was rejected."""


class TokenVerifier:
    """Verifies ID tokens against a certificate source.

    Args:
        certificates: A ``CertificateStore``, or ``testing.TestingCertificates``.
        config: Accepted project ids, issuer prefix and clock leeway.
        auto_request: Download certificates before each verification when
            the store is empty or expired. Off by default, so that an
            application that never downloaded certificates gets a
            ``NoCertificatesError`` instead of a network call per request.
    """

    def __init__(
        self,
        certificates: CertificateSource,
        config: Configuration | None = None,
        auto_request: bool = False,
    ) -> None:
        self._certificates = certificates
        self._config = config if config is not None else Configuration()
        self._auto_request = auto_request

    @property
    def config(self) -> Configuration:
        return self._config

    def verify(self, token: str, raise_error: bool = False) -> dict[str, Any] | None:
        """Verify a token and return its claims.

        Args:
            token: The encoded JWT.
            raise_error: Raise ``TokenVerificationError`` instead of
                returning None when the token is rejected.

        Returns:
            The decoded claims, or None if the token is rejected.

        Raises:
            NoCertificatesError: If no certificates are cached.
            TokenVerificationError: If ``raise_error`` is set and the token
                is rejected.
        """
        try:
            return self._verify(token)
        except _Rejected as exc:
            reason = str(exc)
            logger.debug("ID token rejected: %s", reason)
            if raise_error:
                raise TokenVerificationError(reason) from None
            return None

    def _verify(self, token: str) -> dict[str, Any]:
        if self._auto_request:
            self._certificates.request_if_absent()

        key_id = _read_key_id(token)
        try:
            certificate = self._certificates.find_strict(key_id)
        except CertificateNotFoundError:
            raise _Rejected(f"no certificate matches key id {key_id!r}") from None

        claims = self._decode(token, certificate)
        self._check_claims(claims)
        return claims

    def _decode(self, token: str, certificate: x509.Certificate) -> dict[str, Any]:
        project_ids = self._config.project_ids
        if not project_ids:
            raise _Rejected("no accepted project ids are configured")
        try:
            return jwt.decode(
                token,
                certificate.public_key(),
                algorithms=[ALGORITHM],
                audience=sorted(project_ids),
                leeway=self._config.leeway,
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError:
            raise _Rejected("token has expired") from None
        except (TypeError, jwt.InvalidKeyError) as exc:
            raise _Rejected(f"certificate key is unusable: {exc}") from None
        except jwt.InvalidTokenError as exc:
            raise _Rejected(str(exc) or type(exc).__name__) from None

    def _check_claims(self, claims: dict[str, Any]) -> None:
        now = time.time()
        leeway = self._config.leeway

        audience = claims["aud"]
        if not isinstance(audience, str):
            raise _Rejected("audience must be a single project id")
        if claims["iss"] != self._config.issuer_for(audience):
            raise _Rejected(f"unexpected issuer {claims['iss']!r}")

        subject = claims["sub"]
        if not isinstance(subject, str) or not subject:
            raise _Rejected("subject is empty")
        if len(subject) > MAX_SUBJECT_LENGTH:
            raise _Rejected("subject is too long")

        user_id = claims.get("user_id")
        if not isinstance(user_id, str) or not user_id:
            raise _Rejected("user_id is missing")

        issued_at = claims["iat"]
        if not isinstance(issued_at, (int, float)) or issued_at > now + leeway:
            raise _Rejected("token was issued in the future")

        auth_time = claims.get("auth_time")
        if auth_time is not None:
            if not isinstance(auth_time, (int, float)) or auth_time > now + leeway:
                raise _Rejected("auth_time is invalid")


def _read_key_id(token: str) -> str:
    if not token:
        raise _Rejected("token is empty")
    try:
        header = jwt.get_unverified_header(token)
    except jwt.InvalidTokenError as exc:
        raise _Rejected(f"malformed token: {exc}") from None

    if header.get("alg") != ALGORITHM:
        raise _Rejected(f"unexpected algorithm {header.get('alg')!r}")
    key_id = header.get("kid")
    if not isinstance(key_id, str) or not key_id:
        raise _Rejected("token header has no key id")
    return key_id
