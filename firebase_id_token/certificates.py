"""Thread-safe in-memory cache of the provider's x509 signing certificates.

Two ways to download: ``request_if_absent`` only does something when the
cache is empty or expired, ``force_request`` always downloads and replaces
the cache with the response.

Every download stores an expiration time taken from the response's
``cache-control: max-age`` directive. Reads check it, so once it has passed
the cache behaves as empty until the next successful download.

Concurrent downloads are deduplicated: callers that trigger a download
while another one is in flight wait for it and reuse its result instead of
issuing their own request.
"""

from __future__ import annotations

import json
import logging
import re
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Protocol

import httpx
from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import rsa

from . import crypto
from .client import CertificatesClient
from .config import Configuration
from .exceptions import (
    CertificateNotFoundError,
    CertificatesRequestError,
    CertificatesTtlError,
    InvalidCertificatesError,
    NoCertificatesError,
)

logger = logging.getLogger(__name__)

# Certificates advertised with a lifetime at or below MIN_TTL, or above
# MAX_TTL (one year), are rejected.
MIN_TTL = 3600
MAX_TTL = 365 * 24 * 3600

_MAX_AGE_RE = re.compile(r"(?:^|[,\s])max-age=([0-9]+)", re.IGNORECASE)


class CertificateSource(Protocol):
    """Anything the token verifier can resolve signing certificates from."""

    def request_if_absent(self) -> None: ...

    def find_strict(self, key_id: str | None) -> x509.Certificate: ...


@dataclass(frozen=True)
class CertificateSet:
    """One downloaded set of certificates, replaced as a whole."""

    certificates: Mapping[str, x509.Certificate] = field(default_factory=dict)
    fetched_at: float = 0.0
    ttl: int = 0

    @property
    def expires_at(self) -> float:
        return self.fetched_at + self.ttl

    def is_valid(self, now: float) -> bool:
        return bool(self.certificates) and now < self.expires_at


_EMPTY = CertificateSet()


def parse_max_age(cache_control: str | None) -> int:
    """Extract the ``max-age`` seconds from a cache-control header value.

    Raises:
        CertificatesTtlError: If the header is missing, has no ``max-age``
            directive, or advertises a lifetime outside
            ``MIN_TTL`` (exclusive) to ``MAX_TTL`` seconds.
    """
    if not cache_control:
        raise CertificatesTtlError("Certificates response has no cache-control header.")
    match = _MAX_AGE_RE.search(cache_control)
    if match is None:
        raise CertificatesTtlError(
            f"Certificates response has no max-age directive: {cache_control!r}"
        )
    try:
        ttl = int(match.group(1))
    except ValueError as exc:
        # More digits than the interpreter converts; far beyond MAX_TTL anyway.
        raise CertificatesTtlError("Certificates TTL is too long.") from exc
    if ttl <= MIN_TTL:
        raise CertificatesTtlError(
            f"Certificates TTL of {ttl} seconds is too short "
            f"(must be more than {MIN_TTL} seconds)."
        )
    if ttl > MAX_TTL:
        raise CertificatesTtlError(
            f"Certificates TTL of {ttl} seconds is too long "
            f"(must be at most {MAX_TTL} seconds)."
        )
    return ttl


def parse_certificates(body: str) -> dict[str, x509.Certificate]:
    """Parse a ``{key_id: pem}`` JSON document.

    Returns:
        Parsed certificates keyed by key ID.

    Raises:
        InvalidCertificatesError: If the body or any certificate is malformed,
            or a certificate does not carry an RSA public key.
    """
    try:
        data = json.loads(body)
    except ValueError as exc:
        raise InvalidCertificatesError("Certificates response is not valid JSON.") from exc
    if not isinstance(data, dict) or not data:
        raise InvalidCertificatesError("Certificates response must be a non-empty JSON object.")

    parsed: dict[str, x509.Certificate] = {}
    for key_id, pem in data.items():
        if not isinstance(pem, str):
            raise InvalidCertificatesError(f"Certificate `{key_id}` is not a string.")
        try:
            parsed[key_id] = crypto.load_certificate(pem)
        except ValueError as exc:
            raise InvalidCertificatesError(f"Certificate `{key_id}` could not be parsed.") from exc
        if not isinstance(parsed[key_id].public_key(), rsa.RSAPublicKey):
            raise InvalidCertificatesError(f"Certificate `{key_id}` does not hold an RSA key.")
    return parsed


class CertificateStore:
    """Process-wide cache of signing certificates.

    Create one per process and share it. Reads are lock-free and work on a
    snapshot of the current ``CertificateSet``; only downloads take the lock.
    """

    def __init__(
        self,
        config: Configuration | None = None,
        client: CertificatesClient | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config if config is not None else Configuration()
        if client is None:
            client = CertificatesClient(self._config.certificates_url, self._config.timeout)
        self._client = client
        self._clock = clock
        self._lock = threading.Lock()
        self._current = _EMPTY
        # Advanced once per download attempt; lets waiters detect that the
        # download they queued behind has already happened.
        self._generation = 0
        self._request_count = 0

    # ------------------------------------------------------------------
    # Downloads
    # ------------------------------------------------------------------

    def request_if_absent(self) -> None:
        """Download certificates only if the cache is empty or expired.

        Raises:
            CertificatesRequestError: If the endpoint does not answer 200.
            CertificatesTtlError: If the advertised lifetime is unusable.
            InvalidCertificatesError: If the response body is malformed.
        """
        generation = self._generation
        if self.is_present():
            return
        self._fetch(generation)

    def force_request(self) -> None:
        """Download certificates regardless of the cache state.

        Raises the same errors as ``request_if_absent``.
        """
        self._fetch(self._generation)

    def _fetch(self, generation: int) -> None:
        with self._lock:
            if self._generation != generation:
                # Another thread downloaded while we waited for the lock.
                logger.debug("Reusing certificates downloaded by a concurrent request")
                return
            try:
                self._current = self._download()
            finally:
                self._generation += 1

    def _download(self) -> CertificateSet:
        self._request_count += 1
        try:
            response = self._client.get()
        except httpx.HTTPError as exc:
            logger.warning("Certificates request failed: %s", exc)
            raise CertificatesRequestError(None) from exc

        if response.status_code != 200:
            logger.warning("Certificates request returned HTTP %d", response.status_code)
            raise CertificatesRequestError(response.status_code)

        try:
            ttl = parse_max_age(response.headers.get("cache-control"))
            certificates = parse_certificates(response.text)
        except (CertificatesTtlError, InvalidCertificatesError) as exc:
            logger.warning("Rejected certificates response: %s", exc)
            raise

        logger.info("Cached %d certificates for %d seconds", len(certificates), ttl)
        return CertificateSet(
            certificates=MappingProxyType(certificates),
            fetched_at=self._clock(),
            ttl=ttl,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _valid(self) -> CertificateSet:
        current = self._current
        return current if current.is_valid(self._clock()) else _EMPTY

    def is_present(self) -> bool:
        """Return True if unexpired certificates are cached."""
        return bool(self._valid().certificates)

    def list_all(self) -> list[tuple[str, x509.Certificate]]:
        """Return ``(key_id, certificate)`` pairs, or an empty list."""
        return list(self._valid().certificates.items())

    def find(self, key_id: str | None) -> x509.Certificate | None:
        """Return the certificate for ``key_id``, or None if it is unknown.

        Raises:
            NoCertificatesError: If the cache is empty or expired.
        """
        certificates = self._valid().certificates
        if not certificates:
            raise NoCertificatesError()
        return certificates.get(key_id)

    def find_strict(self, key_id: str | None) -> x509.Certificate:
        """Like ``find``, but raises CertificateNotFoundError for unknown key IDs."""
        certificate = self.find(key_id)
        if certificate is None:
            raise CertificateNotFoundError(key_id)
        return certificate

    def remaining_ttl(self) -> int:
        """Seconds until the cached certificates expire; 0 when there are none."""
        current = self._current
        if not current.certificates:
            return 0
        return max(0, int(current.expires_at - self._clock()))

    @property
    def ttl(self) -> int:
        """Lifetime in seconds advertised by the last successful download."""
        return self._current.ttl

    @property
    def request_count(self) -> int:
        """Number of network requests issued so far."""
        return self._request_count

    def reset(self) -> None:
        """Drop all cached certificates."""
        with self._lock:
            self._current = _EMPTY
