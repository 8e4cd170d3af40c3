"""Offline certificate source and token helpers for tests.

Use ``TestingCertificates`` in place of a ``CertificateStore`` and sign
tokens with ``sign``; the resulting tokens verify without network access::

    verifier = TokenVerifier(TestingCertificates(), Configuration(project_ids={"demo"}))
    token = sign(make_claims("demo", uid="alice"))
    assert verifier.verify(token)["sub"] == "alice"

The key pair is generated once per process and shared by every instance.
"""

from __future__ import annotations

import threading
import time
from typing import Any

import jwt
from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import rsa

from . import crypto
from .config import ISSUER_PREFIX
from .exceptions import CertificateNotFoundError

KEY_ID = "firebase-id-token-testing"
TTL = 21600

_material_lock = threading.Lock()
_material: tuple[rsa.RSAPrivateKey, x509.Certificate] | None = None


def _signing_material() -> tuple[rsa.RSAPrivateKey, x509.Certificate]:
    global _material
    with _material_lock:
        if _material is None:
            key = crypto.generate_rsa_keypair()
            _material = (key, crypto.build_self_signed_certificate(key, "firebase-id-token testing"))
        return _material


def private_key() -> rsa.RSAPrivateKey:
    """The test signing key."""
    return _signing_material()[0]


def certificate() -> x509.Certificate:
    """The self-signed certificate for ``private_key()``."""
    return _signing_material()[1]


def sign(payload: dict[str, Any], key_id: str = KEY_ID, headers: dict[str, Any] | None = None) -> str:
    """RS256-sign ``payload`` with the test key and return the encoded token."""
    return jwt.encode(
        payload,
        private_key(),
        algorithm="RS256",
        headers={"kid": key_id, **(headers or {})},
    )


def make_claims(
    project_id: str,
    uid: str = "test-user",
    lifetime: int = 3600,
    issuer_prefix: str = ISSUER_PREFIX,
    **overrides: Any,
) -> dict[str, Any]:
    """Build the claims of a valid, freshly issued ID token."""
    now = int(time.time())
    claims: dict[str, Any] = {
        "iss": f"{issuer_prefix}{project_id}",
        "aud": project_id,
        "auth_time": now,
        "user_id": uid,
        "sub": uid,
        "iat": now,
        "exp": now + lifetime,
    }
    claims.update(overrides)
    return claims


class TestingCertificates:
    """Certificate source holding only the test certificate.

    Mirrors the ``CertificateStore`` interface; downloads are no-ops.
    """

    __test__ = False

    def __init__(self, key_id: str = KEY_ID) -> None:
        self._key_id = key_id

    def request_if_absent(self) -> None:
        pass

    def force_request(self) -> None:
        pass

    def reset(self) -> None:
        pass

    def is_present(self) -> bool:
        return True

    def list_all(self) -> list[tuple[str, x509.Certificate]]:
        return [(self._key_id, certificate())]

    def find(self, key_id: str | None) -> x509.Certificate | None:
        if key_id == self._key_id:
            return certificate()
        return None

    def find_strict(self, key_id: str | None) -> x509.Certificate:
        found = self.find(key_id)
        if found is None:
            raise CertificateNotFoundError(key_id)
        return found

    def remaining_ttl(self) -> int:
        return TTL

    @property
    def ttl(self) -> int:
        return TTL

    @property
    def request_count(self) -> int:
        return 0
