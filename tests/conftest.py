"""Shared fixtures: signing material, canned certificate responses, a fake clock."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import httpx
import jwt
import pytest
from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from firebase_id_token import crypto
from firebase_id_token.certificates import CertificateStore
from firebase_id_token.client import CertificatesClient

CACHE_CONTROL = "public, max-age=19302, must-revalidate, no-transform"
LOW_CACHE_CONTROL = "public, max-age=2160, must-revalidate, no-transform"
KEY_IDS = ("0fa4d2c7b5b9e1a2f3d4c5b6a7980112", "7d3e1f2a9b8c7d6e5f4a3b2c1d0e9f87")
START = 1_700_000_000.0


class FakeClock:
    """Callable clock whose time only moves when told to."""

    def __init__(self, now: float = START) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_response(
    body: str | None = None,
    status: int = 200,
    cache_control: str | None = CACHE_CONTROL,
) -> httpx.Response:
    headers = {} if cache_control is None else {"cache-control": cache_control}
    return httpx.Response(status, headers=headers, text=body if body is not None else "")


@pytest.fixture(scope="session")
def signing_keys() -> dict[str, rsa.RSAPrivateKey]:
    """One RSA key per key ID, generated once for the whole run."""
    return {kid: crypto.generate_rsa_keypair() for kid in KEY_IDS}


@pytest.fixture(scope="session")
def certificates_body(signing_keys: dict[str, rsa.RSAPrivateKey]) -> str:
    """JSON body shaped like Google's x509 certificates endpoint."""
    return json.dumps({
        kid: crypto.certificate_pem(crypto.build_self_signed_certificate(key))
        for kid, key in signing_keys.items()
    })


@pytest.fixture(scope="session")
def ec_certificate() -> x509.Certificate:
    """Self-signed certificate over a P-256 key, which cannot verify RS256."""
    return crypto.build_self_signed_certificate(ec.generate_private_key(ec.SECP256R1()))


@pytest.fixture()
def kid() -> str:
    return KEY_IDS[0]


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def client(certificates_body: str) -> MagicMock:
    """Certificates client that answers like the real endpoint."""
    mock = MagicMock(spec=CertificatesClient)
    mock.get.return_value = make_response(certificates_body)
    return mock


@pytest.fixture()
def store(client: MagicMock, clock: FakeClock) -> CertificateStore:
    return CertificateStore(client=client, clock=clock)


def encode_token(key: rsa.RSAPrivateKey, claims: dict, kid: str | None, **headers: object) -> str:
    """Create an RS256 JWT, optionally without a ``kid`` header."""
    if kid is not None:
        headers["kid"] = kid
    return jwt.encode(claims, key, algorithm="RS256", headers=headers)
