"""Tests for the offline testing certificate source."""

import time

import pytest
from cryptography import x509

from firebase_id_token import testing
from firebase_id_token.config import Configuration
from firebase_id_token.exceptions import CertificateNotFoundError
from firebase_id_token.signature import TokenVerifier


@pytest.fixture()
def verifier() -> TokenVerifier:
    return TokenVerifier(testing.TestingCertificates(), Configuration(project_ids={"demo"}))


def test_key_pair_is_fixed_for_the_process() -> None:
    assert testing.private_key() is testing.private_key()
    assert testing.certificate() is testing.certificate()
    assert (
        testing.certificate().public_key().public_numbers()
        == testing.private_key().public_key().public_numbers()
    )


def test_reads_like_a_populated_store() -> None:
    certs = testing.TestingCertificates()
    assert certs.is_present() is True
    assert certs.remaining_ttl() > 0
    assert [kid for kid, _ in certs.list_all()] == [testing.KEY_ID]
    assert isinstance(certs.find(testing.KEY_ID), x509.Certificate)
    assert certs.find("other") is None
    with pytest.raises(CertificateNotFoundError):
        certs.find_strict("other")


def test_downloads_are_no_ops() -> None:
    certs = testing.TestingCertificates()
    certs.request_if_absent()
    certs.force_request()
    certs.reset()
    assert certs.request_count == 0
    assert certs.is_present() is True


def test_make_claims() -> None:
    claims = testing.make_claims("demo", uid="alice")
    assert claims["aud"] == "demo"
    assert claims["iss"] == "https://securetoken.google.com/demo"
    assert claims["sub"] == claims["user_id"] == "alice"
    assert claims["exp"] > time.time()


def test_signed_token_verifies(verifier: TokenVerifier) -> None:
    token = testing.sign(testing.make_claims("demo", uid="alice", name="Alice"))
    payload = verifier.verify(token)
    assert payload is not None
    assert payload["sub"] == "alice"
    assert payload["name"] == "Alice"


def test_other_key_id_is_rejected(verifier: TokenVerifier) -> None:
    token = testing.sign(testing.make_claims("demo"), key_id="unknown")
    assert verifier.verify(token) is None


def test_custom_key_id_source() -> None:
    certs = testing.TestingCertificates(key_id="custom")
    verifier = TokenVerifier(certs, Configuration(project_ids={"demo"}))
    assert verifier.verify(testing.sign(testing.make_claims("demo"), key_id="custom")) is not None
