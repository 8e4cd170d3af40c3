"""Tests for CertificatesClient."""

from unittest.mock import MagicMock, patch

import httpx

from firebase_id_token.client import CertificatesClient
from firebase_id_token.config import CERTIFICATES_URL


def test_defaults_to_google_endpoint() -> None:
    assert CertificatesClient().url == CERTIFICATES_URL


def test_get_uses_timeout_and_returns_response() -> None:
    response = httpx.Response(200, text="{}")
    http = MagicMock()
    http.__enter__.return_value.get.return_value = response

    with patch("firebase_id_token.client.httpx.Client", return_value=http) as client_cls:
        result = CertificatesClient("https://certs.example.com", timeout=4.0).get()

    client_cls.assert_called_once_with(timeout=4.0)
    http.__enter__.return_value.get.assert_called_once_with("https://certs.example.com")
    assert result is response


def test_get_does_not_raise_for_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    real_client = httpx.Client
    transport = httpx.MockTransport(handler)
    with patch(
        "firebase_id_token.client.httpx.Client",
        side_effect=lambda **kwargs: real_client(transport=transport, **kwargs),
    ):
        response = CertificatesClient("https://certs.example.com").get()

    assert response.status_code == 503


def test_exposes_timeout() -> None:
    assert CertificatesClient().timeout == 10.0
    assert CertificatesClient("https://certs.example.com", timeout=4.0).timeout == 4.0
