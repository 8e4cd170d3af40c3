"""HTTP client for the provider's x509 certificates endpoint."""

from __future__ import annotations

import httpx

from .config import CERTIFICATES_URL


class CertificatesClient:
    """Fetches the public signing certificates.

    The response is returned as-is: status handling and cache-control
    parsing belong to the certificate store.
    """

    def __init__(self, url: str = CERTIFICATES_URL, timeout: float = 10.0) -> None:
        self._url = url
        self._timeout = timeout

    @property
    def url(self) -> str:
        """The certificates endpoint URL."""
        return self._url

    @property
    def timeout(self) -> float:
        """HTTP timeout in seconds."""
        return self._timeout

    def get(self) -> httpx.Response:
        """Issue a GET to the certificates endpoint.

        Returns:
            The raw ``httpx.Response``.

        Raises:
            httpx.HTTPError: On transport failures, including timeouts.
        """
        with httpx.Client(timeout=self._timeout) as client:
            return client.get(self._url)
