"""Firebase ID token verification.

Download Google's signing certificates into a shared ``CertificateStore``
and verify ID tokens against them with ``TokenVerifier``.
"""

import logging

from .certificates import CertificateSet, CertificateStore
from .client import CertificatesClient
from .config import Configuration, CERTIFICATES_URL
from .signature import TokenVerifier
from .exceptions import (
    FirebaseIdTokenError,
    CertificatesRequestError,
    CertificatesTtlError,
    InvalidCertificatesError,
    NoCertificatesError,
    CertificateNotFoundError,
    TokenVerificationError,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "CertificateSet",
    "CertificateStore",
    "CertificatesClient",
    "Configuration",
    "CERTIFICATES_URL",
    "TokenVerifier",
    "FirebaseIdTokenError",
    "CertificatesRequestError",
    "CertificatesTtlError",
    "InvalidCertificatesError",
    "NoCertificatesError",
    "CertificateNotFoundError",
    "TokenVerificationError",
]
__version__ = "0.1.0"
