"""X.509 certificate and RSA key utilities."""

from __future__ import annotations

import datetime

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID


def load_certificate(material: str | bytes) -> x509.Certificate:
    """Parse an X.509 certificate.

    Args:
        material: PEM text, or raw DER bytes.

    Returns:
        The parsed certificate.

    Raises:
        ValueError: If the material is neither a PEM nor a DER certificate.
    """
    data = material.encode("ascii") if isinstance(material, str) else material
    if b"-----BEGIN CERTIFICATE-----" in data:
        return x509.load_pem_x509_certificate(data)
    return x509.load_der_x509_certificate(data)


def generate_rsa_keypair(key_size: int = 2048) -> rsa.RSAPrivateKey:
    """Generate an RSA private key suitable for RS256 signing."""
    return rsa.generate_private_key(public_exponent=65537, key_size=key_size)


def build_self_signed_certificate(
    private_key: rsa.RSAPrivateKey,
    common_name: str = "securetoken.system.gserviceaccount.com",
    days: int = 365,
) -> x509.Certificate:
    """Build a self-signed certificate wrapping ``private_key``'s public half.

    Args:
        private_key: The RSA key that signs the certificate.
        common_name: Subject and issuer common name.
        days: Validity period, starting one day in the past.

    Returns:
        The signed certificate.
    """
    now = datetime.datetime.now(datetime.timezone.utc)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=days))
        .sign(private_key, hashes.SHA256())
    )


def certificate_pem(certificate: x509.Certificate) -> str:
    """Return the PEM encoding of a certificate as text."""
    return certificate.public_bytes(serialization.Encoding.PEM).decode("ascii")


def private_key_pem(private_key: rsa.RSAPrivateKey) -> str:
    """Return the unencrypted PKCS#8 PEM encoding of a private key."""
    return private_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode("ascii")
