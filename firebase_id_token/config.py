"""Verifier configuration, optionally loaded from environment variables."""

from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass, field

# Google's x509 certificates endpoint for Firebase ID tokens.
CERTIFICATES_URL = (
    "https://www.googleapis.com/robot/v1/metadata/x509/"
    "securetoken@system.gserviceaccount.com"
)
ISSUER_PREFIX = "https://securetoken.google.com/"


@dataclass
class Configuration:
    """Settings shared by the certificate store and the token verifier.

    ``project_ids`` is the set of accepted audiences. It starts empty, and
    an empty set rejects every token, so the embedding application must
    populate it before verification can succeed.
    """

    project_ids: set[str] = field(default_factory=set)
    certificates_url: str = CERTIFICATES_URL
    issuer_prefix: str = ISSUER_PREFIX
    timeout: float = 10.0
    leeway: int = 0

    # Also runs for the dataclass __init__ assignments.
    def __setattr__(self, name: str, value: object) -> None:
        if name == "project_ids":
            value = _normalize_project_ids(value)  # type: ignore[arg-type]
        super().__setattr__(name, value)

    def issuer_for(self, project_id: str) -> str:
        """Return the issuer expected on tokens minted for ``project_id``."""
        return f"{self.issuer_prefix}{project_id}"

    @classmethod
    def from_env(cls) -> Configuration:
        raw_ids = os.environ.get("FIREBASE_PROJECT_IDS", "")
        return cls(
            project_ids={p.strip() for p in raw_ids.split(",") if p.strip()},
            certificates_url=os.environ.get("FIREBASE_CERTIFICATES_URL", CERTIFICATES_URL),
            issuer_prefix=os.environ.get("FIREBASE_ISSUER_PREFIX", ISSUER_PREFIX),
            timeout=float(os.environ.get("FIREBASE_HTTP_TIMEOUT", "10")),
            leeway=int(os.environ.get("FIREBASE_TOKEN_LEEWAY", "0")),
        )


def _normalize_project_ids(value: Iterable[str]) -> set[str]:
    # A bare string would silently become a set of characters.
    if isinstance(value, (str, bytes)):
        raise TypeError("project_ids must be a collection of strings, not a single string")
    ids = set(value)
    for project_id in ids:
        if not isinstance(project_id, str):
            raise TypeError(f"project_ids must contain strings, got {project_id!r}")
    return ids
