"""
Credential Generation
=====================
Issues API key/secret pairs for applications.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..crypto import CredentialCipher
from ..models import Application

API_KEY_PREFIX = "app_"
DEFAULT_KEY_VALIDITY = timedelta(days=365)


def generate_api_key(prefix: str = API_KEY_PREFIX) -> str:
    """
    Generate a new API key.

    Returns:
        Key of the form ``app_<32 hex chars>``
    """
    return f"{prefix}{secrets.token_hex(16)}"


def generate_api_secret() -> str:
    """Generate a new API secret (two random hex groups joined by a dash)."""
    return f"{secrets.token_hex(16)}-{secrets.token_hex(16)}"


@dataclass
class IssuedCredentials:
    """Plaintext credentials, shown to the client exactly once."""
    api_key: str
    api_secret: str
    expires_at: datetime

    @property
    def expiry_epoch(self) -> int:
        return int(self.expires_at.timestamp())

    def __repr__(self) -> str:
        return f"IssuedCredentials(expires_at={self.expires_at.isoformat()})"


def issue_credentials(now: datetime, validity: timedelta = DEFAULT_KEY_VALIDITY) -> IssuedCredentials:
    """Generate a fresh key/secret pair valid from ``now``."""
    return IssuedCredentials(
        api_key=generate_api_key(),
        api_secret=generate_api_secret(),
        expires_at=now + validity,
    )


def store_credentials(
    application: Application,
    credentials: IssuedCredentials,
    cipher: CredentialCipher,
    now: datetime,
) -> Application:
    """
    Write credentials onto an application record, encrypted.

    Also sets the keyed lookup hash so the key can be found without
    decrypting every stored key.
    """
    application.api_key = cipher.encrypt(credentials.api_key)
    application.api_secret = cipher.encrypt(credentials.api_secret)
    application.api_key_lookup = cipher.lookup_hash(credentials.api_key)
    application.api_key_expiry = credentials.expires_at
    application.updated_at = now
    return application
