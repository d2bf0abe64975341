"""
Keys Module
===========
API credential issuance and rotation.
"""

from .credentials import (
    API_KEY_PREFIX,
    DEFAULT_KEY_VALIDITY,
    IssuedCredentials,
    generate_api_key,
    generate_api_secret,
    issue_credentials,
    store_credentials,
)
from .rotation import KeyRotation

__all__ = [
    # Credentials
    "API_KEY_PREFIX",
    "DEFAULT_KEY_VALIDITY",
    "IssuedCredentials",
    "generate_api_key",
    "generate_api_secret",
    "issue_credentials",
    "store_credentials",
    # Rotation
    "KeyRotation",
]
