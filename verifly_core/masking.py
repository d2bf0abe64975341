"""
Masking Helpers
===============
Safe display forms for credentials and user identities in logs and audit records.
"""

from typing import Optional

MASK = "***"


def mask_api_key(key: Optional[str]) -> str:
    """
    Mask an API key for safe display.

    Keeps the first and last four characters. Keys shorter than
    eight characters are fully masked.

    Args:
        key: Plaintext API key

    Returns:
        Masked key (e.g., "abcd***wxyz")
    """
    if not key or len(key) < 8:
        return MASK
    return f"{key[:4]}{MASK}{key[-4:]}"


def mask_identity(value: Optional[str], keep_last: int = 4) -> str:
    """Mask a phone number or email, keeping only the last N characters."""
    if not value or len(value) <= keep_last:
        return MASK
    return MASK + value[-keep_last:]
