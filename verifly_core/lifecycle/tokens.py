"""
Token Generation
================
Cryptographically random verification tokens.
"""

import secrets
import string
from typing import Optional

from ..models import TokenPattern

ALPHANUMERIC_CHARS = string.ascii_letters + string.digits


def generate_token(length: int = 6, pattern: TokenPattern = TokenPattern.NUMERIC) -> str:
    """
    Generate a secure random token.

    Args:
        length: Exact number of characters
        pattern: NUMERIC for digits only (leading zeros kept),
            ALPHANUMERIC for mixed-case letters and digits

    Returns:
        Token string
    """
    if pattern is TokenPattern.ALPHANUMERIC:
        return "".join(secrets.choice(ALPHANUMERIC_CHARS) for _ in range(length))
    return str(secrets.randbelow(10 ** length)).zfill(length)


def generate_distinct_token(
    length: int,
    pattern: TokenPattern,
    previous: Optional[str] = None,
) -> str:
    """Generate a token that differs from ``previous``."""
    token = generate_token(length, pattern)
    while previous is not None and token == previous:
        token = generate_token(length, pattern)
    return token
