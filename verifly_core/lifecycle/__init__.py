"""
Lifecycle Module
================
Verification request generation, resend and verification.
"""

from .tokens import ALPHANUMERIC_CHARS, generate_token, generate_distinct_token
from .identity import normalize_email, normalize_identity
from .engine import (
    DEFAULT_REQUEST_TTL,
    GenerateItem,
    GenerateResult,
    ResendItem,
    ResendResult,
    VerificationEngine,
    VerifyItem,
    VerifyResult,
    build_verification_link,
)

__all__ = [
    # Tokens
    "ALPHANUMERIC_CHARS",
    "generate_token",
    "generate_distinct_token",
    # Identity
    "normalize_email",
    "normalize_identity",
    # Engine
    "DEFAULT_REQUEST_TTL",
    "GenerateItem",
    "GenerateResult",
    "ResendItem",
    "ResendResult",
    "VerificationEngine",
    "VerifyItem",
    "VerifyResult",
    "build_verification_link",
]
