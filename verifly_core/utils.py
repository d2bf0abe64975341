"""
Shared Utilities
================
Clock and identifier helpers used across verifly-core.
"""

import base64
import secrets
import uuid
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Generate an entity identifier (UUID4 string)."""
    return str(uuid.uuid4())


def generate_message_id() -> str:
    """
    Generate a correlation id for response messages.

    Returns:
        22-character URL-safe string drawn from 16 random bytes
    """
    raw = base64.urlsafe_b64encode(secrets.token_bytes(16)).decode("ascii")
    return raw.rstrip("=")[:22]
