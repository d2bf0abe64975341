"""
User Identities
===============
Canonical form of the phone number or email a request is issued to.

Identities are opaque to the core: delivery is someone else's job, so a
phone number is never reformatted, given a country code or rejected for
its shape. The canonical form only drops surrounding whitespace and, for
email services, letter case, so that duplicate detection does not depend
on how a client happened to type the address.
"""

from typing import Any

from ..errors import InvalidIdentity
from ..models import ServiceType


def normalize_email(email: str) -> str:
    """Strip and lower-case an email address."""
    return email.strip().lower()


def normalize_identity(service_type: ServiceType, identity: Any) -> str:
    """
    Canonical identity for storage and duplicate checks.

    Args:
        service_type: Service the request is generated for
        identity: Identity exactly as the client sent it

    Returns:
        The trimmed identity, lower-cased for email services

    Raises:
        InvalidIdentity: Not a string, or blank
    """
    if not isinstance(identity, str) or not identity.strip():
        raise InvalidIdentity(service_type.value)

    if service_type.is_mobile:
        return identity.strip()
    return normalize_email(identity)
