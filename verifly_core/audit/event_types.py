"""
Audit Event Types
=================
Audit event names emitted by verifly-core.
"""

from enum import Enum


class AuditEventType(str, Enum):
    """Audit event types across authentication, credentials and verification."""
    # Authentication
    AUTH_SUCCEEDED = "auth.succeeded"
    AUTH_FAILED = "auth.failed"

    # Credentials
    APIKEY_ROTATED = "apikey.rotated"
    APIKEY_ROTATION_DENIED = "apikey.rotation_denied"

    # Onboarding
    APPLICATION_REGISTERED = "application.registered"
    APPLICATION_DEACTIVATED = "application.deactivated"
    SERVICE_ADDED = "service.added"
    SERVICE_UPDATED = "service.updated"
    SERVICE_REMOVED = "service.removed"

    # Verification
    VERIFY_GENERATED = "verify.generated"
    VERIFY_RESENT = "verify.resent"
    VERIFY_COMPLETED = "verify.completed"
    VERIFY_FAILED = "verify.failed"
    VERIFY_EXPIRED = "verify.expired"


class Outcome:
    SUCCESS = "success"
    FAILURE = "failure"
    BLOCKED = "blocked"
