"""
Error Taxonomy
==============
Typed failures raised by verifly-core operations.

Every failure carries a ``kind`` (what the API layer maps to a status code)
and a machine-readable ``code``. Messages of IntegrityFault and Internal
errors are never shown to clients.
"""

from enum import Enum
from typing import Any, Optional


GENERIC_INTERNAL_MESSAGE = "Unable to process the request due to an internal error"


class ErrorKind(str, Enum):
    """Failure categories surfaced to callers."""
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_INPUT = "invalid_input"
    AUTH_FAILURE = "auth_failure"
    INTEGRITY_FAULT = "integrity_fault"
    INTERNAL = "internal"


class VeriflyError(Exception):
    """Base exception for all verifly-core failures."""

    kind: ErrorKind = ErrorKind.INTERNAL
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Any = None):
        self.message = message
        self.details = details
        super().__init__(message)

    @property
    def client_safe(self) -> bool:
        """Whether the message may be echoed back to the client."""
        return self.kind not in (ErrorKind.INTEGRITY_FAULT, ErrorKind.INTERNAL)


# ============================================================================
# Kinds
# ============================================================================

class NotFoundError(VeriflyError):
    kind = ErrorKind.NOT_FOUND
    code = "NOT_FOUND"


class ConflictError(VeriflyError):
    kind = ErrorKind.CONFLICT
    code = "CONFLICT"


class InvalidInputError(VeriflyError):
    kind = ErrorKind.INVALID_INPUT
    code = "INVALID_INPUT"


class AuthFailure(VeriflyError):
    kind = ErrorKind.AUTH_FAILURE
    code = "AUTH_FAILED"


class IntegrityFault(VeriflyError):
    kind = ErrorKind.INTEGRITY_FAULT
    code = "INTEGRITY_FAULT"


class InternalError(VeriflyError):
    kind = ErrorKind.INTERNAL
    code = "INTERNAL_ERROR"

    def __init__(self, message: str = GENERIC_INTERNAL_MESSAGE, details: Any = None):
        super().__init__(message, details)


class ConfigurationError(InternalError):
    code = "CONFIG_ERROR"


# ============================================================================
# Not found
# ============================================================================

class ApplicationNotFound(NotFoundError):
    code = "APPLICATION_NOT_FOUND"

    def __init__(self, application_id: Optional[str] = None):
        self.application_id = application_id
        if application_id:
            super().__init__(f"Application not found: {application_id}")
        else:
            super().__init__("Application not found")


class ServiceNotFound(NotFoundError):
    code = "SERVICE_NOT_FOUND"

    def __init__(self, service_type: str, application_id: Optional[str] = None):
        self.service_type = service_type
        self.application_id = application_id
        super().__init__(
            f"Service {service_type} not found or inactive for this application"
        )


class RequestNotFound(NotFoundError):
    code = "REQUEST_NOT_FOUND"

    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__(f"Verification request not found: {request_id}")


# ============================================================================
# Conflict
# ============================================================================

class DuplicateApplicationName(ConflictError):
    code = "DUPLICATE_APPLICATION_NAME"

    def __init__(self, name: str):
        self.name = name
        super().__init__("Application with this name already exists")


class DuplicateService(ConflictError):
    code = "DUPLICATE_SERVICE"

    def __init__(self, service_type: str):
        self.service_type = service_type
        super().__init__(f"Service {service_type} already subscribed")


class DuplicateActiveRequest(ConflictError):
    code = "DUPLICATE_ACTIVE_REQUEST"

    def __init__(self, user_identity: str, service_type: str):
        self.user_identity = user_identity
        self.service_type = service_type
        super().__init__(
            f"Active verification request already exists for user {user_identity}"
        )


class AlreadyVerified(ConflictError):
    code = "ALREADY_VERIFIED"

    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__(f"Verification request already verified: {request_id}")


class ConcurrentUpdate(ConflictError):
    code = "CONCURRENT_UPDATE"

    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__(
            f"Verification request is being updated by another call, retry: {request_id}"
        )


# ============================================================================
# Invalid input
# ============================================================================

class RequestExpired(InvalidInputError):
    code = "REQUEST_EXPIRED"

    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__(f"Verification request expired: {request_id}")


class MaxAttemptsExceeded(InvalidInputError):
    code = "MAX_ATTEMPTS_EXCEEDED"

    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__(f"Maximum verification attempts exceeded: {request_id}")


class MaxResendExceeded(InvalidInputError):
    code = "MAX_RESEND_EXCEEDED"

    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__(f"Maximum resend attempts exceeded: {request_id}")


class InvalidToken(InvalidInputError):
    code = "INVALID_TOKEN"

    def __init__(self, request_id: str, attempts_remaining: Optional[int] = None):
        self.request_id = request_id
        self.attempts_remaining = attempts_remaining
        super().__init__(
            f"Invalid token provided: {request_id}",
            details={"attemptsRemaining": attempts_remaining},
        )


class InactiveApplication(InvalidInputError):
    code = "APPLICATION_INACTIVE"

    def __init__(self, application_id: str):
        self.application_id = application_id
        super().__init__("Application is inactive")


class InactiveService(InvalidInputError):
    code = "SERVICE_INACTIVE"

    def __init__(self, service_type: str):
        self.service_type = service_type
        super().__init__(f"Service {service_type} is inactive")


class InvalidServiceConfig(InvalidInputError):
    code = "INVALID_SERVICE_CONFIG"


class InvalidIdentity(InvalidInputError):
    code = "INVALID_IDENTITY"

    def __init__(self, service_type: str):
        self.service_type = service_type
        super().__init__(f"User identity is required for service {service_type}")


# ============================================================================
# Authentication
# ============================================================================

class MissingCredentials(AuthFailure):
    code = "MISSING_CREDENTIALS"

    def __init__(self):
        super().__init__("Invalid API credentials")


class InvalidCredentials(AuthFailure):
    code = "INVALID_CREDENTIALS"

    def __init__(self):
        super().__init__("Invalid API credentials")


class ApplicationInactive(AuthFailure):
    code = "APPLICATION_INACTIVE"

    def __init__(self, application_id: str):
        self.application_id = application_id
        super().__init__(f"Application is inactive: {application_id}")


class KeyExpired(AuthFailure):
    code = "API_KEY_EXPIRED"

    def __init__(self, application_id: str):
        self.application_id = application_id
        super().__init__(f"API key has expired for application: {application_id}")


class AccessDenied(AuthFailure):
    code = "ACCESS_DENIED"

    def __init__(self, application_id: Optional[str] = None):
        self.application_id = application_id
        super().__init__("Access denied to this application")


# ============================================================================
# Integrity
# ============================================================================

class DecryptionFailure(IntegrityFault):
    code = "DECRYPTION_FAILED"

    def __init__(self, message: str = "Failed to decrypt data"):
        super().__init__(message)


class TokenIntegrityFault(IntegrityFault):
    code = "TOKEN_INTEGRITY_FAULT"

    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__(f"Failed to decrypt stored token: {request_id}")
