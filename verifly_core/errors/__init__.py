"""
Errors Module
=============
Typed failures and the operation boundary that guards the public API.
"""

from .exceptions import (
    GENERIC_INTERNAL_MESSAGE,
    ErrorKind,
    VeriflyError,
    NotFoundError,
    ConflictError,
    InvalidInputError,
    AuthFailure,
    IntegrityFault,
    InternalError,
    ConfigurationError,
    ApplicationNotFound,
    ServiceNotFound,
    RequestNotFound,
    DuplicateApplicationName,
    DuplicateService,
    ConcurrentUpdate,
    DuplicateActiveRequest,
    AlreadyVerified,
    RequestExpired,
    MaxAttemptsExceeded,
    MaxResendExceeded,
    InvalidToken,
    InactiveApplication,
    InactiveService,
    InvalidServiceConfig,
    InvalidIdentity,
    MissingCredentials,
    InvalidCredentials,
    ApplicationInactive,
    KeyExpired,
    AccessDenied,
    DecryptionFailure,
    TokenIntegrityFault,
)
from .boundary import operation_boundary

__all__ = [
    "GENERIC_INTERNAL_MESSAGE",
    "ErrorKind",
    # Kinds
    "VeriflyError",
    "NotFoundError",
    "ConflictError",
    "InvalidInputError",
    "AuthFailure",
    "IntegrityFault",
    "InternalError",
    "ConfigurationError",
    # Not found
    "ApplicationNotFound",
    "ServiceNotFound",
    "RequestNotFound",
    # Conflict
    "DuplicateApplicationName",
    "DuplicateService",
    "ConcurrentUpdate",
    "DuplicateActiveRequest",
    "AlreadyVerified",
    # Invalid input
    "RequestExpired",
    "MaxAttemptsExceeded",
    "MaxResendExceeded",
    "InvalidToken",
    "InactiveApplication",
    "InactiveService",
    "InvalidServiceConfig",
    "InvalidIdentity",
    # Authentication
    "MissingCredentials",
    "InvalidCredentials",
    "ApplicationInactive",
    "KeyExpired",
    "AccessDenied",
    # Integrity
    "DecryptionFailure",
    "TokenIntegrityFault",
    # Boundary
    "operation_boundary",
]
