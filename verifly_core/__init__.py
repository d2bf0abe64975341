"""
Verifly Core Library
====================
Verification tokens, application credentials and API authentication.
"""

__version__ = "0.3.0"

# Configuration & logging
from verifly_core.config import (
    ConfigProvider,
    CoreSettings,
    DictConfigProvider,
    EnvConfigProvider,
    VaultConfigProvider,
)
from verifly_core.logging import setup_logging

# Errors
from verifly_core.errors import (
    ErrorKind,
    VeriflyError,
    NotFoundError,
    ConflictError,
    InvalidInputError,
    AuthFailure,
    IntegrityFault,
    InternalError,
    operation_boundary,
)

# Models
from verifly_core.models import (
    Application,
    RequestState,
    ServiceSubscription,
    ServiceType,
    TokenPattern,
    VerificationPolicy,
    VerificationRequest,
)

# Crypto
from verifly_core.crypto import CredentialCipher, constant_time_equals
from verifly_core.masking import mask_api_key, mask_identity

# Storage
from verifly_core.storage import (
    Store,
    StaleWrite,
    UniqueViolation,
    create_memory_store,
    create_engine,
    create_schema,
    create_sql_store,
)

# Audit
from verifly_core.audit import AuditEventType, AuditEvent, AuditTrail, verify_chain_integrity

# Responses
from verifly_core.responses import MessageType, ResponseEnvelope, error_envelope, success_envelope

# Components
from verifly_core.directory import ApplicationDirectory, ResolvedApplication
from verifly_core.auth import ApiAuthenticator, RequestContext
from verifly_core.lifecycle import (
    GenerateItem,
    ResendItem,
    VerifyItem,
    VerificationEngine,
    generate_token,
)
from verifly_core.keys import KeyRotation, generate_api_key, generate_api_secret
from verifly_core.onboarding import Onboarding, ServiceDefinition

# Composition root
from verifly_core.container import VeriflyCore, build_core

__all__ = [
    "__version__",
    # Configuration & logging
    "ConfigProvider",
    "CoreSettings",
    "DictConfigProvider",
    "EnvConfigProvider",
    "VaultConfigProvider",
    "setup_logging",
    # Errors
    "ErrorKind",
    "VeriflyError",
    "NotFoundError",
    "ConflictError",
    "InvalidInputError",
    "AuthFailure",
    "IntegrityFault",
    "InternalError",
    "operation_boundary",
    # Models
    "Application",
    "RequestState",
    "ServiceSubscription",
    "ServiceType",
    "TokenPattern",
    "VerificationPolicy",
    "VerificationRequest",
    # Crypto
    "CredentialCipher",
    "constant_time_equals",
    "mask_api_key",
    "mask_identity",
    # Storage
    "Store",
    "StaleWrite",
    "UniqueViolation",
    "create_memory_store",
    "create_engine",
    "create_schema",
    "create_sql_store",
    # Audit
    "AuditEventType",
    "AuditEvent",
    "AuditTrail",
    "verify_chain_integrity",
    # Responses
    "MessageType",
    "ResponseEnvelope",
    "error_envelope",
    "success_envelope",
    # Components
    "ApplicationDirectory",
    "ResolvedApplication",
    "ApiAuthenticator",
    "RequestContext",
    "GenerateItem",
    "ResendItem",
    "VerifyItem",
    "VerificationEngine",
    "generate_token",
    "KeyRotation",
    "generate_api_key",
    "generate_api_secret",
    "Onboarding",
    "ServiceDefinition",
    # Composition root
    "VeriflyCore",
    "build_core",
]
