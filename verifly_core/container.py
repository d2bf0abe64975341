"""
Composition Root
================
Wires the verifly-core components from settings and a store.

Usage:
    from verifly_core import CoreSettings, build_core, create_memory_store

    core = build_core(CoreSettings.from_provider(), create_memory_store())
    envelope = await core.onboarding.register("acme", [{"serviceType": "authMO"}])
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from .audit import AuditTrail
from .auth import ApiAuthenticator
from .config import CoreSettings
from .crypto import CredentialCipher
from .directory import ApplicationDirectory
from .keys import KeyRotation
from .lifecycle import VerificationEngine
from .logging import setup_logging
from .onboarding import Onboarding
from .storage import Store, create_memory_store
from .utils import Clock, utc_now

logger = structlog.get_logger(__name__)


@dataclass
class VeriflyCore:
    """Every component, built once and shared by all requests."""
    settings: CoreSettings
    store: Store
    cipher: CredentialCipher
    audit: AuditTrail
    directory: ApplicationDirectory
    authenticator: ApiAuthenticator
    engine: VerificationEngine
    rotation: KeyRotation
    onboarding: Onboarding


def build_core(
    settings: Optional[CoreSettings] = None,
    store: Optional[Store] = None,
    clock: Clock = utc_now,
    configure_logging: bool = False,
) -> VeriflyCore:
    """
    Build all components.

    Args:
        settings: Runtime settings (defaults to environment configuration)
        store: Repositories (defaults to an in-memory store)
        clock: Time source shared by every component
        configure_logging: Also run ``setup_logging`` from the settings

    Returns:
        Wired VeriflyCore
    """
    settings = settings or CoreSettings.from_provider()
    if configure_logging:
        setup_logging(settings.service_name, settings.log_level, settings.json_logs)

    if store is None:
        logger.warning("No store configured, using in-memory repositories")
        store = create_memory_store()

    cipher = CredentialCipher(settings.encryption_key)
    audit = AuditTrail(settings.service_name, clock=clock)
    directory = ApplicationDirectory(store.applications, cipher)

    core = VeriflyCore(
        settings=settings,
        store=store,
        cipher=cipher,
        audit=audit,
        directory=directory,
        authenticator=ApiAuthenticator(directory, audit, clock=clock),
        engine=VerificationEngine(
            store,
            cipher,
            audit,
            clock=clock,
            request_ttl=settings.request_ttl,
        ),
        rotation=KeyRotation(
            store.applications,
            cipher,
            audit,
            clock=clock,
            key_validity=settings.key_validity,
        ),
        onboarding=Onboarding(
            store,
            cipher,
            audit,
            clock=clock,
            key_validity=settings.key_validity,
        ),
    )
    logger.info(
        "verifly-core initialized",
        environment=settings.environment,
        service=settings.service_name,
    )
    return core
