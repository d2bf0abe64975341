"""
Onboarding
==========
Application registration and service subscription management.
"""

from datetime import timedelta
from typing import Any, Dict, Optional, Sequence, Union

import structlog

from ..audit import AuditEventType, AuditTrail
from ..crypto import CredentialCipher
from ..errors import (
    ApplicationNotFound,
    DuplicateApplicationName,
    DuplicateService,
    InactiveApplication,
    InactiveService,
    InvalidInputError,
    InvalidServiceConfig,
    ServiceNotFound,
    operation_boundary,
)
from ..keys import DEFAULT_KEY_VALIDITY, issue_credentials, store_credentials
from ..models import Application, ServiceSubscription, ServiceType
from ..responses import ResponseEnvelope, success_envelope
from ..storage import Store, UniqueViolation
from ..utils import Clock, utc_now
from .definitions import ServiceDefinition, parse_definitions

logger = structlog.get_logger(__name__)

ServiceInput = Union[ServiceDefinition, Dict[str, Any]]


class Onboarding:
    """
    Registers applications and manages their service subscriptions.

    Input is validated in full before anything is written, so a rejected
    call leaves no partial state behind.
    """

    def __init__(
        self,
        store: Store,
        cipher: CredentialCipher,
        audit: AuditTrail,
        clock: Clock = utc_now,
        key_validity: timedelta = DEFAULT_KEY_VALIDITY,
    ):
        self.applications = store.applications
        self.services = store.services
        self.cipher = cipher
        self.audit = audit
        self._clock = clock
        self.key_validity = key_validity

    async def _require_application(self, application_code: str, active: bool = True) -> Application:
        app = await self.applications.find_one(id=application_code)
        if app is None:
            raise ApplicationNotFound(application_code)
        if active and not app.is_active:
            raise InactiveApplication(application_code)
        return app

    async def _require_service(
        self,
        application_code: str,
        service_type: Union[ServiceType, str],
    ) -> ServiceSubscription:
        parsed = ServiceType.parse(service_type)
        if parsed is None:
            raise ServiceNotFound(str(service_type), application_code)

        service = await self.services.find_one(
            application_id=application_code,
            service_type=parsed,
            is_active=True,
        )
        if service is not None:
            return service
        if await self.services.find_one(application_id=application_code, service_type=parsed):
            raise InactiveService(parsed.value)
        raise ServiceNotFound(parsed.value, application_code)

    async def _subscribe(self, application_id: str, definition: ServiceDefinition) -> ServiceSubscription:
        now = self._clock()
        service = ServiceSubscription(
            application_id=application_id,
            service_type=definition.service_type,
            policy=definition.policy,
            success_callback=definition.success_callback,
            error_callback=definition.error_callback,
            verification_link_route=definition.verification_link_route,
            created_at=now,
            updated_at=now,
        )
        try:
            await self.services.create(service)
        except UniqueViolation:
            raise DuplicateService(definition.service_type.value) from None

        self.audit.record(
            AuditEventType.SERVICE_ADDED,
            action="Service subscribed",
            actor_id=application_id,
            actor_type="application",
            resource_type="service",
            resource_id=service.id,
            payload={"service_type": service.service_type.value},
        )
        return service

    @operation_boundary("onboarding.register")
    async def register(self, name: str, services: Sequence[ServiceInput]) -> ResponseEnvelope:
        """
        Register a new application.

        Args:
            name: Unique application name
            services: Service definitions (dicts or ServiceDefinition)

        Returns:
            Envelope with the application code and its plaintext key and
            secret, shown only this once

        Raises:
            InvalidInputError: Empty name
            InvalidServiceConfig: A definition is invalid
            DuplicateService: A service type is listed twice
            DuplicateApplicationName: The name is taken
        """
        name = (name or "").strip()
        if not name:
            raise InvalidInputError("applicationName is required")
        definitions = parse_definitions(services)

        if await self.applications.find_one(name=name) is not None:
            raise DuplicateApplicationName(name)

        now = self._clock()
        credentials = issue_credentials(now, self.key_validity)
        application = Application(
            name=name,
            api_key="",
            api_secret="",
            api_key_expiry=credentials.expires_at,
            created_at=now,
            updated_at=now,
        )
        store_credentials(application, credentials, self.cipher, now)
        try:
            await self.applications.create(application)
        except UniqueViolation:
            raise DuplicateApplicationName(name) from None

        subscribed = []
        for definition in definitions:
            await self._subscribe(application.id, definition)
            subscribed.append(definition.service_type.value)

        self.audit.record(
            AuditEventType.APPLICATION_REGISTERED,
            action="Application registered",
            resource_type="application",
            resource_id=application.id,
            payload={"name": name, "services": subscribed},
        )

        return success_envelope(
            [{
                "applicationName": application.name,
                "applicationCode": application.id,
                "applicationKey": credentials.api_key,
                "applicationKeySecret": credentials.api_secret,
                "applicationKeyExpiry": credentials.expiry_epoch,
                "servicesSubscribed": subscribed,
            }],
            "Application registered successfully",
            resource_id=application.id,
        )

    @operation_boundary("onboarding.add_services")
    async def add_services(
        self,
        application_code: str,
        services: Sequence[ServiceInput],
    ) -> ResponseEnvelope:
        """
        Subscribe an existing application to more services.

        Raises:
            ApplicationNotFound, InactiveApplication, InvalidServiceConfig,
            DuplicateService
        """
        await self._require_application(application_code)
        definitions = parse_definitions(services)
        if not definitions:
            raise InvalidInputError("At least one service is required")

        for definition in definitions:
            existing = await self.services.find_one(
                application_id=application_code,
                service_type=definition.service_type,
                is_active=True,
            )
            if existing is not None:
                raise DuplicateService(definition.service_type.value)

        added = []
        for definition in definitions:
            await self._subscribe(application_code, definition)
            added.append(definition.service_type.value)

        return success_envelope(
            [{"applicationCode": application_code, "servicesAdded": added}],
            "Services added successfully",
            resource_id=application_code,
        )

    @operation_boundary("onboarding.update_service")
    async def update_service(
        self,
        application_code: str,
        service_type: Union[ServiceType, str],
        definition: ServiceInput,
    ) -> ResponseEnvelope:
        """
        Replace a subscription's policy, callbacks and link route.

        Requests already issued keep their limits; resends pick up the new
        policy.

        Raises:
            ApplicationNotFound, InactiveApplication, ServiceNotFound,
            InactiveService, InvalidServiceConfig
        """
        await self._require_application(application_code)
        service = await self._require_service(application_code, service_type)

        if isinstance(definition, dict):
            definition = ServiceDefinition.from_dict(
                {"serviceType": service.service_type.value, **definition}
            )
        else:
            definition.validate()
        if definition.service_type is not service.service_type:
            raise InvalidServiceConfig("Service type cannot be changed")

        service.policy = definition.policy
        service.success_callback = definition.success_callback
        service.error_callback = definition.error_callback
        service.verification_link_route = definition.verification_link_route
        service.updated_at = self._clock()
        await self.services.save(service)

        self.audit.record(
            AuditEventType.SERVICE_UPDATED,
            action="Service updated",
            actor_id=application_code,
            actor_type="application",
            resource_type="service",
            resource_id=service.id,
            payload={"service_type": service.service_type.value, "policy": service.policy.to_dict()},
        )
        return success_envelope(
            [{"applicationCode": application_code, "serviceType": service.service_type.value}],
            "Service updated successfully",
            resource_id=application_code,
        )

    @operation_boundary("onboarding.remove_service")
    async def remove_service(
        self,
        application_code: str,
        service_type: Union[ServiceType, str],
    ) -> ResponseEnvelope:
        """
        Deactivate a subscription. Its history is kept.

        Raises:
            ApplicationNotFound, ServiceNotFound, InactiveService
        """
        await self._require_application(application_code, active=False)
        service = await self._require_service(application_code, service_type)

        service.is_active = False
        service.updated_at = self._clock()
        await self.services.save(service)

        self.audit.record(
            AuditEventType.SERVICE_REMOVED,
            action="Service removed",
            actor_id=application_code,
            actor_type="application",
            resource_type="service",
            resource_id=service.id,
            payload={"service_type": service.service_type.value},
        )
        return success_envelope(
            [{"applicationCode": application_code, "serviceType": service.service_type.value}],
            "Service removed successfully",
            resource_id=application_code,
        )

    @operation_boundary("onboarding.deactivate")
    async def deactivate(self, application_code: str, reason: Optional[str] = None) -> ResponseEnvelope:
        """
        Deactivate an application. Its credentials stop authenticating.

        Raises:
            ApplicationNotFound
        """
        application = await self._require_application(application_code, active=False)
        if application.is_active:
            application.is_active = False
            application.updated_at = self._clock()
            await self.applications.save(application)

            self.audit.record(
                AuditEventType.APPLICATION_DEACTIVATED,
                action="Application deactivated",
                resource_type="application",
                resource_id=application.id,
                payload={"reason": reason},
            )
            logger.info("Application deactivated", application_id=application.id)

        return success_envelope(
            [{"applicationCode": application.id, "active": False}],
            "Application deactivated successfully",
            resource_id=application.id,
        )
