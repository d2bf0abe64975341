"""
API Authentication
==================
Per-request key/secret check for client applications.

Usage:
    authenticator = ApiAuthenticator(directory, audit)

    application = await authenticator.authenticate(
        api_key=headers.get("X-App-Auth-Key"),
        api_secret=headers.get("X-App-Auth-Secret"),
        context=RequestContext(method="POST", path="/verify"),
    )
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from ..audit import AuditEventType, AuditTrail, Outcome
from ..crypto import constant_time_equals
from ..directory import ApplicationDirectory, ResolvedApplication
from ..errors import (
    ApplicationInactive,
    ApplicationNotFound,
    AuthFailure,
    IntegrityFault,
    InvalidCredentials,
    KeyExpired,
    MissingCredentials,
    operation_boundary,
)
from ..masking import mask_api_key
from ..utils import Clock, utc_now

logger = structlog.get_logger(__name__)


@dataclass
class RequestContext:
    """Transport details recorded with each authentication audit event."""
    method: Optional[str] = None
    path: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class ApiAuthenticator:
    """
    Stateless credential check.

    Checks run in a fixed order: both headers present, key resolves to an
    application, secret matches, application active, key not expired.
    Every outcome is audited with the key masked; the secret is never
    logged or audited.
    """

    def __init__(
        self,
        directory: ApplicationDirectory,
        audit: AuditTrail,
        clock: Clock = utc_now,
    ):
        self.directory = directory
        self.audit = audit
        self._clock = clock

    def _record(
        self,
        outcome: str,
        masked_key: str,
        context: RequestContext,
        application_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> None:
        payload = {"method": context.method, "path": context.path}
        if reason:
            payload["reason"] = reason
        self.audit.record(
            AuditEventType.AUTH_SUCCEEDED if outcome == Outcome.SUCCESS else AuditEventType.AUTH_FAILED,
            action="API authentication succeeded" if outcome == Outcome.SUCCESS else "API authentication failed",
            outcome=outcome,
            actor_id=masked_key,
            actor_type="apikey",
            resource_type="application",
            resource_id=application_id,
            payload=payload,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
        )

    @operation_boundary("auth.authenticate")
    async def authenticate(
        self,
        api_key: Optional[str],
        api_secret: Optional[str],
        context: Optional[RequestContext] = None,
    ) -> ResolvedApplication:
        """
        Authenticate a request.

        Args:
            api_key: Value of the key header
            api_secret: Value of the secret header
            context: Request details for the audit record

        Returns:
            The authenticated application

        Raises:
            MissingCredentials: A header is absent or empty
            InvalidCredentials: Unknown key or wrong secret
            ApplicationInactive: The application is deactivated
            KeyExpired: The key's expiry has passed
            IntegrityFault: The owning row's credentials cannot be decrypted
        """
        context = context or RequestContext()
        masked_key = mask_api_key(api_key)

        try:
            if not api_key or not api_secret:
                raise MissingCredentials()

            try:
                application = await self.directory.find_by_credential_key(api_key)
            except ApplicationNotFound:
                raise InvalidCredentials() from None

            if not constant_time_equals(application.api_secret, api_secret):
                raise InvalidCredentials()

            if not application.is_active:
                raise ApplicationInactive(application.id)

            if self._clock() > application.api_key_expiry:
                raise KeyExpired(application.id)

        except AuthFailure as exc:
            self._record(
                Outcome.FAILURE,
                masked_key,
                context,
                application_id=getattr(exc, "application_id", None),
                reason=exc.code,
            )
            logger.warning("API authentication failed", api_key=masked_key, code=exc.code)
            raise
        except IntegrityFault as exc:
            self._record(Outcome.FAILURE, masked_key, context, reason=exc.code)
            raise

        self._record(Outcome.SUCCESS, masked_key, context, application_id=application.id)
        return application
