"""
Key Rotation
============
Self-service replacement of an application's API key and secret.
"""

from datetime import timedelta

import structlog

from ..audit import AuditEventType, AuditTrail, Outcome
from ..crypto import CredentialCipher
from ..errors import AccessDenied, ApplicationNotFound, operation_boundary
from ..models import Application
from ..responses import ResponseEnvelope, success_envelope
from ..storage import Repository
from ..utils import Clock, utc_now
from .credentials import DEFAULT_KEY_VALIDITY, issue_credentials, store_credentials

logger = structlog.get_logger(__name__)


class KeyRotation:
    """Rotates credentials for the authenticated application only."""

    def __init__(
        self,
        applications: Repository[Application],
        cipher: CredentialCipher,
        audit: AuditTrail,
        clock: Clock = utc_now,
        key_validity: timedelta = DEFAULT_KEY_VALIDITY,
    ):
        self.applications = applications
        self.cipher = cipher
        self.audit = audit
        self._clock = clock
        self.key_validity = key_validity

    @operation_boundary("keys.rotate")
    async def rotate(self, application_code: str, caller_application_id: str) -> ResponseEnvelope:
        """
        Replace an application's API key and secret.

        The old pair stops working as soon as the new one is stored.

        Args:
            application_code: Application whose keys are rotated
            caller_application_id: Application that authenticated the call

        Returns:
            Envelope whose single data item carries the new plaintext
            key and secret

        Raises:
            AccessDenied: The caller is not the target application
            ApplicationNotFound: No such application
        """
        if application_code != caller_application_id:
            self.audit.record(
                AuditEventType.APIKEY_ROTATION_DENIED,
                action="API key rotation denied",
                outcome=Outcome.BLOCKED,
                actor_id=caller_application_id,
                actor_type="application",
                resource_type="application",
                resource_id=application_code,
            )
            raise AccessDenied(application_code)

        application = await self.applications.find_one(id=application_code)
        if application is None:
            raise ApplicationNotFound(application_code)

        now = self._clock()
        credentials = issue_credentials(now, self.key_validity)
        store_credentials(application, credentials, self.cipher, now)
        await self.applications.save(application)

        self.audit.record(
            AuditEventType.APIKEY_ROTATED,
            action="API key rotated",
            actor_id=caller_application_id,
            actor_type="application",
            resource_type="application",
            resource_id=application.id,
            payload={"expires_at": credentials.expires_at.isoformat()},
        )

        return success_envelope(
            [{
                "applicationName": application.name,
                "applicationCode": application.id,
                "applicationKey": credentials.api_key,
                "applicationKeySecret": credentials.api_secret,
                "applicationKeyExpiry": credentials.expiry_epoch,
            }],
            "API key rotated successfully",
            resource_id=application.id,
            resource_text="Key rotation completed successfully",
        )
