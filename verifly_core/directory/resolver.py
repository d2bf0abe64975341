"""
Application Directory
=====================
Resolves applications with their credentials decrypted.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import structlog

from ..crypto import CredentialCipher, constant_time_equals
from ..errors import ApplicationNotFound, DecryptionFailure
from ..models import Application
from ..storage import Repository

logger = structlog.get_logger(__name__)


@dataclass
class ResolvedApplication:
    """An application with plaintext credentials. Never persisted or logged."""
    id: str
    name: str
    api_key: str
    api_secret: str
    api_key_expiry: datetime
    is_active: bool

    def __repr__(self) -> str:
        return f"ResolvedApplication(id={self.id!r}, name={self.name!r}, is_active={self.is_active})"


class ApplicationDirectory:
    """
    Read-side access to onboarded applications.

    Every finder decrypts the stored key and secret. A stored value that
    fails to decrypt raises DecryptionFailure, except during the credential
    scan where such rows are skipped.
    """

    def __init__(self, applications: Repository[Application], cipher: CredentialCipher):
        self.applications = applications
        self.cipher = cipher

    def _resolve(self, app: Application) -> ResolvedApplication:
        return ResolvedApplication(
            id=app.id,
            name=app.name,
            api_key=self.cipher.decrypt(app.api_key),
            api_secret=self.cipher.decrypt(app.api_secret),
            api_key_expiry=app.api_key_expiry,
            is_active=app.is_active,
        )

    async def get_record(self, application_id: str) -> Application:
        """
        Get the stored (encrypted) application record.

        Raises:
            ApplicationNotFound: No application with this id
        """
        app = await self.applications.find_one(id=application_id)
        if app is None:
            raise ApplicationNotFound(application_id)
        return app

    async def find_by_id(self, application_id: str) -> ResolvedApplication:
        """
        Find an application by id.

        Raises:
            ApplicationNotFound: No application with this id
            DecryptionFailure: Stored credentials are unreadable
        """
        return self._resolve(await self.get_record(application_id))

    async def find_by_name(self, name: str) -> ResolvedApplication:
        """
        Find an application by its unique name.

        Raises:
            ApplicationNotFound: No application with this name
            DecryptionFailure: Stored credentials are unreadable
        """
        app = await self.applications.find_one(name=name)
        if app is None:
            raise ApplicationNotFound()
        return self._resolve(app)

    async def find_by_credential_key(self, api_key: str) -> ResolvedApplication:
        """
        Find the application that owns a plaintext API key.

        Looks up the keyed hash index first. Rows stored without a lookup
        hash are found by decrypting every active key and comparing; rows
        that fail to decrypt are skipped. The scan is O(n) in the number
        of unindexed applications.

        Args:
            api_key: Plaintext API key from the request

        Returns:
            The matching application, decrypted

        Raises:
            ApplicationNotFound: No application owns this key
            DecryptionFailure: The indexed row's credentials are unreadable
        """
        lookup = self.cipher.lookup_hash(api_key)
        app = await self.applications.find_one(api_key_lookup=lookup)
        if app is not None:
            resolved = self._resolve(app)
            if constant_time_equals(resolved.api_key, api_key):
                return resolved
            logger.warning("Credential lookup hash collision", application_id=app.id)

        match = await self._scan(api_key)
        if match is None:
            raise ApplicationNotFound()
        return match

    async def _scan(self, api_key: str) -> Optional[ResolvedApplication]:
        candidates = await self.applications.find_all(is_active=True, api_key_lookup=None)
        for app in candidates:
            try:
                stored_key = self.cipher.decrypt(app.api_key)
                if not constant_time_equals(stored_key, api_key):
                    continue
                return self._resolve(app)
            except DecryptionFailure:
                logger.warning(
                    "Skipping application with undecryptable credentials",
                    application_id=app.id,
                )
        return None
