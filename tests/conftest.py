"""
Shared fixtures for verifly-core tests.
"""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from verifly_core.audit import AuditTrail
from verifly_core.config import CoreSettings
from verifly_core.container import build_core
from verifly_core.crypto import CredentialCipher
from verifly_core.storage import create_memory_store

TEST_ENCRYPTION_KEY = "unit-test-encryption-key"

MOBILE_SERVICE = {
    "serviceType": "authMO",
    "verificationConfig": {
        "maxResendCount": 3,
        "maxAttemptCount": 3,
        "tokenLength": 6,
        "tokenPattern": "N",
        "expiryTime": 300,
    },
    "successCallback": {"url": "https://client.example/ok", "method": "POST", "payload": {"k": 1}},
    "errorCallback": {"url": "https://client.example/err"},
}

EMAIL_SERVICE = {
    "serviceType": "authEO",
    "verificationConfig": {
        "maxResendCount": 2,
        "maxAttemptCount": 5,
        "tokenLength": 8,
        "tokenPattern": "A",
        "expiryTime": 600,
    },
}

LINK_SERVICE = {
    "serviceType": "verifyEL",
    "verificationLinkRoute": "https://client.example/verify",
    "verificationConfig": {"tokenLength": 32, "tokenPattern": "alphanumeric"},
}


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def cipher():
    return CredentialCipher(TEST_ENCRYPTION_KEY)


@pytest.fixture
def store():
    return create_memory_store()


@pytest.fixture
def audit(clock):
    return AuditTrail("verifly-test", clock=clock)


@pytest.fixture
def settings():
    return CoreSettings(encryption_key=TEST_ENCRYPTION_KEY, service_name="verifly-test")


@pytest.fixture
def core(settings, store, clock):
    return build_core(settings, store, clock=clock)


@pytest_asyncio.fixture
async def registered(core):
    """An application subscribed to mobile OTP, email OTP and email link services."""
    envelope = await core.onboarding.register(
        "acme",
        [MOBILE_SERVICE, EMAIL_SERVICE, LINK_SERVICE],
    )
    return envelope.data[0]


@pytest.fixture
def app_id(registered):
    return registered["applicationCode"]


@pytest.fixture
def mobile_service():
    return dict(MOBILE_SERVICE)
