"""
Verification Lifecycle Engine
=============================
Generate, resend and verify tokens for onboarded applications.

Usage:
    engine = VerificationEngine(store, cipher, audit)

    envelope = await engine.generate(application_id, [
        GenerateItem(service_type="authMO", user_identity="+15551234567"),
    ])
    result = envelope.data[0]

    await engine.verify_one(application_id, VerifyItem(result["requestId"], token))
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, TypeVar, Union
from urllib.parse import urlencode

import structlog

from ..audit import AuditEventType, AuditTrail, Outcome
from ..crypto import CredentialCipher, constant_time_equals
from ..errors import (
    AlreadyVerified,
    ApplicationNotFound,
    ConcurrentUpdate,
    DecryptionFailure,
    DuplicateActiveRequest,
    InactiveApplication,
    InvalidInputError,
    InvalidToken,
    MaxAttemptsExceeded,
    MaxResendExceeded,
    RequestExpired,
    RequestNotFound,
    ServiceNotFound,
    TokenIntegrityFault,
    operation_boundary,
)
from ..masking import mask_identity
from ..models import (
    Application,
    RequestState,
    ServiceSubscription,
    ServiceType,
    VerificationRequest,
)
from ..responses import ResponseEnvelope, success_envelope
from ..storage import StaleWrite, Store, UniqueViolation
from ..utils import Clock, utc_now
from .identity import normalize_identity
from .tokens import generate_distinct_token, generate_token

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_REQUEST_TTL = timedelta(hours=24)
DEFAULT_WRITE_RETRIES = 5


def _field(data: Dict[str, Any], snake: str, camel: str) -> Any:
    value = data.get(camel, data.get(snake))
    if value is None:
        raise InvalidInputError(f"{camel} is required")
    return value


# ============================================================================
# Items
# ============================================================================

@dataclass
class GenerateItem:
    service_type: str
    user_identity: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GenerateItem":
        return cls(
            service_type=_field(data, "service_type", "serviceType"),
            user_identity=_field(data, "user_identity", "userIdentity"),
        )


@dataclass
class ResendItem:
    request_id: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResendItem":
        return cls(request_id=_field(data, "request_id", "requestId"))


@dataclass
class VerifyItem:
    request_id: str
    token: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VerifyItem":
        return cls(
            request_id=_field(data, "request_id", "requestId"),
            token=_field(data, "token", "token"),
        )


# ============================================================================
# Results
# ============================================================================

@dataclass
class GenerateResult:
    """Outcome of one generate item. ``token`` is plaintext and returned only here."""
    request_id: str
    service_type: ServiceType
    user_identity: str
    token: str
    expiry_time: datetime
    verification_link: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "requestId": self.request_id,
            "serviceType": self.service_type.value,
            "userIdentity": self.user_identity,
            "token": self.token,
            "expiryTime": self.expiry_time.isoformat(),
        }
        if self.verification_link:
            d["verificationLink"] = self.verification_link
        return d


@dataclass
class ResendResult:
    request_id: str
    service_type: ServiceType
    user_identity: str
    token: str
    expiry_time: datetime
    resend_count: int
    max_resend_count: int
    verification_link: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "requestId": self.request_id,
            "serviceType": self.service_type.value,
            "userIdentity": self.user_identity,
            "token": self.token,
            "expiryTime": self.expiry_time.isoformat(),
            "resendCount": self.resend_count,
            "resendsRemaining": max(self.max_resend_count - self.resend_count, 0),
        }
        if self.verification_link:
            d["verificationLink"] = self.verification_link
        return d


@dataclass
class VerifyResult:
    request_id: str
    verified_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "requestId": self.request_id,
            "verified": True,
            "verifiedAt": self.verified_at.isoformat(),
        }


def build_verification_link(route: str, request_id: str, token: str) -> str:
    """Append the request id and token to a client's verification route."""
    separator = "&" if "?" in route else "?"
    return f"{route}{separator}{urlencode({'requestId': request_id, 'token': token})}"


# ============================================================================
# Engine
# ============================================================================

class VerificationEngine:
    """
    Verification request lifecycle.

    A request leaves ACTIVE exactly once: to VERIFIED on a matching token,
    to EXPIRED when its expiry is found to have passed, or to DEACTIVATED
    when a new request supersedes it. Only the encrypted token is stored.

    Request saves are compare-and-set on the request version. An item
    whose save loses to a concurrent call is re-run against the fresh
    state, so every wrong guess and every resend is counted once.
    """

    def __init__(
        self,
        store: Store,
        cipher: CredentialCipher,
        audit: AuditTrail,
        clock: Clock = utc_now,
        request_ttl: timedelta = DEFAULT_REQUEST_TTL,
        max_write_retries: int = DEFAULT_WRITE_RETRIES,
    ):
        self.applications = store.applications
        self.services = store.services
        self.requests = store.requests
        self.cipher = cipher
        self.audit = audit
        self._clock = clock
        self.request_ttl = request_ttl
        self.max_write_retries = max_write_retries

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def _require_application(self, application_id: str) -> Application:
        app = await self.applications.find_one(id=application_id)
        if app is None:
            raise ApplicationNotFound(application_id)
        if not app.is_active:
            raise InactiveApplication(application_id)
        return app

    async def _active_service(
        self,
        application_id: str,
        service_type: ServiceType,
    ) -> ServiceSubscription:
        service = await self.services.find_one(
            application_id=application_id,
            service_type=service_type,
            is_active=True,
        )
        if service is None:
            raise ServiceNotFound(service_type.value, application_id)
        return service

    async def _load_request(
        self,
        application_id: str,
        request_id: str,
        now: datetime,
    ) -> VerificationRequest:
        """Load a request that is still ACTIVE and unexpired, expiring it lazily."""
        request = await self.requests.find_one(id=request_id, application_id=application_id)
        if request is None:
            raise RequestNotFound(request_id)
        if request.verified:
            raise AlreadyVerified(request_id)
        if not request.is_active:
            raise RequestExpired(request_id)
        if request.is_expired(now):
            request.mark_expired(now)
            await self.requests.save(request)
            self._audit_request(AuditEventType.VERIFY_EXPIRED, "Verification request expired", request, Outcome.FAILURE)
            raise RequestExpired(request_id)
        return request

    def _audit_request(
        self,
        event_type: AuditEventType,
        action: str,
        request: VerificationRequest,
        outcome: str = Outcome.SUCCESS,
        **payload: Any,
    ) -> None:
        self.audit.record(
            event_type,
            action=action,
            outcome=outcome,
            actor_id=request.application_id,
            actor_type="application",
            resource_type="verification_request",
            resource_id=request.id,
            payload={
                "service_type": request.service_type.value,
                "user_identity": mask_identity(request.user_identity),
                **payload,
            },
        )

    async def _run_item(
        self,
        handler: Callable[[Application, Any], Awaitable[T]],
        application: Application,
        item: Any,
    ) -> T:
        """Run an item handler, re-reading the request when its save goes stale."""
        stale: Optional[StaleWrite] = None
        for attempt in range(1, self.max_write_retries + 1):
            try:
                return await handler(application, item)
            except StaleWrite as exc:
                stale = exc
                logger.info(
                    "Verification request changed concurrently, retrying",
                    request_id=exc.entity_id,
                    attempt=attempt,
                )
        logger.warning("Giving up on contended verification request", request_id=stale.entity_id)
        raise ConcurrentUpdate(stale.entity_id)

    # ------------------------------------------------------------------
    # Item operations
    # ------------------------------------------------------------------

    async def _generate_item(self, application: Application, item: GenerateItem) -> GenerateResult:
        now = self._clock()
        service_type = ServiceType.parse(item.service_type)
        if service_type is None:
            raise ServiceNotFound(str(item.service_type), application.id)

        service = await self._active_service(application.id, service_type)
        identity = normalize_identity(service_type, item.user_identity)

        existing = await self.requests.find_one(
            application_id=application.id,
            service_id=service.id,
            user_identity=identity,
            state=RequestState.ACTIVE,
        )
        if existing is not None:
            if not existing.is_expired(now):
                raise DuplicateActiveRequest(identity, service_type.value)
            existing.mark_superseded(now)
            await self.requests.save(existing)
            logger.info("Superseded expired verification request", request_id=existing.id)

        policy = service.policy
        token = generate_token(policy.token_length, policy.pattern)
        request = VerificationRequest(
            application_id=application.id,
            service_id=service.id,
            service_type=service_type,
            user_identity=identity,
            token=self.cipher.encrypt(token),
            expiry_time=now + policy.expiry,
            max_attempt_count=policy.max_attempt_count,
            max_resend_count=policy.max_resend_count,
            ttl=now + self.request_ttl,
            created_at=now,
            updated_at=now,
        )
        try:
            await self.requests.create(request)
        except UniqueViolation:
            # Lost a race with a concurrent generate for the same identity
            raise DuplicateActiveRequest(identity, service_type.value) from None

        self._audit_request(
            AuditEventType.VERIFY_GENERATED,
            "Verification request generated",
            request,
            expires_in=policy.expiry_seconds,
        )

        link = None
        if service_type.uses_link and service.verification_link_route:
            link = build_verification_link(service.verification_link_route, request.id, token)

        return GenerateResult(
            request_id=request.id,
            service_type=service_type,
            user_identity=identity,
            token=token,
            expiry_time=request.expiry_time,
            verification_link=link,
        )

    async def _resend_item(self, application: Application, item: ResendItem) -> ResendResult:
        now = self._clock()
        request = await self._load_request(application.id, item.request_id, now)

        if request.resend_count >= request.max_resend_count:
            raise MaxResendExceeded(request.id)

        # Current policy comes from the subscription, not the copy on the request
        service = await self.services.find_one(id=request.service_id, is_active=True)
        if service is None:
            raise ServiceNotFound(request.service_type.value, application.id)
        policy = service.policy

        try:
            previous = self.cipher.decrypt(request.token)
        except DecryptionFailure:
            logger.warning("Previous token unreadable during resend", request_id=request.id)
            previous = None

        token = generate_distinct_token(policy.token_length, policy.pattern, previous)
        request.reissue(self.cipher.encrypt(token), now + policy.expiry, now)
        await self.requests.save(request)

        self._audit_request(
            AuditEventType.VERIFY_RESENT,
            "Verification token resent",
            request,
            resend_count=request.resend_count,
        )

        link = None
        if request.service_type.uses_link and service.verification_link_route:
            link = build_verification_link(service.verification_link_route, request.id, token)

        return ResendResult(
            request_id=request.id,
            service_type=request.service_type,
            user_identity=request.user_identity,
            token=token,
            expiry_time=request.expiry_time,
            resend_count=request.resend_count,
            max_resend_count=request.max_resend_count,
            verification_link=link,
        )

    async def _verify_item(self, application: Application, item: VerifyItem) -> VerifyResult:
        now = self._clock()
        request = await self._load_request(application.id, item.request_id, now)

        if request.attempt_count >= request.max_attempt_count:
            raise MaxAttemptsExceeded(request.id)

        try:
            stored_token = self.cipher.decrypt(request.token)
        except DecryptionFailure as exc:
            raise TokenIntegrityFault(request.id) from exc

        if not constant_time_equals(stored_token, item.token):
            # The attempt is consumed even though it failed
            request.record_failed_attempt(now)
            await self.requests.save(request)
            self._audit_request(
                AuditEventType.VERIFY_FAILED,
                "Verification token mismatch",
                request,
                Outcome.FAILURE,
                attempts_remaining=request.attempts_remaining,
            )
            raise InvalidToken(request.id, request.attempts_remaining)

        request.mark_verified(now)
        await self.requests.save(request)
        self._audit_request(AuditEventType.VERIFY_COMPLETED, "Verification completed", request)

        return VerifyResult(request_id=request.id, verified_at=now)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @operation_boundary("verification.generate")
    async def generate(
        self,
        application_id: str,
        items: Sequence[Union[GenerateItem, Dict[str, Any]]],
    ) -> ResponseEnvelope:
        """
        Generate verification requests.

        Items are processed in order and the first failure aborts the batch;
        requests created before it are kept.

        Args:
            application_id: Authenticated application
            items: GenerateItem objects or dicts with serviceType/userIdentity

        Returns:
            Envelope with one GenerateResult dict per item

        Raises:
            ApplicationNotFound, InactiveApplication, ServiceNotFound,
            InvalidIdentity, DuplicateActiveRequest
        """
        application = await self._require_application(application_id)
        parsed = _parse_items(items, GenerateItem)
        results = [
            (await self._run_item(self._generate_item, application, item)).to_dict()
            for item in parsed
        ]
        return success_envelope(
            results,
            "Verification requests generated successfully",
            resource_id=application_id,
            resource_text="Verification generation completed successfully",
        )

    @operation_boundary("verification.resend")
    async def resend(
        self,
        application_id: str,
        items: Sequence[Union[ResendItem, Dict[str, Any]]],
    ) -> ResponseEnvelope:
        """
        Reissue tokens for outstanding requests.

        Raises:
            ApplicationNotFound, InactiveApplication, RequestNotFound,
            AlreadyVerified, RequestExpired, MaxResendExceeded, ServiceNotFound,
            ConcurrentUpdate
        """
        application = await self._require_application(application_id)
        parsed = _parse_items(items, ResendItem)
        results = [
            (await self._run_item(self._resend_item, application, item)).to_dict()
            for item in parsed
        ]
        return success_envelope(
            results,
            "Verification tokens resent successfully",
            resource_id=application_id,
            resource_text="Resend verification completed successfully",
        )

    @operation_boundary("verification.verify")
    async def verify(
        self,
        application_id: str,
        items: Sequence[Union[VerifyItem, Dict[str, Any]]],
    ) -> ResponseEnvelope:
        """
        Check supplied tokens.

        Raises:
            ApplicationNotFound, InactiveApplication, RequestNotFound,
            AlreadyVerified, RequestExpired, MaxAttemptsExceeded,
            InvalidToken, TokenIntegrityFault, ConcurrentUpdate
        """
        application = await self._require_application(application_id)
        parsed = _parse_items(items, VerifyItem)
        results = [
            (await self._run_item(self._verify_item, application, item)).to_dict()
            for item in parsed
        ]
        return success_envelope(
            results,
            "Verification completed successfully",
            resource_id=application_id,
            resource_text="Verification process completed successfully",
        )

    @operation_boundary("verification.generate")
    async def generate_one(self, application_id: str, item: GenerateItem) -> GenerateResult:
        application = await self._require_application(application_id)
        return await self._run_item(self._generate_item, application, item)

    @operation_boundary("verification.resend")
    async def resend_one(self, application_id: str, item: ResendItem) -> ResendResult:
        application = await self._require_application(application_id)
        return await self._run_item(self._resend_item, application, item)

    @operation_boundary("verification.verify")
    async def verify_one(self, application_id: str, item: VerifyItem) -> VerifyResult:
        application = await self._require_application(application_id)
        return await self._run_item(self._verify_item, application, item)

    @operation_boundary("verification.expire_stale")
    async def expire_stale(self) -> int:
        """
        Expire every active request whose expiry has passed.

        Returns:
            Number of requests expired
        """
        now = self._clock()
        expired = 0
        for request in await self.requests.find_all(state=RequestState.ACTIVE):
            if not request.is_expired(now):
                continue
            request.mark_expired(now)
            try:
                await self.requests.save(request)
            except StaleWrite:
                # Changed by a live call since it was listed
                continue
            self._audit_request(AuditEventType.VERIFY_EXPIRED, "Verification request expired", request, Outcome.FAILURE)
            expired += 1

        if expired:
            logger.info("Expired stale verification requests", count=expired)
        return expired


def _parse_items(items: Sequence[Any], item_cls: type) -> List[Any]:
    if not items:
        raise InvalidInputError("At least one item is required")
    return [item_cls.from_dict(item) if isinstance(item, dict) else item for item in items]
