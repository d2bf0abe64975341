"""
Domain Models
=============
Applications, service subscriptions and verification requests.

Sensitive fields (API key, API secret, token) hold ciphertext; plaintext
only exists transiently inside the operations that need it.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Optional

from .errors import InvalidServiceConfig
from .utils import new_id, utc_now


class ServiceType(str, Enum):
    """Verification capabilities an application can subscribe to."""
    AUTH_MOBILE_OTP = "authMO"     # Mobile auth using OTP
    AUTH_EMAIL_OTP = "authEO"      # Email auth using OTP
    VERIFY_MOBILE_OTP = "verifyMO" # Mobile verification using OTP
    VERIFY_EMAIL_OTP = "verifyEO"  # Email verification using OTP
    VERIFY_EMAIL_LINK = "verifyEL" # Email verification using link

    @property
    def is_mobile(self) -> bool:
        return self in (ServiceType.AUTH_MOBILE_OTP, ServiceType.VERIFY_MOBILE_OTP)

    @property
    def uses_link(self) -> bool:
        return self is ServiceType.VERIFY_EMAIL_LINK

    @classmethod
    def parse(cls, value: Any) -> Optional["ServiceType"]:
        """Return the matching member, or None for an unknown tag."""
        try:
            return cls(value)
        except ValueError:
            return None


class TokenPattern(str, Enum):
    """Character set of generated tokens."""
    NUMERIC = "N"
    ALPHANUMERIC = "A"

    @classmethod
    def parse(cls, value: Any) -> "TokenPattern":
        """Unknown patterns fall back to numeric."""
        if value in ("A", "alphanumeric"):
            return cls.ALPHANUMERIC
        return cls.NUMERIC


class RequestState(str, Enum):
    """Verification request lifecycle states."""
    ACTIVE = "active"            # Issued, awaiting verification
    VERIFIED = "verified"        # Terminal: token matched
    EXPIRED = "expired"          # Terminal: expiry passed before verification
    DEACTIVATED = "deactivated"  # Terminal: superseded by a newer request


MIN_TOKEN_LENGTH = 4
MAX_TOKEN_LENGTH = 64


@dataclass(frozen=True)
class VerificationPolicy:
    """Per-subscription token and limit configuration."""
    max_resend_count: int = 3
    max_attempt_count: int = 3
    token_length: int = 6
    token_pattern: str = TokenPattern.NUMERIC.value
    expiry_seconds: int = 300  # 5 minutes

    @property
    def expiry(self) -> timedelta:
        return timedelta(seconds=self.expiry_seconds)

    @property
    def pattern(self) -> TokenPattern:
        return TokenPattern.parse(self.token_pattern)

    def validate(self) -> "VerificationPolicy":
        """
        Check limits are usable.

        Raises:
            InvalidServiceConfig: A limit is not a positive integer or the
                token length is out of range
        """
        for name in ("max_resend_count", "max_attempt_count", "expiry_seconds"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise InvalidServiceConfig(f"{name} must be a positive integer")
        if (
            isinstance(self.token_length, bool)
            or not isinstance(self.token_length, int)
            or not MIN_TOKEN_LENGTH <= self.token_length <= MAX_TOKEN_LENGTH
        ):
            raise InvalidServiceConfig(
                f"token_length must be between {MIN_TOKEN_LENGTH} and {MAX_TOKEN_LENGTH}"
            )
        return self

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "VerificationPolicy":
        """Build from stored or client config; accepts camelCase and snake_case keys."""
        data = data or {}
        defaults = cls()

        def pick(snake: str, camel: str, default: Any) -> Any:
            if data.get(snake) is not None:
                return data[snake]
            if data.get(camel) is not None:
                return data[camel]
            return default

        return cls(
            max_resend_count=pick("max_resend_count", "maxResendCount", defaults.max_resend_count),
            max_attempt_count=pick("max_attempt_count", "maxAttemptCount", defaults.max_attempt_count),
            token_length=pick("token_length", "tokenLength", defaults.token_length),
            token_pattern=pick("token_pattern", "tokenPattern", defaults.token_pattern),
            expiry_seconds=pick("expiry_seconds", "expiryTime", defaults.expiry_seconds),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_resend_count": self.max_resend_count,
            "max_attempt_count": self.max_attempt_count,
            "token_length": self.token_length,
            "token_pattern": self.token_pattern,
            "expiry_seconds": self.expiry_seconds,
        }


@dataclass(frozen=True)
class CallbackConfig:
    """Client callback descriptor. Stored and returned verbatim, never interpreted."""
    url: str = ""
    method: str = "POST"
    payload: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "CallbackConfig":
        data = data or {}
        return cls(
            url=data.get("url") or data.get("callbackUrl") or "",
            method=data.get("method") or data.get("callbackMethod") or "POST",
            payload=dict(data.get("payload") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "method": self.method, "payload": dict(self.payload)}


@dataclass
class Application:
    """An onboarded client application."""
    name: str
    api_key: str                  # ciphertext
    api_secret: str               # ciphertext
    api_key_expiry: datetime
    api_key_lookup: Optional[str] = None  # keyed hash of the plaintext key
    is_active: bool = True
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


@dataclass
class ServiceSubscription:
    """One verification capability configured for an application."""
    application_id: str
    service_type: ServiceType
    policy: VerificationPolicy = field(default_factory=VerificationPolicy)
    success_callback: CallbackConfig = field(default_factory=CallbackConfig)
    error_callback: CallbackConfig = field(default_factory=CallbackConfig)
    verification_link_route: Optional[str] = None
    is_active: bool = True
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


@dataclass
class VerificationRequest:
    """
    One outstanding challenge tied to a user identity.

    State transitions only leave ACTIVE; the three other states are
    terminal. ``verified`` and ``is_active`` are derived from ``state`` so
    combinations such as verified-and-active cannot be represented.

    ``version`` increases on every save; a save carrying a stale version is
    rejected by the repository so concurrent updates cannot overwrite each
    other.
    """
    application_id: str
    service_id: str
    service_type: ServiceType
    user_identity: str
    token: str                    # ciphertext
    expiry_time: datetime
    max_attempt_count: int
    max_resend_count: int
    ttl: datetime
    attempt_count: int = 0
    resend_count: int = 0
    state: RequestState = RequestState.ACTIVE
    verified_at: Optional[datetime] = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    version: int = 1

    @property
    def verified(self) -> bool:
        return self.state is RequestState.VERIFIED

    @property
    def is_active(self) -> bool:
        return self.state is RequestState.ACTIVE

    @property
    def attempts_remaining(self) -> int:
        return max(self.max_attempt_count - self.attempt_count, 0)

    def is_expired(self, now: datetime) -> bool:
        return now > self.expiry_time

    def _transition(self, target: RequestState, now: datetime) -> None:
        if self.state is not RequestState.ACTIVE:
            raise ValueError(
                f"Illegal transition {self.state.value} -> {target.value} for request {self.id}"
            )
        self.state = target
        self.updated_at = now

    def mark_verified(self, now: datetime) -> None:
        self._transition(RequestState.VERIFIED, now)
        self.verified_at = now

    def mark_expired(self, now: datetime) -> None:
        self._transition(RequestState.EXPIRED, now)

    def mark_superseded(self, now: datetime) -> None:
        self._transition(RequestState.DEACTIVATED, now)

    def record_failed_attempt(self, now: datetime) -> None:
        self.attempt_count += 1
        self.updated_at = now

    def reissue(self, encrypted_token: str, expiry_time: datetime, now: datetime) -> None:
        """Replace the token and expiry as part of a resend."""
        if self.state is not RequestState.ACTIVE:
            raise ValueError(f"Cannot reissue token for {self.state.value} request {self.id}")
        self.token = encrypted_token
        self.expiry_time = expiry_time
        self.resend_count += 1
        self.updated_at = now
