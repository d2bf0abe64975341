"""
Service Definitions
===================
Validated client input describing one service subscription.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, List, Union

from ..errors import DuplicateService, InvalidServiceConfig
from ..models import CallbackConfig, ServiceType, VerificationPolicy


def _pick(data: Dict[str, Any], camel: str, snake: str) -> Any:
    return data[camel] if data.get(camel) is not None else data.get(snake)


@dataclass(frozen=True)
class ServiceDefinition:
    """A service type with its policy, callbacks and optional link route."""
    service_type: ServiceType
    policy: VerificationPolicy = field(default_factory=VerificationPolicy)
    success_callback: CallbackConfig = field(default_factory=CallbackConfig)
    error_callback: CallbackConfig = field(default_factory=CallbackConfig)
    verification_link_route: Optional[str] = None

    def validate(self) -> "ServiceDefinition":
        """
        Raises:
            InvalidServiceConfig: Link service without a route, or bad policy
        """
        if self.service_type.uses_link and not self.verification_link_route:
            raise InvalidServiceConfig(
                f"verificationLinkRoute is required for {self.service_type.value}"
            )
        self.policy.validate()
        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServiceDefinition":
        """Parse and validate a client payload (camelCase or snake_case keys)."""
        raw_type = _pick(data, "serviceType", "service_type")
        service_type = ServiceType.parse(raw_type)
        if service_type is None:
            raise InvalidServiceConfig(f"Unknown service type: {raw_type}")

        return cls(
            service_type=service_type,
            policy=VerificationPolicy.from_dict(_pick(data, "verificationConfig", "policy")),
            success_callback=CallbackConfig.from_dict(_pick(data, "successCallback", "success_callback")),
            error_callback=CallbackConfig.from_dict(_pick(data, "errorCallback", "error_callback")),
            verification_link_route=_pick(data, "verificationLinkRoute", "verification_link_route"),
        ).validate()


def parse_definitions(
    services: Sequence[Union[ServiceDefinition, Dict[str, Any]]],
) -> List[ServiceDefinition]:
    """
    Parse a batch of definitions, rejecting repeated service types.

    Every definition is validated before the caller writes anything.
    """
    definitions = [
        ServiceDefinition.from_dict(s) if isinstance(s, dict) else s.validate()
        for s in services
    ]
    seen = set()
    for definition in definitions:
        if definition.service_type in seen:
            raise DuplicateService(definition.service_type.value)
        seen.add(definition.service_type)
    return definitions
