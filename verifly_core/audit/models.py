"""
Audit Models
============
One record of the verification audit chain.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from .event_types import Outcome

CLIENT_FIELDS = ("ip_address", "user_agent")


@dataclass
class AuditEvent:
    """
    A lifecycle, onboarding or authentication event.

    ``hash`` covers ``previous_hash`` and the fields returned by
    ``hash_input``. Actor, action text and client details are recorded
    alongside but are not part of the chain.
    """
    id: str
    timestamp: datetime
    service: str
    event_type: str
    action: str
    outcome: str
    hash: str
    previous_hash: Optional[str] = None
    resource_type: Optional[str] = None  # "application", "service", "verification_request"
    resource_id: Optional[str] = None
    actor_id: Optional[str] = None  # application id, or masked API key for auth events
    actor_type: str = "system"  # "apikey", "application", "system"
    payload: Dict[str, Any] = field(default_factory=dict)
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome == Outcome.SUCCESS

    def hash_input(self) -> Tuple[Any, ...]:
        """Arguments for ``compute_event_hash`` in positional order."""
        return (
            self.previous_hash,
            self.timestamp,
            self.service,
            self.event_type,
            self.outcome,
            self.resource_id,
            self.payload,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form; client details are omitted when not recorded."""
        d = asdict(self)
        d["timestamp"] = self.timestamp.isoformat()
        for name in CLIENT_FIELDS:
            if d[name] is None:
                del d[name]
        return d
