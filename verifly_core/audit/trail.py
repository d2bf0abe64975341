"""
Audit Trail
===========
Records audit events with hash chaining and mirrors them to structlog.
"""

from collections import deque
from typing import Any, Deque, Dict, List, Optional, Union

import structlog

from ..utils import Clock, new_id, utc_now
from .chain import compute_event_hash
from .event_types import AuditEventType, Outcome
from .models import AuditEvent

logger = structlog.get_logger(__name__)


class AuditTrail:
    """
    In-process audit trail.

    Tracks the previous hash to maintain chain integrity. Buffered events
    are handed to the caller by ``flush`` for durable storage; the buffer
    keeps at most ``max_buffer`` events, dropping the oldest.
    """

    def __init__(
        self,
        service_name: str,
        clock: Clock = utc_now,
        max_buffer: int = 10000,
    ):
        self.service_name = service_name
        self._clock = clock
        self._previous_hash: Optional[str] = None
        self._buffer: Deque[AuditEvent] = deque(maxlen=max_buffer)

    def set_previous_hash(self, hash_value: str) -> None:
        """Continue an existing chain (e.g., last hash loaded on startup)."""
        self._previous_hash = hash_value

    def record(
        self,
        event_type: Union[AuditEventType, str],
        action: str,
        outcome: str = Outcome.SUCCESS,
        actor_id: Optional[str] = None,
        actor_type: str = "system",
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AuditEvent:
        """
        Append an event to the chain and mirror it to the log.

        Successful events are logged at info level, failed and blocked
        ones at warning. Callers mask credentials and identities in
        ``payload`` before passing it in; the trail stores it as given.

        Args:
            event_type: AuditEventType member or its string value
            action: Sentence logged as the event name
            outcome: One of the ``Outcome`` values
            actor_id: Application id, or the masked API key for auth events
            resource_id: Application, service or verification request id
            ip_address: Caller address, when recorded by the API layer

        Returns:
            The chained AuditEvent
        """
        timestamp = self._clock()
        payload = payload or {}
        event_type_str = AuditEventType(event_type).value

        event_hash = compute_event_hash(
            self._previous_hash,
            timestamp,
            self.service_name,
            event_type_str,
            outcome,
            resource_id,
            payload,
        )

        event = AuditEvent(
            id=new_id(),
            timestamp=timestamp,
            service=self.service_name,
            event_type=event_type_str,
            action=action,
            outcome=outcome,
            actor_id=actor_id,
            actor_type=actor_type,
            resource_type=resource_type,
            resource_id=resource_id,
            payload=payload,
            ip_address=ip_address,
            user_agent=user_agent,
            hash=event_hash,
            previous_hash=self._previous_hash,
        )

        self._previous_hash = event_hash
        self._buffer.append(event)

        log = logger.info if event.succeeded else logger.warning
        log(
            action,
            audit_event_id=event.id,
            event_type=event.event_type,
            outcome=outcome,
            actor_id=actor_id,
            resource_id=resource_id,
            details=payload,
        )

        return event

    @property
    def pending(self) -> List[AuditEvent]:
        """Buffered events, oldest first, without clearing the buffer."""
        return list(self._buffer)

    def flush(self) -> List[AuditEvent]:
        """
        Get and clear buffered events.

        Returns:
            List of buffered events
        """
        events = list(self._buffer)
        self._buffer.clear()
        return events
