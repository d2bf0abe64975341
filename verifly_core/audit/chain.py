"""
Audit Hash Chain
================
Hash computation and chain verification for audit records.
"""

import hashlib
import json
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import structlog

from .models import AuditEvent

logger = structlog.get_logger(__name__)


def compute_event_hash(
    previous_hash: Optional[str],
    timestamp: datetime,
    service: str,
    event_type: str,
    outcome: str,
    resource_id: Optional[str],
    payload: Dict[str, Any],
) -> str:
    """
    Compute the SHA-256 hash of an audit record.

    Each hash covers the previous record's hash, so editing or removing
    any record breaks every hash after it.
    """
    hash_input = json.dumps({
        "previous_hash": previous_hash,
        "timestamp": timestamp.isoformat(),
        "service": service,
        "event_type": event_type,
        "outcome": outcome,
        "resource_id": resource_id,
        "payload": payload,
    }, sort_keys=True, separators=(",", ":"), default=str)

    return hashlib.sha256(hash_input.encode()).hexdigest()


def verify_chain_integrity(events: List[AuditEvent]) -> Tuple[bool, Optional[int]]:
    """
    Verify an audit chain.

    Args:
        events: Records in chronological order

    Returns:
        Tuple of (is_valid, first_invalid_index)
    """
    for i, event in enumerate(events):
        expected_previous = events[i - 1].hash if i else None
        if i and event.previous_hash != expected_previous:
            logger.warning("Audit chain linkage broken", event_id=event.id, index=i)
            return False, i

        expected_hash = compute_event_hash(*event.hash_input())
        if event.hash != expected_hash:
            logger.warning(
                "Audit chain integrity violation",
                event_id=event.id,
                index=i,
                expected_hash=expected_hash[:16],
                actual_hash=event.hash[:16],
            )
            return False, i

    return True, None
