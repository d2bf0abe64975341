"""
Audit Module
============
Tamper-evident audit trail with hash chaining.
"""

from .event_types import AuditEventType, Outcome
from .models import AuditEvent
from .chain import compute_event_hash, verify_chain_integrity
from .trail import AuditTrail

__all__ = [
    # Event Types
    "AuditEventType",
    "Outcome",
    # Models
    "AuditEvent",
    # Hashing
    "compute_event_hash",
    "verify_chain_integrity",
    # Trail
    "AuditTrail",
]
