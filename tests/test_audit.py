"""
Audit Trail Tests
=================
"""

from verifly_core.audit import (
    AuditEventType,
    AuditTrail,
    Outcome,
    compute_event_hash,
    verify_chain_integrity,
)


class TestAuditTrail:
    """Tests for hash-chained audit records."""

    def test_events_are_chained(self, audit):
        first = audit.record(AuditEventType.AUTH_SUCCEEDED, "API authentication succeeded")
        second = audit.record(AuditEventType.AUTH_FAILED, "API authentication failed", outcome=Outcome.FAILURE)

        assert first.previous_hash is None
        assert second.previous_hash == first.hash
        assert verify_chain_integrity([first, second]) == (True, None)

    def test_tampered_payload_detected(self, audit):
        events = [
            audit.record(AuditEventType.VERIFY_GENERATED, "generated", payload={"n": i})
            for i in range(3)
        ]
        events[1].payload["n"] = 99

        assert verify_chain_integrity(events) == (False, 1)

    def test_removed_event_detected(self, audit):
        events = [audit.record(AuditEventType.VERIFY_GENERATED, "generated") for _ in range(3)]

        assert verify_chain_integrity([events[0], events[2]]) == (False, 1)

    def test_chain_continues_across_flush(self, audit):
        first = audit.record(AuditEventType.APPLICATION_REGISTERED, "registered")
        assert audit.flush() == [first]
        assert audit.pending == []

        second = audit.record(AuditEventType.SERVICE_ADDED, "added")
        assert second.previous_hash == first.hash
        assert verify_chain_integrity([second]) == (True, None)

    def test_set_previous_hash(self, clock):
        trail = AuditTrail("svc", clock=clock)
        trail.set_previous_hash("abc")

        event = trail.record(AuditEventType.APIKEY_ROTATED, "rotated")
        assert event.previous_hash == "abc"

    def test_buffer_is_bounded(self, clock):
        trail = AuditTrail("svc", clock=clock, max_buffer=2)
        for _ in range(5):
            trail.record(AuditEventType.VERIFY_FAILED, "failed")

        assert len(trail.pending) == 2

    def test_hash_is_deterministic(self, clock):
        args = (None, clock(), "svc", "auth.failed", "failure", "r1", {"a": 1})
        assert compute_event_hash(*args) == compute_event_hash(*args)
        assert len(compute_event_hash(*args)) == 64

    def test_to_dict(self, audit, clock):
        event = audit.record(AuditEventType.AUTH_SUCCEEDED, "ok", actor_id="abcd***wxyz")

        d = event.to_dict()
        assert d["timestamp"] == clock().isoformat()
        assert d["actor_id"] == "abcd***wxyz"
        assert d["service"] == "verifly-test"
        assert "ip_address" not in d
        assert event.succeeded

    def test_to_dict_keeps_recorded_client(self, audit):
        event = audit.record(
            AuditEventType.AUTH_FAILED,
            "API authentication failed",
            outcome=Outcome.FAILURE,
            ip_address="203.0.113.7",
        )

        d = event.to_dict()
        assert d["ip_address"] == "203.0.113.7"
        assert "user_agent" not in d
        assert not event.succeeded

    def test_hash_covers_event_fields(self, audit):
        event = audit.record(AuditEventType.VERIFY_FAILED, "Verification token mismatch", resource_id="r1")

        assert event.hash == compute_event_hash(*event.hash_input())
