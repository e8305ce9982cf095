"""Unit tests for the in-memory attorney audit log."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from src.attorney import AttorneyAuditEntry, AuditAction, InMemoryAuditLog, session_id_prefix

from conftest import T0


def make_entry(action: AuditAction, minutes_ago: int = 0, prefix: str = "abcd1234") -> AttorneyAuditEntry:
    return AttorneyAuditEntry(
        timestamp=T0 - timedelta(minutes=minutes_ago),
        action=action,
        session_id_prefix=prefix,
    )


class TestAuditEntry:
    """Test the audit record model."""

    def test_entries_are_immutable(self):
        """Test that a recorded entry cannot be modified."""
        entry = make_entry(AuditAction.SESSION_CREATED)

        with pytest.raises(ValidationError):
            entry.action = AuditAction.SESSION_EXPIRED

    def test_prefix_longer_than_eight_chars_is_rejected(self):
        """Test that full session ids cannot be stored."""
        with pytest.raises(ValidationError):
            make_entry(AuditAction.SESSION_CREATED, prefix="a" * 43)

    def test_session_id_prefix_is_eight_chars(self):
        """Test the correlation prefix helper."""
        assert session_id_prefix("0123456789abcdef") == "01234567"


class TestInMemoryAuditLog:
    """Test buffering, counting and statistics."""

    def test_buffer_is_bounded(self):
        """Test that old entries age out of the buffer."""
        log = InMemoryAuditLog(max_entries=3)
        for _ in range(5):
            log.append(make_entry(AuditAction.SESSION_VALIDATED))

        assert len(log.entries()) == 3

    def test_recent_entries_newest_last(self):
        """Test that recent entries keep append order."""
        log = InMemoryAuditLog()
        log.append(make_entry(AuditAction.SESSION_CREATED))
        log.append(make_entry(AuditAction.SESSION_TERMINATED))

        recent = log.get_recent_entries(1)

        assert [e.action for e in recent] == [AuditAction.SESSION_TERMINATED]
        assert log.get_recent_entries(0) == []

    def test_count_filters_by_prefix(self):
        """Test counting per action and session prefix."""
        log = InMemoryAuditLog()
        log.append(make_entry(AuditAction.SESSION_VALIDATED, prefix="aaaaaaaa"))
        log.append(make_entry(AuditAction.SESSION_VALIDATED, prefix="bbbbbbbb"))

        assert log.count(AuditAction.SESSION_VALIDATED) == 2
        assert log.count(AuditAction.SESSION_VALIDATED, prefix="aaaaaaaa") == 1

    def test_stats_aggregate_by_action_and_hour(self):
        """Test the monitoring statistics."""
        log = InMemoryAuditLog()
        log.append(make_entry(AuditAction.SESSION_CREATED, minutes_ago=90))
        log.append(make_entry(AuditAction.SESSION_CREATED, minutes_ago=10))
        log.append(make_entry(AuditAction.DOCUMENT_GENERATED, minutes_ago=5))

        stats = log.get_stats(now=T0)

        assert stats["total_sessions"] == 2
        assert stats["by_action"] == {"session_created": 2, "document_generated": 1}
        assert stats["last_hour"] == 2

    def test_clear(self):
        """Test that clear empties the buffer."""
        log = InMemoryAuditLog()
        log.append(make_entry(AuditAction.SESSION_CREATED))
        log.clear()

        assert log.entries() == []
