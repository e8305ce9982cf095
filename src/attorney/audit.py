"""
Audit trail for attorney session lifecycle events.

Provides structured logging with structlog for:
- Session creation, validation, termination and expiry
- Document generation per request

Entries reference sessions only by an 8-character identifier prefix so the
full session secret never reaches a log line. The in-memory log is
append-only: entries are never mutated, only aged out of the bounded buffer.
"""

import logging
from collections import Counter, deque
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional, Protocol

import structlog
from pydantic import BaseModel, ConfigDict, Field


SESSION_ID_PREFIX_LENGTH = 8
MAX_AUDIT_ENTRIES = 1000


def configure_audit_logging() -> None:
    """
    Configure structlog with JSON output for production audit logging.

    Uses stdout for container compatibility (no file configuration).
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_audit_logger(name: str) -> structlog.BoundLogger:
    """
    Get a bound logger with the specified module name.

    Args:
        name: Module name for log attribution (e.g., "session_store")

    Returns:
        BoundLogger instance with module context
    """
    return structlog.get_logger(module=name)


def session_id_prefix(session_id: str) -> str:
    """Return the correlation prefix used in logs and audit entries."""
    return session_id[:SESSION_ID_PREFIX_LENGTH]


class AuditAction(str, Enum):
    """Lifecycle events recorded in the audit trail."""
    SESSION_CREATED = "session_created"
    SESSION_VALIDATED = "session_validated"
    SESSION_TERMINATED = "session_terminated"
    SESSION_EXPIRED = "session_expired"
    DOCUMENT_GENERATED = "document_generated"


class AttorneyAuditEntry(BaseModel):
    """Immutable audit record for a single lifecycle event."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(
        description="UTC timestamp of the event"
    )
    action: AuditAction = Field(
        description="Lifecycle event type"
    )
    session_id_prefix: str = Field(
        min_length=1,
        max_length=SESSION_ID_PREFIX_LENGTH,
        description="First 8 characters of the session identifier"
    )
    metadata: Optional[dict[str, Any]] = Field(
        default=None,
        description="Non-identifying context (bar state, template id, ...)"
    )


class AuditSink(Protocol):
    """Append-only writer the engine records audit entries into."""

    def append(self, entry: AttorneyAuditEntry) -> None:
        ...


class InMemoryAuditLog:
    """
    Bounded in-memory audit log.

    Keeps the most recent entries for monitoring and mirrors every entry to
    a structlog logger so a log pipeline can retain the full history.

    Usage:
        audit_log = InMemoryAuditLog()
        store = SessionStore(audit_log=audit_log)
        audit_log.get_stats()
    """

    def __init__(self, max_entries: int = MAX_AUDIT_ENTRIES):
        self._entries: deque[AttorneyAuditEntry] = deque(maxlen=max_entries)
        self.logger = get_audit_logger("attorney_audit")

    def append(self, entry: AttorneyAuditEntry) -> None:
        self._entries.append(entry)

        event_dict = entry.model_dump(mode="json")
        if entry.action == AuditAction.SESSION_VALIDATED:
            # Validations happen on every request
            self.logger.debug("attorney_audit", **event_dict)
        else:
            self.logger.info("attorney_audit", **event_dict)

    def entries(self) -> list[AttorneyAuditEntry]:
        return list(self._entries)

    def get_recent_entries(self, limit: int = 50) -> list[AttorneyAuditEntry]:
        """Return up to `limit` of the newest entries, oldest first."""
        if limit <= 0:
            return []
        return list(self._entries)[-limit:]

    def count(self, action: AuditAction, prefix: Optional[str] = None) -> int:
        return sum(
            1 for e in self._entries
            if e.action == action and (prefix is None or e.session_id_prefix == prefix)
        )

    def get_stats(self, now: Optional[datetime] = None) -> dict[str, Any]:
        """
        Aggregate statistics for monitoring.

        Args:
            now: Reference time for the last-hour window (defaults to UTC now)

        Returns:
            Dict with total_sessions, by_action counts and last_hour count
        """
        now = now or datetime.now(timezone.utc)
        one_hour_ago = now - timedelta(hours=1)

        by_action = Counter(e.action.value for e in self._entries)
        last_hour = sum(1 for e in self._entries if e.timestamp >= one_hour_ago)

        return {
            "total_sessions": by_action.get(AuditAction.SESSION_CREATED.value, 0),
            "by_action": dict(by_action),
            "last_hour": last_hour,
        }

    def clear(self) -> None:
        """Drop all entries (tests only)."""
        self._entries.clear()
