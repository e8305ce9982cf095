"""
Verified attorney session store.

Sessions live in process memory only and use a fixed TTL that is shorter
than the platform's general session TTL. Lifecycle:

- verified: created after a complete attestation, usable until expiry
- expired: TTL elapsed; detected on the next use or by sweep_expired()
- terminated: ended explicitly by the attorney

Expired and terminated are terminal for an identifier. Ended records are
kept for ENDED_SESSION_RETENTION past their expiry so that a stale
identifier reports why it stopped working; afterwards sweep_expired()
purges them.

Expiry is always re-checked against the injected clock at the moment of
use. Every operation runs under a single store lock.
"""

import logging
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional, Union

from src.attorney.attestation import (
    AttorneyAttestation,
    AttorneyVerificationRequest,
    hash_bar_number,
    validate_attestation,
)
from src.attorney.audit import (
    AttorneyAuditEntry,
    AuditAction,
    AuditSink,
    InMemoryAuditLog,
    session_id_prefix,
)
from src.errors import (
    SessionExpiredError,
    SessionNotFoundError,
    SessionTerminatedError,
)


# Configure logging for the session module
logger = logging.getLogger(__name__)


SESSION_TTL = timedelta(minutes=30)
PLATFORM_SESSION_TTL = timedelta(hours=24)
ENDED_SESSION_RETENTION = timedelta(minutes=30)
SESSION_COOKIE_NAME = "attorney_session"
SESSION_HEADER_NAME = "x-attorney-session"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionState(str, Enum):
    """Lifecycle state of an attorney session."""
    VERIFIED = "verified"
    EXPIRED = "expired"
    TERMINATED = "terminated"


@dataclass
class AttorneySession:
    """A verified attorney session. Owned and mutated only by SessionStore."""
    session_id: str
    created_at: datetime
    expires_at: datetime
    last_activity_at: datetime
    is_verified: bool = True
    state: SessionState = SessionState.VERIFIED
    bar_state: Optional[str] = None
    bar_number_hash: Optional[str] = None

    @property
    def prefix(self) -> str:
        return session_id_prefix(self.session_id)

    def is_overdue(self, now: datetime) -> bool:
        return now > self.expires_at


@dataclass(frozen=True)
class SessionGrant:
    """Returned to the caller when a session is created."""
    session_id: str
    expires_at: datetime


@dataclass(frozen=True)
class SessionStatus:
    """Result of a successful session validation."""
    verified: bool
    time_remaining: timedelta
    expires_at: datetime


class SessionStore:
    """
    Process-wide store of attorney sessions keyed by session identifier.

    Usage:
        store = SessionStore(audit_log=audit_log)
        grant = store.create_session(attestation)
        status = store.validate_session(grant.session_id)
        store.terminate_session(grant.session_id)
    """

    def __init__(
        self,
        ttl: timedelta = SESSION_TTL,
        clock: Optional[Clock] = None,
        audit_log: Optional[AuditSink] = None,
    ):
        """
        Initialize the session store.

        Args:
            ttl: Session lifetime; must be positive and shorter than PLATFORM_SESSION_TTL
            clock: Callable returning timezone-aware "now"; defaults to UTC wall clock
            audit_log: Append-only sink for lifecycle entries

        Raises:
            ValueError: If ttl is not within (0, PLATFORM_SESSION_TTL)
        """
        if ttl <= timedelta(0) or ttl >= PLATFORM_SESSION_TTL:
            raise ValueError(
                f"Attorney session TTL must be positive and shorter than {PLATFORM_SESSION_TTL}, got {ttl}"
            )

        self.ttl = ttl
        self.clock = clock or utc_now
        self.audit_log = audit_log if audit_log is not None else InMemoryAuditLog()
        self._sessions: dict[str, AttorneySession] = {}
        self._lock = threading.Lock()

    def create_session(
        self,
        request: Union[AttorneyAttestation, AttorneyVerificationRequest],
    ) -> SessionGrant:
        """
        Create a verified session from a complete attestation.

        Args:
            request: Bare attestation or a verification request with bar details

        Returns:
            SessionGrant with the new identifier and absolute expiry

        Raises:
            AttestationIncompleteError: If any affirmation is missing (no session is created)
        """
        if isinstance(request, AttorneyVerificationRequest):
            attestation = request.attestations
            bar_state = request.bar_state
            bar_number_hash = hash_bar_number(request.bar_number) if request.bar_number else None
        else:
            attestation = request
            bar_state = None
            bar_number_hash = None

        validate_attestation(attestation)

        with self._lock:
            session_id = secrets.token_urlsafe(32)
            while session_id in self._sessions:
                session_id = secrets.token_urlsafe(32)

            now = self.clock()
            session = AttorneySession(
                session_id=session_id,
                created_at=now,
                expires_at=now + self.ttl,
                last_activity_at=now,
                bar_state=bar_state,
                bar_number_hash=bar_number_hash,
            )
            self._sessions[session_id] = session

            metadata = {"bar_state": bar_state} if bar_state else None
            self._record(session, AuditAction.SESSION_CREATED, now, metadata)

        logger.info(f"Attorney session {session.prefix} created, expires {session.expires_at.isoformat()}")
        return SessionGrant(session_id=session_id, expires_at=session.expires_at)

    def validate_session(self, session_id: str) -> SessionStatus:
        """
        Check a session and refresh its activity timestamp.

        Raises:
            SessionNotFoundError: No record for the identifier
            SessionExpiredError: TTL elapsed (the first detection is audited)
            SessionTerminatedError: The session was ended explicitly
        """
        prefix = session_id_prefix(session_id or "")
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                logger.debug(f"Attorney session not found: {prefix}")
                raise SessionNotFoundError(prefix)

            if session.state == SessionState.TERMINATED:
                raise SessionTerminatedError(prefix)

            now = self.clock()
            if session.state == SessionState.EXPIRED:
                raise SessionExpiredError(prefix)

            if session.is_overdue(now):
                self._expire(session, now)
                raise SessionExpiredError(prefix)

            session.last_activity_at = now
            self._record(session, AuditAction.SESSION_VALIDATED, now)

            return SessionStatus(
                verified=session.is_verified,
                time_remaining=session.expires_at - now,
                expires_at=session.expires_at,
            )

    def terminate_session(self, session_id: str) -> bool:
        """
        End a session. Idempotent.

        Returns:
            True if a live session was terminated, False if nothing changed
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or session.state != SessionState.VERIFIED:
                return False

            now = self.clock()
            if session.is_overdue(now):
                # Already past its TTL: record the expiry instead
                self._expire(session, now)
                return False

            session.state = SessionState.TERMINATED
            session.is_verified = False
            self._record(session, AuditAction.SESSION_TERMINATED, now)

        logger.info(f"Attorney session {session.prefix} terminated by user")
        return True

    def get_time_remaining(self, session_id: str) -> timedelta:
        """Time left on a live session; zero for unknown or ended sessions."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or session.state != SessionState.VERIFIED:
                return timedelta(0)
            remaining = session.expires_at - self.clock()
            return max(remaining, timedelta(0))

    def sweep_expired(self, now: Optional[datetime] = None) -> int:
        """
        Expire overdue live sessions and purge ended records past retention.

        Args:
            now: Reference time (defaults to the store clock)

        Returns:
            Number of live sessions that were expired by this sweep
        """
        expired_count = 0
        with self._lock:
            now = now or self.clock()
            for session_id, session in list(self._sessions.items()):
                if session.state == SessionState.VERIFIED and session.is_overdue(now):
                    self._expire(session, now)
                    expired_count += 1
                elif session.state != SessionState.VERIFIED and session.is_overdue(now - ENDED_SESSION_RETENTION):
                    del self._sessions[session_id]

        if expired_count:
            logger.info(f"Expired {expired_count} attorney sessions")
        return expired_count

    def active_session_count(self) -> int:
        with self._lock:
            now = self.clock()
            return sum(
                1 for s in self._sessions.values()
                if s.state == SessionState.VERIFIED and not s.is_overdue(now)
            )

    def _expire(self, session: AttorneySession, now: datetime) -> None:
        session.state = SessionState.EXPIRED
        session.is_verified = False
        self._record(session, AuditAction.SESSION_EXPIRED, now)
        logger.debug(f"Attorney session expired: {session.prefix}")

    def _record(
        self,
        session: AttorneySession,
        action: AuditAction,
        now: datetime,
        metadata: Optional[dict] = None,
    ) -> None:
        self.audit_log.append(
            AttorneyAuditEntry(
                timestamp=now,
                action=action,
                session_id_prefix=session.prefix,
                metadata=metadata,
            )
        )
