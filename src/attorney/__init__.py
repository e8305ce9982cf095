"""
Attorney verification module.

Provides attestation validation, the verified session store and the
session audit trail.
"""

from src.attorney.attestation import (
    US_BAR_STATES,
    AttorneyAttestation,
    AttorneyVerificationRequest,
    hash_bar_number,
    missing_attestations,
    validate_attestation,
)
from src.attorney.audit import (
    AttorneyAuditEntry,
    AuditAction,
    AuditSink,
    InMemoryAuditLog,
    configure_audit_logging,
    get_audit_logger,
    session_id_prefix,
)
from src.attorney.sessions import (
    ENDED_SESSION_RETENTION,
    PLATFORM_SESSION_TTL,
    SESSION_COOKIE_NAME,
    SESSION_HEADER_NAME,
    SESSION_TTL,
    AttorneySession,
    SessionGrant,
    SessionState,
    SessionStatus,
    SessionStore,
)

__all__ = [
    # Attestation
    "US_BAR_STATES",
    "AttorneyAttestation",
    "AttorneyVerificationRequest",
    "hash_bar_number",
    "missing_attestations",
    "validate_attestation",
    # Audit trail
    "AttorneyAuditEntry",
    "AuditAction",
    "AuditSink",
    "InMemoryAuditLog",
    "configure_audit_logging",
    "get_audit_logger",
    "session_id_prefix",
    # Session store
    "ENDED_SESSION_RETENTION",
    "PLATFORM_SESSION_TTL",
    "SESSION_COOKIE_NAME",
    "SESSION_HEADER_NAME",
    "SESSION_TTL",
    "AttorneySession",
    "SessionGrant",
    "SessionState",
    "SessionStatus",
    "SessionStore",
]
