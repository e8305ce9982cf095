"""
Exception hierarchy for the attorney document engine.

Authorization, template and validation errors are raised to the caller.
DraftingUnavailableError is absorbed by the section generator, which
falls back to a placeholder instead of failing the document.
"""

from typing import Any, Optional


class AttorneyDocsError(Exception):
    """Base exception for all engine errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class AttestationIncompleteError(AttorneyDocsError):
    """One or more attestation affirmations were not given."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(
            message="Attorney attestation is incomplete",
            details={"missing": missing},
        )


# ----- Session Errors -----


class SessionInvalidError(AttorneyDocsError):
    """The presented session cannot be used; the attorney must re-attest."""

    def __init__(self, message: str, session_id_prefix: str) -> None:
        self.session_id_prefix = session_id_prefix
        super().__init__(message=message, details={"session": session_id_prefix})


class SessionNotFoundError(SessionInvalidError):
    """No session exists for the identifier."""

    def __init__(self, session_id_prefix: str) -> None:
        super().__init__("Attorney session not found", session_id_prefix)


class SessionExpiredError(SessionInvalidError):
    """The session TTL has elapsed."""

    def __init__(self, session_id_prefix: str) -> None:
        super().__init__("Attorney session has expired", session_id_prefix)


class SessionTerminatedError(SessionInvalidError):
    """The session was explicitly ended."""

    def __init__(self, session_id_prefix: str) -> None:
        super().__init__("Attorney session was terminated", session_id_prefix)


# ----- Template Errors -----


class TemplateNotFoundError(AttorneyDocsError):
    """Requested template is not registered."""

    def __init__(self, template_id: str) -> None:
        self.template_id = template_id
        super().__init__(
            message=f"Template not found: {template_id}",
            details={"template_id": template_id},
        )


class TemplateConfigurationError(AttorneyDocsError):
    """A template definition is internally inconsistent."""

    pass


class ValidationFailedError(AttorneyDocsError):
    """Submitted form data failed validation.

    Carries every offending field so the caller can fix them all at once.
    """

    def __init__(self, errors: list[Any]) -> None:
        self.errors = errors
        super().__init__(
            message=f"Form data failed validation ({len(errors)} field error(s))",
            details={"fields": sorted({e.key for e in errors})},
        )


# ----- Drafting Errors -----


class DraftingUnavailableError(AttorneyDocsError):
    """The external drafting service failed or returned nothing usable."""

    pass
