# api.py
# Attorney document engine: HTTP transport.
# Features: Attestation gate + Verified sessions + Template-first generation
# NO HARDCODED SECRETS.

import asyncio
import contextlib
import logging
import os
from datetime import datetime
from typing import Any, Callable, Optional

from fastapi import APIRouter, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from src.attorney import (
    SESSION_COOKIE_NAME,
    SESSION_HEADER_NAME,
    AttorneyVerificationRequest,
    InMemoryAuditLog,
    SessionStore,
    configure_audit_logging,
)
from src.config import Settings
from src.errors import (
    AttestationIncompleteError,
    AttorneyDocsError,
    SessionInvalidError,
    TemplateNotFoundError,
    ValidationFailedError,
)
from src.generation import (
    AISectionGenerator,
    DocumentGenerator,
    DraftingClient,
    OpenAIDraftingClient,
)
from src.templates import TemplateCategory, TemplateRegistry


logger = logging.getLogger(__name__)


SWEEP_INTERVAL_SECONDS = 5 * 60


class AttorneyEngine:
    """The wired engine components shared by all requests."""

    def __init__(
        self,
        settings: Settings,
        drafting_client: Optional[DraftingClient] = None,
        registry: Optional[TemplateRegistry] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.settings = settings
        self.audit_log = InMemoryAuditLog()
        self.session_store = SessionStore(
            ttl=settings.session_ttl,
            clock=clock,
            audit_log=self.audit_log,
        )
        self.registry = registry or TemplateRegistry(data_dir=settings.template_data_dir)

        if drafting_client is None:
            drafting_client = OpenAIDraftingClient(
                api_key=settings.openai_api_key,
                model=settings.drafting_model,
            )
        self.section_generator = AISectionGenerator(
            client=drafting_client,
            timeout_seconds=settings.drafting_timeout_seconds,
            max_tokens=settings.drafting_max_tokens,
            temperature=settings.drafting_temperature,
            retry_backoff_seconds=settings.drafting_retry_backoff_seconds,
            max_prompt_chars=settings.drafting_max_prompt_chars,
        )
        self.document_generator = DocumentGenerator(
            session_store=self.session_store,
            registry=self.registry,
            section_generator=self.section_generator,
            audit_log=self.audit_log,
        )


# 1. REQUEST MODELS

class GenerateDocumentRequest(BaseModel):
    template_id: str = Field(
        description="Registered template id, e.g. 'motion-to-continue'"
    )
    jurisdiction: Optional[str] = Field(
        default=None,
        description="Jurisdiction code; codes without a variant use the base template"
    )
    form_data: dict[str, Any] = Field(
        default_factory=dict,
        description="Field key to submitted value"
    )


# 2. ERROR MAPPING

def http_error(error: AttorneyDocsError) -> HTTPException:
    """Translate an engine error into the HTTP response a client sees."""
    if isinstance(error, AttestationIncompleteError):
        return HTTPException(400, {
            "error": "attestation_incomplete",
            "message": error.message,
            "missing": error.missing,
        })
    if isinstance(error, SessionInvalidError):
        return HTTPException(401, {
            "error": "session_invalid",
            "message": error.message,
            "reverify": True,
        })
    if isinstance(error, TemplateNotFoundError):
        return HTTPException(404, {
            "error": "template_not_found",
            "message": error.message,
        })
    if isinstance(error, ValidationFailedError):
        return HTTPException(422, {
            "error": "validation_failed",
            "message": error.message,
            "errors": [e.model_dump() for e in error.errors],
        })
    return HTTPException(500, {"error": "internal_error", "message": "An unexpected error occurred"})


def get_engine(request: Request) -> AttorneyEngine:
    return request.app.state.engine


def get_session_id(request: Request) -> str:
    """Session id from the header, falling back to the cookie."""
    return request.headers.get(SESSION_HEADER_NAME) or request.cookies.get(SESSION_COOKIE_NAME) or ""


def require_session(request: Request) -> None:
    try:
        get_engine(request).session_store.validate_session(get_session_id(request))
    except SessionInvalidError as e:
        raise http_error(e) from e


# 3. ROUTES

router = APIRouter(prefix="/attorney")


@router.post("/verify")
async def verify_attorney(req: AttorneyVerificationRequest, request: Request, response: Response):
    """
    Create a verified attorney session from a complete attestation.

    Returns:
        - session_id: Identifier to send as x-attorney-session (also set as cookie)
        - expires_at: Absolute expiry (ISO 8601)
        - ttl_seconds: Session lifetime
    """
    engine = get_engine(request)
    try:
        grant = engine.session_store.create_session(req)
    except AttestationIncompleteError as e:
        raise http_error(e) from e

    ttl_seconds = int(engine.session_store.ttl.total_seconds())
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=grant.session_id,
        max_age=ttl_seconds,
        httponly=True,
        secure=True,
        samesite="strict",
    )
    return {
        "session_id": grant.session_id,
        "expires_at": grant.expires_at.isoformat(),
        "ttl_seconds": ttl_seconds,
    }


@router.get("/session")
async def get_session_status(request: Request):
    """Report whether the presented session is still verified and for how long."""
    engine = get_engine(request)
    try:
        status = engine.session_store.validate_session(get_session_id(request))
    except SessionInvalidError as e:
        raise http_error(e) from e

    return {
        "verified": status.verified,
        "time_remaining_seconds": int(status.time_remaining.total_seconds()),
        "expires_at": status.expires_at.isoformat(),
    }


@router.post("/logout")
async def logout(request: Request, response: Response):
    """End the presented session. Idempotent."""
    session_id = get_session_id(request)
    terminated = bool(session_id) and get_engine(request).session_store.terminate_session(session_id)
    response.delete_cookie(SESSION_COOKIE_NAME)
    return {"terminated": terminated}


@router.get("/templates")
async def list_templates(request: Request, category: Optional[TemplateCategory] = None):
    """List template summaries, optionally filtered by category."""
    require_session(request)
    summaries = get_engine(request).registry.list_templates(category)
    return {
        "templates": [s.model_dump(mode="json") for s in summaries],
        "count": len(summaries),
    }


@router.get("/templates/{template_id}")
async def get_template_preview(request: Request, template_id: str, jurisdiction: Optional[str] = None):
    """
    Field preview of a template for a jurisdiction.

    Returns the effective fields with jurisdiction-resolved required flags,
    the section outline and any court rules. Section text is not included.
    """
    require_session(request)
    try:
        preview = get_engine(request).registry.get_preview(template_id, jurisdiction)
    except TemplateNotFoundError as e:
        raise http_error(e) from e
    return preview.model_dump(mode="json")


@router.post("/documents/generate")
async def generate_document(req: GenerateDocumentRequest, request: Request):
    """
    Generate a document from a template and form data.

    AI-drafted sections that could not be drafted are returned as
    "[Attorney to complete: ...]" placeholders and listed in
    placeholder_sections.
    """
    engine = get_engine(request)
    try:
        document = await engine.document_generator.generate_document(
            session_id=get_session_id(request),
            template_id=req.template_id,
            jurisdiction=req.jurisdiction,
            form_data=req.form_data,
        )
    except AttorneyDocsError as e:
        raise http_error(e) from e

    return document.model_dump(mode="json")


@router.get("/audit/stats")
async def get_audit_stats(request: Request):
    """Aggregate audit statistics for monitoring. Contains no identifiers."""
    require_session(request)
    engine = get_engine(request)
    stats = engine.audit_log.get_stats(engine.session_store.clock())
    stats["active_sessions"] = engine.session_store.active_session_count()
    return stats


# 4. APP FACTORY

async def _sweep_sessions(engine: AttorneyEngine) -> None:
    while True:
        await asyncio.sleep(SWEEP_INTERVAL_SECONDS)
        engine.session_store.sweep_expired()


def create_app(
    settings: Optional[Settings] = None,
    drafting_client: Optional[DraftingClient] = None,
    registry: Optional[TemplateRegistry] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> FastAPI:
    """
    Build the FastAPI app with a freshly wired engine.

    Args:
        settings: Runtime settings (read from the environment if None)
        drafting_client: Drafting client override (tests)
        registry: Template registry override (tests)
        clock: Clock override for the session store (tests)
    """
    settings = settings or Settings.from_env()
    engine = AttorneyEngine(settings, drafting_client=drafting_client, registry=registry, clock=clock)

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI):
        sweeper = asyncio.create_task(_sweep_sessions(engine))
        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper

    app = FastAPI(title="Attorney Document Engine", lifespan=lifespan)
    app.state.engine = engine

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    def health():
        return {"status": "ok", "templates": len(engine.registry)}

    app.include_router(router)
    return app


# Configure audit logging for session events
configure_audit_logging()

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
    )
