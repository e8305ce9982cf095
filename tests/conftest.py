"""
Pytest configuration and fixtures for the attorney document engine tests.
"""
import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from src.attorney import (
    AttorneyAttestation,
    InMemoryAuditLog,
    SessionStore,
)
from src.generation import AISectionGenerator, DocumentGenerator
from src.templates import (
    DocumentTemplate,
    InputOption,
    InputType,
    JurisdictionVariant,
    SectionKind,
    SectionOverride,
    TemplateCategory,
    TemplateInput,
    TemplateRegistry,
    TemplateSection,
)


T0 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock for deterministic expiry tests."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakeDraftingClient:
    """Drafting client returning scripted outcomes.

    Each call pops the next outcome: a string is returned, an exception is
    raised. When the script is empty the default text is returned.
    """

    def __init__(self, outcomes: list[Any] | None = None, default: str = "Drafted grounds.") -> None:
        self.outcomes = list(outcomes or [])
        self.default = default
        self.calls: list[dict[str, Any]] = []

    async def draft_section(
        self,
        prompt: str,
        *,
        system_prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        self.calls.append({
            "prompt": prompt,
            "system_prompt": system_prompt,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })
        if self.outcomes:
            outcome = self.outcomes.pop(0)
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome
        return self.default


class SlowDraftingClient:
    """Drafting client that never answers in time."""

    def __init__(self, delay: float = 10.0) -> None:
        self.delay = delay
        self.calls = 0

    async def draft_section(self, prompt: str, **kwargs: Any) -> str:
        self.calls += 1
        await asyncio.sleep(self.delay)
        return "too late"


def build_sample_template() -> DocumentTemplate:
    """Small criminal template with a CA variant overriding the caption."""
    return DocumentTemplate(
        template_id="motion-to-continue",
        name="Motion to Continue",
        category=TemplateCategory.CRIMINAL,
        description="Request a continuance",
        version="1.0.0",
        substitutions={"plaintiffParty": "THE STATE"},
        sections=[
            TemplateSection(
                section_id="caption",
                name="Caption",
                order=10,
                kind=SectionKind.STATIC,
                static_content="{{plaintiffParty}} v. {{defendantName}}\nCase No. {{caseNumber}}",
            ),
            TemplateSection(
                section_id="details",
                name="Hearing Details",
                order=20,
                kind=SectionKind.USER_INPUT,
                input_keys=["hearingDate", "hearingType"],
            ),
            TemplateSection(
                section_id="grounds",
                name="Grounds for Continuance",
                order=30,
                kind=SectionKind.AI_DRAFTED,
                prompt_template=(
                    "Draft grounds for continuing a {{hearingType}} in {{jurisdiction}}. "
                    "Reason: {{reason}} Client: {{defendantName}}."
                ),
            ),
            TemplateSection(
                section_id="signature",
                name="Signature",
                order=40,
                kind=SectionKind.STATIC,
                static_content="Respectfully submitted,\n{{attorneyName}}",
            ),
        ],
        inputs=[
            TemplateInput(key="caseNumber", label="Case Number", required=True, pattern=r"^[A-Z0-9-]+$"),
            TemplateInput(key="defendantName", label="Defendant Name", required=True, sensitive=True),
            TemplateInput(key="hearingDate", label="Hearing Date", input_type=InputType.DATE, required=True),
            TemplateInput(
                key="hearingType",
                label="Hearing Type",
                input_type=InputType.ENUM,
                required=True,
                options=[
                    InputOption(value="trial", label="Trial"),
                    InputOption(value="sentencing", label="Sentencing"),
                ],
            ),
            TemplateInput(key="reason", label="Reason", input_type=InputType.TEXTAREA, required=True, min_length=10),
            TemplateInput(key="attorneyName", label="Attorney Name", sensitive=True),
        ],
        variants={
            "CA": JurisdictionVariant(
                jurisdiction="CA",
                court_rules="Line numbers are required in the left margin.",
                substitutions={"plaintiffParty": "THE PEOPLE OF THE STATE OF CALIFORNIA"},
                sections=[
                    SectionOverride(
                        section_id="caption",
                        static_content=(
                            "SUPERIOR COURT, COUNTY OF {{county}}\n"
                            "{{plaintiffParty}} v. {{defendantName}}\nCase No. {{caseNumber}}"
                        ),
                    ),
                ],
                inputs=[TemplateInput(key="county", label="County", required=True)],
            ),
        },
    )


def valid_form_data(**overrides: Any) -> dict[str, Any]:
    data = {
        "caseNumber": "CR-2024-001",
        "defendantName": "Jane Roe",
        "hearingDate": "2024-03-15",
        "hearingType": "trial",
        "reason": "Defense expert is unavailable until April.",
        "attorneyName": "Alex Counsel",
    }
    data.update(overrides)
    return data


COMPLETE_ATTESTATION = AttorneyAttestation(
    is_licensed_attorney=True,
    acting_on_behalf_of_client=True,
    understands_privilege_requirements=True,
    accepts_terms_of_service=True,
)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def audit_log() -> InMemoryAuditLog:
    return InMemoryAuditLog()


@pytest.fixture
def session_store(clock: FakeClock, audit_log: InMemoryAuditLog) -> SessionStore:
    return SessionStore(clock=clock, audit_log=audit_log)


@pytest.fixture
def session_id(session_store: SessionStore) -> str:
    """Identifier of a freshly verified session."""
    return session_store.create_session(COMPLETE_ATTESTATION).session_id


@pytest.fixture
def sample_template() -> DocumentTemplate:
    return build_sample_template()


@pytest.fixture
def registry(sample_template: DocumentTemplate) -> TemplateRegistry:
    return TemplateRegistry(templates=[sample_template])


@pytest.fixture
def drafting_client() -> FakeDraftingClient:
    return FakeDraftingClient()


@pytest.fixture
def section_generator(drafting_client: FakeDraftingClient) -> AISectionGenerator:
    return AISectionGenerator(
        client=drafting_client,
        timeout_seconds=1.0,
        retry_backoff_seconds=0,
    )


@pytest.fixture
def document_generator(
    session_store: SessionStore,
    registry: TemplateRegistry,
    section_generator: AISectionGenerator,
) -> DocumentGenerator:
    return DocumentGenerator(
        session_store=session_store,
        registry=registry,
        section_generator=section_generator,
    )
