"""Tests for document assembly and the generation pipeline."""

import pytest
from pydantic import ValidationError

from src.attorney import AuditAction, session_id_prefix
from src.errors import (
    DraftingUnavailableError,
    SessionExpiredError,
    SessionNotFoundError,
    SessionTerminatedError,
    TemplateNotFoundError,
    ValidationFailedError,
)
from src.generation import (
    AISectionGenerator,
    DocumentAssembler,
    DocumentGenerator,
    SectionDraft,
)
from src.templates import get_effective_template

from conftest import T0, FakeDraftingClient, valid_form_data


class TestDocumentAssembler:
    """Test assembly without any drafting calls."""

    def test_sections_rendered_by_kind(self, sample_template):
        """Test static interpolation, user-input lines and drafts."""
        effective = get_effective_template(sample_template, None)
        drafts = {"grounds": SectionDraft(section_id="grounds", content="1. Good cause exists.", attempts=1)}

        document = DocumentAssembler().assemble(effective, valid_form_data(), drafts, "abcd1234", T0)

        by_id = {s.section_id: s for s in document.sections}
        assert by_id["caption"].content == "THE STATE v. Jane Roe\nCase No. CR-2024-001"
        assert by_id["details"].content == "Hearing Date: March 15, 2024\nHearing Type: Trial"
        assert by_id["grounds"].content == "1. Good cause exists."
        assert by_id["signature"].content == "Respectfully submitted,\nAlex Counsel"
        assert document.placeholder_sections == []
        assert document.content.startswith("THE STATE v. Jane Roe")

    def test_missing_draft_becomes_placeholder(self, sample_template):
        """Test that an ai section without a draft gets the placeholder."""
        effective = get_effective_template(sample_template, None)

        document = DocumentAssembler().assemble(effective, valid_form_data(), {}, "abcd1234", T0)

        assert document.placeholder_sections == ["grounds"]
        assert "[Attorney to complete: Grounds for Continuance]" in document.content
        assert document.requires_attorney_completion is True

    def test_blank_optional_input_renders_empty(self, sample_template):
        """Test that an omitted optional field leaves no placeholder text."""
        effective = get_effective_template(sample_template, None)
        form = valid_form_data()
        del form["attorneyName"]

        document = DocumentAssembler().assemble(effective, form, {}, "abcd1234", T0)

        signature = [s for s in document.sections if s.section_id == "signature"][0]
        assert signature.content == "Respectfully submitted,\n"

    def test_document_is_immutable(self, sample_template):
        effective = get_effective_template(sample_template, None)
        document = DocumentAssembler().assemble(effective, valid_form_data(), {}, "abcd1234", T0)

        with pytest.raises(ValidationError):
            document.content = "changed"


class TestGenerateDocument:
    """Test the session-gated pipeline."""

    async def test_generates_ca_document(self, document_generator, session_id, drafting_client, audit_log):
        """Test a full generation with the CA variant."""
        document = await document_generator.generate_document(
            session_id=session_id,
            template_id="motion-to-continue",
            jurisdiction="CA",
            form_data=valid_form_data(county="ALAMEDA"),
        )

        assert document.sections[0].content.startswith("SUPERIOR COURT, COUNTY OF ALAMEDA")
        assert "THE PEOPLE OF THE STATE OF CALIFORNIA v. Jane Roe" in document.content
        assert "Drafted grounds." in document.content
        assert document.jurisdiction == "CA"
        assert document.court_rules == "Line numbers are required in the left margin."
        assert document.session_id_prefix == session_id_prefix(session_id)
        assert len(drafting_client.calls) == 1

        entry = audit_log.entries()[-1]
        assert entry.action == AuditAction.DOCUMENT_GENERATED
        assert entry.metadata["template_id"] == "motion-to-continue"
        assert entry.metadata["placeholder_sections"] == []

    async def test_drafting_failures_still_produce_document(
        self, session_store, registry, session_id, audit_log
    ):
        """Test that two drafting failures yield the placeholder, not an error."""
        client = FakeDraftingClient(outcomes=[
            DraftingUnavailableError("service down"),
            DraftingUnavailableError("service down"),
        ])
        failing = AISectionGenerator(client, retry_backoff_seconds=0)
        generator = DocumentGenerator(session_store, registry, failing)

        document = await generator.generate_document(session_id, "motion-to-continue", None, valid_form_data())

        assert document.placeholder_sections == ["grounds"]
        assert "[Attorney to complete: Grounds for Continuance]" in document.content
        assert audit_log.entries()[-1].metadata["placeholder_sections"] == ["grounds"]

    async def test_connection_errors_still_produce_document(self, session_store, registry, session_id):
        """Test that a client raising ConnectionError cannot abort generation."""
        client = FakeDraftingClient(outcomes=[ConnectionError("reset"), ConnectionError("reset")])
        generator = DocumentGenerator(session_store, registry, AISectionGenerator(client, retry_backoff_seconds=0))

        document = await generator.generate_document(session_id, "motion-to-continue", None, valid_form_data())

        assert document.placeholder_sections == ["grounds"]

    async def test_validation_errors_stop_before_drafting(self, document_generator, session_id, drafting_client):
        """Test that invalid data raises with every error and never drafts."""
        with pytest.raises(ValidationFailedError) as exc_info:
            await document_generator.generate_document(
                session_id, "motion-to-continue", "CA", valid_form_data(caseNumber=""),
            )

        assert sorted(e.key for e in exc_info.value.errors) == ["caseNumber", "county"]
        assert drafting_client.calls == []

    async def test_unknown_template(self, document_generator, session_id):
        with pytest.raises(TemplateNotFoundError):
            await document_generator.generate_document(session_id, "missing", "CA", {})

    async def test_invalid_session_checked_first(self, document_generator, drafting_client):
        """Test that no work happens without a valid session."""
        with pytest.raises(SessionNotFoundError):
            await document_generator.generate_document("bogus", "missing", "CA", {})

        assert drafting_client.calls == []

    async def test_expired_session_rejected(self, document_generator, session_id, clock, audit_log):
        """Test that generation after expiry fails and writes no document entry."""
        clock.advance(minutes=31)

        with pytest.raises(SessionExpiredError):
            await document_generator.generate_document(
                session_id, "motion-to-continue", None, valid_form_data(),
            )

        assert audit_log.count(AuditAction.DOCUMENT_GENERATED) == 0

    async def test_terminated_session_rejected(self, document_generator, session_store, session_id):
        session_store.terminate_session(session_id)

        with pytest.raises(SessionTerminatedError):
            await document_generator.generate_document(
                session_id, "motion-to-continue", None, valid_form_data(),
            )

