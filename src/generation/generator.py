"""
Document generator orchestrating attorney document generation.

Combines:
- Session gating (SessionStore)
- Template resolution with jurisdiction variants (TemplateRegistry)
- Form data validation (validate_form_data)
- Concurrent AI drafting with placeholder fallback (AISectionGenerator)
- Assembly (DocumentAssembler)

Pipeline:
1. Validate the attorney session
2. Resolve the effective template for the jurisdiction
3. Validate form data, reporting every field error at once
4. Draft all ai-drafted sections concurrently
5. Assemble the document
6. Record a document_generated audit entry
7. Return GeneratedDocument
"""

import logging
from datetime import datetime
from typing import Any, Callable, Mapping, Optional

from src.attorney.audit import AttorneyAuditEntry, AuditAction, AuditSink, session_id_prefix
from src.attorney.sessions import SessionStore
from src.generation.assembler import DocumentAssembler, GeneratedDocument
from src.generation.section_generator import AISectionGenerator
from src.templates.registry import TemplateRegistry
from src.templates.validator import validate_form_data


# Configure logging for the generator module
logger = logging.getLogger(__name__)


class DocumentGenerator:
    """
    Orchestrates session-gated document generation.

    Holds no per-request state; concurrent requests are independent and
    identical requests are not deduplicated.

    Example:
        generator = DocumentGenerator(session_store, registry, section_generator)
        document = await generator.generate_document(
            session_id=grant.session_id,
            template_id="motion-to-continue",
            jurisdiction="CA",
            form_data={"caseNumber": "CR-2024-001", ...},
        )
    """

    def __init__(
        self,
        session_store: SessionStore,
        registry: TemplateRegistry,
        section_generator: AISectionGenerator,
        assembler: Optional[DocumentAssembler] = None,
        audit_log: Optional[AuditSink] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the DocumentGenerator.

        Args:
            session_store: Store used to gate every request
            registry: Template registry
            section_generator: Drafts ai-drafted sections
            assembler: Document assembler (default instance if None)
            audit_log: Audit sink (defaults to the session store's)
            clock: Timestamp source (defaults to the session store's clock)
        """
        self.session_store = session_store
        self.registry = registry
        self.section_generator = section_generator
        self.assembler = assembler or DocumentAssembler()
        self.audit_log = audit_log if audit_log is not None else session_store.audit_log
        self.clock = clock or session_store.clock

    async def generate_document(
        self,
        session_id: str,
        template_id: str,
        jurisdiction: Optional[str],
        form_data: Mapping[str, Any],
    ) -> GeneratedDocument:
        """
        Generate a document for a verified attorney.

        Args:
            session_id: Attorney session identifier
            template_id: Registered template id
            jurisdiction: Jurisdiction code; unknown codes use the base template
            form_data: Field key to submitted value

        Returns:
            GeneratedDocument, possibly with placeholder sections

        Raises:
            SessionInvalidError: Session not found, expired or terminated
            TemplateNotFoundError: Template id is not registered
            ValidationFailedError: Form data failed validation (all errors listed)
        """
        # Step 1: Gate on the session before doing any work
        self.session_store.validate_session(session_id)
        prefix = session_id_prefix(session_id)

        # Step 2: Resolve the effective template
        effective = self.registry.get_effective_template(template_id, jurisdiction)

        # Step 3: Validate all form data up front
        validation = validate_form_data(effective, form_data)
        for warning in validation.warnings:
            logger.warning(f"Template {template_id}: {warning}")
        validation.raise_for_errors()

        # Step 4: Draft ai sections concurrently
        drafts = await self.section_generator.draft_all(effective, form_data)

        # Step 5: Assemble
        now = self.clock()
        document = self.assembler.assemble(
            effective=effective,
            form_data=form_data,
            drafts=drafts,
            session_id_prefix=prefix,
            generated_at=now,
        )

        # Step 6: Audit
        self.audit_log.append(
            AttorneyAuditEntry(
                timestamp=now,
                action=AuditAction.DOCUMENT_GENERATED,
                session_id_prefix=prefix,
                metadata={
                    "template_id": effective.template_id,
                    "jurisdiction": effective.jurisdiction,
                    "variant_applied": effective.variant_applied,
                    "placeholder_sections": list(document.placeholder_sections),
                },
            )
        )

        logger.info(
            f"Generated {effective.template_id} ({effective.jurisdiction or 'base'}) for session {prefix}: "
            f"{len(document.sections)} sections, {len(document.placeholder_sections)} placeholder"
        )
        return document
