"""
Document assembly from an effective template, form data and section drafts.

Assembly makes no external calls and cannot fail on valid input:
- static sections are interpolated with form display values
- user-input sections list their inputs as "Label: value" lines
- ai-drafted sections take their draft, or the placeholder
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.generation.section_generator import SectionDraft, placeholder_for
from src.templates.rendering import display_value, interpolate
from src.templates.schemas import EffectiveTemplate, SectionKind, TemplateSection


# Configure logging for the assembler module
logger = logging.getLogger(__name__)


SECTION_SEPARATOR = "\n\n"


class GeneratedSection(BaseModel):
    """One assembled section of a generated document."""
    model_config = ConfigDict(frozen=True)

    section_id: str
    name: str
    kind: SectionKind
    content: str
    is_placeholder: bool = Field(
        default=False,
        description="True when an ai-drafted section fell back to the placeholder"
    )


class GeneratedDocument(BaseModel):
    """Output model for an assembled attorney document."""
    model_config = ConfigDict(frozen=True)

    document_id: str = Field(
        description="Random identifier for this generation"
    )
    template_id: str
    template_name: str
    template_version: str
    jurisdiction: Optional[str] = Field(
        default=None,
        description="Requested jurisdiction code"
    )
    variant_applied: bool = False
    sections: List[GeneratedSection] = Field(
        description="Sections in ordering-key order"
    )
    content: str = Field(
        description="Complete document text, sections joined by blank lines"
    )
    generated_at: datetime
    session_id_prefix: str = Field(
        description="Correlation prefix of the session that generated the document"
    )
    placeholder_sections: List[str] = Field(
        default_factory=list,
        description="Ids of ai-drafted sections that need attorney completion"
    )
    court_rules: Optional[str] = Field(
        default=None,
        description="Court rules of the applied jurisdiction variant"
    )

    @property
    def requires_attorney_completion(self) -> bool:
        return bool(self.placeholder_sections)


class DocumentAssembler:
    """
    Builds a GeneratedDocument from its parts.

    Example:
        assembler = DocumentAssembler()
        document = assembler.assemble(effective, form_data, drafts, "a1b2c3d4", now)
    """

    def display_values(
        self,
        effective: EffectiveTemplate,
        form_data: Mapping[str, Any],
    ) -> Dict[str, str]:
        """Display text for every declared input; blank inputs become ''."""
        values = {
            template_input.key: display_value(template_input, form_data.get(template_input.key))
            for template_input in effective.inputs
        }
        if effective.jurisdiction:
            values.setdefault("jurisdiction", effective.jurisdiction)
        return values

    def render_user_input(
        self,
        section: TemplateSection,
        effective: EffectiveTemplate,
        values: Mapping[str, str],
    ) -> str:
        lines = []
        for key in section.input_keys:
            template_input = effective.get_input(key)
            label = template_input.label if template_input else key
            value = values.get(key, "")
            if value:
                lines.append(f"{label}: {value}")
        return "\n".join(lines)

    def render_section(
        self,
        section: TemplateSection,
        effective: EffectiveTemplate,
        values: Mapping[str, str],
        drafts: Mapping[str, SectionDraft],
    ) -> GeneratedSection:
        is_placeholder = False

        if section.kind == SectionKind.STATIC:
            content = interpolate(section.static_content or "", values)
        elif section.kind == SectionKind.USER_INPUT:
            content = self.render_user_input(section, effective, values)
        else:
            draft = drafts.get(section.section_id)
            if draft is None:
                content = placeholder_for(section)
                is_placeholder = True
            else:
                content = draft.content
                is_placeholder = draft.is_placeholder

        return GeneratedSection(
            section_id=section.section_id,
            name=section.name,
            kind=section.kind,
            content=content,
            is_placeholder=is_placeholder,
        )

    def assemble(
        self,
        effective: EffectiveTemplate,
        form_data: Mapping[str, Any],
        drafts: Mapping[str, SectionDraft],
        session_id_prefix: str,
        generated_at: datetime,
    ) -> GeneratedDocument:
        """
        Assemble the document.

        Args:
            effective: Effective template (sections already in order)
            form_data: Validated form values
            drafts: Drafts keyed by section id; missing drafts become placeholders
            session_id_prefix: Correlation prefix of the requesting session
            generated_at: Generation timestamp

        Returns:
            GeneratedDocument with sections, joined content and placeholder ids
        """
        values = self.display_values(effective, form_data)
        sections = [
            self.render_section(section, effective, values, drafts)
            for section in effective.sections
        ]

        document = GeneratedDocument(
            document_id=str(uuid.uuid4()),
            template_id=effective.template_id,
            template_name=effective.name,
            template_version=effective.version,
            jurisdiction=effective.jurisdiction,
            variant_applied=effective.variant_applied,
            sections=sections,
            content=SECTION_SEPARATOR.join(s.content for s in sections if s.content),
            generated_at=generated_at,
            session_id_prefix=session_id_prefix,
            placeholder_sections=[s.section_id for s in sections if s.is_placeholder],
            court_rules=effective.court_rules,
        )

        logger.debug(
            f"Assembled {effective.template_id} with {len(sections)} sections "
            f"({len(document.placeholder_sections)} placeholder)"
        )
        return document
