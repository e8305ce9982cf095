"""
Template preview generation.

Provides lightweight models describing a template's fields without its
section text. Previews are built from the effective template so required
flags reflect the requested jurisdiction, letting a client build the form
before document generation.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from src.templates.schemas import (
    DifficultyLevel,
    DocumentTemplate,
    EffectiveTemplate,
    InputOption,
    InputType,
    SectionKind,
    TemplateCategory,
    TemplateInput,
)


class FieldPreview(BaseModel):
    """
    Preview of a template input showing metadata for form display.
    """
    key: str = Field(
        description="Field key used in form data"
    )
    label: str = Field(
        description="Human-readable label for the field"
    )
    input_type: InputType = Field(
        description="Field data type"
    )
    required: bool = Field(
        description="Whether this field must be provided in the requested jurisdiction"
    )
    help_text: Optional[str] = Field(default=None)
    pattern: Optional[str] = Field(default=None)
    options: List[InputOption] = Field(default_factory=list)


class SectionPreview(BaseModel):
    section_id: str
    name: str
    kind: SectionKind


class TemplatePreview(BaseModel):
    """
    Preview of an effective template: identification, sections and fields.

    Does NOT include section text or drafting prompts.
    """
    template_id: str
    name: str
    category: TemplateCategory
    version: str
    jurisdiction: Optional[str] = None
    variant_applied: bool = False
    court_rules: Optional[str] = None
    required_field_count: int = Field(
        description="Number of fields required in this jurisdiction"
    )
    fields: List[FieldPreview]
    sections: List[SectionPreview]


class TemplateSummary(BaseModel):
    """Catalogue entry for template listings."""
    template_id: str
    name: str
    category: TemplateCategory
    description: str
    version: str
    estimated_completion_time: Optional[str] = None
    difficulty_level: DifficultyLevel
    supported_jurisdictions: List[str]


def _field_to_preview(template_input: TemplateInput, jurisdiction: Optional[str]) -> FieldPreview:
    return FieldPreview(
        key=template_input.key,
        label=template_input.label,
        input_type=template_input.input_type,
        required=template_input.is_required(jurisdiction),
        help_text=template_input.help_text,
        pattern=template_input.pattern,
        options=list(template_input.options),
    )


def generate_preview(effective: EffectiveTemplate) -> TemplatePreview:
    """
    Generate a preview from an effective template.

    Args:
        effective: Template already merged for the requested jurisdiction

    Returns:
        TemplatePreview with jurisdiction-resolved field requirements
    """
    fields = [_field_to_preview(i, effective.jurisdiction) for i in effective.inputs]

    return TemplatePreview(
        template_id=effective.template_id,
        name=effective.name,
        category=effective.category,
        version=effective.version,
        jurisdiction=effective.jurisdiction,
        variant_applied=effective.variant_applied,
        court_rules=effective.court_rules,
        required_field_count=sum(1 for f in fields if f.required),
        fields=fields,
        sections=[
            SectionPreview(section_id=s.section_id, name=s.name, kind=s.kind)
            for s in effective.sections
        ],
    )


def summarize_template(template: DocumentTemplate) -> TemplateSummary:
    return TemplateSummary(
        template_id=template.template_id,
        name=template.name,
        category=template.category,
        description=template.description,
        version=template.version,
        estimated_completion_time=template.estimated_completion_time,
        difficulty_level=template.difficulty_level,
        supported_jurisdictions=list(template.supported_jurisdictions),
    )
