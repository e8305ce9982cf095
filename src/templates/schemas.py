"""
Pydantic models for attorney document templates.

Provides data structures for:
- Section kinds (static, ai-drafted, user-input) and input types
- Template inputs with jurisdiction-conditional requirements
- Template sections and partial section overrides
- Jurisdiction variants (section overrides, extra inputs, text substitutions)
- Complete document templates and the effective (merged) template

Templates are configuration: they are validated once at load time and
treated as immutable afterwards.
"""

import re
from enum import Enum
from typing import Any, Dict, List, Optional

import semver
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class SectionKind(str, Enum):
    """How a section's content is produced."""
    STATIC = "static"
    AI_DRAFTED = "ai-drafted"
    USER_INPUT = "user-input"


class InputType(str, Enum):
    """Data types accepted for template inputs."""
    TEXT = "text"
    TEXTAREA = "textarea"
    DATE = "date"
    ENUM = "enum"
    BOOLEAN = "boolean"
    NUMBER = "number"


class TemplateCategory(str, Enum):
    """Practice area a template belongs to."""
    CRIMINAL = "criminal"
    IMMIGRATION = "immigration"
    CIVIL = "civil"


class DifficultyLevel(str, Enum):
    BASIC = "basic"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


# Keys are interpolated as template variables, so they must be identifiers
FIELD_KEY_PATTERN = re.compile(r'^[A-Za-z][A-Za-z0-9_]*$')

# Template ids are kebab-case, e.g. "motion-to-continue"
TEMPLATE_ID_PATTERN = re.compile(r'^[a-z0-9]+(-[a-z0-9]+)*$')


def normalize_jurisdiction(code: str) -> str:
    """Jurisdiction codes compare case-insensitively; store them upper-case."""
    return code.strip().upper()


class InputOption(BaseModel):
    """A selectable value for an enum input."""
    model_config = ConfigDict(frozen=True)

    value: str = Field(description="Value submitted in form data")
    label: str = Field(description="Text shown to the attorney and used in the document")


class TemplateInput(BaseModel):
    """Declaration of a form field a template consumes."""
    model_config = ConfigDict(frozen=True)

    key: str = Field(
        min_length=1,
        max_length=100,
        description="Field key used in form data and {{placeholders}}"
    )
    label: str = Field(
        description="Human-readable label for the field"
    )
    input_type: InputType = Field(
        default=InputType.TEXT,
        description="Data type: text|textarea|date|enum|boolean|number"
    )
    required: bool = Field(
        default=False,
        description="Whether the field must be provided in every jurisdiction"
    )
    required_in: List[str] = Field(
        default_factory=list,
        description="Jurisdiction codes where the field is required even if 'required' is false"
    )
    pattern: Optional[str] = Field(
        default=None,
        description="Optional regex the value must match"
    )
    min_length: Optional[int] = Field(default=None, ge=0)
    max_length: Optional[int] = Field(default=None, ge=1)
    options: List[InputOption] = Field(
        default_factory=list,
        description="Allowed values for enum inputs"
    )
    help_text: Optional[str] = Field(default=None)
    sensitive: bool = Field(
        default=False,
        description="Party-identifying data that is never sent to the drafting service"
    )

    @field_validator('key')
    @classmethod
    def validate_key(cls, v: str) -> str:
        """Ensure the key can be used as a placeholder name."""
        if not FIELD_KEY_PATTERN.match(v):
            raise ValueError(f"input key must be an identifier (e.g., 'caseNumber'), got '{v}'")
        return v

    @field_validator('required_in')
    @classmethod
    def normalize_required_in(cls, v: List[str]) -> List[str]:
        return [normalize_jurisdiction(code) for code in v]

    @model_validator(mode='after')
    def validate_options(self) -> 'TemplateInput':
        """Enum inputs need at least one option."""
        if self.input_type == InputType.ENUM and not self.options:
            raise ValueError(f"enum input '{self.key}' must declare options")
        return self

    def is_required(self, jurisdiction: Optional[str]) -> bool:
        """Resolve the required flag for a jurisdiction."""
        if self.required:
            return True
        return jurisdiction is not None and normalize_jurisdiction(jurisdiction) in self.required_in

    def option_label(self, value: str) -> Optional[str]:
        for option in self.options:
            if option.value == value:
                return option.label
        return None


class TemplateSection(BaseModel):
    """A section of a document template."""
    model_config = ConfigDict(frozen=True)

    section_id: str = Field(
        min_length=1,
        description="Unique section identifier within the template"
    )
    name: str = Field(
        description="Section heading, also used in drafting placeholders"
    )
    order: int = Field(
        description="Ordering key; sections are assembled in ascending order"
    )
    kind: SectionKind = Field(
        description="static | ai-drafted | user-input"
    )
    static_content: Optional[str] = Field(
        default=None,
        description="Text with {{placeholders}} for static sections"
    )
    prompt_template: Optional[str] = Field(
        default=None,
        description="Drafting prompt with {{placeholders}} for ai-drafted sections"
    )
    input_keys: List[str] = Field(
        default_factory=list,
        description="Inputs listed by a user-input section"
    )
    help_text: Optional[str] = Field(default=None)

    @model_validator(mode='after')
    def validate_content_for_kind(self) -> 'TemplateSection':
        """Ensure the section carries the content its kind needs."""
        if self.kind == SectionKind.STATIC and self.static_content is None:
            raise ValueError(f"static section '{self.section_id}' requires static_content")
        if self.kind == SectionKind.AI_DRAFTED and not self.prompt_template:
            raise ValueError(f"ai-drafted section '{self.section_id}' requires prompt_template")
        if self.kind == SectionKind.USER_INPUT and not self.input_keys:
            raise ValueError(f"user-input section '{self.section_id}' requires input_keys")
        return self


class SectionOverride(BaseModel):
    """
    Partial section used by jurisdiction variants.

    Same shape as TemplateSection with every field except section_id
    optional. Fields left unset keep the base section's values.
    """
    model_config = ConfigDict(frozen=True)

    section_id: str = Field(min_length=1)
    name: Optional[str] = None
    order: Optional[int] = None
    kind: Optional[SectionKind] = None
    static_content: Optional[str] = None
    prompt_template: Optional[str] = None
    input_keys: Optional[List[str]] = None
    help_text: Optional[str] = None

    def overridden_fields(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True, exclude={"section_id"})

    def apply_to(self, base: TemplateSection) -> TemplateSection:
        """Overlay the fields this override sets onto a base section."""
        data = base.model_dump()
        data.update(self.overridden_fields())
        return TemplateSection.model_validate(data)

    def to_section(self) -> TemplateSection:
        """
        Build a new section from an override that has no base counterpart.

        Raises:
            ValueError: If the override is missing name, order, kind or content
        """
        missing = [f for f in ("name", "order", "kind") if getattr(self, f) is None]
        if missing:
            raise ValueError(
                f"variant section '{self.section_id}' is not in the base template "
                f"and is missing {missing}"
            )
        return TemplateSection.model_validate(self.model_dump(exclude_none=True))


class JurisdictionVariant(BaseModel):
    """Jurisdiction-specific overrides applied over a base template."""
    model_config = ConfigDict(frozen=True)

    jurisdiction: str = Field(
        min_length=1,
        description="Jurisdiction code, e.g. 'CA' or 'federal'"
    )
    sections: List[SectionOverride] = Field(
        default_factory=list,
        description="Section overrides and additions"
    )
    inputs: List[TemplateInput] = Field(
        default_factory=list,
        description="Inputs overriding base inputs by key, or added"
    )
    substitutions: Dict[str, str] = Field(
        default_factory=dict,
        description="Placeholder key -> jurisdiction text (county lists, citations)"
    )
    court_rules: Optional[str] = Field(
        default=None,
        description="Court-specific filing rules surfaced with the document"
    )

    @field_validator('jurisdiction')
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return normalize_jurisdiction(v)


class DocumentTemplate(BaseModel):
    """
    Complete attorney document template.

    A template defines:
    - Ordered sections (static text, AI-drafted narrative, form answers)
    - The inputs the attorney fills in
    - Jurisdiction variants keyed by jurisdiction code
    """
    model_config = ConfigDict(frozen=True)

    template_id: str = Field(
        description="Kebab-case template identifier"
    )
    name: str = Field(
        description="Human-readable template name"
    )
    category: TemplateCategory = Field(
        description="Practice area"
    )
    description: str = Field(
        default="",
        description="Brief description of the template's purpose"
    )
    version: str = Field(
        default="1.0.0",
        description="Semantic version e.g. 1.0.0"
    )
    sections: List[TemplateSection] = Field(
        min_length=1,
        description="Base sections"
    )
    inputs: List[TemplateInput] = Field(
        default_factory=list,
        description="Base input declarations"
    )
    substitutions: Dict[str, str] = Field(
        default_factory=dict,
        description="Default placeholder text, replaced per jurisdiction by variants"
    )
    variants: Dict[str, JurisdictionVariant] = Field(
        default_factory=dict,
        description="Jurisdiction code -> variant"
    )
    supported_jurisdictions: List[str] = Field(
        default_factory=list,
        description="Jurisdictions the template is offered for (empty = all)"
    )
    estimated_completion_time: Optional[str] = Field(default=None)
    difficulty_level: DifficultyLevel = Field(default=DifficultyLevel.BASIC)

    @model_validator(mode='before')
    @classmethod
    def fill_variant_jurisdictions(cls, data: Any) -> Any:
        """Allow variants to omit 'jurisdiction' when it equals their key."""
        if isinstance(data, dict) and isinstance(data.get("variants"), dict):
            variants = {}
            for code, variant in data["variants"].items():
                if isinstance(variant, dict) and "jurisdiction" not in variant:
                    variant = {**variant, "jurisdiction": code}
                variants[normalize_jurisdiction(code)] = variant
            data = {**data, "variants": variants}
        return data

    @field_validator('template_id')
    @classmethod
    def validate_template_id(cls, v: str) -> str:
        if not TEMPLATE_ID_PATTERN.match(v):
            raise ValueError(f"template_id must be kebab-case (e.g., 'motion-to-continue'), got '{v}'")
        return v

    @field_validator('version')
    @classmethod
    def validate_semver(cls, v: str) -> str:
        """Ensure version is valid semantic version."""
        try:
            semver.Version.parse(v)
        except ValueError:
            raise ValueError(f"Invalid semantic version: {v}. Use format like '1.0.0'")
        return v

    @field_validator('supported_jurisdictions')
    @classmethod
    def normalize_supported(cls, v: List[str]) -> List[str]:
        return [normalize_jurisdiction(code) for code in v]

    @model_validator(mode='after')
    def validate_structure(self) -> 'DocumentTemplate':
        """Check ids are unique and every variant merges cleanly."""
        section_ids = [s.section_id for s in self.sections]
        duplicates = {sid for sid in section_ids if section_ids.count(sid) > 1}
        if duplicates:
            raise ValueError(f"duplicate section ids: {sorted(duplicates)}")

        input_keys = [i.key for i in self.inputs]
        duplicates = {key for key in input_keys if input_keys.count(key) > 1}
        if duplicates:
            raise ValueError(f"duplicate input keys: {sorted(duplicates)}")

        for code, variant in self.variants.items():
            if variant.jurisdiction != code:
                raise ValueError(
                    f"variant key '{code}' does not match its jurisdiction '{variant.jurisdiction}'"
                )
            base_by_id = {s.section_id: s for s in self.sections}
            for override in variant.sections:
                base = base_by_id.get(override.section_id)
                if base is None:
                    override.to_section()
                else:
                    override.apply_to(base)

        return self


class EffectiveTemplate(BaseModel):
    """A base template with its jurisdiction variant merged in."""
    model_config = ConfigDict(frozen=True)

    template_id: str
    name: str
    category: TemplateCategory
    version: str
    jurisdiction: Optional[str] = Field(
        default=None,
        description="Requested jurisdiction (upper-case), if any"
    )
    variant_applied: bool = Field(
        default=False,
        description="Whether a jurisdiction variant was found and merged"
    )
    sections: List[TemplateSection] = Field(
        description="Sections in ascending ordering-key order"
    )
    inputs: List[TemplateInput]
    court_rules: Optional[str] = None

    def get_section(self, section_id: str) -> Optional[TemplateSection]:
        for section in self.sections:
            if section.section_id == section_id:
                return section
        return None

    def get_input(self, key: str) -> Optional[TemplateInput]:
        for template_input in self.inputs:
            if template_input.key == key:
                return template_input
        return None

    def ai_sections(self) -> List[TemplateSection]:
        return [s for s in self.sections if s.kind == SectionKind.AI_DRAFTED]
