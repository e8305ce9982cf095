"""
Templates module for the attorney document engine.

Provides template schemas, the template registry, jurisdiction variant
merging, form data validation and placeholder interpolation.
"""

from src.templates.schemas import (
    SectionKind,
    InputType,
    TemplateCategory,
    DifficultyLevel,
    InputOption,
    TemplateInput,
    TemplateSection,
    SectionOverride,
    JurisdictionVariant,
    DocumentTemplate,
    EffectiveTemplate,
    normalize_jurisdiction,
)
from src.templates.merger import (
    find_variant,
    merge_inputs,
    merge_sections,
    merge_variant,
    get_effective_template,
)
from src.templates.validator import (
    FieldError,
    FormValidationResult,
    validate_form_data,
)
from src.templates.rendering import (
    apply_substitutions,
    display_value,
    extract_variables,
    interpolate,
)
from src.templates.preview import (
    FieldPreview,
    SectionPreview,
    TemplatePreview,
    TemplateSummary,
    generate_preview,
    summarize_template,
)
from src.templates.registry import TemplateRegistry

__all__ = [
    # Enums
    "SectionKind",
    "InputType",
    "TemplateCategory",
    "DifficultyLevel",
    # Template models
    "InputOption",
    "TemplateInput",
    "TemplateSection",
    "SectionOverride",
    "JurisdictionVariant",
    "DocumentTemplate",
    "EffectiveTemplate",
    "normalize_jurisdiction",
    # Variant merging
    "find_variant",
    "merge_inputs",
    "merge_sections",
    "merge_variant",
    "get_effective_template",
    # Validation
    "FieldError",
    "FormValidationResult",
    "validate_form_data",
    # Interpolation
    "apply_substitutions",
    "display_value",
    "extract_variables",
    "interpolate",
    # Preview generation
    "FieldPreview",
    "SectionPreview",
    "TemplatePreview",
    "TemplateSummary",
    "generate_preview",
    "summarize_template",
    # Registry
    "TemplateRegistry",
]
