"""
Jurisdiction variant merging.

merge_variant() is a pure function producing the effective template for a
jurisdiction:
- Sections: variant overrides replace the fields they set on the base
  section with the same id; sections only in the variant are inserted by
  their ordering key. Sorting is stable, so base order is kept.
- Inputs: variant inputs replace base inputs with the same key in place;
  new variant inputs are appended. Each key appears once.
- Substitutions: `{{key}}` placeholders naming a substitution are replaced
  textually in static content and drafting prompts. Variant text wins over
  the template's defaults.

A jurisdiction without a variant gets the base template unmodified.
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence

from src.templates.rendering import apply_substitutions
from src.templates.schemas import (
    DocumentTemplate,
    EffectiveTemplate,
    JurisdictionVariant,
    SectionOverride,
    TemplateInput,
    TemplateSection,
    normalize_jurisdiction,
)


# Configure logging for the merger module
logger = logging.getLogger(__name__)


def find_variant(
    template: DocumentTemplate,
    jurisdiction: Optional[str],
) -> Optional[JurisdictionVariant]:
    """Look up the variant for a jurisdiction code (case-insensitive)."""
    if not jurisdiction:
        return None
    return template.variants.get(normalize_jurisdiction(jurisdiction))


def merge_sections(
    base_sections: Sequence[TemplateSection],
    overrides: Sequence[SectionOverride],
) -> List[TemplateSection]:
    """Overlay section overrides and return sections sorted by ordering key."""
    pending: Dict[str, SectionOverride] = {o.section_id: o for o in overrides}

    merged: List[TemplateSection] = []
    for section in base_sections:
        override = pending.pop(section.section_id, None)
        merged.append(override.apply_to(section) if override else section)

    for override in overrides:
        added = pending.pop(override.section_id, None)
        if added is not None:
            merged.append(added.to_section())

    return sorted(merged, key=lambda s: s.order)


def merge_inputs(
    base_inputs: Sequence[TemplateInput],
    variant_inputs: Sequence[TemplateInput],
) -> List[TemplateInput]:
    """Concatenate inputs, variant entries winning over base entries by key."""
    pending: Dict[str, TemplateInput] = {i.key: i for i in variant_inputs}

    merged = [pending.pop(i.key, i) for i in base_inputs]
    for template_input in variant_inputs:
        added = pending.pop(template_input.key, None)
        if added is not None:
            merged.append(added)

    return merged


def substitute_sections(
    sections: Sequence[TemplateSection],
    substitutions: Mapping[str, str],
) -> List[TemplateSection]:
    """Apply jurisdiction text substitutions to every section's text."""
    if not substitutions:
        return list(sections)

    return [
        section.model_copy(update={
            "static_content": apply_substitutions(section.static_content, substitutions),
            "prompt_template": apply_substitutions(section.prompt_template, substitutions),
        })
        for section in sections
    ]


def merge_variant(
    base: DocumentTemplate,
    variant: Optional[JurisdictionVariant],
    jurisdiction: Optional[str] = None,
) -> EffectiveTemplate:
    """
    Produce the effective template for a jurisdiction.

    Args:
        base: Base document template
        variant: Variant to overlay, or None to use the base as-is
        jurisdiction: Requested jurisdiction code (defaults to the variant's)

    Returns:
        EffectiveTemplate with merged sections and inputs
    """
    if jurisdiction:
        jurisdiction = normalize_jurisdiction(jurisdiction)
    elif variant is not None:
        jurisdiction = variant.jurisdiction

    if variant is None:
        return EffectiveTemplate(
            template_id=base.template_id,
            name=base.name,
            category=base.category,
            version=base.version,
            jurisdiction=jurisdiction,
            variant_applied=False,
            sections=substitute_sections(
                sorted(base.sections, key=lambda s: s.order),
                base.substitutions,
            ),
            inputs=list(base.inputs),
        )

    substitutions = {**base.substitutions, **variant.substitutions}
    sections = merge_sections(base.sections, variant.sections)
    sections = substitute_sections(sections, substitutions)
    inputs = merge_inputs(base.inputs, variant.inputs)

    logger.debug(
        f"Merged {variant.jurisdiction} variant into {base.template_id}: "
        f"{len(variant.sections)} section override(s), {len(variant.inputs)} input override(s)"
    )

    return EffectiveTemplate(
        template_id=base.template_id,
        name=base.name,
        category=base.category,
        version=base.version,
        jurisdiction=jurisdiction,
        variant_applied=True,
        sections=sections,
        inputs=inputs,
        court_rules=variant.court_rules,
    )


def get_effective_template(
    base: DocumentTemplate,
    jurisdiction: Optional[str],
) -> EffectiveTemplate:
    """Find the jurisdiction's variant (if any) and merge it."""
    return merge_variant(base, find_variant(base, jurisdiction), jurisdiction)
