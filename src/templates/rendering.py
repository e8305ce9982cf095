"""
Placeholder interpolation for template text.

Static content and drafting prompts use Jinja2 `{{field}}` placeholders.
Placeholders without a value are left in the text unchanged so a reviewer
can see what is missing.
"""

import re
from datetime import date
from functools import lru_cache
from typing import Any, Mapping, Optional

from jinja2 import DebugUndefined, Environment, Template, meta

from src.templates.schemas import InputType, TemplateInput
from src.templates.validator import is_blank, parse_bool, parse_date


PLACEHOLDER_PATTERN = re.compile(r'\{\{\s*([A-Za-z][A-Za-z0-9_]*)\s*\}\}')

_environment = Environment(
    undefined=DebugUndefined,
    autoescape=False,
    keep_trailing_newline=True,
)


@lru_cache(maxsize=512)
def _compile(text: str) -> Template:
    return _environment.from_string(text)


def interpolate(text: str, values: Mapping[str, Any]) -> str:
    """Render `{{field}}` placeholders from values, keeping unknown ones."""
    if not text:
        return text
    return _compile(text).render(**values)


def extract_variables(text: str) -> set[str]:
    """
    Names of all placeholders referenced by a text.

    Raises:
        jinja2.TemplateSyntaxError: If the text is not a valid template
    """
    if not text:
        return set()
    return set(meta.find_undeclared_variables(_environment.parse(text)))


def apply_substitutions(text: Optional[str], substitutions: Mapping[str, str]) -> Optional[str]:
    """
    Replace `{{key}}` placeholders whose key is a substitution.

    Other placeholders are left for field interpolation, and substituted
    text may itself contain field placeholders.
    """
    if not text or not substitutions:
        return text
    return PLACEHOLDER_PATTERN.sub(
        lambda m: substitutions.get(m.group(1), m.group(0)),
        text,
    )


def format_document_date(value: date) -> str:
    """Format a date as it appears in filings, e.g. 'March 1, 2024'."""
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def display_value(template_input: TemplateInput, value: Any) -> str:
    """
    Convert a validated form value to document text.

    Enum values become their option label, booleans become Yes/No and
    dates are written out in long form.
    """
    if is_blank(value):
        return ""

    if template_input.input_type == InputType.ENUM:
        return template_input.option_label(str(value)) or str(value)

    if template_input.input_type == InputType.BOOLEAN:
        parsed = parse_bool(value)
        if parsed is not None:
            return "Yes" if parsed else "No"

    if template_input.input_type == InputType.DATE:
        parsed_date = parse_date(value)
        if parsed_date is not None:
            return format_document_date(parsed_date)

    return str(value).strip()
