"""
Form data validation against an effective template.

Walks every declared input and collects all problems rather than stopping
at the first one, so the attorney can correct everything in one pass:
- Presence of required fields (including jurisdiction-conditional ones)
- Type checks (text, date, enum, boolean, number)
- Length bounds and regex patterns

A broken pattern in a template is a template bug, reported as a warning.
"""

import logging
import math
import re
from datetime import date, datetime
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, Field

from src.errors import ValidationFailedError
from src.templates.schemas import EffectiveTemplate, InputType, TemplateInput


# Configure logging for the validator module
logger = logging.getLogger(__name__)


TRUE_STRINGS = {"true", "yes", "on", "1"}
FALSE_STRINGS = {"false", "no", "off", "0"}


class FieldError(BaseModel):
    """A single problem with one form field."""
    key: str = Field(description="Input key")
    label: str = Field(description="Input label")
    reason: str = Field(description="Machine-readable reason: required|type|enum|length|pattern")
    message: str = Field(description="Message suitable for display")


class FormValidationResult(BaseModel):
    """Outcome of validating form data."""
    is_valid: bool
    errors: List[FieldError] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    @property
    def invalid_keys(self) -> List[str]:
        """Offending field keys in input order, without duplicates."""
        return list(dict.fromkeys(e.key for e in self.errors))

    def raise_for_errors(self) -> None:
        """
        Raises:
            ValidationFailedError: If any field failed, carrying every error
        """
        if not self.is_valid:
            raise ValidationFailedError(self.errors)


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and value.strip() == ""


def parse_date(value: Any) -> Optional[date]:
    """Accept date objects or ISO-8601 strings ("2024-03-01")."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def parse_bool(value: Any) -> Optional[bool]:
    """Accept booleans or common checkbox strings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    return None


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, str):
        if "_" in value:
            return False
        try:
            return math.isfinite(float(value))
        except ValueError:
            return False
    return False


def _check_type(template_input: TemplateInput, value: Any) -> Optional[FieldError]:
    label = template_input.label
    input_type = template_input.input_type

    def error(reason: str, message: str) -> FieldError:
        return FieldError(key=template_input.key, label=label, reason=reason, message=message)

    if input_type in (InputType.TEXT, InputType.TEXTAREA):
        if not isinstance(value, str):
            return error("type", f"{label} must be text")
    elif input_type == InputType.DATE:
        if parse_date(value) is None:
            return error("type", f"{label} must be a valid date (YYYY-MM-DD)")
    elif input_type == InputType.BOOLEAN:
        if parse_bool(value) is None:
            return error("type", f"{label} must be yes or no")
    elif input_type == InputType.NUMBER:
        if not _is_number(value):
            return error("type", f"{label} must be a number")
    elif input_type == InputType.ENUM:
        if template_input.option_label(str(value)) is None:
            return error("enum", f"{label} must be one of the available options")
    return None


def validate_input(
    template_input: TemplateInput,
    value: Any,
    jurisdiction: Optional[str],
    warnings: List[str],
) -> List[FieldError]:
    """
    Validate one value against its input declaration.

    Args:
        template_input: Input declaration from the effective template
        value: Submitted value (may be missing)
        jurisdiction: Effective jurisdiction, for conditional requirements
        warnings: Collector for template-level warnings

    Returns:
        List of FieldError for this input (empty if valid)
    """
    label = template_input.label

    if is_blank(value):
        if template_input.is_required(jurisdiction):
            return [FieldError(
                key=template_input.key,
                label=label,
                reason="required",
                message=f"{label} is required",
            )]
        return []

    type_error = _check_type(template_input, value)
    if type_error is not None:
        return [type_error]

    errors: List[FieldError] = []
    if isinstance(value, str):
        if template_input.min_length is not None and len(value) < template_input.min_length:
            errors.append(FieldError(
                key=template_input.key,
                label=label,
                reason="length",
                message=f"{label} must be at least {template_input.min_length} characters",
            ))
        if template_input.max_length is not None and len(value) > template_input.max_length:
            errors.append(FieldError(
                key=template_input.key,
                label=label,
                reason="length",
                message=f"{label} must be no more than {template_input.max_length} characters",
            ))

    if template_input.pattern:
        try:
            pattern = re.compile(template_input.pattern)
        except re.error:
            warnings.append(f"Invalid validation pattern for {label}")
            logger.warning(f"Invalid validation pattern for input '{template_input.key}': {template_input.pattern}")
        else:
            if not pattern.search(str(value)):
                errors.append(FieldError(
                    key=template_input.key,
                    label=label,
                    reason="pattern",
                    message=f"{label} has an invalid format",
                ))

    return errors


def validate_form_data(
    effective: EffectiveTemplate,
    form_data: Mapping[str, Any],
) -> FormValidationResult:
    """
    Validate form data against every input of an effective template.

    Keys in form_data that the template does not declare are ignored.

    Args:
        effective: Merged template for the requested jurisdiction
        form_data: Submitted field values

    Returns:
        FormValidationResult listing every offending field
    """
    errors: List[FieldError] = []
    warnings: List[str] = []

    for template_input in effective.inputs:
        errors.extend(
            validate_input(
                template_input,
                form_data.get(template_input.key),
                effective.jurisdiction,
                warnings,
            )
        )

    if errors:
        logger.debug(
            f"Form validation failed for {effective.template_id}: "
            f"{[e.key for e in errors]}"
        )

    return FormValidationResult(is_valid=not errors, errors=errors, warnings=warnings)
