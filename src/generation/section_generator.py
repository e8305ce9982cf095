"""
AI section drafting with bounded retry and placeholder fallback.

Each ai-drafted section gets one drafting call with a timeout. A failed or
timed-out call is retried once after a backoff; if that also fails the
section content becomes a visible placeholder for the attorney to fill in.
Drafting failures never fail the document.

Only non-sensitive form values reach the drafting service. Sensitive
inputs (names, identifiers) are replaced by their label in the prompt.
"""

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.generation.drafting import DraftingClient
from src.generation.prompts import get_system_prompt
from src.templates.rendering import display_value, interpolate
from src.templates.schemas import EffectiveTemplate, TemplateSection
from src.templates.validator import is_blank


# Configure logging for the section generator module
logger = logging.getLogger(__name__)


DRAFTING_ATTEMPTS = 2
NOT_PROVIDED = "not provided"


def placeholder_for(section: TemplateSection) -> str:
    """Fallback text shown in place of a section that could not be drafted."""
    return f"[Attorney to complete: {section.name}]"


class SectionDraft(BaseModel):
    """Drafted (or placeholder) content for one ai-drafted section."""
    model_config = ConfigDict(frozen=True)

    section_id: str
    content: str = Field(
        description="Drafted text, or the placeholder when drafting failed"
    )
    is_placeholder: bool = Field(
        default=False,
        description="True when the content is the attorney-to-complete placeholder"
    )
    attempts: int = Field(
        default=0,
        description="Drafting calls made for this section"
    )


class AISectionGenerator:
    """
    Drafts ai-drafted sections through a DraftingClient.

    Example:
        generator = AISectionGenerator(OpenAIDraftingClient(api_key=key))
        drafts = await generator.draft_all(effective, form_data)
    """

    def __init__(
        self,
        client: DraftingClient,
        timeout_seconds: float = 60.0,
        max_tokens: int = 2000,
        temperature: float = 0.3,
        retry_backoff_seconds: float = 1.0,
        max_prompt_chars: int = 24000,
    ):
        """
        Initialize the section generator.

        Args:
            client: Drafting client used for every section
            timeout_seconds: Limit for a single drafting call
            max_tokens: Response token limit passed to the client
            temperature: Sampling temperature passed to the client
            retry_backoff_seconds: Base delay before the retry (0 disables waiting)
            max_prompt_chars: Prompts longer than this are not sent
        """
        self.client = client
        self.timeout_seconds = timeout_seconds
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.retry_backoff_seconds = retry_backoff_seconds
        self.max_prompt_chars = max_prompt_chars

    def prompt_values(
        self,
        effective: EffectiveTemplate,
        form_data: Mapping[str, Any],
    ) -> Dict[str, str]:
        """Values a drafting prompt may reference; sensitive inputs are masked."""
        values: Dict[str, str] = {"jurisdiction": effective.jurisdiction or NOT_PROVIDED}
        for template_input in effective.inputs:
            if template_input.sensitive:
                values[template_input.key] = f"[{template_input.label}]"
                continue
            value = form_data.get(template_input.key)
            values[template_input.key] = (
                NOT_PROVIDED if is_blank(value) else display_value(template_input, value)
            )
        return values

    def build_prompt(
        self,
        section: TemplateSection,
        effective: EffectiveTemplate,
        form_data: Mapping[str, Any],
    ) -> str:
        return interpolate(section.prompt_template or "", self.prompt_values(effective, form_data))

    async def _call_client(self, prompt: str, system_prompt: str) -> str:
        return await asyncio.wait_for(
            self.client.draft_section(
                prompt,
                system_prompt=system_prompt,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            ),
            timeout=self.timeout_seconds,
        )

    async def draft(
        self,
        section: TemplateSection,
        effective: EffectiveTemplate,
        form_data: Mapping[str, Any],
    ) -> SectionDraft:
        """
        Draft one section, falling back to a placeholder after two failures.

        Any exception raised by the client counts as a failed attempt.
        Cancellation of the caller propagates; it is never turned into a
        placeholder.
        """
        prompt = self.build_prompt(section, effective, form_data)

        if len(prompt) > self.max_prompt_chars:
            logger.warning(
                f"Drafting prompt for {effective.template_id}/{section.section_id} is "
                f"{len(prompt)} chars (limit {self.max_prompt_chars}); using placeholder"
            )
            return SectionDraft(
                section_id=section.section_id,
                content=placeholder_for(section),
                is_placeholder=True,
            )

        system_prompt = get_system_prompt(effective.category, effective.court_rules)
        attempts = 0

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(DRAFTING_ATTEMPTS),
                wait=wait_exponential(multiplier=self.retry_backoff_seconds, max=30),
                retry=retry_if_exception_type(Exception),
            ):
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    content = await self._call_client(prompt, system_prompt)
        except RetryError as e:
            cause = e.last_attempt.exception()
            logger.warning(
                f"Drafting failed for {effective.template_id}/{section.section_id} "
                f"after {attempts} attempts ({type(cause).__name__}); using placeholder"
            )
            return SectionDraft(
                section_id=section.section_id,
                content=placeholder_for(section),
                is_placeholder=True,
                attempts=attempts,
            )

        logger.debug(f"Drafted {effective.template_id}/{section.section_id} in {attempts} attempt(s)")
        return SectionDraft(
            section_id=section.section_id,
            content=content,
            attempts=attempts,
        )

    async def draft_all(
        self,
        effective: EffectiveTemplate,
        form_data: Mapping[str, Any],
        sections: Optional[Sequence[TemplateSection]] = None,
    ) -> Dict[str, SectionDraft]:
        """
        Draft all ai-drafted sections concurrently.

        Args:
            effective: Effective template being generated
            form_data: Validated form values
            sections: Sections to draft (defaults to the template's ai-drafted sections)

        Returns:
            Mapping of section id to SectionDraft
        """
        if sections is None:
            sections = effective.ai_sections()
        if not sections:
            return {}

        drafts = await asyncio.gather(
            *(self.draft(section, effective, form_data) for section in sections)
        )
        return {draft.section_id: draft for draft in drafts}
