"""
Drafting client abstraction for AI-drafted sections.

The section generator depends only on the DraftingClient protocol so the
external service can be swapped or faked in tests. OpenAIDraftingClient is
the production implementation over the OpenAI chat completions API.
"""

import logging
from typing import Optional, Protocol

from openai import AsyncOpenAI, OpenAIError

from src.config import DEFAULT_DRAFTING_MODEL
from src.errors import DraftingUnavailableError


# Configure logging for the drafting module
logger = logging.getLogger(__name__)


class DraftingClient(Protocol):
    """Anything that can turn a drafting prompt into section text."""

    async def draft_section(
        self,
        prompt: str,
        *,
        system_prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        ...


class OpenAIDraftingClient:
    """
    Drafting client backed by the OpenAI chat completions API.

    Uses the async client so concurrent drafts never block the event loop.

    Example:
        client = OpenAIDraftingClient(api_key=settings.openai_api_key)
        text = await client.draft_section(prompt, system_prompt=system,
                                          max_tokens=2000, temperature=0.3)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_DRAFTING_MODEL,
        client: Optional[AsyncOpenAI] = None,
    ):
        """
        Initialize the drafting client.

        Args:
            api_key: OpenAI API key. Without a key (and no client) every
                     draft fails with DraftingUnavailableError.
            model: Chat model used for drafting
            client: Pre-built AsyncOpenAI client (tests)
        """
        self.api_key = api_key
        self.model = model
        self._client = client

    @property
    def is_configured(self) -> bool:
        return self._client is not None or bool(self.api_key)

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.api_key:
                raise DraftingUnavailableError("AI drafting service not configured")
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def draft_section(
        self,
        prompt: str,
        *,
        system_prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """
        Draft one section of text.

        Returns:
            Non-empty drafted text

        Raises:
            DraftingUnavailableError: Not configured, SDK error or empty response
        """
        client = self._get_client()

        try:
            response = await client.chat.completions.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": prompt},
                ],
            )
        except OpenAIError as e:
            logger.warning(f"Drafting request failed: {type(e).__name__}")
            raise DraftingUnavailableError(
                f"AI drafting request failed: {type(e).__name__}",
                details={"model": self.model},
            ) from e

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise DraftingUnavailableError(
                "AI drafting service returned no content",
                details={"model": self.model},
            )

        return content.strip()
