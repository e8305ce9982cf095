"""Unit tests for AI section drafting.

Tests prompt construction, retry with placeholder fallback, timeouts and
cancellation using fake drafting clients.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from openai import APIConnectionError

from src.errors import DraftingUnavailableError
from src.generation import AISectionGenerator, OpenAIDraftingClient, get_system_prompt
from src.templates import TemplateCategory, get_effective_template

from conftest import FakeDraftingClient, SlowDraftingClient, valid_form_data


@pytest.fixture
def effective(sample_template):
    return get_effective_template(sample_template, "CA")


@pytest.fixture
def grounds(effective):
    return effective.get_section("grounds")


class TestBuildPrompt:
    """Test prompt interpolation."""

    def test_prompt_uses_display_values_and_jurisdiction(self, section_generator, effective, grounds):
        """Test that enum labels and the jurisdiction reach the prompt."""
        prompt = section_generator.build_prompt(grounds, effective, valid_form_data(county="Alameda"))

        assert "continuing a Trial in CA" in prompt
        assert "Defense expert is unavailable until April." in prompt

    def test_sensitive_values_never_reach_prompt(self, section_generator, effective, grounds):
        """Test that party names are masked by their label."""
        prompt = section_generator.build_prompt(grounds, effective, valid_form_data(county="Alameda"))

        assert "Jane Roe" not in prompt
        assert "[Defendant Name]" in prompt


class TestDraft:
    """Test retry and fallback behavior."""

    async def test_successful_draft(self, effective, grounds):
        """Test that a first-attempt success is used as-is."""
        client = FakeDraftingClient(outcomes=["Good cause exists."])
        generator = AISectionGenerator(client, retry_backoff_seconds=0)

        draft = await generator.draft(grounds, effective, valid_form_data())

        assert draft.content == "Good cause exists."
        assert draft.is_placeholder is False
        assert draft.attempts == 1
        assert client.calls[0]["temperature"] == 0.3
        assert "Respondent" not in client.calls[0]["system_prompt"]

    async def test_retry_once_then_succeed(self, effective, grounds):
        """Test that one failure is retried."""
        client = FakeDraftingClient(outcomes=[DraftingUnavailableError("down"), "Second try."])
        generator = AISectionGenerator(client, retry_backoff_seconds=0)

        draft = await generator.draft(grounds, effective, valid_form_data())

        assert draft.content == "Second try."
        assert draft.attempts == 2

    async def test_two_failures_fall_back_to_placeholder(self, effective, grounds):
        """Test the placeholder after the retry also fails."""
        client = FakeDraftingClient(outcomes=[
            DraftingUnavailableError("down"),
            DraftingUnavailableError("still down"),
            "never used",
        ])
        generator = AISectionGenerator(client, retry_backoff_seconds=0)

        draft = await generator.draft(grounds, effective, valid_form_data())

        assert draft.content == "[Attorney to complete: Grounds for Continuance]"
        assert draft.is_placeholder is True
        assert len(client.calls) == 2

    async def test_unexpected_client_errors_fall_back_to_placeholder(self, effective, grounds):
        """Test that errors other than DraftingUnavailable are retried and absorbed."""
        client = FakeDraftingClient(outcomes=[ConnectionError("reset"), OSError("broken pipe")])
        generator = AISectionGenerator(client, retry_backoff_seconds=0)

        draft = await generator.draft(grounds, effective, valid_form_data())

        assert draft.is_placeholder is True
        assert draft.attempts == 2
        assert len(client.calls) == 2

    async def test_timeouts_fall_back_to_placeholder(self, effective, grounds):
        """Test that slow responses count as failures."""
        client = SlowDraftingClient(delay=5)
        generator = AISectionGenerator(client, timeout_seconds=0.01, retry_backoff_seconds=0)

        draft = await generator.draft(grounds, effective, valid_form_data())

        assert draft.is_placeholder is True
        assert client.calls == 2

    async def test_oversized_prompt_is_not_sent(self, effective, grounds):
        """Test that prompts over the limit fall back without a call."""
        client = FakeDraftingClient()
        generator = AISectionGenerator(client, max_prompt_chars=20, retry_backoff_seconds=0)

        draft = await generator.draft(grounds, effective, valid_form_data())

        assert draft.is_placeholder is True
        assert client.calls == []

    async def test_cancellation_propagates(self, effective, grounds):
        """Test that cancelling the caller cancels drafting."""
        generator = AISectionGenerator(SlowDraftingClient(delay=5), timeout_seconds=10, retry_backoff_seconds=0)

        task = asyncio.create_task(generator.draft_all(effective, valid_form_data()))
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

    async def test_draft_all_keys_by_section(self, section_generator, effective):
        """Test that only ai-drafted sections are drafted."""
        drafts = await section_generator.draft_all(effective, valid_form_data())

        assert list(drafts) == ["grounds"]


class TestSystemPrompt:
    """Test category system prompts."""

    def test_immigration_terminology(self):
        prompt = get_system_prompt(TemplateCategory.IMMIGRATION)

        assert "Respondent" in prompt
        assert "DHS" in prompt

    def test_court_rules_included(self):
        prompt = get_system_prompt(TemplateCategory.CRIMINAL, "Line numbers required.")

        assert "Line numbers required." in prompt


class TestOpenAIDraftingClient:
    """Test the OpenAI-backed client with a mocked SDK."""

    def make_sdk(self, content=None, error=None):
        sdk = MagicMock()
        if error is not None:
            sdk.chat.completions.create = AsyncMock(side_effect=error)
        else:
            choice = MagicMock()
            choice.message.content = content
            sdk.chat.completions.create = AsyncMock(return_value=MagicMock(choices=[choice]))
        return sdk

    async def test_returns_stripped_content(self):
        """Test a successful completion."""
        sdk = self.make_sdk(content="  Drafted text.  ")
        client = OpenAIDraftingClient(client=sdk, model="gpt-test")

        text = await client.draft_section("prompt", system_prompt="system", max_tokens=100, temperature=0.3)

        assert text == "Drafted text."
        kwargs = sdk.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-test"
        assert kwargs["messages"][0] == {"role": "system", "content": "system"}

    async def test_empty_content_is_unavailable(self):
        """Test that an empty response is a drafting failure."""
        client = OpenAIDraftingClient(client=self.make_sdk(content=""))

        with pytest.raises(DraftingUnavailableError):
            await client.draft_section("prompt", system_prompt="s", max_tokens=10, temperature=0.3)

    async def test_sdk_error_is_unavailable(self):
        """Test that SDK errors are mapped."""
        error = APIConnectionError(request=MagicMock())
        client = OpenAIDraftingClient(client=self.make_sdk(error=error))

        with pytest.raises(DraftingUnavailableError):
            await client.draft_section("prompt", system_prompt="s", max_tokens=10, temperature=0.3)

    async def test_missing_api_key_is_unavailable(self):
        """Test that an unconfigured client fails every draft."""
        client = OpenAIDraftingClient(api_key=None)

        assert client.is_configured is False
        with pytest.raises(DraftingUnavailableError):
            await client.draft_section("prompt", system_prompt="s", max_tokens=10, temperature=0.3)
