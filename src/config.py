"""
Environment configuration for the attorney document engine.

Values are read from the process environment after loading a local .env
file (for development). Secrets are never defaulted.
"""

import logging
import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


logger = logging.getLogger(__name__)


DEFAULT_DRAFTING_MODEL = "gpt-4o-2024-08-06"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got '{raw}'")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{raw}'")


@dataclass(frozen=True)
class Settings:
    """Runtime settings for sessions, templates and drafting."""
    openai_api_key: Optional[str] = None
    drafting_model: str = DEFAULT_DRAFTING_MODEL
    drafting_timeout_seconds: float = 60.0
    drafting_max_tokens: int = 2000
    drafting_temperature: float = 0.3
    drafting_retry_backoff_seconds: float = 1.0
    drafting_max_prompt_chars: int = 24000
    session_ttl_minutes: int = 30
    template_data_dir: Optional[Path] = None

    @property
    def session_ttl(self) -> timedelta:
        return timedelta(minutes=self.session_ttl_minutes)

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            dotenv: Whether to load a .env file first (local development)

        Returns:
            Settings populated from the environment

        Raises:
            ValueError: If a numeric variable cannot be parsed
        """
        if dotenv:
            load_dotenv()

        data_dir = os.getenv("TEMPLATE_DATA_DIR")
        settings = cls(
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            drafting_model=os.getenv("DRAFTING_MODEL", DEFAULT_DRAFTING_MODEL),
            drafting_timeout_seconds=_env_float("DRAFTING_TIMEOUT_SECONDS", 60.0),
            drafting_max_tokens=_env_int("DRAFTING_MAX_TOKENS", 2000),
            drafting_temperature=_env_float("DRAFTING_TEMPERATURE", 0.3),
            drafting_retry_backoff_seconds=_env_float("DRAFTING_RETRY_BACKOFF_SECONDS", 1.0),
            drafting_max_prompt_chars=_env_int("DRAFTING_MAX_PROMPT_CHARS", 24000),
            session_ttl_minutes=_env_int("ATTORNEY_SESSION_TTL_MINUTES", 30),
            template_data_dir=Path(data_dir) if data_dir else None,
        )

        if not settings.openai_api_key:
            logger.warning("OPENAI_API_KEY is not set; AI sections will fall back to placeholders")

        return settings
