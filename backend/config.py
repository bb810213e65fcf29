"""
Application configuration.

Responsibilities:
- Read environment variables
- Provide a typed, immutable config object

Non-responsibilities:
- No orchestration logic
- No behavior constants (see constants.py)
- No runtime mutation
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from constants import (
    CAPTURE_PHRASE_LIMIT_S,
    RESOLVER_TIMEOUT_S,
    SPEECH_LANGUAGE_DEFAULT,
)


def _float_env(key: str, default: float) -> float:
    value = os.environ.get(key, "").split("#")[0].strip()
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _optional_int_env(key: str) -> int | None:
    value = os.environ.get(key, "").strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable application configuration.

    Constructed once at process startup and passed down to the
    app factory and session gateway.
    """

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    env: str = "dev"
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Remote reasoning
    # ------------------------------------------------------------------

    llm_provider: str = "groq"
    llm_model: str = "llama-3.3-70b-versatile"
    openai_api_key: str | None = None
    groq_api_key: str | None = None
    resolver_timeout_s: float = RESOLVER_TIMEOUT_S

    # ------------------------------------------------------------------
    # Speech
    # ------------------------------------------------------------------

    speech_language: str = SPEECH_LANGUAGE_DEFAULT
    capture_phrase_limit_s: float = CAPTURE_PHRASE_LIMIT_S
    capture_device_index: int | None = None

    @property
    def remote_api_key(self) -> str | None:
        """API key for the selected provider, if any."""
        if self.llm_provider.lower() == "groq":
            return self.groq_api_key
        return self.openai_api_key

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> AppConfig:
        """Load configuration from environment variables."""
        provider = os.environ.get("LLM_PROVIDER", "groq")
        default_model = (
            "llama-3.3-70b-versatile" if provider.lower() == "groq" else "gpt-4o-mini"
        )
        return AppConfig(
            env=os.environ.get("ENV", "dev"),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),

            llm_provider=provider,
            llm_model=os.environ.get("LLM_MODEL", default_model),
            openai_api_key=os.environ.get("OPENAI_API_KEY"),
            groq_api_key=os.environ.get("GROQ_API_KEY"),
            resolver_timeout_s=_float_env("RESOLVER_TIMEOUT_S", RESOLVER_TIMEOUT_S),

            speech_language=os.environ.get("SPEECH_LANGUAGE", SPEECH_LANGUAGE_DEFAULT),
            capture_phrase_limit_s=_float_env(
                "CAPTURE_PHRASE_LIMIT_S", CAPTURE_PHRASE_LIMIT_S
            ),
            capture_device_index=_optional_int_env("CAPTURE_DEVICE_INDEX"),
        )
