"""Remote reasoning client over an OpenAI-compatible chat endpoint."""
from __future__ import annotations

import asyncio
from typing import Any

from openai import AsyncOpenAI

from adapters.llm.base import ReasoningClient
from config import AppConfig
from constants import (
    RESOLVER_MAX_TOKENS,
    RESOLVER_TEMPERATURE,
    RESOLVER_TIMEOUT_S,
)
from errors import (
    RemoteErrorCategory,
    RemoteResolutionError,
    classify_remote_error,
)

GROQ_BASE_URL = "https://api.groq.com/openai/v1"


class RemoteReasoningClient(ReasoningClient):
    """
    Concrete non-streaming completion client.

    Design notes:
    - One client instance serves every session in the process.
    - Replies are short, so the whole reply is awaited in one request.
    - Every failure leaves this class as a RemoteResolutionError.
    """

    def __init__(
        self,
        *,
        client: Any,
        model: str,
        timeout_s: float = RESOLVER_TIMEOUT_S,
    ) -> None:
        """
        Args:
            client:
                Vendor client (AsyncOpenAI or a test double with the same shape).
            model:
                Model identifier string.
            timeout_s:
                Upper bound for the whole request.
        """
        self._client = client
        self._model = model
        self._timeout_s = timeout_s

    @property
    def model(self) -> str:
        return self._model

    async def complete(self, messages: list[dict[str, str]]) -> str:
        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=self._model,
                    messages=messages,
                    temperature=RESOLVER_TEMPERATURE,
                    max_tokens=RESOLVER_MAX_TOKENS,
                    stream=False,
                ),
                timeout=self._timeout_s,
            )
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # pylint: disable=broad-exception-caught
            raise classify_remote_error(exc) from exc

        reply = self._extract_text(response)
        if not reply.strip():
            raise RemoteResolutionError(RemoteErrorCategory.EMPTY_REPLY)
        return reply

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _extract_text(response: Any) -> str:
        """
        Extract reply text from vendor response (OpenAI format).
        """
        try:
            return response.choices[0].message.content or ""
        except (AttributeError, IndexError):
            return ""


def build_reasoning_client(config: AppConfig) -> RemoteReasoningClient | None:
    """
    Build a reasoning client for the provider selected by environment variables.

    Returns None when the provider has no API key; the resolver then
    answers from the local knowledge base.
    """
    api_key = config.remote_api_key
    if not api_key:
        return None

    if config.llm_provider.lower() == "groq":
        vendor = AsyncOpenAI(api_key=api_key, base_url=GROQ_BASE_URL)
    else:
        vendor = AsyncOpenAI(api_key=api_key)

    return RemoteReasoningClient(
        client=vendor,
        model=config.llm_model,
        timeout_s=config.resolver_timeout_s,
    )
