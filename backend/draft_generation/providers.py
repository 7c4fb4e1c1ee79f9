"""
LLM backends that turn a prompt into raw response text.

Providers are chosen by name through ``get_provider``; each one owns its
credentials, model name and network timeout.
"""

import logging
import os
from typing import Dict, Optional, Type

import httpx
from openai import OpenAI

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = "openai"
DEFAULT_TIMEOUT = 60.0
DEFAULT_MAX_TOKENS = 4096
DEFAULT_TEMPERATURE = 0.7

ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"


class DraftGenerationError(RuntimeError):
    """Raised when a provider cannot produce a draft."""


class DraftProvider:
    name = "base"

    def generate(self, prompt: str) -> str:
        raise NotImplementedError


class OpenAIDraftProvider(DraftProvider):
    name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[OpenAI] = None,
    ) -> None:
        self.model = model or os.getenv("AI_MODEL_NAME", "gpt-4o")
        if client is None:
            api_key = api_key or os.getenv("OPENAI_API_KEY")
            if not api_key:
                raise DraftGenerationError("OPENAI_API_KEY environment variable is required")
            client = OpenAI(api_key=api_key, timeout=timeout)
        self.client = client

    def generate(self, prompt: str) -> str:
        try:
            result = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=DEFAULT_MAX_TOKENS,
                temperature=DEFAULT_TEMPERATURE,
            )
        except Exception as exc:
            raise DraftGenerationError(f"OpenAI draft generation failed: {exc}") from exc
        return (result.choices[0].message.content or "").strip()


class AnthropicDraftProvider(DraftProvider):
    """Calls the Anthropic Messages API directly over HTTP."""

    name = "anthropic"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        endpoint: str = ANTHROPIC_MESSAGES_URL,
    ) -> None:
        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not self.api_key:
            raise DraftGenerationError("ANTHROPIC_API_KEY environment variable is required")
        self.model = model or os.getenv("AI_MODEL_NAME", "claude-3-5-sonnet-20241022")
        self.timeout = timeout
        self.endpoint = endpoint

    def generate(self, prompt: str) -> str:
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }
        payload = {
            "model": self.model,
            "max_tokens": DEFAULT_MAX_TOKENS,
            "temperature": DEFAULT_TEMPERATURE,
            "messages": [{"role": "user", "content": prompt}],
        }

        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(self.endpoint, headers=headers, json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as exc:
            raise DraftGenerationError(f"Anthropic draft generation failed: {exc}") from exc

        try:
            return data["content"][0]["text"].strip()
        except (KeyError, IndexError, TypeError) as exc:
            logger.error("Unexpected Anthropic response shape: %s", data)
            raise DraftGenerationError(f"Anthropic response format error: {exc}") from exc


PROVIDERS: Dict[str, Type[DraftProvider]] = {
    OpenAIDraftProvider.name: OpenAIDraftProvider,
    AnthropicDraftProvider.name: AnthropicDraftProvider,
}


def get_provider(name: Optional[str] = None, **kwargs) -> DraftProvider:
    """Instantiate the provider registered under name (default: $AI_PROVIDER or openai)."""
    key = (name or os.getenv("AI_PROVIDER") or DEFAULT_PROVIDER).strip().lower()
    provider_cls = PROVIDERS.get(key)
    if provider_cls is None:
        raise ValueError(f"Unknown draft provider '{key}'. Available: {', '.join(sorted(PROVIDERS))}")
    return provider_cls(**kwargs)
