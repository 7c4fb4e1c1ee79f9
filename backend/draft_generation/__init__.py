"""LLM-backed drafting of end-to-end tests for discovered features."""

from .generator import TestDraftGenerator  # noqa: F401
from .providers import (  # noqa: F401
    PROVIDERS,
    AnthropicDraftProvider,
    DraftGenerationError,
    DraftProvider,
    OpenAIDraftProvider,
    get_provider,
)
