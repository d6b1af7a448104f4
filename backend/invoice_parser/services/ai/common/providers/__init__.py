"""Provider factory — builds a fresh provider instance per call."""

from __future__ import annotations

import logging

from invoice_parser.core.config import Settings, get_settings

from ..errors import BackendUnavailableError
from .base import BaseProvider, ImageInput, ProviderResult
from .mock import MockProvider

logger = logging.getLogger(__name__)

__all__ = ["get_provider", "BaseProvider", "ImageInput", "ProviderResult", "MockProvider"]


def get_provider(provider_name: str, settings: Settings | None = None) -> BaseProvider:
    """Return a new provider instance for *provider_name*.

    Unlike a silent mock fallback, a real provider that is not allowlisted
    or has no API key raises ``BackendUnavailableError`` so that a
    misconfigured deployment surfaces instead of returning fake data.
    """
    settings = settings or get_settings()
    name = provider_name.lower().strip()

    if name not in settings.ai_allowed_providers:
        raise BackendUnavailableError(f"Provider {name!r} is not in AI_ALLOWED_PROVIDERS")

    if name == "mock":
        return MockProvider()

    if name == "openai":
        if not settings.openai_api_key:
            raise BackendUnavailableError(
                "OpenAI API key is required. Set OPENAI_API_KEY environment variable."
            )
        from .openai import OpenAIProvider

        return OpenAIProvider(api_key=settings.openai_api_key, base_url=settings.openai_base_url)

    if name == "claude":
        if not settings.anthropic_api_key:
            raise BackendUnavailableError(
                "Anthropic API key is required. Set ANTHROPIC_API_KEY environment variable."
            )
        from .claude import ClaudeProvider

        return ClaudeProvider(api_key=settings.anthropic_api_key)

    logger.warning("Unknown provider %r", name)
    raise BackendUnavailableError(f"Unknown provider {name!r}")
