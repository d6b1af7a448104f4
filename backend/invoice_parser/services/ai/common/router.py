"""AI Router — resolves provider + model with scope > global > mock chain."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from invoice_parser.core.config import Settings, get_settings

from .providers import BaseProvider, get_provider

logger = logging.getLogger(__name__)

SCOPES = ("classify", "extract")


@dataclass(frozen=True)
class ResolvedConfig:
    """Final resolved provider + model after the override chain."""

    provider: BaseProvider
    model: str
    max_tokens: int
    timeout_seconds: float


def resolve(scope: str, settings: Settings | None = None) -> ResolvedConfig:
    """Resolve provider + model for a given *scope*.

    Resolution chain (first non-empty wins):
      1. Scope-specific ENV: ``AI_CLASSIFY_PROVIDER`` / ``AI_EXTRACT_MODEL``.
      2. Global ENV: ``AI_PROVIDER`` / ``AI_MODEL``.
      3. ``"mock"`` with empty model.

    Model validation: if the resolved model is not in the allowlist for
    that provider, we fall back to the first allowed model.
    """
    settings = settings or get_settings()
    if scope not in SCOPES:
        raise ValueError(f"Unknown AI scope {scope!r}; valid: {SCOPES}")

    provider_name = (
        getattr(settings, f"ai_{scope}_provider", "") or settings.ai_provider or "mock"
    ).lower().strip()
    model = (getattr(settings, f"ai_{scope}_model", "") or settings.ai_model).strip()

    allowed_models = settings.ai_allowed_models.get(provider_name, [])
    if allowed_models and model and model not in allowed_models:
        logger.warning(
            "Model %r not in allowlist for %r — using first allowed: %r",
            model,
            provider_name,
            allowed_models[0],
        )
        model = allowed_models[0]

    if allowed_models and not model:
        model = allowed_models[0]

    return ResolvedConfig(
        provider=get_provider(provider_name, settings),
        model=model,
        max_tokens=settings.ai_max_tokens,
        timeout_seconds=settings.ai_timeout_seconds,
    )
