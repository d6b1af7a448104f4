"""AI audit — one structured log line per backend round trip."""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any

from invoice_parser.core.config import get_settings

from .providers.base import ProviderResult

logger = logging.getLogger(__name__)

SCOPE_ACTIONS: dict[str, str] = {
    "classify": "AI_INVOICE_CLASSIFIED",
    "detect": "AI_DOCUMENT_TYPE_DETECTED",
    "extract": "AI_INVOICE_EXTRACTED",
}


def _sha256(text: str | None) -> str:
    return hashlib.sha256((text or "").encode()).hexdigest()


def log_ai_run(
    *,
    scope: str,
    provider_result: ProviderResult,
    prompt_text: str,
    parsed_output: dict[str, Any] | None,
    extra_meta: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Log an audit entry for one backend call and return its metadata.

    Prompt and response are always hashed; raw text is only included when
    ``AI_DEBUG_STORE_RAW=true`` since documents may carry personal data.
    """
    settings = get_settings()

    metadata: dict[str, Any] = {
        "action": SCOPE_ACTIONS.get(scope, "AI_RUN"),
        "scope": scope,
        "provider": provider_result.provider,
        "model": provider_result.model,
        "prompt_tokens": provider_result.prompt_tokens,
        "completion_tokens": provider_result.completion_tokens,
        "latency_ms": provider_result.latency_ms,
        "prompt_hash": _sha256(prompt_text),
        "response_hash": _sha256(provider_result.raw_text),
        "parsed": parsed_output is not None,
    }

    if settings.ai_debug_store_raw:
        metadata["prompt_raw"] = prompt_text
        metadata["response_raw"] = provider_result.raw_text

    if extra_meta:
        metadata.update(extra_meta)

    logger.info("%s %s", metadata["action"], json.dumps(metadata, default=str, sort_keys=True))
    return metadata
