"""Anthropic / Claude provider."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from ..errors import BackendUnavailableError
from .base import BaseProvider, ImageInput, ProviderResult

logger = logging.getLogger(__name__)

DEFAULT_CLAUDE_MODEL = "claude-3-5-haiku-20241022"

# The messages API has no response_format switch.
JSON_ONLY_SUFFIX = "\n\nRespond with a single JSON object only, no markdown or explanation."


class ClaudeProvider(BaseProvider):
    name = "claude"

    def __init__(self, api_key: str, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._api_key = api_key
        self._transport = transport

    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        image: ImageInput | None = None,
        json_output: bool = False,
        model: str = "",
        temperature: float = 0.0,
        max_tokens: int = 2048,
        timeout_seconds: float = 60.0,
    ) -> ProviderResult:
        model = model or DEFAULT_CLAUDE_MODEL
        t0 = time.monotonic()

        content: list[dict[str, Any]] = []
        if image is not None:
            content.append(
                {
                    "type": "image",
                    "source": {
                        "type": "base64",
                        "media_type": image.mime_type,
                        "data": image.base64_data,
                    },
                }
            )
        content.append({"type": "text", "text": prompt})

        system = system_prompt or ""
        if json_output:
            system = f"{system}{JSON_ONLY_SUFFIX}"

        payload: dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": content}],
        }
        if system:
            payload["system"] = system.strip()

        try:
            async with httpx.AsyncClient(timeout=timeout_seconds, transport=self._transport) as client:
                resp = await client.post(
                    "https://api.anthropic.com/v1/messages",
                    headers={
                        "x-api-key": self._api_key,
                        "anthropic-version": "2023-06-01",
                        "content-type": "application/json",
                    },
                    json=payload,
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as exc:
            logger.warning("Claude request failed: %s", exc)
            raise BackendUnavailableError(f"Claude request failed: {exc}") from exc
        except ValueError as exc:
            raise BackendUnavailableError("Claude returned a non-JSON HTTP body") from exc

        elapsed = (time.monotonic() - t0) * 1000
        texts = [
            block.get("text", "")
            for block in data.get("content") or []
            if block.get("type") == "text"
        ]
        text = "".join(texts) or None
        usage = data.get("usage") or {}

        return ProviderResult(
            raw_text=text,
            model=model,
            provider=self.name,
            prompt_tokens=usage.get("input_tokens", 0),
            completion_tokens=usage.get("output_tokens", 0),
            latency_ms=round(elapsed, 2),
        )
