"""Abstract base for all AI providers."""

from __future__ import annotations

import abc
from dataclasses import dataclass


@dataclass(frozen=True)
class ImageInput:
    """Base64-encoded image bytes plus their mime type."""

    base64_data: str
    mime_type: str = "image/png"

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64_data}"


@dataclass(frozen=True)
class ProviderResult:
    """Immutable result returned by every provider.

    ``raw_text`` is ``None`` when the backend answered without content.
    """

    raw_text: str | None
    model: str
    provider: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    latency_ms: float = 0.0


class BaseProvider(abc.ABC):
    """Contract that every AI provider must implement."""

    name: str = "base"

    @abc.abstractmethod
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
        """Send *prompt* (and optionally *image*) and return a ``ProviderResult``.

        Transport and authentication failures are raised as
        ``BackendUnavailableError``.
        """
