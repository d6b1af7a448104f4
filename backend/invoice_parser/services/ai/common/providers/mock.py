"""Mock provider — scripted, deterministic responses for tests and local runs."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from .base import BaseProvider, ImageInput, ProviderResult

DEFAULT_MOCK_REPLY = '{"type": "unknown", "confidence": 0.0}'

Reply = str | None | BaseException
ReplyFactory = Callable[[str, str | None], Reply]


@dataclass(frozen=True)
class MockCall:
    prompt: str
    system_prompt: str | None
    image: ImageInput | None
    json_output: bool
    temperature: float
    model: str


class MockProvider(BaseProvider):
    """Replays *replies* in order, then keeps returning *default*.

    A reply may be a string, ``None`` (no content) or an exception instance,
    which is raised instead of returning. *replies* may also be a callable
    ``(prompt, system_prompt) -> reply`` for content-dependent answers.
    Every call is recorded in ``calls``.
    """

    name = "mock"

    def __init__(
        self,
        replies: Iterable[Reply] | ReplyFactory | None = None,
        *,
        default: Reply = DEFAULT_MOCK_REPLY,
    ) -> None:
        self._factory: ReplyFactory | None = None
        self._queue: list[Reply] = []
        if callable(replies):
            self._factory = replies
        elif replies is not None:
            self._queue = list(replies)
        self._default = default
        self.calls: list[MockCall] = []

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
        t0 = time.monotonic()
        self.calls.append(
            MockCall(
                prompt=prompt,
                system_prompt=system_prompt,
                image=image,
                json_output=json_output,
                temperature=temperature,
                model=model,
            )
        )

        if self._factory is not None:
            reply = self._factory(prompt, system_prompt)
        elif self._queue:
            reply = self._queue.pop(0)
        else:
            reply = self._default

        if isinstance(reply, BaseException):
            raise reply

        elapsed = (time.monotonic() - t0) * 1000
        return ProviderResult(
            raw_text=reply,
            model=model or "mock-v1",
            provider=self.name,
            prompt_tokens=len(prompt.split()),
            completion_tokens=len(reply.split()) if reply else 0,
            latency_ms=round(elapsed, 2),
        )
