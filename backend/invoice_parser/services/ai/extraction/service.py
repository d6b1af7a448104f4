"""Invoice extraction service — one backend round trip, strict JSON decode."""

from __future__ import annotations

import logging
from typing import Any

from invoice_parser.services.documents import DocumentContent

from ..common.audit import log_ai_run
from ..common.json_tools import parse_json_object
from ..common.providers.base import BaseProvider

logger = logging.getLogger(__name__)

IMAGE_USER_PROMPT = (
    "Parse the attached document image and extract all relevant details. "
    "Include every key field that is present in the image."
)


class InvoiceExtractor:
    """Send an extraction instruction plus document content to the backend.

    Returns the decoded JSON object without shape validation. Raises
    ``NoContentError`` for empty replies and ``MalformedResponseError`` for
    replies that are not a JSON object; provider errors pass through.
    """

    def __init__(
        self,
        provider: BaseProvider,
        *,
        model: str = "",
        max_tokens: int = 2048,
        timeout_seconds: float = 60.0,
    ) -> None:
        self.provider = provider
        self.model = model
        self.max_tokens = max_tokens
        self.timeout_seconds = timeout_seconds

    async def extract(self, content: DocumentContent, instruction: str) -> dict[str, Any]:
        prompt = IMAGE_USER_PROMPT if content.is_image else (content.text or "")

        result = await self.provider.generate(
            prompt,
            system_prompt=instruction,
            image=content.as_image(),
            json_output=True,
            model=self.model,
            temperature=0.0,
            max_tokens=self.max_tokens,
            timeout_seconds=self.timeout_seconds,
        )

        parsed: dict[str, Any] | None = None
        try:
            parsed = parse_json_object(result.raw_text)
        finally:
            log_ai_run(
                scope="extract",
                provider_result=result,
                prompt_text=f"{instruction}\n\n{prompt}",
                parsed_output=parsed,
            )
        return parsed
