"""Strict decoding of JSON-object replies from the model backend."""

from __future__ import annotations

import json
import logging
from typing import Any

from .errors import MalformedResponseError, NoContentError

logger = logging.getLogger(__name__)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-finite number {name} is not valid JSON")


def parse_json_object(text: str | None) -> dict[str, Any]:
    """Decode *text* as a single JSON object.

    Raises ``NoContentError`` for ``None`` or blank text and
    ``MalformedResponseError`` when the text is not valid JSON or decodes
    to something other than an object. ``NaN`` and ``Infinity`` are
    rejected as malformed. No fence stripping or substring search is
    attempted: the backend is asked for JSON-object output.
    """
    if text is None or not text.strip():
        raise NoContentError()

    try:
        parsed = json.loads(text, parse_constant=_reject_constant)
    except (json.JSONDecodeError, ValueError) as exc:
        logger.warning("Backend reply is not valid JSON: %.200s", text)
        raise MalformedResponseError(f"Model backend returned malformed JSON: {exc}") from exc

    if not isinstance(parsed, dict):
        raise MalformedResponseError(
            f"Model backend returned JSON {type(parsed).__name__}, expected an object"
        )
    return parsed
