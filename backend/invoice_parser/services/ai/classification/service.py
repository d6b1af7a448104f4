"""Classification services: invoice taxonomy and document-type detection.

Both classifiers send a closed-taxonomy instruction to the backend, decode
the reply with the same coercion policy and never raise: classification is
a hint for extraction, not a required input.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, TypeVar

from invoice_parser.services.documents import DocumentContent

from ..common.audit import log_ai_run
from ..common.json_tools import parse_json_object
from ..common.providers.base import BaseProvider
from .contracts import Classification, DocumentClassification, DocumentType, InvoiceType

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

MAX_CLASSIFY_TEXT_CHARS = 8000

CLASSIFY_SYSTEM_PROMPT = (
    "You are a financial document classifier. Classify the document into exactly "
    "one of these types:\n"
    "- standard: a regular invoice requesting payment for goods or services\n"
    "- purchase_order: a buyer's order to a supplier, usually with a ship-to address\n"
    "- receipt: proof of a completed payment, usually with a payment method\n"
    "- proforma: a preliminary quote-like invoice, not a tax invoice\n"
    "- credit_note: a credit issued against an earlier invoice\n"
    "- unknown: none of the above\n\n"
    "Return ONLY a JSON object with keys: type (one of the labels above), "
    "confidence (0.0-1.0), possibleTypes (other plausible labels, most likely first). "
    'Example: {"type": "receipt", "confidence": 0.92, "possibleTypes": ["standard"]}'
)

DETECT_SYSTEM_PROMPT = (
    "You are a shipping document classifier. Classify the document into exactly "
    "one of these types:\n"
    "- BILL_OF_LADING: a carrier's receipt and contract of carriage for shipped goods\n"
    "- DELIVERY_RECEIPT: a consignee's signed confirmation that goods were delivered\n"
    "- OTHER: any other document\n\n"
    "Return ONLY a JSON object with keys: documentType, confidence (0.0-1.0), "
    "metadata (object with documentId and dateIssued when visible, plus any "
    "other identifying fields such as shipper, consignee or carrier). "
    'Example: {"documentType": "BILL_OF_LADING", "confidence": 0.9, '
    '"metadata": {"documentId": "BOL-1029", "dateIssued": "2024-03-01"}}'
)


def coerce_label(value: Any, enum_cls: type[E], fallback: E) -> tuple[E, bool]:
    """Map *value* onto *enum_cls*; return ``(member, recognised)``.

    Matching is by enum value or member name, case-insensitive.
    """
    if isinstance(value, str):
        key = value.strip()
        for member in enum_cls:
            if key.lower() in (str(member.value).lower(), member.name.lower()):
                return member, True
    return fallback, False


def coerce_confidence(value: Any) -> float:
    """Return *value* as a float in [0, 1], or 0.0 if it is not one."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    value = float(value)
    if not 0.0 <= value <= 1.0:
        return 0.0
    return value


def _coerce_metadata(value: Any) -> dict[str, Any] | None:
    if isinstance(value, dict):
        return {str(k): v for k, v in value.items()}
    return None


def decode_classification(parsed: dict[str, Any]) -> Classification:
    invoice_type, recognised = coerce_label(parsed.get("type"), InvoiceType, InvoiceType.UNKNOWN)
    confidence = coerce_confidence(parsed.get("confidence")) if recognised else 0.0

    possible: list[InvoiceType] = []
    raw_possible = parsed.get("possibleTypes")
    if isinstance(raw_possible, list):
        for item in raw_possible:
            member, ok = coerce_label(item, InvoiceType, InvoiceType.UNKNOWN)
            if ok and member is not invoice_type and member not in possible:
                possible.append(member)

    return Classification(
        type=invoice_type,
        confidence=confidence,
        possible_types=possible or None,
        metadata=_coerce_metadata(parsed.get("metadata")),
    )


def decode_document_classification(parsed: dict[str, Any]) -> DocumentClassification:
    raw_type = parsed.get("documentType", parsed.get("type"))
    document_type, recognised = coerce_label(raw_type, DocumentType, DocumentType.OTHER)
    confidence = coerce_confidence(parsed.get("confidence")) if recognised else 0.0
    return DocumentClassification(
        document_type=document_type,
        confidence=confidence,
        metadata=_coerce_metadata(parsed.get("metadata")),
    )


class _TaxonomyClassifier:
    scope = "classify"
    system_prompt = ""

    def __init__(
        self,
        provider: BaseProvider,
        *,
        model: str = "",
        max_tokens: int = 512,
        timeout_seconds: float = 60.0,
    ) -> None:
        self.provider = provider
        self.model = model
        self.max_tokens = max_tokens
        self.timeout_seconds = timeout_seconds

    async def _ask(self, content: DocumentContent) -> dict[str, Any] | None:
        """Return the decoded JSON reply, or ``None`` on any failure."""
        if content.is_image:
            prompt = "Classify the attached document image."
        else:
            prompt = (content.text or "")[:MAX_CLASSIFY_TEXT_CHARS]

        try:
            if not prompt.strip():
                raise ValueError("Document content is empty")
            result = await self.provider.generate(
                prompt,
                system_prompt=self.system_prompt,
                image=content.as_image(),
                json_output=True,
                model=self.model,
                temperature=0.0,
                max_tokens=self.max_tokens,
                timeout_seconds=self.timeout_seconds,
            )
            parsed = parse_json_object(result.raw_text)
            log_ai_run(
                scope=self.scope,
                provider_result=result,
                prompt_text=prompt,
                parsed_output=parsed,
            )
        except Exception as exc:
            logger.warning("%s degraded to fallback: %s", type(self).__name__, exc)
            return None
        return parsed


class InvoiceClassifier(_TaxonomyClassifier):
    """Classify content into the closed invoice taxonomy."""

    scope = "classify"
    system_prompt = CLASSIFY_SYSTEM_PROMPT

    async def classify(self, content: DocumentContent) -> Classification:
        parsed = await self._ask(content)
        if parsed is None:
            return Classification.unknown()
        classification = decode_classification(parsed)
        logger.debug(
            "Classified as %s (confidence=%.2f)",
            classification.type.value,
            classification.confidence,
        )
        return classification


class DocumentTypeDetector(_TaxonomyClassifier):
    """Detect the shipping-document family (bill of lading, delivery receipt)."""

    scope = "detect"
    system_prompt = DETECT_SYSTEM_PROMPT

    async def detect(self, content: DocumentContent) -> DocumentClassification:
        parsed = await self._ask(content)
        if parsed is None:
            return DocumentClassification.other()
        return decode_document_classification(parsed)
