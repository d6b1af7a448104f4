"""Normalization of raw backend extraction replies into ``ExtractedRecord``.

Default table (applied only when the value is absent or falsy):

    invoiceNumber -> "UNKNOWN"      vendorName  -> "UNKNOWN"
    totalAmount   -> 0              currency    -> "USD"
    items         -> []             invoiceDate -> today (ISO date)
    subtotal      -> totalAmount

``normalize`` never raises. When invoiceNumber or vendorName had to be
defaulted a low-confidence warning is logged and the record is flagged.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import date
from typing import Any

from ..classification.contracts import Classification
from .contracts import ExtractedRecord, LineItem

logger = logging.getLogger(__name__)

UNKNOWN = "UNKNOWN"
DEFAULT_CURRENCY = "USD"

_BASE_KEYS = frozenset(
    {
        "invoiceNumber",
        "invoiceDate",
        "dueDate",
        "vendorName",
        "vendorAddress",
        "customerName",
        "customerAddress",
        "items",
        "subtotal",
        "taxAmount",
        "totalAmount",
        "currency",
        "paymentTerms",
    }
)
# Keys that the record owns and must never be overwritten from the reply.
_RESERVED_KEYS = frozenset({"classification", "extensions", "lowConfidence"})

_NUMBER_NOISE_RE = re.compile(r"[\s$€£¥]")
_DECIMAL_RE = re.compile(r"-?(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d+)?")


def _to_number(value: Any) -> float | None:
    """Coerce *value* to a finite float.

    Strings may carry currency symbols, whitespace and thousands separators
    (``"$1,234.50"``); anything else that is not a plain decimal gives ``None``.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = _NUMBER_NOISE_RE.sub("", value)
        if not _DECIMAL_RE.fullmatch(cleaned):
            return None
        number = float(cleaned.replace(",", ""))
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def _to_text(value: Any) -> str | None:
    if not value or isinstance(value, (dict, list)):
        return None
    return str(value)


def _normalize_items(value: Any) -> list[LineItem]:
    if not isinstance(value, list):
        return []
    items: list[LineItem] = []
    for raw in value:
        if not isinstance(raw, dict):
            logger.debug("Dropping non-object line item: %r", raw)
            continue
        items.append(
            LineItem(
                description=_to_text(raw.get("description")) or "",
                quantity=_to_number(raw.get("quantity")) or 0.0,
                unit_price=_to_number(raw.get("unitPrice")) or 0.0,
                amount=_to_number(raw.get("amount")) or 0.0,
            )
        )
    return items


def normalize(
    raw: dict[str, Any],
    classification: Classification | None = None,
    *,
    today: date | None = None,
) -> ExtractedRecord:
    if not isinstance(raw, dict):
        raw = {}

    invoice_number = _to_text(raw.get("invoiceNumber")) or UNKNOWN
    vendor_name = _to_text(raw.get("vendorName")) or UNKNOWN
    total_amount = _to_number(raw.get("totalAmount")) or 0.0
    currency = _to_text(raw.get("currency")) or DEFAULT_CURRENCY
    invoice_date = _to_text(raw.get("invoiceDate")) or (today or date.today()).isoformat()
    subtotal = _to_number(raw.get("subtotal")) or total_amount

    extensions = {
        key: value
        for key, value in raw.items()
        if key not in _BASE_KEYS and key not in _RESERVED_KEYS
    }

    low_confidence = invoice_number == UNKNOWN or vendor_name == UNKNOWN
    if low_confidence:
        logger.warning(
            "Low-confidence extraction: invoiceNumber=%s vendorName=%s",
            invoice_number,
            vendor_name,
        )

    return ExtractedRecord(
        invoice_number=invoice_number,
        invoice_date=invoice_date,
        due_date=_to_text(raw.get("dueDate")),
        vendor_name=vendor_name,
        vendor_address=_to_text(raw.get("vendorAddress")),
        customer_name=_to_text(raw.get("customerName")),
        customer_address=_to_text(raw.get("customerAddress")),
        items=_normalize_items(raw.get("items")),
        subtotal=subtotal,
        tax_amount=_to_number(raw.get("taxAmount")),
        total_amount=total_amount,
        currency=currency,
        payment_terms=_to_text(raw.get("paymentTerms")),
        classification=classification,
        extensions=extensions,
        low_confidence=low_confidence,
    )
