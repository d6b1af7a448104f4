"""Extraction contracts — the normalized invoice record and its line items."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..classification.contracts import Classification

# Tolerance used by ``LineItem.amount_mismatch``; mismatches are reported,
# never rejected.
AMOUNT_TOLERANCE = 0.01


class LineItem(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    description: str = ""
    quantity: float = 0.0
    unit_price: float = 0.0
    amount: float = 0.0

    @property
    def amount_mismatch(self) -> bool:
        return abs(self.quantity * self.unit_price - self.amount) > AMOUNT_TOLERANCE


class ExtractedRecord(BaseModel):
    """Normalized invoice-like record.

    Required fields are always populated (see ``normalizer.normalize``).
    ``extensions`` holds per-type extra fields such as ``shipToAddress``
    or ``paymentMethod`` that the backend returned beyond the base schema.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    invoice_number: str
    invoice_date: str
    due_date: str | None = None
    vendor_name: str
    vendor_address: str | None = None
    customer_name: str | None = None
    customer_address: str | None = None
    items: list[LineItem] = Field(default_factory=list)
    subtotal: float
    tax_amount: float | None = None
    total_amount: float
    currency: str
    payment_terms: str | None = None
    classification: Classification | None = None
    extensions: dict[str, Any] = Field(default_factory=dict)
    low_confidence: bool = False
