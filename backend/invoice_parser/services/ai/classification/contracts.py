"""Classification contracts — closed invoice taxonomy and the document-type family."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Callers treat anything below this as "uncertain" and may disambiguate
# using ``possible_types``. Not enforced by the classifier.
UNCERTAIN_CONFIDENCE_THRESHOLD = 0.7


class InvoiceType(str, Enum):
    STANDARD = "standard"
    PURCHASE_ORDER = "purchase_order"
    RECEIPT = "receipt"
    PROFORMA = "proforma"
    CREDIT_NOTE = "credit_note"
    UNKNOWN = "unknown"


class DocumentType(str, Enum):
    """Shipping-document family detected by the batch orchestrator."""

    BILL_OF_LADING = "BILL_OF_LADING"
    DELIVERY_RECEIPT = "DELIVERY_RECEIPT"
    OTHER = "OTHER"


def _confidence_range(v: float) -> float:
    if not 0.0 <= v <= 1.0:
        msg = f"Confidence must be 0.0–1.0, got {v}"
        raise ValueError(msg)
    return v


class Classification(BaseModel):
    """Decided invoice type plus confidence and runner-up types.

    ``metadata`` is an optional string-keyed extension map; per-type
    structured fields belong in the extraction schema registry instead.
    """

    model_config = ConfigDict(populate_by_name=True)

    type: InvoiceType
    confidence: float
    possible_types: list[InvoiceType] | None = Field(default=None, alias="possibleTypes")
    metadata: dict[str, Any] | None = None

    @field_validator("confidence")
    @classmethod
    def confidence_range(cls, v: float) -> float:
        return _confidence_range(v)

    @property
    def is_uncertain(self) -> bool:
        return self.confidence < UNCERTAIN_CONFIDENCE_THRESHOLD

    @classmethod
    def unknown(cls) -> "Classification":
        return cls(type=InvoiceType.UNKNOWN, confidence=0.0)


class DocumentClassification(BaseModel):
    """Document-type detection result (bill of lading vs delivery receipt)."""

    model_config = ConfigDict(populate_by_name=True)

    document_type: DocumentType = Field(alias="documentType")
    confidence: float
    metadata: dict[str, Any] | None = None

    @field_validator("confidence")
    @classmethod
    def confidence_range(cls, v: float) -> float:
        return _confidence_range(v)

    @classmethod
    def other(cls) -> "DocumentClassification":
        return cls(document_type=DocumentType.OTHER, confidence=0.0)
