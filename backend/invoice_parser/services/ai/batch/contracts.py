"""Batch contracts — per-document state and outcome."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from ..classification.contracts import DocumentClassification
from ..extraction.contracts import ExtractedRecord


class DocumentState(str, Enum):
    PENDING = "PENDING"
    CLASSIFYING = "CLASSIFYING"
    EXTRACTING = "EXTRACTING"
    SKIPPED_EXTRACTION = "SKIPPED_EXTRACTION"
    DONE = "DONE"
    FAILED = "FAILED"


class BatchResult(BaseModel):
    """Outcome of one document in a batch: success data or an error, never both."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    identity: str
    status: DocumentState
    state_history: list[DocumentState] = Field(default_factory=list)
    classification: DocumentClassification | None = None
    record: ExtractedRecord | None = None
    error: str | None = None

    @model_validator(mode="after")
    def _one_outcome(self) -> "BatchResult":
        if self.status is DocumentState.FAILED:
            if not self.error or self.classification is not None or self.record is not None:
                raise ValueError("A failed result carries an error and no data")
        elif self.status is DocumentState.DONE:
            if self.error is not None or self.classification is None:
                raise ValueError("A completed result carries a classification and no error")
        else:
            raise ValueError(f"Batch results are terminal, got {self.status.value}")
        return self

    @property
    def succeeded(self) -> bool:
        return self.status is DocumentState.DONE
