"""Batch orchestration with per-document failure isolation.

Per document: PENDING -> CLASSIFYING -> (EXTRACTING | SKIPPED_EXTRACTION)
-> DONE, or FAILED from any state. Failures are recorded on that one
result and never raised past ``process_all``; nothing is retried.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path

from invoice_parser.core.config import Settings, get_settings
from invoice_parser.services.documents import Document, load_document

from ..classification.contracts import DocumentClassification
from ..classification.service import DocumentTypeDetector
from ..extraction.contracts import ExtractedRecord
from ..pipeline import InvoicePipeline, build_detector, build_pipeline
from .contracts import BatchResult, DocumentState

logger = logging.getLogger(__name__)

BatchInput = Document | str | Path


def _identity_of(item: BatchInput) -> str:
    if isinstance(item, Document):
        return item.identity
    return str(item)


def _describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class BatchOrchestrator:
    def __init__(
        self,
        detector: DocumentTypeDetector,
        pipeline: InvoicePipeline | None = None,
        *,
        concurrency: int = 4,
        extract: bool = True,
        skip_classification: bool = False,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        if extract and pipeline is None:
            raise ValueError("extract=True requires an InvoicePipeline")
        self.detector = detector
        self.pipeline = pipeline
        self.concurrency = concurrency
        self.extract = extract
        self.skip_classification = skip_classification

    async def process_all(self, documents: Sequence[BatchInput]) -> list[BatchResult]:
        """Process every document; one result per input, in input order."""
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _bounded(item: BatchInput) -> BatchResult:
            async with semaphore:
                return await self.process_one(item)

        results = await asyncio.gather(*(_bounded(item) for item in documents))
        failed = sum(1 for r in results if not r.succeeded)
        logger.info("Batch finished: %d documents, %d failed", len(results), failed)
        return list(results)

    async def process_one(self, item: BatchInput) -> BatchResult:
        identity = _identity_of(item)
        history = [DocumentState.PENDING]
        classification: DocumentClassification | None = None
        record: ExtractedRecord | None = None

        try:
            document = item if isinstance(item, Document) else load_document(item)

            history.append(DocumentState.CLASSIFYING)
            classification = await self.detector.detect(document.content)

            if self.extract and self.pipeline is not None:
                history.append(DocumentState.EXTRACTING)
                record = await self.pipeline.parse(
                    document.content,
                    skip_classification=self.skip_classification,
                )
            else:
                history.append(DocumentState.SKIPPED_EXTRACTION)
        except Exception as exc:
            logger.warning(
                "Document %s failed in state %s: %s",
                identity,
                history[-1].value,
                _describe(exc),
            )
            history.append(DocumentState.FAILED)
            return BatchResult(
                identity=identity,
                status=DocumentState.FAILED,
                state_history=history,
                error=_describe(exc),
            )

        history.append(DocumentState.DONE)
        return BatchResult(
            identity=identity,
            status=DocumentState.DONE,
            state_history=history,
            classification=classification,
            record=record,
        )


def build_orchestrator(
    settings: Settings | None = None,
    *,
    extract: bool = True,
    concurrency: int | None = None,
) -> BatchOrchestrator:
    settings = settings or get_settings()
    return BatchOrchestrator(
        build_detector(settings),
        build_pipeline(settings) if extract else None,
        concurrency=settings.batch_concurrency if concurrency is None else concurrency,
        extract=extract,
    )
