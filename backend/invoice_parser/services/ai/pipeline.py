"""Single-document parsing pipeline.

content -> classify (optional) -> select instruction -> extract -> normalize
"""

from __future__ import annotations

import logging

from invoice_parser.core.config import Settings, get_settings
from invoice_parser.services.documents import DocumentContent

from .classification.contracts import Classification
from .classification.service import DocumentTypeDetector, InvoiceClassifier
from .common import router as ai_router
from .extraction.contracts import ExtractedRecord
from .extraction.normalizer import normalize
from .extraction.service import InvoiceExtractor
from .extraction.strategy import DEFAULT_REGISTRY, SchemaRegistry, select_instruction

logger = logging.getLogger(__name__)


class InvoicePipeline:
    def __init__(
        self,
        classifier: InvoiceClassifier,
        extractor: InvoiceExtractor,
        *,
        registry: SchemaRegistry = DEFAULT_REGISTRY,
    ) -> None:
        self.classifier = classifier
        self.extractor = extractor
        self.registry = registry

    async def parse(
        self,
        content: DocumentContent,
        *,
        skip_classification: bool = False,
    ) -> ExtractedRecord:
        """Parse one document. Extraction errors propagate to the caller."""
        classification: Classification | None = None
        if not skip_classification:
            classification = await self.classifier.classify(content)
            if classification.is_uncertain:
                logger.info(
                    "Uncertain classification %s (%.2f), alternatives: %s",
                    classification.type.value,
                    classification.confidence,
                    [t.value for t in classification.possible_types or []],
                )

        instruction = select_instruction(classification, registry=self.registry)
        raw = await self.extractor.extract(content, instruction)
        return normalize(raw, classification)

    async def parse_text(self, text: str, *, skip_classification: bool = False) -> ExtractedRecord:
        return await self.parse(DocumentContent(text=text), skip_classification=skip_classification)


def build_classifier(settings: Settings | None = None) -> InvoiceClassifier:
    settings = settings or get_settings()
    config = ai_router.resolve("classify", settings)
    return InvoiceClassifier(
        config.provider,
        model=config.model,
        timeout_seconds=config.timeout_seconds,
    )


def build_detector(settings: Settings | None = None) -> DocumentTypeDetector:
    settings = settings or get_settings()
    config = ai_router.resolve("classify", settings)
    return DocumentTypeDetector(
        config.provider,
        model=config.model,
        timeout_seconds=config.timeout_seconds,
    )


def build_extractor(settings: Settings | None = None) -> InvoiceExtractor:
    settings = settings or get_settings()
    config = ai_router.resolve("extract", settings)
    return InvoiceExtractor(
        config.provider,
        model=config.model,
        max_tokens=config.max_tokens,
        timeout_seconds=config.timeout_seconds,
    )


def build_pipeline(settings: Settings | None = None) -> InvoicePipeline:
    """Wire a pipeline from settings. Each call builds fresh provider instances."""
    settings = settings or get_settings()
    return InvoicePipeline(build_classifier(settings), build_extractor(settings))
