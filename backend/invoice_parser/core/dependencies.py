from invoice_parser.core.config import get_settings
from invoice_parser.services.ai.batch.service import BatchOrchestrator, build_orchestrator
from invoice_parser.services.ai.pipeline import InvoicePipeline, build_pipeline


def get_pipeline() -> InvoicePipeline:
    return build_pipeline(get_settings())


def get_orchestrator_factory():
    """Return a callable ``(extract: bool) -> BatchOrchestrator``."""
    settings = get_settings()

    def _factory(extract: bool) -> BatchOrchestrator:
        return build_orchestrator(settings, extract=extract)

    return _factory
