"""Error taxonomy for the parsing pipeline."""

from __future__ import annotations


class InvoiceParserError(Exception):
    """Base class for every error raised by the parsing core."""


class BackendUnavailableError(InvoiceParserError):
    """The model backend could not be reached, authenticated or configured."""


class ExtractionError(InvoiceParserError):
    """The backend answered, but the answer cannot be used for extraction."""


class NoContentError(ExtractionError):
    def __init__(self, message: str = "No content returned from model backend") -> None:
        super().__init__(message)


class MalformedResponseError(ExtractionError):
    def __init__(self, message: str = "Model backend returned malformed JSON") -> None:
        super().__init__(message)


class DocumentLoadError(InvoiceParserError):
    """A document could not be read or decoded."""
