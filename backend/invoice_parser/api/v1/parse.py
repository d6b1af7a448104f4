"""Parse endpoints — text, image and batch.

Every response uses the envelope ``{success, data}`` / ``{success, error}``.
Request validation failures and core errors are mapped to the error
envelope by the handlers registered in ``invoice_parser.main``.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field, model_validator

from invoice_parser.core.config import get_settings
from invoice_parser.core.dependencies import get_orchestrator_factory, get_pipeline
from invoice_parser.services.ai.pipeline import InvoicePipeline
from invoice_parser.services.documents import Document, DocumentContent, document_from_base64

router = APIRouter()


class ParseInvoiceRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    invoice_text: str = Field(..., min_length=1, alias="invoiceText")
    skip_classification: bool = Field(default=False, alias="skipClassification")


class ParseInvoiceImageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    base64_image: str = Field(..., min_length=1, alias="base64Image")
    mime_type: str | None = Field(default=None, alias="mimeType")


class BatchDocumentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    identity: str = Field(..., min_length=1)
    text: str | None = None
    base64_image: str | None = Field(default=None, alias="base64Image")
    mime_type: str | None = Field(default=None, alias="mimeType")

    @model_validator(mode="after")
    def _text_or_image(self) -> "BatchDocumentRequest":
        if (self.text is None) == (self.base64_image is None):
            raise ValueError("Each document needs either text or base64Image")
        return self


class ParseDocumentsRequest(BaseModel):
    documents: list[BatchDocumentRequest] = Field(..., min_length=1, max_length=100)
    extract: bool = True


def _envelope(data: Any) -> dict[str, Any]:
    return {"success": True, "data": data}


def _check_text_size(text: str) -> None:
    limit = get_settings().max_text_chars
    if len(text) > limit:
        raise HTTPException(400, f"Invoice text exceeds {limit} characters")


def _check_image_size(data: str) -> None:
    # base64 inflates by 4/3
    limit = get_settings().max_image_bytes
    if len(data) * 3 // 4 > limit:
        raise HTTPException(400, f"Image exceeds {limit} bytes")


@router.post("/parse-invoice", summary="Parse an invoice from text")
async def parse_invoice(
    body: ParseInvoiceRequest,
    pipeline: InvoicePipeline = Depends(get_pipeline),
):
    _check_text_size(body.invoice_text)
    record = await pipeline.parse(
        DocumentContent(text=body.invoice_text),
        skip_classification=body.skip_classification,
    )
    return _envelope(record.model_dump(mode="json", by_alias=True))


@router.post("/parse-invoice-image", summary="Parse an invoice from a base64 image")
async def parse_invoice_image(
    body: ParseInvoiceImageRequest,
    pipeline: InvoicePipeline = Depends(get_pipeline),
):
    _check_image_size(body.base64_image)
    document = document_from_base64(body.base64_image, body.mime_type)
    record = await pipeline.parse(document.content)
    return _envelope(record.model_dump(mode="json", by_alias=True))


@router.post("/parse-documents", summary="Classify and parse a batch of documents")
async def parse_documents(
    body: ParseDocumentsRequest,
    orchestrator_factory=Depends(get_orchestrator_factory),
):
    documents: list[Document] = []
    for item in body.documents:
        if item.text is not None:
            _check_text_size(item.text)
            documents.append(Document(identity=item.identity, content=DocumentContent(text=item.text)))
        else:
            _check_image_size(item.base64_image or "")
            documents.append(document_from_base64(item.base64_image or "", item.mime_type, item.identity))

    orchestrator = orchestrator_factory(body.extract)
    results = await orchestrator.process_all(documents)
    return _envelope([r.model_dump(mode="json", by_alias=True) for r in results])
