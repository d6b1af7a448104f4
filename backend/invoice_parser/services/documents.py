"""Document inputs: text or image content plus an identity.

Loading from disk and from base64 HTTP payloads lives here so the parsing
core only ever sees ``DocumentContent``.
"""

from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path

from pydantic import BaseModel, model_validator

from invoice_parser.services.ai.common.errors import DocumentLoadError
from invoice_parser.services.ai.common.providers.base import ImageInput

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_MIME = "image/png"

_MIME_BY_EXTENSION = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".pdf": "application/pdf",
    ".txt": "text/plain",
    ".md": "text/plain",
}


class DocumentContent(BaseModel):
    """Raw document content: inline text, or a base64 image with its mime type."""

    text: str | None = None
    image_base64: str | None = None
    mime_type: str = DEFAULT_IMAGE_MIME

    @model_validator(mode="after")
    def _exactly_one_payload(self) -> "DocumentContent":
        if (self.text is None) == (self.image_base64 is None):
            raise ValueError("Document content must be either text or an image")
        return self

    @property
    def is_image(self) -> bool:
        return self.image_base64 is not None

    def as_image(self) -> ImageInput | None:
        if self.image_base64 is None:
            return None
        return ImageInput(base64_data=self.image_base64, mime_type=self.mime_type)


class Document(BaseModel):
    identity: str
    content: DocumentContent


def guess_mime_type(path: str | Path) -> str:
    return _MIME_BY_EXTENSION.get(Path(path).suffix.lower(), "application/octet-stream")


def load_document(path: str | Path) -> Document:
    """Read *path* into a ``Document``; text files inline, everything else base64."""
    path = Path(path)
    mime_type = guess_mime_type(path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise DocumentLoadError(f"Cannot read document {str(path)!r}: {exc.strerror or exc}") from exc

    if mime_type == "text/plain":
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DocumentLoadError(f"Document {str(path)!r} is not valid UTF-8 text") from exc
        return Document(identity=str(path), content=DocumentContent(text=text))

    encoded = base64.b64encode(data).decode("ascii")
    logger.debug("Loaded %s (%d bytes, %s)", path, len(data), mime_type)
    return Document(
        identity=str(path),
        content=DocumentContent(image_base64=encoded, mime_type=mime_type),
    )


def document_from_base64(
    data: str,
    mime_type: str | None = None,
    identity: str = "request",
) -> Document:
    """Build an image ``Document`` from an HTTP base64 payload.

    Accepts a bare base64 string or a ``data:<mime>;base64,`` URL.
    """
    payload = data.strip()
    if payload.startswith("data:") and "," in payload:
        header, payload = payload.split(",", 1)
        if not mime_type and ";" in header:
            mime_type = header[len("data:") : header.index(";")] or None

    try:
        base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DocumentLoadError("Image payload is not valid base64") from exc

    return Document(
        identity=identity,
        content=DocumentContent(image_base64=payload, mime_type=mime_type or DEFAULT_IMAGE_MIME),
    )
