import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from invoice_parser.api.v1.parse import router as parse_router
from invoice_parser.core.config import get_settings
from invoice_parser.core.logging import configure_logging
from invoice_parser.services.ai.common.errors import (
    BackendUnavailableError,
    DocumentLoadError,
    InvoiceParserError,
)

settings = get_settings()

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Invoice Parser API",
    version="1.0.0",
    docs_url="/docs" if settings.docs_enabled else None,
    openapi_url="/openapi.json" if settings.openapi_enabled else None,
)

if settings.cors_allow_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["POST", "GET", "OPTIONS"],
        allow_headers=["Content-Type", "Accept"],
    )


@app.on_event("startup")
async def _configure_logging():
    configure_logging(settings.log_level)


app.include_router(parse_router, prefix="/api/v1", tags=["parse"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return _error(400, f"{location}: {message}" if location else message)


@app.exception_handler(StarletteHTTPException)
async def _http_error_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(DocumentLoadError)
async def _document_error_handler(request: Request, exc: DocumentLoadError):
    return _error(400, str(exc))


@app.exception_handler(BackendUnavailableError)
async def _backend_error_handler(request: Request, exc: BackendUnavailableError):
    logger.error("Model backend unavailable: %s", exc)
    return _error(503, str(exc))


@app.exception_handler(InvoiceParserError)
async def _parser_error_handler(request: Request, exc: InvoiceParserError):
    logger.error("Error parsing invoice: %s", exc)
    return _error(500, str(exc))


@app.exception_handler(Exception)
async def _unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    return _error(500, str(exc) or "Unknown error occurred")


@app.get("/health")
def health():
    return {"status": "ok"}
