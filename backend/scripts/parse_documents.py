#!/usr/bin/env python3
"""
Classify and parse a batch of invoice / shipping documents from disk.

Usage (from the repo root or backend):
  export AI_PROVIDER=openai OPENAI_API_KEY=...   # or .env
  PYTHONPATH=backend python backend/scripts/parse_documents.py invoice.png bol.png

  Detection only (no invoice extraction):
  PYTHONPATH=backend python backend/scripts/parse_documents.py --no-extract *.png

Prints a JSON array with one result per path, in the given order. Exits 1
when at least one document failed.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys

# Run from repo root or backend; ensure backend is on path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from invoice_parser.core.config import get_settings
from invoice_parser.core.logging import configure_logging
from invoice_parser.services.ai.batch.service import build_orchestrator
from invoice_parser.services.ai.common.errors import BackendUnavailableError


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return number


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Classify and parse documents with a language model.")
    parser.add_argument("paths", nargs="+", help="Document files (images, PDFs or .txt).")
    parser.add_argument("--no-extract", action="store_true", help="Only detect the document type.")
    parser.add_argument("--concurrency", type=_positive_int, default=None, help="Documents processed in parallel.")
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.log_level)

    try:
        orchestrator = build_orchestrator(
            settings,
            extract=not args.no_extract,
            concurrency=args.concurrency,
        )
    except BackendUnavailableError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    results = asyncio.run(orchestrator.process_all(args.paths))
    print(json.dumps([r.model_dump(mode="json", by_alias=True) for r in results], indent=2))
    return 0 if all(r.succeeded for r in results) else 1


if __name__ == "__main__":
    sys.exit(main())
