"""Tests for document loading helpers."""

import base64
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

from invoice_parser.services.ai.common.errors import DocumentLoadError
from invoice_parser.services.documents import (
    DocumentContent,
    document_from_base64,
    guess_mime_type,
    load_document,
)


class GuessMimeTypeTests(unittest.TestCase):
    def test_known_extensions(self):
        self.assertEqual(guess_mime_type("a.JPG"), "image/jpeg")
        self.assertEqual(guess_mime_type("a.jpeg"), "image/jpeg")
        self.assertEqual(guess_mime_type("a.png"), "image/png")
        self.assertEqual(guess_mime_type("a.gif"), "image/gif")
        self.assertEqual(guess_mime_type("a.pdf"), "application/pdf")

    def test_unknown_extension(self):
        self.assertEqual(guess_mime_type("scan.tiff2"), "application/octet-stream")
        self.assertEqual(guess_mime_type("noext"), "application/octet-stream")


class LoadDocumentTests(unittest.TestCase):
    def setUp(self):
        self._tmp = TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_image_is_base64_encoded(self):
        path = self.root / "invoice.png"
        path.write_bytes(b"\x89PNG-bytes")
        doc = load_document(path)
        self.assertEqual(doc.identity, str(path))
        self.assertTrue(doc.content.is_image)
        self.assertEqual(doc.content.mime_type, "image/png")
        self.assertEqual(base64.b64decode(doc.content.image_base64), b"\x89PNG-bytes")

    def test_text_file_inlined(self):
        path = self.root / "invoice.txt"
        path.write_text("INVOICE #1", encoding="utf-8")
        doc = load_document(path)
        self.assertFalse(doc.content.is_image)
        self.assertEqual(doc.content.text, "INVOICE #1")
        self.assertIsNone(doc.content.as_image())

    def test_missing_file(self):
        with self.assertRaises(DocumentLoadError):
            load_document(self.root / "missing.png")

    def test_invalid_utf8_text(self):
        path = self.root / "broken.txt"
        path.write_bytes(b"\xff\xfe\xfa")
        with self.assertRaises(DocumentLoadError):
            load_document(path)


class DocumentFromBase64Tests(unittest.TestCase):
    def test_bare_payload(self):
        doc = document_from_base64("aGVsbG8=", "image/jpeg", identity="req-1")
        self.assertEqual(doc.identity, "req-1")
        self.assertEqual(doc.content.mime_type, "image/jpeg")

    def test_data_url_mime_used_when_not_given(self):
        doc = document_from_base64("data:image/webp;base64,aGVsbG8=")
        self.assertEqual(doc.content.image_base64, "aGVsbG8=")
        self.assertEqual(doc.content.mime_type, "image/webp")

    def test_default_mime(self):
        self.assertEqual(document_from_base64("aGVsbG8=").content.mime_type, "image/png")

    def test_invalid_base64(self):
        with self.assertRaises(DocumentLoadError):
            document_from_base64("not base64!!")


class DocumentContentTests(unittest.TestCase):
    def test_requires_exactly_one_payload(self):
        from pydantic import ValidationError

        with self.assertRaises(ValidationError):
            DocumentContent()
        with self.assertRaises(ValidationError):
            DocumentContent(text="x", image_base64="aGVsbG8=")


if __name__ == "__main__":
    unittest.main()
