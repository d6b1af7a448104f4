"""Tests for instruction selection, the extractor and normalization."""

import asyncio
import copy
import unittest
from datetime import date

from samples import FULL_INVOICE_REPLY, reply

from invoice_parser.services.ai.classification.contracts import Classification, InvoiceType
from invoice_parser.services.ai.common.errors import (
    BackendUnavailableError,
    ExtractionError,
    MalformedResponseError,
    NoContentError,
)
from invoice_parser.services.ai.common.providers.mock import MockProvider
from invoice_parser.services.ai.extraction.contracts import LineItem
from invoice_parser.services.ai.extraction.normalizer import normalize
from invoice_parser.services.ai.extraction.service import IMAGE_USER_PROMPT, InvoiceExtractor
from invoice_parser.services.ai.extraction.strategy import (
    DEFAULT_REGISTRY,
    GENERIC_INSTRUCTION,
    SchemaRegistry,
    TypeSchema,
    select_instruction,
)
from invoice_parser.services.documents import DocumentContent

NORMALIZER_LOGGER = "invoice_parser.services.ai.extraction.normalizer"


class SelectInstructionTests(unittest.TestCase):
    def test_absent_classification_is_generic(self):
        self.assertEqual(select_instruction(None), GENERIC_INSTRUCTION)

    def test_unknown_is_generic(self):
        self.assertEqual(select_instruction(Classification.unknown()), GENERIC_INSTRUCTION)

    def test_type_hint_appended(self):
        instruction = select_instruction(Classification(type=InvoiceType.STANDARD, confidence=0.9))
        self.assertTrue(instruction.startswith(GENERIC_INSTRUCTION))
        self.assertIn("This is a STANDARD document.", instruction)

    def test_registered_schemas(self):
        po = select_instruction(Classification(type=InvoiceType.PURCHASE_ORDER, confidence=0.9))
        self.assertIn("shipToAddress", po)
        receipt = select_instruction(Classification(type=InvoiceType.RECEIPT, confidence=0.9))
        self.assertIn("paymentMethod", receipt)
        self.assertNotIn("shipToAddress", receipt)

    def test_custom_registry(self):
        registry = SchemaRegistry()
        standard = Classification(type=InvoiceType.STANDARD, confidence=0.9)
        self.assertNotIn("purchaseOrderRef", select_instruction(standard, registry=registry))

        registry.register(InvoiceType.STANDARD, TypeSchema(fields={"purchaseOrderRef": "string (optional)"}))
        self.assertIn(InvoiceType.STANDARD, registry)
        self.assertIn('"purchaseOrderRef": string (optional)', select_instruction(standard, registry=registry))
        # The shared default registry is untouched.
        self.assertNotIn(InvoiceType.STANDARD, DEFAULT_REGISTRY)

    def test_unknown_cannot_be_registered(self):
        with self.assertRaises(ValueError):
            SchemaRegistry().register(InvoiceType.UNKNOWN, TypeSchema())


class InvoiceExtractorTests(unittest.TestCase):
    def _extract(self, provider, content=None):
        content = content or DocumentContent(text="INVOICE INV-1")
        return asyncio.run(InvoiceExtractor(provider).extract(content, "instruction"))

    def test_returns_decoded_object(self):
        provider = MockProvider([reply(FULL_INVOICE_REPLY)])
        self.assertEqual(self._extract(provider), FULL_INVOICE_REPLY)
        call = provider.calls[0]
        self.assertEqual(call.system_prompt, "instruction")
        self.assertEqual(call.prompt, "INVOICE INV-1")
        self.assertTrue(call.json_output)
        self.assertEqual(call.temperature, 0.0)
        self.assertIsNone(call.image)

    def test_partial_reply_not_validated(self):
        provider = MockProvider([reply({"vendorName": 3})])
        self.assertEqual(self._extract(provider), {"vendorName": 3})

    def test_null_content(self):
        for empty in (None, "", "  "):
            with self.assertRaises(NoContentError):
                self._extract(MockProvider([empty]))

    def test_malformed_json(self):
        for bad in ("{not json", "[]", '"text"', "42"):
            with self.assertRaises(MalformedResponseError):
                self._extract(MockProvider([bad]))

    def test_non_finite_numbers_rejected(self):
        for bad in (
            '{"invoiceNumber": "A", "totalAmount": NaN}',
            '{"invoiceNumber": "A", "subtotal": Infinity}',
            '{"invoiceNumber": "A", "taxAmount": -Infinity}',
        ):
            with self.assertRaises(MalformedResponseError):
                self._extract(MockProvider([bad]))

    def test_errors_share_base(self):
        self.assertTrue(issubclass(NoContentError, ExtractionError))
        self.assertTrue(issubclass(MalformedResponseError, ExtractionError))

    def test_backend_error_passes_through(self):
        with self.assertRaises(BackendUnavailableError):
            self._extract(MockProvider([BackendUnavailableError("401 Unauthorized")]))

    def test_image_inlined(self):
        provider = MockProvider([reply(FULL_INVOICE_REPLY)])
        self._extract(provider, DocumentContent(image_base64="aGVsbG8=", mime_type="image/png"))
        call = provider.calls[0]
        self.assertEqual(call.prompt, IMAGE_USER_PROMPT)
        self.assertEqual(call.image.base64_data, "aGVsbG8=")


class NormalizerTests(unittest.TestCase):
    def test_missing_required_fields_defaulted(self):
        raw = {"invoiceDate": "2024-01-02", "items": None}
        with self.assertLogs(NORMALIZER_LOGGER, level="WARNING") as logs:
            record = normalize(raw)

        self.assertEqual(record.invoice_number, "UNKNOWN")
        self.assertEqual(record.vendor_name, "UNKNOWN")
        self.assertEqual(record.total_amount, 0)
        self.assertEqual(record.currency, "USD")
        self.assertEqual(record.items, [])
        self.assertEqual(record.subtotal, 0)
        self.assertTrue(record.low_confidence)
        self.assertIn("Low-confidence extraction", logs.output[0])

    def test_invoice_date_defaults_to_today(self):
        record = normalize({"invoiceNumber": "A", "vendorName": "B"}, today=date(2025, 3, 9))
        self.assertEqual(record.invoice_date, "2025-03-09")
        self.assertEqual(normalize({}).invoice_date, date.today().isoformat())

    def test_subtotal_defaults_to_total(self):
        record = normalize({"invoiceNumber": "A", "vendorName": "B", "totalAmount": 99.5})
        self.assertEqual(record.subtotal, 99.5)

    def test_only_vendor_missing_still_flags(self):
        with self.assertLogs(NORMALIZER_LOGGER, level="WARNING"):
            record = normalize({"invoiceNumber": "INV-9", "totalAmount": 5})
        self.assertTrue(record.low_confidence)
        self.assertEqual(record.invoice_number, "INV-9")

    def test_full_reply_is_idempotent(self):
        raw = copy.deepcopy(FULL_INVOICE_REPLY)
        with self.assertNoLogs(NORMALIZER_LOGGER, level="WARNING"):
            record = normalize(raw)

        dumped = record.model_dump(
            by_alias=True,
            exclude_none=True,
            exclude={"classification", "extensions", "low_confidence"},
        )
        self.assertEqual(dumped, FULL_INVOICE_REPLY)
        self.assertFalse(record.low_confidence)
        self.assertEqual(raw, FULL_INVOICE_REPLY)

    def test_classification_attached_unmodified(self):
        classification = Classification(
            type=InvoiceType.PROFORMA,
            confidence=0.55,
            possible_types=[InvoiceType.STANDARD],
            metadata={"note": "x"},
        )
        record = normalize(dict(FULL_INVOICE_REPLY), classification)
        self.assertEqual(record.classification, classification)

    def test_numeric_strings_coerced(self):
        record = normalize(
            {
                "invoiceNumber": 12345,
                "vendorName": "Acme",
                "totalAmount": "$1,234.50",
                "taxAmount": "n/a",
                "items": [{"description": "X", "quantity": "2", "unitPrice": "3.5", "amount": 7}, "junk"],
            }
        )
        self.assertEqual(record.invoice_number, "12345")
        self.assertEqual(record.total_amount, 1234.5)
        self.assertIsNone(record.tax_amount)
        self.assertEqual(record.items, [LineItem(description="X", quantity=2, unit_price=3.5, amount=7)])

    def test_ambiguous_number_strings_not_guessed(self):
        for text in ("1.234,50", "1e3", "1,5", "(50.00)", "12-34", "1.2.3", "-"):
            record = normalize({"invoiceNumber": "A", "vendorName": "B", "totalAmount": text, "taxAmount": text})
            self.assertEqual(record.total_amount, 0.0, text)
            self.assertIsNone(record.tax_amount, text)

    def test_currency_noise_stripped(self):
        cases = {"$ 1,234,567.89": 1234567.89, "-$5.00": -5.0, "€12": 12.0, " 42 ": 42.0}
        for text, expected in cases.items():
            self.assertEqual(normalize({"totalAmount": text}).total_amount, expected, text)

    def test_non_finite_numbers_defaulted(self):
        record = normalize(
            {
                "invoiceNumber": "A",
                "vendorName": "B",
                "totalAmount": float("nan"),
                "subtotal": float("inf"),
                "taxAmount": float("-inf"),
            }
        )
        self.assertEqual(record.total_amount, 0.0)
        self.assertEqual(record.subtotal, 0.0)
        self.assertIsNone(record.tax_amount)

    def test_extra_keys_kept_as_extensions(self):
        record = normalize(
            {
                "invoiceNumber": "PO-1",
                "vendorName": "Acme",
                "shipToAddress": "Warehouse 7",
                "classification": {"type": "bogus"},
            }
        )
        self.assertEqual(record.extensions, {"shipToAddress": "Warehouse 7"})
        self.assertIsNone(record.classification)

    def test_non_dict_input_never_raises(self):
        record = normalize(["not", "a", "dict"])  # type: ignore[arg-type]
        self.assertEqual(record.invoice_number, "UNKNOWN")

    def test_amount_mismatch_is_reported_not_rejected(self):
        item = LineItem(description="X", quantity=2, unit_price=3, amount=7)
        self.assertTrue(item.amount_mismatch)
        self.assertFalse(LineItem(description="Y", quantity=2, unit_price=3, amount=6).amount_mismatch)


if __name__ == "__main__":
    unittest.main()
