"""Extraction instruction selection.

``select_instruction`` is a dispatch over a ``SchemaRegistry`` keyed by
invoice type. Registering a new per-type schema never touches the
dispatch itself; unregistered types get the generic schema plus a type hint.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..classification.contracts import Classification, InvoiceType

GENERIC_INSTRUCTION = (
    "You are an expert invoice parser. Extract structured data from the provided "
    "document into a JSON object with the following structure:\n\n"
    "{\n"
    '  "invoiceNumber": string,\n'
    '  "invoiceDate": string (YYYY-MM-DD),\n'
    '  "dueDate": string (YYYY-MM-DD, optional),\n'
    '  "vendorName": string,\n'
    '  "vendorAddress": string (optional),\n'
    '  "customerName": string (optional),\n'
    '  "customerAddress": string (optional),\n'
    '  "items": [{ "description": string, "quantity": number, "unitPrice": number, "amount": number }],\n'
    '  "subtotal": number,\n'
    '  "taxAmount": number (optional),\n'
    '  "totalAmount": number,\n'
    '  "currency": string (ISO 4217 code),\n'
    '  "paymentTerms": string (optional)\n'
    "}\n\n"
    "Amounts are plain numbers without currency symbols. Omit optional fields "
    "that are not present in the document."
)


@dataclass(frozen=True)
class TypeSchema:
    """Extra fields requested for one document type, JSON key -> type hint."""

    fields: dict[str, str] = field(default_factory=dict)
    notes: str = ""


GENERIC_SCHEMA = TypeSchema()


class SchemaRegistry:
    def __init__(self, schemas: dict[InvoiceType, TypeSchema] | None = None) -> None:
        self._schemas: dict[InvoiceType, TypeSchema] = dict(schemas or {})

    def register(self, invoice_type: InvoiceType, schema: TypeSchema) -> None:
        if invoice_type is InvoiceType.UNKNOWN:
            raise ValueError("The unknown type always uses the generic schema")
        self._schemas[invoice_type] = schema

    def get(self, invoice_type: InvoiceType) -> TypeSchema:
        return self._schemas.get(invoice_type, GENERIC_SCHEMA)

    def __contains__(self, invoice_type: object) -> bool:
        return invoice_type in self._schemas


DEFAULT_REGISTRY = SchemaRegistry(
    {
        InvoiceType.PURCHASE_ORDER: TypeSchema(
            fields={
                "shipToAddress": "string (optional)",
                "requestedDeliveryDate": "string (YYYY-MM-DD, optional)",
            },
            notes="The buyer is the customer and the supplier is the vendor.",
        ),
        InvoiceType.RECEIPT: TypeSchema(
            fields={
                "paymentMethod": "string (optional)",
                "transactionTime": "string (optional)",
            },
        ),
        InvoiceType.PROFORMA: TypeSchema(
            fields={
                "validUntil": "string (YYYY-MM-DD, optional)",
                "deliveryTerms": "string (optional)",
            },
        ),
        InvoiceType.CREDIT_NOTE: TypeSchema(
            fields={
                "referenceInvoice": "string (optional)",
                "creditReason": "string (optional)",
            },
            notes="Report credited amounts as positive numbers.",
        ),
    }
)


def select_instruction(
    classification: Classification | None,
    *,
    registry: SchemaRegistry = DEFAULT_REGISTRY,
) -> str:
    if classification is None or classification.type is InvoiceType.UNKNOWN:
        return GENERIC_INSTRUCTION

    invoice_type = classification.type
    parts = [
        GENERIC_INSTRUCTION,
        f"This is a {invoice_type.name} document.",
    ]

    schema = registry.get(invoice_type)
    if schema.fields:
        extra = "\n".join(f'  "{key}": {hint}' for key, hint in schema.fields.items())
        parts.append(f"Also include these fields in the same object:\n{extra}")
    if schema.notes:
        parts.append(schema.notes)

    return "\n\n".join(parts)
