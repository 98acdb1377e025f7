"""
MongoDB-backed store used by the invoice workflow.

The workflow functions in ``invoicely.services.invoice_service`` take the
store as an argument, so tests can hand them an in-memory fake instead.
"""

from __future__ import annotations

import re

import mongoengine as me

from invoicely.errors import ConflictError
from invoicely.models import BusinessSettings, Invoice
from invoicely.services.numbering import NumberingConfig


class InvoiceStore:
    """Reads numbering inputs and inserts invoices under the uniqueness constraint."""

    def get_numbering_config(self, user_id) -> NumberingConfig:
        settings = BusinessSettings.objects(user_id=user_id).first()
        return NumberingConfig.from_settings(settings)

    def existing_invoice_numbers(self, user_id, prefix: str | None = None) -> list[str]:
        query = Invoice.objects(user_id=user_id)
        if prefix:
            query = query.filter(invoice_number__regex=f"^{re.escape(prefix)}")
        return list(query.scalar("invoice_number"))

    def insert_invoice(self, invoice: Invoice) -> Invoice:
        try:
            invoice.save(force_insert=True)
        except me.NotUniqueError as exc:
            raise ConflictError(
                "Invoice number already in use",
                field="invoice_number",
                value=invoice.invoice_number,
            ) from exc
        return invoice
