"""
Invoice business logic — number allocation, totals, edits and payment.

Every function takes the persistence collaborator (an ``InvoiceStore`` or
anything with the same three methods) explicitly.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from invoicely.errors import ConflictError, InvoiceNumberAllocationError, ValidationError
from invoicely.models import Invoice, InvoiceItem
from invoicely.services.numbering import next_invoice_number
from invoicely.services.totals import calculate_totals, quantize_amount, to_decimal

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3


def preview_next_invoice_number(store, user_id) -> str:
    """The number the next invoice created by *user_id* would receive."""
    config = store.get_numbering_config(user_id)
    return next_invoice_number(config, store.existing_invoice_numbers(user_id, config.prefix))


def build_items(entries) -> list[InvoiceItem]:
    """Turn validated item dicts into embedded ``InvoiceItem`` documents."""
    items: list[InvoiceItem] = []
    for entry in entries:
        quantity = to_decimal(entry["quantity"])
        unit_price = to_decimal(entry["unit_price"])
        items.append(
            InvoiceItem(
                description=entry["description"],
                quantity=quantity,
                unit_price=unit_price,
                total=quantize_amount(quantity * unit_price),
            )
        )
    return items


def apply_totals(invoice: Invoice) -> Invoice:
    """Recompute and store the invoice's monetary fields from its items."""
    totals = calculate_totals(invoice.items, invoice.discount, invoice.tax_rate).quantized()
    invoice.subtotal = totals.subtotal
    invoice.discount_amount = totals.discount_amount
    invoice.tax_amount = totals.tax_amount
    invoice.total = totals.total
    return invoice


def create_invoice(store, user_id, draft: dict, max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> Invoice:
    """Persist a new invoice for *user_id* built from the validated *draft*.

    Without an explicit ``invoice_number`` the next number is computed from a
    fresh read of the user's settings and history. A collision with a
    concurrent insert is retried up to *max_attempts* times before giving up
    with ``InvoiceNumberAllocationError``. An explicit number that collides
    raises ``ConflictError`` straight away.
    """
    invoice = Invoice(
        user_id=user_id,
        client_id=draft["client_id"],
        status=draft.get("status") or "draft",
        issue_date=draft.get("issue_date") or datetime.utcnow(),
        due_date=draft.get("due_date"),
        items=build_items(draft.get("items") or []),
        discount=to_decimal(draft.get("discount")),
        tax_rate=to_decimal(draft.get("tax_rate")),
        tax_type=draft.get("tax_type"),
        notes=draft.get("notes"),
        template_id=draft.get("template_id") or "classic",
    )
    apply_totals(invoice)

    explicit_number = (draft.get("invoice_number") or "").strip()
    if explicit_number:
        invoice.invoice_number = explicit_number
        store.insert_invoice(invoice)
        logger.info("Created invoice %s for user %s", invoice.invoice_number, user_id)
        return invoice

    for attempt in range(1, max_attempts + 1):
        invoice.invoice_number = preview_next_invoice_number(store, user_id)
        try:
            store.insert_invoice(invoice)
        except ConflictError:
            logger.warning(
                "Invoice number %s taken for user %s (attempt %d/%d)",
                invoice.invoice_number, user_id, attempt, max_attempts,
            )
            continue
        logger.info("Created invoice %s for user %s", invoice.invoice_number, user_id)
        return invoice

    logger.error("Gave up allocating an invoice number for user %s after %d attempts", user_id, max_attempts)
    raise InvoiceNumberAllocationError(max_attempts)


def apply_invoice_changes(invoice: Invoice, changes: dict) -> Invoice:
    """Apply validated *changes* to an unpaid invoice, recomputing totals.

    The caller saves the document.
    """
    if invoice.status == "paid":
        raise ValidationError("Cannot edit a paid invoice")

    for field in ("client_id", "issue_date", "due_date", "notes", "template_id", "tax_type"):
        if field in changes:
            setattr(invoice, field, changes[field])

    recalculate = False
    if "items" in changes:
        invoice.items = build_items(changes["items"])
        recalculate = True
    if "discount" in changes:
        invoice.discount = to_decimal(changes["discount"])
        recalculate = True
    if "tax_rate" in changes:
        invoice.tax_rate = to_decimal(changes["tax_rate"])
        recalculate = True
    if recalculate:
        apply_totals(invoice)

    if "status" in changes and changes["status"] != invoice.status:
        if changes["status"] == "paid":
            return mark_invoice_paid(invoice)
        if changes["status"] == "sent" and not invoice.sent_at:
            invoice.sent_at = datetime.utcnow()
        invoice.status = changes["status"]

    invoice.updated_at = datetime.utcnow()
    return invoice


def mark_invoice_paid(invoice: Invoice, paid_at: Optional[datetime] = None) -> Invoice:
    if invoice.status == "paid":
        raise ValidationError("Invoice is already paid")
    invoice.status = "paid"
    invoice.paid_at = paid_at or datetime.utcnow()
    invoice.updated_at = invoice.paid_at
    return invoice


def is_overdue(invoice: Invoice, today: Optional[date] = None) -> bool:
    """An invoice is overdue when flagged so, or when sent out and past due unpaid."""
    if invoice.status == "overdue":
        return True
    if invoice.status in ("paid", "draft") or not invoice.due_date:
        return False
    today = today or datetime.utcnow().date()
    return invoice.due_date.date() < today


def find_duplicate_invoice_numbers() -> list[dict]:
    """Return ``{user_id, invoice_number, count}`` for numbers issued more than once."""
    pipeline = [
        {"$match": {"invoice_number": {"$ne": None}}},
        {"$group": {
            "_id": {"user_id": "$user_id", "invoice_number": "$invoice_number"},
            "count": {"$sum": 1},
        }},
        {"$match": {"count": {"$gt": 1}}},
        {"$sort": {"_id.user_id": 1, "_id.invoice_number": 1}},
    ]
    return [
        {
            "user_id": row["_id"]["user_id"],
            "invoice_number": row["_id"]["invoice_number"],
            "count": row["count"],
        }
        for row in Invoice.objects.aggregate(pipeline)
    ]
