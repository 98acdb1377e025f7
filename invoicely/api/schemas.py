"""
Model serialization helpers for API responses.
"""

from __future__ import annotations

from decimal import Decimal

from invoicely.models import User, BusinessSettings, Client, TaxConfiguration, Invoice, InvoiceItem
from invoicely.services.totals import InvoiceTotals, quantize_amount


def _money(value) -> float:
    return float(quantize_amount(value))


def _number(value) -> float | None:
    if value is None:
        return None
    return float(value) if isinstance(value, Decimal) else value


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def serialize_user(user: User) -> dict:
    """Return a JSON-safe dict for a User."""
    return {
        "id": str(user.id),
        "email": user.email,
        "full_name": user.full_name,
        "created_at": _iso(user.created_at),
    }


SETTINGS_FIELDS = (
    "company_name", "business_legal_name", "email", "phone_number", "address",
    "province", "gst_number", "invoice_prefix", "invoice_start_number",
    "default_template", "primary_color", "secondary_color",
)


def serialize_settings(settings: BusinessSettings) -> dict:
    data = {field: getattr(settings, field) for field in SETTINGS_FIELDS}
    data["updated_at"] = _iso(settings.updated_at)
    return data


CLIENT_FIELDS = (
    "company_name", "contact_name", "email", "phone_number", "address",
    "gst_number", "notes",
)


def serialize_client(client: Client) -> dict:
    data = {"id": str(client.id)}
    data.update({field: getattr(client, field) for field in CLIENT_FIELDS})
    data["display_name"] = client.display_name
    data["created_at"] = _iso(client.created_at)
    return data


def serialize_tax_configuration(config: TaxConfiguration) -> dict:
    return {
        "id": str(config.id),
        "province_code": config.province_code,
        "tax_name": config.tax_name,
        "tax_type": config.tax_type,
        "tax_rate": _number(config.tax_rate),
        "is_enabled": config.is_enabled,
    }


def serialize_invoice_item(item: InvoiceItem) -> dict:
    return {
        "description": item.description,
        "quantity": _number(item.quantity),
        "unit_price": _money(item.unit_price),
        "total": _money(item.total),
    }


def serialize_invoice(invoice: Invoice, *, include_items: bool = False) -> dict:
    """Return a JSON-safe dict for an Invoice."""
    data = {
        "id": str(invoice.id),
        "invoice_number": invoice.invoice_number,
        "client_id": str(invoice.client_id),
        "status": invoice.status,
        "issue_date": _iso(invoice.issue_date),
        "due_date": _iso(invoice.due_date),
        "subtotal": _money(invoice.subtotal),
        "discount": _number(invoice.discount),
        "discount_amount": _money(invoice.discount_amount),
        "tax_rate": _number(invoice.tax_rate),
        "tax_type": invoice.tax_type,
        "tax_amount": _money(invoice.tax_amount),
        "total": _money(invoice.total),
        "notes": invoice.notes,
        "template_id": invoice.template_id,
        "created_at": _iso(invoice.created_at),
        "updated_at": _iso(invoice.updated_at),
        "sent_at": _iso(invoice.sent_at),
        "paid_at": _iso(invoice.paid_at),
    }
    if include_items:
        data["items"] = [serialize_invoice_item(i) for i in invoice.items]
    return data


def serialize_totals(totals: InvoiceTotals) -> dict:
    return {key: _money(value) for key, value in totals.as_dict().items()}
