"""
Request payload parsing shared by the API routes.

Parsers raise ``ValidationError`` with a message suitable for the client.
Numbers are rounded to the precision their model field stores, so totals
computed from a parsed payload match what is saved.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from bson import ObjectId
from bson.errors import InvalidId

from invoicely.errors import ValidationError
from invoicely.models import INVOICE_STATUSES, TEMPLATE_IDS
from invoicely.services.totals import to_decimal

DESCRIPTION_MAX_LENGTH = 200
TAX_TYPE_MAX_LENGTH = 20
INVOICE_NUMBER_MAX_LENGTH = 30

# Decimal places kept by the matching DecimalField precision in models.py
QUANTITY_PLACES = 3
PRICE_PLACES = 2
DISCOUNT_PLACES = 2
TAX_RATE_PLACES = 3


def parse_object_id(value, field: str) -> ObjectId:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise ValidationError(f"{field} is not a valid id")


def parse_decimal(value, field: str, *, minimum=None, maximum=None, places: int | None = None) -> Decimal:
    """Parse a JSON number (or numeric string) into a ``Decimal``.

    With *places* the value is rounded half-up to that many decimals before
    the bounds are checked.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        number = to_decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not number.is_finite():
        raise ValidationError(f"{field} must be a number")
    if places is not None:
        number = number.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    if minimum is not None and number < minimum:
        raise ValidationError(f"{field} must be at least {minimum}")
    if maximum is not None and number > maximum:
        raise ValidationError(f"{field} must be at most {maximum}")
    return number


def parse_date(value, field: str) -> datetime | None:
    if value in (None, ""):
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except (ValueError, TypeError):
        raise ValidationError(f"{field} must be YYYY-MM-DD format")


def clean_str(value, field: str = "value", *, max_length: int | None = None) -> str | None:
    """Strip a text field; blank becomes None. Non-string JSON is rejected."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    value = value.strip()
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return value or None


def parse_items(entries) -> list[dict]:
    if not isinstance(entries, list):
        raise ValidationError("items must be a list")
    items = []
    for position, entry in enumerate(entries, start=1):
        if not isinstance(entry, dict):
            raise ValidationError(f"item {position} must be an object")
        description = clean_str(
            entry.get("description"), f"item {position} description", max_length=DESCRIPTION_MAX_LENGTH
        )
        if not description:
            raise ValidationError(f"item {position} needs a description")
        items.append({
            "description": description,
            "quantity": parse_decimal(
                entry.get("quantity", 1), f"item {position} quantity", minimum=0, places=QUANTITY_PLACES
            ),
            "unit_price": parse_decimal(
                entry.get("unit_price", 0), f"item {position} unit_price", minimum=0, places=PRICE_PLACES
            ),
        })
    return items


def parse_discount(value) -> Decimal:
    return parse_decimal(value or 0, "discount", minimum=0, maximum=100, places=DISCOUNT_PLACES)


def parse_tax_rate(value) -> Decimal:
    return parse_decimal(value, "tax_rate", minimum=0, places=TAX_RATE_PLACES)


def parse_tax_type(value) -> str | None:
    return clean_str(value, "tax_type", max_length=TAX_TYPE_MAX_LENGTH)


def parse_invoice_payload(data: dict, *, partial: bool = False) -> dict:
    """Validate an invoice create (or, with *partial*, update) body.

    Only keys present in *data* appear in the result when *partial* is set.
    """
    result: dict = {}

    if "client_id" in data or not partial:
        if not data.get("client_id"):
            raise ValidationError("client_id is required")
        result["client_id"] = parse_object_id(data["client_id"], "client_id")

    if "items" in data or not partial:
        items = parse_items(data.get("items") or [])
        if not items:
            raise ValidationError("At least one item is required")
        result["items"] = items

    if "discount" in data:
        result["discount"] = parse_discount(data["discount"])
    elif not partial:
        result["discount"] = Decimal("0")

    if "tax_rate" in data and data["tax_rate"] is not None:
        result["tax_rate"] = parse_tax_rate(data["tax_rate"])

    if "tax_type" in data:
        result["tax_type"] = parse_tax_type(data["tax_type"])

    for field in ("issue_date", "due_date"):
        if field in data:
            result[field] = parse_date(data[field], field)

    if "status" in data:
        if data["status"] not in INVOICE_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(INVOICE_STATUSES)}")
        result["status"] = data["status"]

    if "template_id" in data:
        if data["template_id"] not in TEMPLATE_IDS:
            raise ValidationError(f"template_id must be one of: {', '.join(TEMPLATE_IDS)}")
        result["template_id"] = data["template_id"]

    if "notes" in data:
        result["notes"] = clean_str(data["notes"], "notes")

    if not partial and data.get("invoice_number"):
        number = str(data["invoice_number"]).strip()
        if len(number) > INVOICE_NUMBER_MAX_LENGTH:
            raise ValidationError(f"invoice_number must be at most {INVOICE_NUMBER_MAX_LENGTH} characters")
        result["invoice_number"] = number

    return result
