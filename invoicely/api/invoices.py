"""
API — Invoice CRUD, payment, numbering and totals preview.
"""

import mongoengine as me
from flask import current_app, jsonify, request

from invoicely.models import User, Client, Invoice
from invoicely.api import api_bp
from invoicely.api.auth import token_required
from invoicely.api.schemas import serialize_invoice, serialize_totals
from invoicely.api.validation import (
    parse_discount,
    parse_invoice_payload,
    parse_items,
    parse_object_id,
    parse_tax_rate,
    parse_tax_type,
)
from invoicely.errors import ConflictError, InvoiceNumberAllocationError, ValidationError
from invoicely.repository import InvoiceStore
from invoicely.services.invoice_service import (
    apply_invoice_changes,
    create_invoice as create_invoice_record,
    mark_invoice_paid,
    preview_next_invoice_number,
)
from invoicely.services.tax_service import resolve_tax_rate
from invoicely.services.totals import calculate_totals


def _get_invoice(invoice_id, user: User):
    """Fetch one of *user*'s invoices, returning None on invalid/missing ID."""
    try:
        return Invoice.objects(id=invoice_id, user_id=user.id).first()
    except me.ValidationError:
        return None


def _owns_client(user: User, client_id) -> bool:
    return Client.objects(id=client_id, user_id=user.id).first() is not None


def _resolve_tax(user: User, payload: dict) -> None:
    """Fill in ``tax_rate`` from ``tax_type`` when only the latter was sent."""
    if "tax_rate" in payload or not payload.get("tax_type"):
        return
    rate = resolve_tax_rate(user.id, payload["tax_type"])
    if rate is None:
        raise ValidationError(f"Unknown or disabled tax type: {payload['tax_type']}")
    payload["tax_rate"] = rate


# --------------------------------------------------------------------------
# List invoices
# --------------------------------------------------------------------------
@api_bp.route("/invoices", methods=["GET"])
@token_required
def list_invoices(current_user: User):
    """
    The caller's invoices, newest first.
    Optional query params: status, client_id, page, per_page.
    """
    query = Invoice.objects(user_id=current_user.id)

    status = request.args.get("status")
    if status:
        query = query.filter(status=status)

    client_id = request.args.get("client_id")
    if client_id:
        try:
            query = query.filter(client_id=parse_object_id(client_id, "client_id"))
        except ValidationError as exc:
            return jsonify({"error": str(exc)}), 400

    try:
        page = max(int(request.args.get("page", 1)), 1)
        per_page = min(max(int(request.args.get("per_page", 25)), 1), 100)
    except ValueError:
        return jsonify({"error": "page and per_page must be integers"}), 400

    query = query.order_by("-created_at")
    total = query.count()
    items = list(query.skip((page - 1) * per_page).limit(per_page))
    pages = max(1, (total + per_page - 1) // per_page)

    return jsonify({
        "invoices": [serialize_invoice(i) for i in items],
        "total": total,
        "page": page,
        "pages": pages,
    })


# --------------------------------------------------------------------------
# Next number / totals preview
# --------------------------------------------------------------------------
@api_bp.route("/invoices/next-number", methods=["GET"])
@token_required
def next_invoice_number(current_user: User):
    """The number a new invoice would receive right now (not reserved)."""
    return jsonify({"invoice_number": preview_next_invoice_number(InvoiceStore(), current_user.id)})


@api_bp.route("/invoices/preview", methods=["POST"])
@token_required
def preview_totals(current_user: User):
    """
    Totals for an invoice being edited. Nothing is saved.

    JSON body: { "items": [...], "discount": 10, "tax_rate": 13 }
    """
    data = request.get_json(silent=True) or {}
    try:
        items = parse_items(data.get("items") or [])
        discount = parse_discount(data.get("discount"))
        payload = {"tax_type": parse_tax_type(data.get("tax_type"))}
        if data.get("tax_rate") is not None:
            payload["tax_rate"] = parse_tax_rate(data["tax_rate"])
        _resolve_tax(current_user, payload)
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400

    totals = calculate_totals(items, discount, payload.get("tax_rate", 0)).quantized()
    return jsonify(serialize_totals(totals))


# --------------------------------------------------------------------------
# Get single invoice
# --------------------------------------------------------------------------
@api_bp.route("/invoices/<invoice_id>", methods=["GET"])
@token_required
def get_invoice(current_user: User, invoice_id):
    invoice = _get_invoice(invoice_id, current_user)
    if not invoice:
        return jsonify({"error": "Invoice not found"}), 404

    return jsonify(serialize_invoice(invoice, include_items=True))


# --------------------------------------------------------------------------
# Create invoice
# --------------------------------------------------------------------------
@api_bp.route("/invoices", methods=["POST"])
@token_required
def create_invoice(current_user: User):
    """
    JSON body:
    {
      "client_id": "...",
      "issue_date": "2026-03-01",
      "due_date": "2026-03-31",
      "discount": 0,
      "tax_rate": 13,            # or "tax_type": "ON-HST"
      "invoice_number": "...",   # optional; generated when omitted
      "items": [
        { "description": "...", "quantity": 1, "unit_price": 100.0 }
      ]
    }
    """
    data = request.get_json(silent=True) or {}

    try:
        payload = parse_invoice_payload(data)
        _resolve_tax(current_user, payload)
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400

    if not _owns_client(current_user, payload["client_id"]):
        return jsonify({"error": "Client not found"}), 404

    try:
        invoice = create_invoice_record(
            InvoiceStore(),
            current_user.id,
            payload,
            max_attempts=current_app.config["INVOICE_NUMBER_MAX_ATTEMPTS"],
        )
    except (ConflictError, InvoiceNumberAllocationError) as exc:
        return jsonify({"error": str(exc)}), 409
    except me.ValidationError as exc:
        return jsonify({"error": str(exc)}), 400

    return jsonify(serialize_invoice(invoice, include_items=True)), 201


# --------------------------------------------------------------------------
# Update invoice
# --------------------------------------------------------------------------
@api_bp.route("/invoices/<invoice_id>", methods=["PUT", "PATCH"])
@token_required
def update_invoice(current_user: User, invoice_id):
    invoice = _get_invoice(invoice_id, current_user)
    if not invoice:
        return jsonify({"error": "Invoice not found"}), 404

    data = request.get_json(silent=True) or {}

    try:
        changes = parse_invoice_payload(data, partial=True)
        _resolve_tax(current_user, changes)
        if "client_id" in changes and not _owns_client(current_user, changes["client_id"]):
            return jsonify({"error": "Client not found"}), 404
        apply_invoice_changes(invoice, changes)
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400

    try:
        invoice.save()
    except me.ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    return jsonify(serialize_invoice(invoice, include_items=True))


# --------------------------------------------------------------------------
# Delete invoice
# --------------------------------------------------------------------------
@api_bp.route("/invoices/<invoice_id>", methods=["DELETE"])
@token_required
def delete_invoice(current_user: User, invoice_id):
    invoice = _get_invoice(invoice_id, current_user)
    if not invoice:
        return jsonify({"error": "Invoice not found"}), 404

    if invoice.status == "paid":
        return jsonify({"error": "Cannot delete a paid invoice"}), 400

    invoice.delete()
    return jsonify({"message": "Invoice deleted"}), 200


# --------------------------------------------------------------------------
# Pay invoice
# --------------------------------------------------------------------------
@api_bp.route("/invoices/<invoice_id>/pay", methods=["POST"])
@token_required
def pay_invoice(current_user: User, invoice_id):
    invoice = _get_invoice(invoice_id, current_user)
    if not invoice:
        return jsonify({"error": "Invoice not found"}), 404

    try:
        mark_invoice_paid(invoice)
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400

    invoice.save()
    return jsonify({
        "message": "Invoice paid",
        "invoice": serialize_invoice(invoice),
    }), 200
