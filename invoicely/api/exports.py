"""
API — CSV report export.
"""

import csv
import io
from datetime import datetime

from flask import Response, jsonify, request

from invoicely.models import User, Client, Invoice
from invoicely.api import api_bp
from invoicely.api.auth import token_required
from invoicely.api.validation import parse_date
from invoicely.errors import ValidationError

CSV_HEADER = [
    "Invoice Number", "Client", "Status", "Issue Date", "Due Date",
    "Subtotal", "Discount (%)", "Discount", "Tax Type", "Tax Rate (%)",
    "Tax", "Total", "Paid At",
]


def _csv_response(output: io.StringIO, filename: str) -> Response:
    """Build a CSV download response."""
    output.seek(0)
    return Response(
        output.getvalue(),
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


def _timestamp() -> str:
    return datetime.utcnow().strftime("%Y%m%d_%H%M%S")


def _fmt_date(value) -> str:
    return value.strftime("%Y-%m-%d") if value else ""


@api_bp.route("/exports/invoices.csv", methods=["GET"])
@token_required
def export_invoices_csv(current_user: User):
    """
    The caller's invoices as CSV.
    Optional query params: status, from, to (issue date, YYYY-MM-DD, inclusive).
    """
    query = Invoice.objects(user_id=current_user.id)

    status = request.args.get("status")
    if status:
        query = query.filter(status=status)

    try:
        date_from = parse_date(request.args.get("from"), "from")
        date_to = parse_date(request.args.get("to"), "to")
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    if date_from:
        query = query.filter(issue_date__gte=date_from)
    if date_to:
        query = query.filter(issue_date__lt=date_to.replace(hour=23, minute=59, second=59, microsecond=999999))

    clients = {c.id: c.display_name for c in Client.objects(user_id=current_user.id)}

    buf = io.StringIO()
    w = csv.writer(buf)
    w.writerow(CSV_HEADER)
    for inv in query.order_by("issue_date", "invoice_number"):
        w.writerow([
            inv.invoice_number,
            clients.get(inv.client_id, ""),
            inv.status,
            _fmt_date(inv.issue_date),
            _fmt_date(inv.due_date),
            f"{inv.subtotal:.2f}",
            f"{inv.discount:.2f}",
            f"{inv.discount_amount:.2f}",
            inv.tax_type or "",
            f"{inv.tax_rate:.3f}".rstrip("0").rstrip("."),
            f"{inv.tax_amount:.2f}",
            f"{inv.total:.2f}",
            inv.paid_at.strftime("%Y-%m-%d %H:%M") if inv.paid_at else "",
        ])
    return _csv_response(buf, f"invoices_{_timestamp()}.csv")
