"""
API — Dashboard statistics.
"""

from datetime import datetime
from decimal import Decimal

from flask import jsonify

from invoicely.models import User, Invoice
from invoicely.api import api_bp
from invoicely.api.auth import token_required
from invoicely.services.invoice_service import is_overdue
from invoicely.services.totals import quantize_amount


def _bucket(invoices) -> dict:
    amount = sum((Decimal(i.total or 0) for i in invoices), Decimal("0"))
    return {"count": len(invoices), "amount": float(quantize_amount(amount))}


@api_bp.route("/dashboard/stats", methods=["GET"])
@token_required
def dashboard_stats(current_user: User):
    """Summary statistics for the caller's invoices."""
    now = datetime.utcnow()
    today = now.date()

    invoices = list(Invoice.objects(user_id=current_user.id))

    paid = [i for i in invoices if i.status == "paid"]
    overdue = [i for i in invoices if is_overdue(i, today)]
    pending = [
        i for i in invoices
        if i.status not in ("paid", "draft") and not is_overdue(i, today)
    ]

    return jsonify({
        "total_invoices": len(invoices),
        "total_revenue": _bucket(paid)["amount"],
        "pending": _bucket(pending),
        "overdue": _bucket(overdue),
        "monthly_invoices": sum(
            1 for i in invoices
            if i.issue_date and (i.issue_date.year, i.issue_date.month) == (now.year, now.month)
        ),
    })
