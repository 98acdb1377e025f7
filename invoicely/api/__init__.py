"""
RESTful API v1 — JSON endpoints for Invoicely.

All routes are prefixed with ``/api/v1``.
"""

from flask import Blueprint

api_bp = Blueprint("api", __name__, url_prefix="/api/v1")

from invoicely.api import auth, settings, clients, taxes, invoices, dashboard, exports  # noqa: E402, F401
