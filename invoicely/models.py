"""
MongoEngine document models.

All collections are defined here. Connect to MongoDB via
``mongoengine.connect()`` in the application factory.
"""

from datetime import datetime

import mongoengine as me
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

INVOICE_STATUSES = ("draft", "ready", "sent", "viewed", "paid", "overdue")
TEMPLATE_IDS = ("classic", "modern", "creative", "professional")


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------
class User(UserMixin, me.Document):
    """Account owning clients, settings and invoices."""

    meta = {"collection": "users"}

    email = me.EmailField(required=True, unique=True, max_length=120)
    full_name = me.StringField(required=True, max_length=100)
    password_hash = me.StringField(max_length=256)
    created_at = me.DateTimeField(default=datetime.utcnow)

    # -- Authentication helpers ------------------------------------------------

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        if self.password_hash:
            return check_password_hash(self.password_hash, password)
        return False

    def __repr__(self) -> str:
        return f"<User {self.email}>"


# ---------------------------------------------------------------------------
# BusinessSettings (one per user)
# ---------------------------------------------------------------------------
class BusinessSettings(me.Document):
    """Company profile and invoice numbering preferences."""

    meta = {"collection": "business_settings"}

    user_id = me.ObjectIdField(required=True, unique=True)
    company_name = me.StringField(max_length=150)
    business_legal_name = me.StringField(max_length=150)
    email = me.StringField(max_length=120)
    phone_number = me.StringField(max_length=30)
    address = me.StringField(max_length=255)
    province = me.StringField(max_length=2)
    gst_number = me.StringField(max_length=30)
    invoice_prefix = me.StringField(default="", max_length=20)
    invoice_start_number = me.IntField(default=1, min_value=1)
    default_template = me.StringField(default="classic", choices=TEMPLATE_IDS)
    primary_color = me.StringField(max_length=20)
    secondary_color = me.StringField(max_length=20)
    updated_at = me.DateTimeField(default=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<BusinessSettings {self.user_id}>"


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------
class Client(me.Document):
    """A customer invoices are issued to."""

    meta = {"collection": "clients", "indexes": ["user_id"]}

    user_id = me.ObjectIdField(required=True)
    company_name = me.StringField(max_length=150)
    contact_name = me.StringField(max_length=100)
    email = me.StringField(max_length=120)
    phone_number = me.StringField(max_length=30)
    address = me.StringField(max_length=255)
    gst_number = me.StringField(max_length=30)
    notes = me.StringField()
    created_at = me.DateTimeField(default=datetime.utcnow)

    @property
    def display_name(self) -> str:
        return self.company_name or self.contact_name or ""

    def __repr__(self) -> str:
        return f"<Client {self.display_name}>"


# ---------------------------------------------------------------------------
# TaxConfiguration
# ---------------------------------------------------------------------------
class TaxConfiguration(me.Document):
    """A sales tax available to a user, e.g. ``ON-HST`` at 13 %."""

    meta = {"collection": "tax_configurations", "indexes": ["user_id"]}

    user_id = me.ObjectIdField(required=True)
    province_code = me.StringField(required=True, max_length=2)
    tax_name = me.StringField(required=True, max_length=10, unique_with=["user_id", "province_code"])
    tax_rate = me.DecimalField(required=True, min_value=0, precision=3)
    is_enabled = me.BooleanField(default=True)

    @property
    def tax_type(self) -> str:
        return f"{self.province_code}-{self.tax_name}"

    def __repr__(self) -> str:
        return f"<TaxConfiguration {self.tax_type} {self.tax_rate}>"


# ---------------------------------------------------------------------------
# InvoiceItem (embedded inside Invoice)
# ---------------------------------------------------------------------------
class InvoiceItem(me.EmbeddedDocument):
    """A single line item on an invoice."""

    description = me.StringField(required=True, max_length=200)
    quantity = me.DecimalField(required=True, min_value=0, precision=3)
    unit_price = me.DecimalField(required=True, min_value=0, precision=2)
    total = me.DecimalField(required=True, precision=2)

    def __repr__(self) -> str:
        return f"<InvoiceItem {self.description[:30]}>"


# ---------------------------------------------------------------------------
# Invoice
# ---------------------------------------------------------------------------
class Invoice(me.Document):
    """Client invoice with embedded line items."""

    meta = {
        "collection": "invoices",
        "indexes": ["user_id", "client_id", "-created_at"],
    }

    user_id = me.ObjectIdField(required=True)
    client_id = me.ObjectIdField(required=True)
    invoice_number = me.StringField(required=True, max_length=30, unique_with="user_id")
    status = me.StringField(default="draft", required=True, choices=INVOICE_STATUSES)
    issue_date = me.DateTimeField(default=datetime.utcnow)
    due_date = me.DateTimeField()

    items = me.EmbeddedDocumentListField(InvoiceItem)
    subtotal = me.DecimalField(default=0, precision=2)
    discount = me.DecimalField(default=0, precision=2)  # percent
    discount_amount = me.DecimalField(default=0, precision=2)
    tax_rate = me.DecimalField(default=0, precision=3)  # percent
    tax_type = me.StringField(max_length=20)
    tax_amount = me.DecimalField(default=0, precision=2)
    total = me.DecimalField(default=0, precision=2)

    notes = me.StringField()
    template_id = me.StringField(default="classic", choices=TEMPLATE_IDS)
    created_at = me.DateTimeField(default=datetime.utcnow)
    updated_at = me.DateTimeField(default=datetime.utcnow)
    sent_at = me.DateTimeField()
    paid_at = me.DateTimeField()

    def __repr__(self) -> str:
        return f"<Invoice {self.invoice_number}>"
