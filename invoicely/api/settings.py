"""
API — Business settings, including invoice numbering preferences.
"""

from datetime import datetime

import mongoengine as me
from flask import jsonify, request

from invoicely.models import User, BusinessSettings, TEMPLATE_IDS
from invoicely.api import api_bp
from invoicely.api.auth import token_required
from invoicely.api.schemas import SETTINGS_FIELDS, serialize_settings
from invoicely.api.validation import clean_str
from invoicely.errors import ValidationError


def _get_or_init_settings(user: User) -> BusinessSettings:
    return BusinessSettings.objects(user_id=user.id).first() or BusinessSettings(user_id=user.id)


@api_bp.route("/settings", methods=["GET"])
@token_required
def get_settings(current_user: User):
    return jsonify(serialize_settings(_get_or_init_settings(current_user)))


@api_bp.route("/settings", methods=["PUT", "PATCH"])
@token_required
def update_settings(current_user: User):
    """
    Partial update; only the keys present are changed.

    ``invoice_start_number`` must be a positive integer. Changing the prefix
    or start number only affects invoices created afterwards.
    """
    data = request.get_json(silent=True) or {}
    settings = _get_or_init_settings(current_user)

    try:
        for field in SETTINGS_FIELDS:
            if field not in data:
                continue
            value = data[field]

            if field == "invoice_start_number":
                if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                    raise ValidationError("invoice_start_number must be a positive integer")
            elif field == "invoice_prefix":
                value = clean_str(value, field, max_length=20) or ""
            elif field == "default_template":
                if value not in TEMPLATE_IDS:
                    raise ValidationError(f"default_template must be one of: {', '.join(TEMPLATE_IDS)}")
            elif field == "province":
                value = (clean_str(value, field) or "").upper() or None
            else:
                value = clean_str(value, field)

            setattr(settings, field, value)
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400

    settings.updated_at = datetime.utcnow()
    try:
        settings.save()
    except me.ValidationError as exc:
        return jsonify({"error": str(exc)}), 400

    return jsonify(serialize_settings(settings))
