"""
API — Tax configurations.
"""

import mongoengine as me
from flask import jsonify, request

from invoicely.models import User, TaxConfiguration
from invoicely.api import api_bp
from invoicely.api.auth import token_required
from invoicely.api.schemas import serialize_tax_configuration
from invoicely.api.validation import TAX_RATE_PLACES, parse_decimal
from invoicely.errors import ValidationError
from invoicely.services.tax_service import seed_tax_configurations


@api_bp.route("/taxes", methods=["GET"])
@token_required
def list_taxes(current_user: User):
    """Optional query param ``enabled=1`` limits the list to enabled taxes."""
    query = TaxConfiguration.objects(user_id=current_user.id)
    if request.args.get("enabled") in ("1", "true"):
        query = query.filter(is_enabled=True)
    return jsonify([
        serialize_tax_configuration(t) for t in query.order_by("province_code", "tax_name")
    ])


@api_bp.route("/taxes/seed", methods=["POST"])
@token_required
def seed_taxes(current_user: User):
    added = seed_tax_configurations(current_user.id)
    return jsonify({"added": added}), 200


@api_bp.route("/taxes/<tax_id>", methods=["PUT", "PATCH"])
@token_required
def update_tax(current_user: User, tax_id):
    try:
        config = TaxConfiguration.objects(id=tax_id, user_id=current_user.id).first()
    except me.ValidationError:
        config = None
    if not config:
        return jsonify({"error": "Tax configuration not found"}), 404

    data = request.get_json(silent=True) or {}

    if "tax_rate" in data:
        try:
            config.tax_rate = parse_decimal(
                data["tax_rate"], "tax_rate", minimum=0, maximum=100, places=TAX_RATE_PLACES
            )
        except ValidationError as exc:
            return jsonify({"error": str(exc)}), 400
    if "is_enabled" in data:
        if not isinstance(data["is_enabled"], bool):
            return jsonify({"error": "is_enabled must be a boolean"}), 400
        config.is_enabled = data["is_enabled"]

    config.save()
    return jsonify(serialize_tax_configuration(config))
