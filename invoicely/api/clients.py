"""
API — Client management, scoped to the authenticated user.
"""

import mongoengine as me
from flask import jsonify, request

from invoicely.models import User, Client, Invoice
from invoicely.api import api_bp
from invoicely.api.auth import token_required
from invoicely.api.schemas import CLIENT_FIELDS, serialize_client
from invoicely.api.validation import clean_str
from invoicely.errors import ValidationError


def _get_client(client_id, user: User):
    try:
        return Client.objects(id=client_id, user_id=user.id).first()
    except me.ValidationError:
        return None


# --------------------------------------------------------------------------
# List clients
# --------------------------------------------------------------------------
@api_bp.route("/clients", methods=["GET"])
@token_required
def list_clients(current_user: User):
    query = Client.objects(user_id=current_user.id)
    search = request.args.get("q")
    if search:
        query = query.filter(me.Q(company_name__icontains=search) | me.Q(contact_name__icontains=search))
    return jsonify([serialize_client(c) for c in query.order_by("company_name", "contact_name")])


# --------------------------------------------------------------------------
# Get single client
# --------------------------------------------------------------------------
@api_bp.route("/clients/<client_id>", methods=["GET"])
@token_required
def get_client(current_user: User, client_id):
    client = _get_client(client_id, current_user)
    if not client:
        return jsonify({"error": "Client not found"}), 404
    return jsonify(serialize_client(client))


# --------------------------------------------------------------------------
# Create client
# --------------------------------------------------------------------------
@api_bp.route("/clients", methods=["POST"])
@token_required
def create_client(current_user: User):
    data = request.get_json(silent=True) or {}

    try:
        fields = {field: clean_str(data.get(field), field) for field in CLIENT_FIELDS}
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    if not fields["company_name"] and not fields["contact_name"]:
        return jsonify({"error": "company_name or contact_name is required"}), 400

    client = Client(user_id=current_user.id, **fields)
    try:
        client.save()
    except me.ValidationError as exc:
        return jsonify({"error": str(exc)}), 400

    return jsonify(serialize_client(client)), 201


# --------------------------------------------------------------------------
# Update client
# --------------------------------------------------------------------------
@api_bp.route("/clients/<client_id>", methods=["PUT", "PATCH"])
@token_required
def update_client(current_user: User, client_id):
    client = _get_client(client_id, current_user)
    if not client:
        return jsonify({"error": "Client not found"}), 404

    data = request.get_json(silent=True) or {}

    try:
        for field in CLIENT_FIELDS:
            if field in data:
                setattr(client, field, clean_str(data[field], field))
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400

    if not client.company_name and not client.contact_name:
        return jsonify({"error": "company_name or contact_name is required"}), 400

    try:
        client.save()
    except me.ValidationError as exc:
        return jsonify({"error": str(exc)}), 400

    return jsonify(serialize_client(client))


# --------------------------------------------------------------------------
# Delete client
# --------------------------------------------------------------------------
@api_bp.route("/clients/<client_id>", methods=["DELETE"])
@token_required
def delete_client(current_user: User, client_id):
    client = _get_client(client_id, current_user)
    if not client:
        return jsonify({"error": "Client not found"}), 404

    if Invoice.objects(user_id=current_user.id, client_id=client.id).first():
        return jsonify({"error": "Cannot delete a client with invoices"}), 400

    client.delete()
    return jsonify({"message": "Client deleted"}), 200
