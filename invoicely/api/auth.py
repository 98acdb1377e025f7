"""
API authentication — registration, login and token verification.

Tokens are signed with the app's SECRET_KEY using itsdangerous
(bundled with Flask) and expire after ``TOKEN_MAX_AGE`` seconds.
flask-login resolves them into ``current_user`` on every request.
"""

from __future__ import annotations

import logging
from functools import wraps

import mongoengine as me
from bson import ObjectId
from bson.errors import InvalidId
from flask import current_app, jsonify, request
from flask_login import current_user
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

from invoicely.models import User
from invoicely.api import api_bp
from invoicely.api.schemas import serialize_user
from invoicely.api.validation import clean_str
from invoicely.errors import ValidationError
from invoicely.extensions import login_manager

logger = logging.getLogger(__name__)


def _get_serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt="api-token")


def generate_token(user: User) -> str:
    """Create a signed token encoding the user id."""
    s = _get_serializer()
    return s.dumps({"uid": str(user.id)})


def _find_user(user_id) -> User | None:
    try:
        return User.objects(id=ObjectId(user_id)).first()
    except (InvalidId, TypeError):
        return None


def verify_token(token: str) -> User | None:
    """Return the User for a valid token, or None."""
    s = _get_serializer()
    try:
        data = s.loads(token, max_age=current_app.config["TOKEN_MAX_AGE"])
    except (BadSignature, SignatureExpired):
        return None
    return _find_user(data.get("uid"))


@login_manager.user_loader
def load_user(user_id):
    return _find_user(user_id)


@login_manager.request_loader
def load_user_from_request(req):
    auth_header = req.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    return verify_token(auth_header[7:])


# ---------------------------------------------------------------------------
# Bearer token guard for API routes
# ---------------------------------------------------------------------------
def token_required(f):
    """Decorator that enforces a valid ``Authorization: Bearer <token>`` header."""

    @wraps(f)
    def decorated(*args, **kwargs):
        if not request.headers.get("Authorization", "").startswith("Bearer "):
            return jsonify({"error": "Missing or invalid Authorization header"}), 401
        if not current_user.is_authenticated:
            return jsonify({"error": "Invalid or expired token"}), 401

        # Inject the authenticated user into kwargs
        kwargs["current_user"] = current_user._get_current_object()
        return f(*args, **kwargs)

    return decorated


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@api_bp.route("/auth/register", methods=["POST"])
def api_register():
    """
    Create an account and receive a Bearer token.

    JSON body: { "email": "...", "full_name": "...", "password": "..." }
    """
    data = request.get_json(silent=True) or {}

    try:
        email = (clean_str(data.get("email"), "email") or "").lower()
        full_name = clean_str(data.get("full_name"), "full_name") or ""
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    password = data.get("password") or ""

    if not email or not full_name or not password:
        return jsonify({"error": "email, full_name and password are required"}), 400
    if not isinstance(password, str):
        return jsonify({"error": "password must be a string"}), 400
    if len(password) < 8:
        return jsonify({"error": "password must be at least 8 characters"}), 400

    user = User(email=email, full_name=full_name)
    user.set_password(password)
    try:
        user.save()
    except me.NotUniqueError:
        return jsonify({"error": "Email already registered"}), 409
    except me.ValidationError:
        return jsonify({"error": "Invalid email address"}), 400

    logger.info("Registered user %s", user.email)
    return jsonify({
        "token": generate_token(user),
        "user": serialize_user(user),
    }), 201


@api_bp.route("/auth/login", methods=["POST"])
def api_login():
    """
    Authenticate and receive a Bearer token.

    JSON body: { "email": "...", "password": "..." }
    """
    data = request.get_json(silent=True) or {}

    try:
        email = (clean_str(data.get("email"), "email") or "").lower()
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    password = data.get("password") or ""

    if not email or not password:
        return jsonify({"error": "email and password are required"}), 400
    if not isinstance(password, str):
        return jsonify({"error": "password must be a string"}), 400

    user = User.objects(email=email).first()

    if not user or not user.check_password(password):
        return jsonify({"error": "Invalid credentials"}), 401

    token = generate_token(user)
    return jsonify({
        "token": token,
        "user": serialize_user(user),
    }), 200


@api_bp.route("/auth/me")
@token_required
def api_me(current_user: User):
    """Return the profile of the currently authenticated user."""
    return jsonify(serialize_user(current_user))
