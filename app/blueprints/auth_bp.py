"""
Auth Blueprint — sign-in endpoints.

Endpoints:
  POST /api/v1/auth/login       — Name + password → user profile
  GET  /api/v1/auth/me          — Current user profile (X-User-Id)
"""

from flask import Blueprint, jsonify, request

from app.auth import current_user
from app.blueprints import register_error_handlers
from app.services.store import TrackerStore
from app.services.user_service import authenticate

auth_bp = Blueprint("auth_bp", __name__, url_prefix="/api/v1/auth")
register_error_handlers(auth_bp)


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/login
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/login", methods=["POST"])
def login():
    """
    Authenticate with name + password.

    Body: { "name": "...", "password": "..." }
    The client sends the returned id as X-User-Id on later requests.
    """
    data = request.get_json(silent=True) or {}
    name = (data.get("name") or "").strip()
    password = data.get("password") or ""

    if not name or not password:
        return jsonify({"error": "Name and password are required"}), 400

    user = authenticate(TrackerStore(), name, password)
    if user is None:
        return jsonify({"error": "Invalid name or password"}), 401

    return jsonify({"user": user.to_dict()}), 200


# ═══════════════════════════════════════════════════════════════
# GET /api/v1/auth/me
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/me", methods=["GET"])
def me():
    return jsonify({"user": current_user().to_dict()}), 200
