"""
User Blueprint — user administration.

API Endpoints (JSON):
  GET    /api/v1/users            — List users (role, team filters)
  POST   /api/v1/users            — Create user (admin)
  PUT    /api/v1/users/<id>       — Update user; empty password keeps the old one (admin)
  DELETE /api/v1/users/<id>       — Delete user (admin)
"""

import logging

from flask import Blueprint, jsonify, request

from app.auth import current_user, require_role
from app.blueprints import register_error_handlers
from app.core.exceptions import ValidationError
from app.models.enums import TeamName, UserRole
from app.services import user_service
from app.services.store import TrackerStore

logger = logging.getLogger(__name__)

user_bp = Blueprint("user_bp", __name__, url_prefix="/api/v1/users")
register_error_handlers(user_bp)


def _enum_arg(name, enum_cls):
    raw = request.args.get(name)
    if not raw:
        return None
    value = enum_cls.coerce(raw)
    if value is None:
        raise ValidationError(f"Invalid {name}: {raw}", details={name: f"must be one of {', '.join(enum_cls.values())}"})
    return value


@user_bp.route("", methods=["GET"])
def list_users():
    users = TrackerStore().list_users(role=_enum_arg("role", UserRole), team=_enum_arg("team", TeamName))
    return jsonify({"items": [u.to_dict() for u in users], "total": len(users)}), 200


@user_bp.route("", methods=["POST"])
@require_role("admin")
def create_user():
    data = request.get_json(silent=True) or {}
    user = user_service.create_user(TrackerStore(), data)
    return jsonify(user.to_dict()), 201


@user_bp.route("/<int:user_id>", methods=["PUT"])
@require_role("admin")
def update_user(user_id):
    store = TrackerStore()
    user = store.get_user_or_404(user_id)
    data = request.get_json(silent=True) or {}
    user = user_service.update_user(store, user, data)
    return jsonify(user.to_dict()), 200


@user_bp.route("/<int:user_id>", methods=["DELETE"])
@require_role("admin")
def delete_user(user_id):
    store = TrackerStore()
    user = store.get_user_or_404(user_id)
    if user.id == current_user().id:
        return jsonify({"error": "You cannot delete your own account"}), 400
    user_service.delete_user(store, user)
    return jsonify({"deleted": user_id}), 200
