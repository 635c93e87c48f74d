"""
Delivery Tracker
Notification Blueprint.

Provides:
    - The caller's notifications, newest first, with the unread count
    - Mark-as-read
"""

import logging

from flask import Blueprint, jsonify, request

from app.auth import current_user
from app.blueprints import register_error_handlers
from app.services.notification import NotificationService

logger = logging.getLogger(__name__)

notification_bp = Blueprint("notification_bp", __name__, url_prefix="/api/v1/notifications")
register_error_handlers(notification_bp)


@notification_bp.route("", methods=["GET"])
def list_notifications():
    user = current_user()
    unread_only = request.args.get("unread", "false").lower() == "true"
    limit = min(request.args.get("limit", 50, type=int), 200)
    offset = max(request.args.get("offset", 0, type=int), 0)
    items, total = NotificationService.list_for_user(
        user.id, unread_only=unread_only, limit=limit, offset=offset,
    )
    return jsonify({
        "items": [n.to_dict() for n in items],
        "total": total,
        "unread_count": NotificationService.unread_count(user.id),
    }), 200


@notification_bp.route("/<int:notification_id>/read", methods=["POST"])
def mark_read(notification_id):
    notif = NotificationService.mark_read(notification_id, user_id=current_user().id)
    return jsonify(notif.to_dict()), 200
