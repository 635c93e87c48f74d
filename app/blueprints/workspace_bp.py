"""
Delivery Tracker
Workspace Blueprint: error logs, DMS documents and team structure.

Endpoints:
  GET  /api/v1/error-logs    — Error logs (members: own team only)
  POST /api/v1/error-logs    — Report an error against a submission
  GET  /api/v1/documents     — DMS documents
  POST /api/v1/documents     — Create a document
  GET  /api/v1/teams         — Team structure with build / QA rosters (admin)
"""

import logging

from flask import Blueprint, jsonify, request

from app.auth import current_user, require_role
from app.blueprints import register_error_handlers
from app.services import document_service, error_log_service
from app.services.store import TrackerStore

logger = logging.getLogger(__name__)

workspace_bp = Blueprint("workspace_bp", __name__, url_prefix="/api/v1")
register_error_handlers(workspace_bp)


# ── Error logs ───────────────────────────────────────────────────────────


@workspace_bp.route("/error-logs", methods=["GET"])
def list_error_logs():
    logs = error_log_service.list_error_logs(TrackerStore(), current_user())
    return jsonify({"items": [log.to_dict() for log in logs], "total": len(logs)}), 200


@workspace_bp.route("/error-logs", methods=["POST"])
def create_error_log():
    data = request.get_json(silent=True) or {}
    if data.get("submission_id") is None:
        return jsonify({"error": "submission_id is required"}), 400
    log = error_log_service.add_error_log(
        TrackerStore(), data["submission_id"], data.get("description"), reported_by_id=current_user().id,
    )
    return jsonify(log.to_dict()), 201


# ── Documents ────────────────────────────────────────────────────────────


@workspace_bp.route("/documents", methods=["GET"])
def list_documents():
    docs = document_service.list_documents(TrackerStore())
    return jsonify({"items": [d.to_dict() for d in docs], "total": len(docs)}), 200


@workspace_bp.route("/documents", methods=["POST"])
def create_document():
    data = request.get_json(silent=True) or {}
    doc = document_service.create_document(
        TrackerStore(), data.get("title"), data.get("content", ""), author=current_user(),
    )
    return jsonify(doc.to_dict()), 201


# ── Team structure ───────────────────────────────────────────────────────


@workspace_bp.route("/teams", methods=["GET"])
@require_role("admin")
def list_teams():
    teams = TrackerStore().list_teams()
    return jsonify({"items": [t.to_dict() for t in teams], "total": len(teams)}), 200
