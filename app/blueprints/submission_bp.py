"""
Delivery Tracker
Submission Blueprint: CRUD, status changes and the work timer.

Endpoints:
  GET    /api/v1/submissions                 — Visible submissions (view, q, team, status)
  POST   /api/v1/submissions                 — Manual entry
  GET    /api/v1/submissions/<id>            — One submission
  PUT    /api/v1/submissions/<id>            — Edit (status routed through the timer)
  POST   /api/v1/submissions/bulk-delete     — Delete by ids (admin)
  GET    /api/v1/submissions/counts          — Per-team today / total counts
  POST   /api/v1/submissions/<id>/status     — Change task status
  POST   /api/v1/submissions/<id>/start      — Start timer
  POST   /api/v1/submissions/<id>/pause      — Pause timer (reason required)
  POST   /api/v1/submissions/<id>/resume     — Resume timer
  POST   /api/v1/submissions/<id>/stop       — Stop timer
  GET    /api/v1/submissions/<id>/timer      — Live timer display (read-only)
"""

import logging

from flask import Blueprint, jsonify, request

from app.auth import current_user, require_role
from app.blueprints import register_error_handlers
from app.core.exceptions import NotFoundError
from app.services import submission_service, timer_service
from app.services.store import TrackerStore

logger = logging.getLogger(__name__)

submission_bp = Blueprint("submission_bp", __name__, url_prefix="/api/v1/submissions")
register_error_handlers(submission_bp)


def _get_visible_or_404(store: TrackerStore, submission_id: int):
    """Members may only reach submissions of their own team."""
    sub = store.get_submission_or_404(submission_id)
    user = current_user()
    if not user.is_admin and sub.team != user.team:
        raise NotFoundError(resource="Submission", resource_id=submission_id)
    return sub


# ── CRUD ─────────────────────────────────────────────────────────────────


@submission_bp.route("", methods=["GET"])
def list_submissions():
    store = TrackerStore()
    subs = submission_service.visible_submissions(
        store,
        current_user(),
        view=request.args.get("view", "all"),
        text=request.args.get("q"),
        team=request.args.get("team"),
        status=request.args.get("status"),
    )
    return jsonify({"items": [s.to_dict() for s in subs], "total": len(subs)}), 200


@submission_bp.route("", methods=["POST"])
def create_submission():
    data = request.get_json(silent=True) or {}
    sub = submission_service.create_submission(TrackerStore(), data, submitter=current_user())
    return jsonify(sub.to_dict()), 201


@submission_bp.route("/<int:submission_id>", methods=["GET"])
def get_submission(submission_id):
    sub = _get_visible_or_404(TrackerStore(), submission_id)
    return jsonify(sub.to_dict()), 200


@submission_bp.route("/<int:submission_id>", methods=["PUT"])
def update_submission(submission_id):
    store = TrackerStore()
    sub = _get_visible_or_404(store, submission_id)
    data = request.get_json(silent=True) or {}
    sub = submission_service.update_submission(store, sub, data, actor=current_user())
    return jsonify(sub.to_dict()), 200


@submission_bp.route("/bulk-delete", methods=["POST"])
@require_role("admin")
def bulk_delete():
    data = request.get_json(silent=True) or {}
    ids = data.get("ids")
    if not isinstance(ids, list):
        return jsonify({"error": "ids must be a list"}), 400
    removed = submission_service.delete_submissions(TrackerStore(), ids)
    return jsonify({"deleted": removed}), 200


@submission_bp.route("/counts", methods=["GET"])
def counts():
    return jsonify(submission_service.submission_counts(TrackerStore())), 200


# ── Status & timer ───────────────────────────────────────────────────────


@submission_bp.route("/<int:submission_id>/status", methods=["POST"])
def change_status(submission_id):
    store = TrackerStore()
    sub = _get_visible_or_404(store, submission_id)
    data = request.get_json(silent=True) or {}
    if not data.get("status"):
        return jsonify({"error": "status is required"}), 400
    timer_service.change_status(store, sub, data["status"], actor_id=current_user().id)
    return jsonify(sub.to_dict()), 200


@submission_bp.route("/<int:submission_id>/start", methods=["POST"])
def start_timer(submission_id):
    store = TrackerStore()
    sub = _get_visible_or_404(store, submission_id)
    timer_service.start_timer(store, sub)
    return jsonify(sub.to_dict()), 200


@submission_bp.route("/<int:submission_id>/pause", methods=["POST"])
def pause_timer(submission_id):
    store = TrackerStore()
    sub = _get_visible_or_404(store, submission_id)
    data = request.get_json(silent=True) or {}
    timer_service.pause_timer(store, sub, data.get("reason"), actor_id=current_user().id)
    return jsonify(sub.to_dict()), 200


@submission_bp.route("/<int:submission_id>/resume", methods=["POST"])
def resume_timer(submission_id):
    store = TrackerStore()
    sub = _get_visible_or_404(store, submission_id)
    timer_service.resume_timer(store, sub)
    return jsonify(sub.to_dict()), 200


@submission_bp.route("/<int:submission_id>/stop", methods=["POST"])
def stop_timer(submission_id):
    store = TrackerStore()
    sub = _get_visible_or_404(store, submission_id)
    timer_service.stop_timer(store, sub, actor_id=current_user().id)
    return jsonify(sub.to_dict()), 200


@submission_bp.route("/<int:submission_id>/timer", methods=["GET"])
def timer_display(submission_id):
    sub = _get_visible_or_404(TrackerStore(), submission_id)
    return jsonify(timer_service.timer_display(sub)), 200
