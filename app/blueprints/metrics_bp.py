"""
Delivery Tracker
Metrics Blueprint: utilization ledger, reports and dashboard statistics.

Endpoints:
  GET  /api/v1/metrics                        — Per-member utilization (team, lead, user_id, start, end)
  POST /api/v1/metrics                        — Manual hours entry (admin)
  GET  /api/v1/metrics/users/<id>/daily       — Ledger rows for one user
  GET  /api/v1/metrics/export.xlsx            — Utilization workbook
  GET  /api/v1/dashboard/stats                — Role-gated dashboard totals
"""

import io
import logging
from datetime import datetime

from flask import Blueprint, jsonify, request, send_file

from app.auth import current_user, require_role
from app.blueprints import date_arg, register_error_handlers
from app.core.exceptions import NotFoundError
from app.services import metrics_service
from app.services.export_service import export_utilization_xlsx
from app.services.store import TrackerStore

logger = logging.getLogger(__name__)

metrics_bp = Blueprint("metrics_bp", __name__, url_prefix="/api/v1")
register_error_handlers(metrics_bp)


def _filtered_rows(store: TrackerStore):
    """Utilization rows for the query-string filters.

    Members are pinned to their own team whatever filters they send.
    """
    user = current_user()
    team = request.args.get("team")
    lead = request.args.get("lead")
    if not user.is_admin:
        team, lead = (user.team.value if user.team else None), None
        if team is None:
            return [], None, None
    start, end = date_arg("start"), date_arg("end")
    rows = metrics_service.filtered_user_metrics(
        store,
        team=team,
        user_id=request.args.get("user_id", type=int),
        lead=lead,
        start=start,
        end=end,
    )
    return rows, start, end


@metrics_bp.route("/metrics", methods=["GET"])
def list_metrics():
    rows, _, _ = _filtered_rows(TrackerStore())
    return jsonify({"items": rows, "total": len(rows)}), 200


@metrics_bp.route("/metrics", methods=["POST"])
@require_role("admin")
def add_metric():
    data = request.get_json(silent=True) or {}
    if data.get("user_id") is None or data.get("hours") is None:
        return jsonify({"error": "user_id and hours are required"}), 400
    metric = metrics_service.add_manual_metric(
        TrackerStore(), data["user_id"], data["hours"], data.get("day"),
    )
    return jsonify(metric.to_dict()), 201


@metrics_bp.route("/metrics/users/<int:user_id>/daily", methods=["GET"])
def daily_metrics(user_id):
    store = TrackerStore()
    user = current_user()
    target = store.get_user_or_404(user_id)
    if not user.is_admin and target.team != user.team:
        raise NotFoundError(resource="User", resource_id=user_id)
    rows = metrics_service.daily_metrics_for_user(store, user_id, date_arg("start"), date_arg("end"))
    return jsonify({"items": [m.to_dict() for m in rows], "total": len(rows)}), 200


@metrics_bp.route("/metrics/export.xlsx", methods=["GET"])
def export_metrics_xlsx():
    rows, start, end = _filtered_rows(TrackerStore())
    content = export_utilization_xlsx(rows, start=start, end=end)
    filename = f"utilization_{datetime.now().strftime('%Y%m%d')}.xlsx"
    return send_file(
        io.BytesIO(content),
        download_name=filename,
        as_attachment=True,
        mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )


@metrics_bp.route("/dashboard/stats", methods=["GET"])
def dashboard_stats():
    return jsonify(metrics_service.dashboard_stats(TrackerStore(), current_user())), 200
