"""
Bulk Import Blueprint

CSV-based bulk submission import and export endpoints.

Endpoints:
  GET  /api/v1/submissions/import/template   — Download CSV template
  POST /api/v1/submissions/import            — Upload & import CSV (admin)
  GET  /api/v1/submissions/export            — Download visible submissions as CSV
"""

import logging

from flask import Blueprint, Response, jsonify, request

from app.auth import current_user, require_role
from app.blueprints import register_error_handlers
from app.core.exceptions import FatalImportError
from app.services.bulk_import_service import generate_csv_template, import_submissions_from_csv
from app.services.export_service import export_submissions_csv
from app.services.store import TrackerStore
from app.services.submission_service import visible_submissions

logger = logging.getLogger(__name__)

bulk_import_bp = Blueprint("bulk_import_bp", __name__, url_prefix="/api/v1/submissions")
register_error_handlers(bulk_import_bp)


# ═══════════════════════════════════════════════════════════════
# Template Download
# ═══════════════════════════════════════════════════════════════
@bulk_import_bp.route("/import/template", methods=["GET"])
def download_template():
    """Download a CSV template for bulk submission import."""
    return Response(
        generate_csv_template(),
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=submission_import_template.csv"},
    )


# ═══════════════════════════════════════════════════════════════
# Import
# ═══════════════════════════════════════════════════════════════
@bulk_import_bp.route("/import", methods=["POST"])
@require_role("admin")
def import_csv():
    """Upload and import a CSV file of submissions.

    200 when every row committed, 207 when some rows failed or were
    duplicates. A FatalImportError becomes a 400 via the error handler.
    """
    file_content = _extract_file_content()
    if not file_content:
        return jsonify({"error": "CSV file is required (file upload or raw body)"}), 400

    result = import_submissions_from_csv(TrackerStore(), file_content, submitter_name=current_user().name)
    status_code = 200 if not result.error_count and not result.duplicate_count else 207
    return jsonify(result.to_dict()), status_code


# ═══════════════════════════════════════════════════════════════
# Export
# ═══════════════════════════════════════════════════════════════
@bulk_import_bp.route("/export", methods=["GET"])
def export_csv():
    """Export the submissions the caller can see, with the table filters applied."""
    store = TrackerStore()
    subs = visible_submissions(
        store,
        current_user(),
        view=request.args.get("view", "all"),
        text=request.args.get("q"),
        team=request.args.get("team"),
        status=request.args.get("status"),
    )
    return Response(
        export_submissions_csv(store, subs),
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=submissions_export.csv"},
    )


# ═══════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════
def _extract_file_content() -> str | None:
    """Extract CSV file content from multipart upload, JSON or raw body."""
    # Multipart file upload
    if request.files:
        file = request.files.get("file")
        if file:
            return _decode(file.read())

    # JSON body with csv_content field
    data = request.get_json(silent=True)
    if data and "csv_content" in data:
        return data["csv_content"]

    # Raw body
    if request.data:
        return _decode(request.data)

    return None


def _decode(raw: bytes) -> str:
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise FatalImportError("CSV must be UTF-8 encoded.") from exc
