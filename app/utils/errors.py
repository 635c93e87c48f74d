"""JSON error bodies shared by every blueprint.

Every failure response looks like ``{"error": <message>, "code": <E.*>}``
with an optional ``details`` object, so the dashboard can branch on
``code`` instead of parsing messages.

    return api_error(E.CONFLICT_STATE, "Timer is already running")
"""

from __future__ import annotations

from flask import jsonify


class E:
    """Machine-readable error codes."""

    VALIDATION_RULE = "ERR_VALIDATION_RULE"        # bad field value, 422
    IMPORT_FATAL = "ERR_IMPORT_FATAL"              # CSV batch rejected, 400
    NOT_FOUND = "ERR_NOT_FOUND"                    # 404
    CONFLICT_DUPLICATE = "ERR_CONFLICT_DUPLICATE"  # unique name taken, 409
    CONFLICT_STATE = "ERR_CONFLICT_STATE"          # illegal timer transition, 409
    UNAUTHENTICATED = "ERR_UNAUTHENTICATED"        # 401
    FORBIDDEN = "ERR_FORBIDDEN"                    # 403
    INTERNAL = "ERR_INTERNAL"                      # 500


_STATUS_BY_CODE: dict[str, int] = {
    E.VALIDATION_RULE: 422,
    E.IMPORT_FATAL: 400,
    E.NOT_FOUND: 404,
    E.CONFLICT_DUPLICATE: 409,
    E.CONFLICT_STATE: 409,
    E.UNAUTHENTICATED: 401,
    E.FORBIDDEN: 403,
    E.INTERNAL: 500,
}


def api_error(code: str, message: str, *, status: int | None = None, details: dict | None = None):
    """Build ``(response, status)`` for a view or error handler.

    ``status`` overrides the code's usual HTTP status; unknown codes
    fall back to 400.
    """
    body: dict = {"error": message, "code": code}
    if details:
        body["details"] = details
    return jsonify(body), status or _STATUS_BY_CODE.get(code, 400)
