"""
Delivery Tracker
Authentication & Authorization Middleware.

Provides:
    - Request identity via the X-User-Id header (set by the UI after login)
    - Role-based access control (RBAC) decorator

Security model:
    - All /api/v1/* endpoints require the id of an existing user, except
      /api/v1/health and /api/v1/auth/login
    - Admin-only endpoints (user administration, CSV import, bulk delete,
      manual metrics, team structure) require the 'admin' role
    - Members see their own team's data; admins see everything
"""

import functools
import logging

from flask import g, request

from app.models import db
from app.models.auth import User
from app.utils.errors import E, api_error

logger = logging.getLogger(__name__)

# ── Roles ────────────────────────────────────────────────────────────────────

ROLES = {"admin", "member"}

# Role hierarchy: admin > member
ROLE_HIERARCHY = {
    "admin": {"admin", "member"},
    "member": {"member"},
}

_PUBLIC_PATHS = frozenset({"/api/v1/health", "/api/v1/auth/login"})


def _get_user_id_from_request():
    """Extract the acting user id from the X-User-Id header."""
    raw = request.headers.get("X-User-Id", "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def current_user() -> User | None:
    return getattr(g, "current_user", None)


# ── Authorization decorator ──────────────────────────────────────────────────

def require_role(minimum_role: str):
    """
    Decorator: require a minimum role level.

    Usage:
        @bp.route("/users", methods=["POST"])
        @require_role("admin")
        def create_user(): ...

    Role hierarchy: admin > member
    """
    def decorator(f):
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            user = current_user()
            if user is None:
                return api_error(E.UNAUTHENTICATED, "Authentication required")

            allowed = ROLE_HIERARCHY.get(user.role.value, set())
            if minimum_role not in allowed:
                logger.warning(
                    "Access denied: user %s (%s) tried to access '%s'-level endpoint %s",
                    user.id, user.role.value, minimum_role, request.path,
                )
                return api_error(E.FORBIDDEN, "Insufficient permissions")

            return f(*args, **kwargs)
        return decorated
    return decorator


# ── before_request hook installer ────────────────────────────────────────────

def init_auth(app):
    """
    Install authentication middleware on the Flask app.

    - Attaches a before_request hook for API routes
    - Skips health check and login
    """
    @app.before_request
    def _before_request_auth():
        if not request.path.startswith("/api/v1/"):
            return None
        if request.path in _PUBLIC_PATHS:
            return None
        # OPTIONS pre-flight requests don't need auth
        if request.method == "OPTIONS":
            return None

        user_id = _get_user_id_from_request()
        if user_id is None:
            return api_error(E.UNAUTHENTICATED, "Authentication required. Provide X-User-Id header.")

        user = db.session.get(User, user_id)
        if user is None:
            logger.warning("Request with unknown user id %s on %s", user_id, request.path)
            return api_error(E.UNAUTHENTICATED, "Unknown user")

        g.current_user = user
        g.current_user_id = user.id
        return None

    logger.debug("Auth middleware installed")
