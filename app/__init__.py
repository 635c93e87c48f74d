"""
Delivery Tracker
Flask Application Factory.

Usage:
    from app import create_app
    app = create_app()           # defaults to APP_ENV or "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask
from flask_cors import CORS

from app.config import config
from app.models import db
from app.auth import init_auth
from app.middleware.logging_config import configure_logging
from app.middleware.timing import init_request_timing

logger = logging.getLogger(__name__)

# ── SQLite FK enforcement (global engine event) ─────────────────────────
from sqlalchemy import event as _sa_event, engine as _sa_engine


@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance with its own in-memory store.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Request identity (X-User-Id) ─────────────────────────────────────
    init_auth(app)

    # ── Request timing middleware ────────────────────────────────────────
    init_request_timing(app)

    # ── Import all models so create_all sees them ────────────────────────
    from app.models import auth as _auth_models               # noqa: F401
    from app.models import submission as _submission_models   # noqa: F401
    from app.models import metrics as _metrics_models         # noqa: F401
    from app.models import notification as _notification_models  # noqa: F401
    from app.models import error_log as _error_log_models     # noqa: F401
    from app.models import document as _document_models       # noqa: F401
    from app.models import team as _team_models               # noqa: F401

    # ── Create tables in the fresh in-memory database ────────────────────
    with app.app_context():
        db.create_all()
        app.logger.debug("db.create_all() completed")

        if app.config.get("SEED_DEMO_DATA"):
            from app.services.seed import seed_demo_data
            from app.services.store import TrackerStore
            seed_demo_data(TrackerStore())

    # ── Blueprints ───────────────────────────────────────────────────────
    from app.blueprints.auth_bp import auth_bp
    from app.blueprints.submission_bp import submission_bp
    from app.blueprints.bulk_import_bp import bulk_import_bp
    from app.blueprints.metrics_bp import metrics_bp
    from app.blueprints.user_bp import user_bp
    from app.blueprints.notification_bp import notification_bp
    from app.blueprints.workspace_bp import workspace_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(submission_bp)
    app.register_blueprint(bulk_import_bp)
    app.register_blueprint(metrics_bp)
    app.register_blueprint(user_bp)
    app.register_blueprint(notification_bp)
    app.register_blueprint(workspace_bp)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("seed-demo")
    def seed_demo_cmd():
        """Load the demo organization (users, teams, submissions, metrics)."""
        from app.services.seed import seed_demo_data
        from app.services.store import TrackerStore
        if seed_demo_data(TrackerStore()):
            logger.info("Demo data seeded.")
        else:
            logger.info("Demo data already present; nothing to do.")

    # ── Health check ─────────────────────────────────────────────────────
    @app.route("/api/v1/health")
    def health():
        return {"status": "ok", "app": "Delivery Tracker"}

    # ── Error handlers ───────────────────────────────────────────────────
    @app.errorhandler(404)
    def not_found(e):
        from flask import request
        return {"error": "Not found", "path": request.path}, 404

    @app.errorhandler(500)
    def server_error(e):
        logger.error("500 error: %s", e, exc_info=True)
        return {"error": "Internal server error"}, 500

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {"error": "Method not allowed"}, 405

    @app.errorhandler(413)
    def too_large(e):
        return {"error": "Request body too large"}, 413

    return app
