"""
Delivery Tracker
Blueprint registry and shared request helpers.
"""

import logging

from flask import request
from werkzeug.exceptions import HTTPException

from app.core.exceptions import (
    ConflictError,
    FatalImportError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from app.models import db
from app.utils.errors import E, api_error
from app.utils.helpers import parse_date

logger = logging.getLogger(__name__)


def register_error_handlers(bp):
    """Map service-layer exceptions to JSON responses on ``bp``.

    Every handler rolls back the session so a half-applied edit never
    leaks into the next request.
    """

    @bp.errorhandler(NotFoundError)
    def _handle_not_found(error: NotFoundError):
        db.session.rollback()
        return api_error(E.NOT_FOUND, str(error))

    @bp.errorhandler(ValidationError)
    def _handle_validation(error: ValidationError):
        db.session.rollback()
        return api_error(E.VALIDATION_RULE, str(error), details=error.details)

    @bp.errorhandler(ConflictError)
    def _handle_conflict(error: ConflictError):
        db.session.rollback()
        return api_error(E.CONFLICT_DUPLICATE, str(error), details={"field": error.field})

    @bp.errorhandler(InvalidTransitionError)
    def _handle_transition(error: InvalidTransitionError):
        db.session.rollback()
        return api_error(
            E.CONFLICT_STATE, str(error),
            details={"action": error.action, "state": error.from_state},
        )

    @bp.errorhandler(FatalImportError)
    def _handle_import(error: FatalImportError):
        db.session.rollback()
        return api_error(E.IMPORT_FATAL, error.message, status=error.status_code)

    @bp.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        if isinstance(error, HTTPException):
            return error
        db.session.rollback()
        logger.exception("Unexpected error in %s endpoint=%s", bp.name, request.endpoint)
        return api_error(E.INTERNAL, "Internal server error")


def date_arg(name: str):
    """Optional ISO date query parameter; an unparseable value raises ValidationError."""
    raw = request.args.get(name)
    if not raw:
        return None
    value = parse_date(raw)
    if value is None:
        raise ValidationError(f"Invalid date for {name}: {raw}", details={name: "expected YYYY-MM-DD"})
    return value
