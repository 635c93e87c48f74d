"""Error log service: defects reported against submissions."""
import logging

from sqlalchemy import select

from app.core.exceptions import ValidationError
from app.models.auth import User
from app.models.error_log import ErrorLog
from app.models.submission import Submission
from app.services.store import TrackerStore

logger = logging.getLogger(__name__)


def add_error_log(store: TrackerStore, submission_id, description: str, reported_by_id=None) -> ErrorLog:
    """Record a defect against an existing submission."""
    text = (description or "").strip()
    if not text:
        raise ValidationError("Description is required", details={"description": "required"})
    sub = store.get_submission_or_404(submission_id)
    if reported_by_id is not None:
        store.get_user_or_404(reported_by_id)

    log = ErrorLog(submission_id=sub.id, description=text, reported_by_id=reported_by_id)
    store.session.add(log)
    store.commit()
    logger.info("Error log id=%s on submission=%s by user=%s", log.id, sub.id, reported_by_id)
    return log


def list_error_logs(store: TrackerStore, user: User) -> list[ErrorLog]:
    """Newest first; members only see logs for their team's submissions."""
    stmt = select(ErrorLog).order_by(ErrorLog.created_at.desc(), ErrorLog.id.desc())
    if not user.is_admin:
        stmt = stmt.join(Submission, ErrorLog.submission_id == Submission.id).where(
            Submission.team == user.team
        )
    return list(store.session.execute(stmt).scalars())
