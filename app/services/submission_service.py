"""Submission service layer: manual entry, edits, visibility and counts.

Transaction policy: each public function commits once through the store.

Operations:
- create_submission / update_submission (status goes through the timer engine)
- assignment notifications on developer / QA change
- bulk delete
- role-gated listing with view, text, team and status filters
- per-team submission counts
"""
import logging
from datetime import date

from app.core.exceptions import ValidationError
from app.models.auth import User
from app.models.enums import TaskStatus, TeamName, TimerState
from app.models.submission import Submission
from app.services import timer_service
from app.services.notification import NotificationService
from app.services.store import TrackerStore
from app.utils.helpers import parse_date, parse_optional_float

logger = logging.getLogger(__name__)

TEXT_FIELDS = (
    "title", "project_type", "project_partner_name", "project_partner_id",
    "project_account_name", "project_account_id", "project_status", "task_title",
)
DATE_FIELDS = ("build_due_date", "qa_due_date")
HOURS_FIELDS = ("dev_task_hours", "qa_task_hours")
SEARCH_FIELDS = (
    "title", "task_title", "project_type", "project_partner_name", "project_account_name",
)


# ── Field coercion ───────────────────────────────────────────────────────


def _coerce_team(value) -> TeamName:
    team = TeamName.coerce(value)
    if team is None:
        raise ValidationError(
            f"Invalid team: {value}",
            details={"team": f"must be one of {', '.join(TeamName.values())}"},
        )
    return team


def _coerce_status(value) -> TaskStatus:
    status = TaskStatus.coerce(value)
    if status is None:
        raise ValidationError(
            f"Invalid task status: {value}",
            details={"status": f"must be one of {', '.join(TaskStatus.values())}"},
        )
    return status


def _coerce_date(field, value):
    if value in (None, ""):
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise ValidationError(f"Invalid date for {field}: {value}", details={field: "expected YYYY-MM-DD"})
    return parsed


def _coerce_hours(field, value):
    try:
        hours = parse_optional_float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid number for {field}: {value}", details={field: "expected a number"})
    if hours is not None and hours < 0:
        raise ValidationError(f"{field} cannot be negative", details={field: "must be >= 0"})
    return hours


def _coerce_user_id(store: TrackerStore, field, value):
    if value in (None, ""):
        return None
    try:
        user_id = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid user id for {field}: {value}", details={field: "expected an integer"})
    if store.get_user(user_id) is None:
        raise ValidationError(f"Unknown user for {field}: {value}", details={field: "user not found"})
    return user_id


# ── Create / update ──────────────────────────────────────────────────────


def create_submission(store: TrackerStore, data: dict, submitter: User | None = None) -> Submission:
    """Create a submission from manual-entry form data.

    Title is required. Team defaults to Agency, status to Pending and the
    created date to today. Timer fields always start stopped at zero hours.
    """
    title = (data.get("title") or "").strip()
    if not title:
        raise ValidationError("Project title is required", details={"title": "required"})

    sub = Submission(
        title=title,
        project_type=(data.get("project_type") or "").strip() or "N/A",
        submitter_name=submitter.name if submitter is not None else (data.get("submitter_name") or "System"),
        developer_id=_coerce_user_id(store, "developer_id", data.get("developer_id")),
        qa_id=_coerce_user_id(store, "qa_id", data.get("qa_id")),
        team=_coerce_team(data.get("team") or TeamName.AGENCY),
        status=_coerce_status(data.get("status") or TaskStatus.PENDING),
        created_date=_coerce_date("created_date", data.get("created_date")) or date.today(),
        logged_hours=0.0,
        timer_state=TimerState.STOPPED,
    )
    for field in DATE_FIELDS:
        setattr(sub, field, _coerce_date(field, data.get(field)))
    for field in HOURS_FIELDS:
        setattr(sub, field, _coerce_hours(field, data.get(field)))
    for field in TEXT_FIELDS:
        if field in ("title", "project_type"):
            continue
        setattr(sub, field, (data.get(field) or "").strip())

    store.add_submission(sub)
    store.commit()
    logger.info("Submission created id=%s title=%r team=%s by=%s",
                sub.id, sub.title, sub.team.value, sub.submitter_name)
    return sub


def update_submission(store: TrackerStore, sub: Submission, data: dict, actor: User | None = None,
                      now=None) -> Submission:
    """Apply an edit. Timer fields are not editable here.

    A ``status`` key is routed through the timer engine so the status/timer
    coupling holds. Newly assigned developers and QAs are notified.
    """
    old_developer_id = sub.developer_id
    old_qa_id = sub.qa_id

    for field in TEXT_FIELDS:
        if field in data:
            value = (data.get(field) or "").strip()
            if field == "title" and not value:
                raise ValidationError("Project title is required", details={"title": "required"})
            setattr(sub, field, value)
    for field in DATE_FIELDS:
        if field in data:
            setattr(sub, field, _coerce_date(field, data[field]))
    for field in HOURS_FIELDS:
        if field in data:
            setattr(sub, field, _coerce_hours(field, data[field]))
    if "developer_id" in data:
        sub.developer_id = _coerce_user_id(store, "developer_id", data["developer_id"])
    if "qa_id" in data:
        sub.qa_id = _coerce_user_id(store, "qa_id", data["qa_id"])
    if "team" in data:
        sub.team = _coerce_team(data["team"])
    if "created_date" in data:
        sub.created_date = _coerce_date("created_date", data["created_date"]) or sub.created_date

    if "status" in data:
        timer_service.change_status(
            store, sub, data["status"],
            actor_id=actor.id if actor is not None else None,
            now=now, commit=False,
        )

    if sub.developer_id is not None and sub.developer_id != old_developer_id:
        NotificationService.notify_assignment(
            user_id=sub.developer_id, submitter_name=sub.submitter_name,
            role_label="Developer", title=sub.title, due_date=sub.build_due_date, commit=False,
        )
    if sub.qa_id is not None and sub.qa_id != old_qa_id:
        NotificationService.notify_assignment(
            user_id=sub.qa_id, submitter_name=sub.submitter_name,
            role_label="QA", title=sub.title, due_date=sub.qa_due_date, commit=False,
        )

    store.commit()
    logger.info("Submission updated id=%s fields=%s", sub.id, sorted(data))
    return sub


def delete_submissions(store: TrackerStore, ids) -> int:
    """Bulk delete by id; unknown ids are ignored. Returns the count removed."""
    try:
        id_list = [int(i) for i in (ids or [])]
    except (TypeError, ValueError):
        raise ValidationError("ids must be a list of integers", details={"ids": "invalid"})
    removed = store.delete_submissions(id_list)
    store.commit()
    logger.info("Deleted %d submissions (requested %d)", removed, len(id_list))
    return removed


# ── Queries ──────────────────────────────────────────────────────────────


def visible_submissions(store: TrackerStore, user: User, view: str = "all", text: str | None = None,
                        team=None, status=None) -> list[Submission]:
    """Submissions the user may see, filtered like the dashboard table.

    Admins see every team; members see their own team. ``view='mine'``
    keeps only rows where the user is developer or QA.
    """
    subs = store.list_submissions()
    if not user.is_admin:
        subs = [s for s in subs if user.team is not None and s.team == user.team]

    if view == "mine":
        subs = [s for s in subs if user.id in (s.developer_id, s.qa_id)]

    if team:
        team_filter = _coerce_team(team)
        subs = [s for s in subs if s.team == team_filter]
    if status:
        status_filter = _coerce_status(status)
        subs = [s for s in subs if s.status == status_filter]

    needle = (text or "").strip().lower()
    if needle:
        subs = [
            s for s in subs
            if any(needle in (getattr(s, f) or "").lower() for f in SEARCH_FIELDS)
        ]
    return subs


def submission_counts(store: TrackerStore, today: date | None = None) -> dict:
    """Per-team ``{today, total}`` counts; every team is present."""
    today = today or date.today()
    counts = {team.value: {"today": 0, "total": 0} for team in TeamName}
    for sub in store.list_submissions():
        bucket = counts.get(sub.team.value)
        if bucket is None:
            continue
        bucket["total"] += 1
        if sub.created_date == today:
            bucket["today"] += 1
    return counts
