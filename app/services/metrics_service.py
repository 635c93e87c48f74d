"""
Utilization metrics and dashboard statistics.

All hours live in the one-row-per-(user, day) ledger. Timer accruals and
manual entries add into the same row.
"""

import logging
from datetime import date, timedelta

from sqlalchemy import func, select

from app.core.exceptions import ValidationError
from app.models.auth import User
from app.models.enums import TaskStatus, TeamName, UserRole
from app.models.error_log import ErrorLog
from app.models.metrics import UserMetric
from app.models.submission import Submission
from app.services.store import TrackerStore
from app.utils.helpers import parse_date

logger = logging.getLogger(__name__)

UTILIZATION_WINDOW_DAYS = 30


def add_manual_metric(store: TrackerStore, user_id, hours, day=None) -> UserMetric:
    """Record hours by hand for a user and day (default today)."""
    user = store.get_user_or_404(user_id)
    try:
        hours = float(hours)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid hours: {hours}", details={"hours": "expected a number"})
    if hours < 0:
        raise ValidationError("Hours cannot be negative", details={"hours": "must be >= 0"})

    metric_day = parse_date(day) if day else date.today()
    if metric_day is None:
        raise ValidationError(f"Invalid date: {day}", details={"day": "expected YYYY-MM-DD"})

    metric = store.accumulate_metric(user_id=user.id, day=metric_day, hours=hours)
    store.commit()
    logger.info("Manual metric user=%s day=%s +%.2fh", user.id, metric_day, hours)
    return metric


def filtered_user_metrics(store: TrackerStore, team=None, user_id=None, lead=None,
                          start: date | None = None, end: date | None = None) -> list[dict]:
    """
    Per-member utilization over an optional date window.

    Only member-role users are reported. ``lead`` narrows to the team that
    lead runs and wins over ``team``; ``user_id`` narrows further. ``days``
    counts ledger rows with positive hours.
    """
    users = store.list_users(role=UserRole.MEMBER)

    if lead:
        team_of_lead = store.find_team_by_lead(lead)
        if team_of_lead is not None:
            users = [u for u in users if u.team == team_of_lead.name]
    elif team:
        team_filter = TeamName.coerce(team)
        if team_filter is None:
            raise ValidationError(f"Invalid team: {team}", details={"team": "unknown team"})
        users = [u for u in users if u.team == team_filter]

    if user_id is not None:
        users = [u for u in users if u.id == int(user_id)]

    totals = {u.id: {"total_hours": 0.0, "days": 0} for u in users}
    if totals:
        for metric in store.metrics_between(start, end, user_ids=totals.keys()):
            entry = totals[metric.user_id]
            entry["total_hours"] += metric.hours or 0.0
            if (metric.hours or 0.0) > 0:
                entry["days"] += 1

    rows = []
    for user in users:
        entry = totals[user.id]
        rows.append({
            "user": user.to_dict(),
            "total_hours": entry["total_hours"],
            "days": entry["days"],
            "avg_hours": entry["total_hours"] / entry["days"] if entry["days"] else 0.0,
        })
    return rows


def daily_metrics_for_user(store: TrackerStore, user_id, start: date | None = None,
                           end: date | None = None) -> list[UserMetric]:
    store.get_user_or_404(user_id)
    return store.metrics_between(start, end, user_ids=[int(user_id)])


def dashboard_stats(store: TrackerStore, user: User, today: date | None = None) -> dict:
    """Role-gated dashboard totals.

    Admins see all submissions and the utilization of every member; members
    see their own team only.
    """
    today = today or date.today()

    sub_stmt = select(Submission)
    if not user.is_admin:
        sub_stmt = sub_stmt.where(Submission.team == user.team)
    subs = list(store.session.execute(sub_stmt).scalars())

    if user.is_admin:
        relevant_users = store.list_users(role=UserRole.MEMBER)
    else:
        relevant_users = store.list_users(team=user.team) if user.team is not None else []
    relevant_ids = {u.id for u in relevant_users}

    err_stmt = select(func.count(ErrorLog.id))
    if not user.is_admin:
        err_stmt = err_stmt.join(Submission, ErrorLog.submission_id == Submission.id).where(
            Submission.team == user.team
        )
    total_errors = store.session.execute(err_stmt).scalar_one()

    project_status_counts: dict[str, int] = {}
    task_status_counts: dict[str, int] = {}
    team_counts = {t.value: 0 for t in TeamName}
    for sub in subs:
        p_status = sub.project_status or "N/A"
        project_status_counts[p_status] = project_status_counts.get(p_status, 0) + 1
        task_status_counts[sub.status.value] = task_status_counts.get(sub.status.value, 0) + 1
        team_counts[sub.team.value] = team_counts.get(sub.team.value, 0) + 1

    total_hours = 0.0
    total_days = 0
    if relevant_ids:
        window_start = today - timedelta(days=UTILIZATION_WINDOW_DAYS)
        for metric in store.metrics_between(window_start, today, user_ids=relevant_ids):
            total_hours += metric.hours or 0.0
            if (metric.hours or 0.0) > 0:
                total_days += 1

    return {
        "total_submissions": len(subs),
        "in_progress": sum(1 for s in subs if s.status == TaskStatus.IN_PROGRESS),
        "pending": sum(1 for s in subs if s.status in (TaskStatus.PENDING, TaskStatus.QA_REVIEW)),
        "completed": sum(1 for s in subs if s.status == TaskStatus.COMPLETED),
        "total_errors": total_errors,
        "avg_utilization": round(total_hours / total_days, 2) if total_days else 0.0,
        "project_status_counts": project_status_counts,
        "task_status_counts": task_status_counts,
        "team_project_counts": team_counts,
    }
