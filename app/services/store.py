"""
Tracker store: the repository every service works through.

One TrackerStore wraps one SQLAlchemy session and owns the users,
submissions and utilization-ledger collections. Blueprints build one per
request, tests build one per test, and the timer engine and CSV reconciler
receive it explicitly instead of reaching for module-level state.

Usage:
    store = TrackerStore()               # bound to db.session
    sub = store.get_submission_or_404(7)
    store.accumulate_metric(user_id=3, day=date.today(), hours=1.5)
    store.commit()
"""

import logging
from datetime import date

from sqlalchemy import func, select

from app.core.exceptions import NotFoundError
from app.models import db
from app.models.auth import User
from app.models.enums import TeamName, UserRole
from app.models.metrics import UserMetric
from app.models.submission import Submission
from app.models.team import TeamStructure
from app.utils.crypto import hash_password

logger = logging.getLogger(__name__)


class TrackerStore:
    """Explicit, injectable repository over the in-memory database."""

    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    # ── Users ────────────────────────────────────────────────────────────

    def get_user(self, user_id) -> User | None:
        if user_id is None:
            return None
        return self.session.get(User, user_id)

    def get_user_or_404(self, user_id) -> User:
        user = self.get_user(user_id)
        if user is None:
            raise NotFoundError(resource="User", resource_id=user_id)
        return user

    def find_user_by_name(self, name: str) -> User | None:
        """Case-insensitive exact name match."""
        needle = (name or "").strip().lower()
        if not needle:
            return None
        return self.session.execute(
            select(User).where(func.lower(User.name) == needle).order_by(User.id)
        ).scalars().first()

    def list_users(self, role: UserRole | None = None, team: TeamName | None = None) -> list[User]:
        stmt = select(User).order_by(User.name)
        if role is not None:
            stmt = stmt.where(User.role == role)
        if team is not None:
            stmt = stmt.where(User.team == team)
        return list(self.session.execute(stmt).scalars())

    def create_user(self, *, name: str, password: str, role: UserRole = UserRole.MEMBER,
                    team: TeamName | None = None) -> User:
        """Add a user and flush so the new id is available immediately."""
        user = User(
            name=name.strip(),
            role=role,
            team=team,
            password_hash=hash_password(password),
        )
        self.session.add(user)
        self.session.flush()
        logger.info("User created id=%s name=%r role=%s team=%s", user.id, user.name, role, team)
        return user

    def delete_user(self, user: User) -> None:
        self.session.delete(user)
        self.session.flush()

    # ── Submissions ──────────────────────────────────────────────────────

    def list_submissions(self) -> list[Submission]:
        """All submissions, newest first."""
        stmt = select(Submission).order_by(Submission.created_date.desc(), Submission.id.desc())
        return list(self.session.execute(stmt).scalars())

    def get_submission(self, submission_id) -> Submission | None:
        return self.session.get(Submission, submission_id)

    def get_submission_or_404(self, submission_id) -> Submission:
        sub = self.get_submission(submission_id)
        if sub is None:
            raise NotFoundError(resource="Submission", resource_id=submission_id)
        return sub

    def add_submission(self, submission: Submission) -> Submission:
        self.session.add(submission)
        self.session.flush()
        return submission

    def find_duplicate(self, title: str, task_title: str | None) -> Submission | None:
        """Committed submission with the same (title, task title) pair.

        A missing task title compares equal to an empty one.
        """
        stmt = select(Submission).where(
            Submission.title == title,
            func.coalesce(Submission.task_title, "") == (task_title or ""),
        )
        return self.session.execute(stmt).scalars().first()

    def delete_submissions(self, ids) -> int:
        id_list = [int(i) for i in ids]
        if not id_list:
            return 0
        # ORM delete so error-log cascades fire
        subs = self.session.execute(
            select(Submission).where(Submission.id.in_(id_list))
        ).scalars().all()
        for sub in subs:
            self.session.delete(sub)
        self.session.flush()
        return len(subs)

    # ── Utilization ledger ───────────────────────────────────────────────

    def get_metric(self, user_id: int, day: date) -> UserMetric | None:
        return self.session.execute(
            select(UserMetric).where(UserMetric.user_id == user_id, UserMetric.day == day)
        ).scalars().first()

    def accumulate_metric(self, user_id: int, day: date, hours: float) -> UserMetric:
        """Add ``hours`` to the (user, day) row, creating it if needed."""
        metric = self.get_metric(user_id, day)
        if metric is None:
            metric = UserMetric(user_id=user_id, day=day, hours=0.0)
            self.session.add(metric)
        metric.hours = (metric.hours or 0.0) + hours
        self.session.flush()
        return metric

    def metrics_between(self, start: date | None = None, end: date | None = None,
                        user_ids=None) -> list[UserMetric]:
        stmt = select(UserMetric).order_by(UserMetric.day, UserMetric.user_id)
        if start is not None:
            stmt = stmt.where(UserMetric.day >= start)
        if end is not None:
            stmt = stmt.where(UserMetric.day <= end)
        if user_ids is not None:
            stmt = stmt.where(UserMetric.user_id.in_(list(user_ids)))
        return list(self.session.execute(stmt).scalars())

    # ── Team structure ───────────────────────────────────────────────────

    def list_teams(self) -> list[TeamStructure]:
        return list(self.session.execute(select(TeamStructure).order_by(TeamStructure.id)).scalars())

    def find_team_by_lead(self, lead: str) -> TeamStructure | None:
        return self.session.execute(
            select(TeamStructure).where(TeamStructure.lead == lead)
        ).scalars().first()

    # ── Unit of work ─────────────────────────────────────────────────────

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
