"""
Delivery Tracker
Notification Service.

Creates and queries per-user in-app notifications. Submission edits post
one when a developer or QA is (re)assigned.
"""

from sqlalchemy import func, select

from app.core.exceptions import NotFoundError
from app.models import db
from app.models.notification import Notification


class NotificationService:
    """Stateless service class for notification operations."""

    # ── Create ────────────────────────────────────────────────────────────

    @staticmethod
    def create(*, user_id, text, commit=True):
        """
        Create a single notification record.

        Returns:
            The created Notification, or None when there is no recipient.
        """
        if user_id is None:
            return None
        notif = Notification(user_id=user_id, text=text, is_read=False)
        db.session.add(notif)
        if commit:
            db.session.commit()
        else:
            db.session.flush()
        return notif

    @staticmethod
    def notify_assignment(*, user_id, submitter_name, role_label, title, due_date=None, commit=True):
        """Tell a user they were assigned as Developer or QA on a project."""
        due_text = f" Due: {due_date.strftime('%b %d, %Y')}" if due_date else ""
        return NotificationService.create(
            user_id=user_id,
            text=f"{submitter_name} assigned you as {role_label} on project: {title}.{due_text}",
            commit=commit,
        )

    # ── Query ─────────────────────────────────────────────────────────────

    @staticmethod
    def list_for_user(user_id, unread_only=False, limit=50, offset=0):
        """
        Retrieve notifications for a user, newest first.
        """
        stmt = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        total = db.session.execute(
            select(func.count()).select_from(stmt.subquery())
        ).scalar_one()
        items = db.session.execute(
            stmt.order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(offset).limit(limit)
        ).scalars().all()
        return items, total

    @staticmethod
    def unread_count(user_id):
        """Return count of unread notifications."""
        return db.session.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id, Notification.is_read.is_(False),
            )
        ).scalar_one()

    # ── Actions ───────────────────────────────────────────────────────────

    @staticmethod
    def mark_read(notification_id, user_id=None):
        """Mark a single notification as read.

        When ``user_id`` is given the notification must belong to that user.
        """
        notif = db.session.get(Notification, notification_id)
        if notif is None or (user_id is not None and notif.user_id != user_id):
            raise NotFoundError(resource="Notification", resource_id=notification_id)
        notif.mark_read()
        db.session.commit()
        return notif
