"""
Delivery Tracker
Utilization ledger.

One UserMetric row holds the hours a user worked on one calendar day.
Timer postings and manual entries for the same (user, day) accumulate
into the same row.
"""

from datetime import datetime, timezone

from app.models import db


class UserMetric(db.Model):
    __tablename__ = "user_metrics"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    day = db.Column(db.Date, nullable=False, index=True, comment="Day key (midnight, UTC)")
    hours = db.Column(db.Float, nullable=False, default=0.0)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        db.UniqueConstraint("user_id", "day", name="uq_user_metric_user_day"),
    )

    user = db.relationship("User")

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "day": self.day.isoformat() if self.day else None,
            "hours": round(self.hours or 0.0, 4),
        }

    def __repr__(self):
        return f"<UserMetric user={self.user_id} day={self.day} hours={self.hours:.2f}>"
