"""
Delivery Tracker
Error log model: defects reported against a submission.
"""

from datetime import datetime, timezone

from app.models import db


class ErrorLog(db.Model):
    __tablename__ = "error_logs"

    id = db.Column(db.Integer, primary_key=True)
    submission_id = db.Column(
        db.Integer, db.ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    description = db.Column(db.Text, nullable=False)
    reported_by_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
    )
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    submission = db.relationship(
        "Submission",
        backref=db.backref("error_logs", cascade="all, delete-orphan", passive_deletes=True),
    )
    reported_by = db.relationship("User")

    def to_dict(self):
        return {
            "id": self.id,
            "submission_id": self.submission_id,
            "submission_title": self.submission.title if self.submission else None,
            "description": self.description,
            "reported_by_id": self.reported_by_id,
            "reported_by": self.reported_by.name if self.reported_by else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
