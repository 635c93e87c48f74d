"""
Delivery Tracker
Submission domain model.

A Submission is one unit of client work ("project" in the dashboard, "task"
in CSV exports). Besides the planning fields it carries the work-timer
state driven by ``app.services.timer_service``:

    stopped ──start──▶ running ──pause──▶ paused
       ▲                 │  ▲               │
       └──────stop───────┘  └────resume─────┘

Invariants:
    - timer_start_time is set iff timer_state == running
    - pause_reason is set iff timer_state == paused
    - logged_hours only grows
"""

from datetime import date

from app.models import db
from app.models.enums import TaskStatus, TeamName, TimerState, enum_column_type


class Submission(db.Model):
    __tablename__ = "submissions"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(300), nullable=False, index=True, comment="PID / AGID / project name")
    project_type = db.Column(db.String(200), nullable=False, default="N/A")
    submitter_name = db.Column(db.String(200), nullable=False, default="System")

    developer_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True,
    )
    build_due_date = db.Column(db.Date, nullable=True)
    dev_task_hours = db.Column(db.Float, nullable=True)
    qa_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True,
    )
    qa_due_date = db.Column(db.Date, nullable=True)
    qa_task_hours = db.Column(db.Float, nullable=True)

    team = db.Column(enum_column_type(TeamName), nullable=False, default=TeamName.AGENCY, index=True)
    status = db.Column(enum_column_type(TaskStatus), nullable=False, default=TaskStatus.PENDING, index=True)
    created_date = db.Column(db.Date, nullable=False, default=date.today)

    # ── Work timer ──
    logged_hours = db.Column(db.Float, nullable=False, default=0.0)
    timer_state = db.Column(enum_column_type(TimerState, 20), nullable=False, default=TimerState.STOPPED)
    timer_start_time = db.Column(db.DateTime(timezone=True), nullable=True)
    last_tick = db.Column(db.DateTime(timezone=True), nullable=True)
    pause_reason = db.Column(db.String(50), nullable=True)

    # ── CSV import/export fields ──
    project_partner_name = db.Column(db.String(200), nullable=True, default="")
    project_partner_id = db.Column(db.String(100), nullable=True, default="")
    project_account_name = db.Column(db.String(200), nullable=True, default="")
    project_account_id = db.Column(db.String(100), nullable=True, default="")
    project_status = db.Column(db.String(100), nullable=True, default="")
    task_title = db.Column(db.String(300), nullable=False, default="")

    developer = db.relationship("User", foreign_keys=[developer_id])
    qa = db.relationship("User", foreign_keys=[qa_id])

    @property
    def is_timer_active(self):
        return self.timer_state != TimerState.STOPPED

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "project_type": self.project_type,
            "submitter_name": self.submitter_name,
            "developer_id": self.developer_id,
            "build_due_date": self.build_due_date.isoformat() if self.build_due_date else None,
            "dev_task_hours": self.dev_task_hours,
            "qa_id": self.qa_id,
            "qa_due_date": self.qa_due_date.isoformat() if self.qa_due_date else None,
            "qa_task_hours": self.qa_task_hours,
            "team": self.team.value if self.team else None,
            "status": self.status.value if self.status else None,
            "created_date": self.created_date.isoformat() if self.created_date else None,
            "logged_hours": round(self.logged_hours or 0.0, 4),
            "timer_state": self.timer_state.value if self.timer_state else None,
            "timer_start_time": self.timer_start_time.isoformat() if self.timer_start_time else None,
            "last_tick": self.last_tick.isoformat() if self.last_tick else None,
            "pause_reason": self.pause_reason,
            "project_partner_name": self.project_partner_name or "",
            "project_partner_id": self.project_partner_id or "",
            "project_account_name": self.project_account_name or "",
            "project_account_id": self.project_account_id or "",
            "project_status": self.project_status or "",
            "task_title": self.task_title or "",
        }

    def __repr__(self):
        return f"<Submission {self.id}: {self.title[:40]} [{self.status}]>"
