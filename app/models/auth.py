"""
Delivery Tracker
Identity model.

Models:
    - User: dashboard account; admins see every team, members see their own
"""

from datetime import datetime, timezone

from app.models import db
from app.models.enums import TeamName, UserRole, enum_column_type


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False, index=True)
    role = db.Column(enum_column_type(UserRole, 20), nullable=False, default=UserRole.MEMBER)
    team = db.Column(enum_column_type(TeamName), nullable=True, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role.value if self.role else None,
            "team": self.team.value if self.team else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<User {self.id}: {self.name}>"
