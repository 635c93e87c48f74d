"""
Delivery Tracker
Closed enumerations shared by the domain models.

Values are the labels shown in the dashboard and written to CSV, so they
must not be renamed without updating import/export.
"""

import enum

from app.models import db


class _CoercibleEnum(str, enum.Enum):
    """String enum with lenient, case-insensitive lookup."""

    @classmethod
    def coerce(cls, value):
        """Return the member matching ``value`` or None.

        Accepts a member, or a string compared case-insensitively after
        trimming whitespace.
        """
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        needle = str(value).strip().lower()
        if not needle:
            return None
        for member in cls:
            if member.value.lower() == needle:
                return member
        return None

    @classmethod
    def values(cls):
        return [m.value for m in cls]

    def __str__(self):
        return self.value


class TaskStatus(_CoercibleEnum):
    OPEN = "Open"
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    QA_REVIEW = "QA Review"
    WAITING_ON_CUSTOMER = "Waiting on Customer"
    COMPLETED = "Completed"


class TimerState(_CoercibleEnum):
    STOPPED = "stopped"
    RUNNING = "running"
    PAUSED = "paused"


class TeamName(_CoercibleEnum):
    HIGH_VELOCITY = "High Velocity"
    AGENCY = "Agency"
    VERTICALS = "Verticals"
    BROADLY_DUDA = "BroadlyDuda"


class UserRole(_CoercibleEnum):
    ADMIN = "admin"
    MEMBER = "member"


class PauseReason(_CoercibleEnum):
    MEETING = "Meeting"
    BREAK = "Break"
    HIGH_PRIORITY_TASK = "High Priority Task"
    END_OF_DAY = "End of Day"


def enum_column_type(enum_cls, length=40):
    """SQLAlchemy column type storing the enum *value* as a plain string."""
    return db.Enum(
        enum_cls,
        native_enum=False,
        validate_strings=True,
        length=length,
        values_callable=lambda e: [m.value for m in e],
    )
