"""
User Service: CRUD operations and sign-in.
"""

import logging

from sqlalchemy import select

from app.core.exceptions import ConflictError, ValidationError
from app.models.auth import User
from app.models.enums import TeamName, UserRole
from app.models.submission import Submission
from app.services.store import TrackerStore
from app.utils.crypto import hash_password, verify_password

logger = logging.getLogger(__name__)


def _coerce_role(value) -> UserRole:
    role = UserRole.coerce(value)
    if role is None:
        raise ValidationError(f"Invalid role: {value}", details={"role": "must be admin or member"})
    return role


def _coerce_team(value):
    if value in (None, ""):
        return None
    team = TeamName.coerce(value)
    if team is None:
        raise ValidationError(
            f"Invalid team: {value}",
            details={"team": f"must be one of {', '.join(TeamName.values())}"},
        )
    return team


def _check_unique_name(store: TrackerStore, name: str, exclude_id=None) -> None:
    existing = store.find_user_by_name(name)
    if existing is not None and existing.id != exclude_id:
        raise ConflictError(resource="User", field="name", value=name)


# ═══════════════════════════════════════════════════════════════
# User CRUD
# ═══════════════════════════════════════════════════════════════
def create_user(store: TrackerStore, data: dict) -> User:
    """Create a new user. Names are unique case-insensitively."""
    name = (data.get("name") or "").strip()
    password = data.get("password") or ""
    if not name:
        raise ValidationError("Name is required", details={"name": "required"})
    if not password:
        raise ValidationError("Password is required", details={"password": "required"})
    _check_unique_name(store, name)

    user = store.create_user(
        name=name,
        password=password,
        role=_coerce_role(data.get("role") or UserRole.MEMBER),
        team=_coerce_team(data.get("team")),
    )
    store.commit()
    return user


def update_user(store: TrackerStore, user: User, data: dict) -> User:
    """Update name, role, team or password. An empty password keeps the old hash."""
    if "name" in data:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("Name is required", details={"name": "required"})
        _check_unique_name(store, name, exclude_id=user.id)
        user.name = name
    if "role" in data:
        user.role = _coerce_role(data["role"])
    if "team" in data:
        user.team = _coerce_team(data["team"])
    if data.get("password"):
        user.password_hash = hash_password(data["password"])

    store.commit()
    logger.info("User updated id=%s fields=%s", user.id, sorted(k for k in data if k != "password"))
    return user


def delete_user(store: TrackerStore, user: User) -> None:
    """Delete a user, unassigning them from any submissions first."""
    for sub in store.session.execute(
        select(Submission).where((Submission.developer_id == user.id) | (Submission.qa_id == user.id))
    ).scalars():
        if sub.developer_id == user.id:
            sub.developer_id = None
        if sub.qa_id == user.id:
            sub.qa_id = None
    user_id = user.id
    store.delete_user(user)
    store.commit()
    logger.info("User deleted id=%s", user_id)


# ═══════════════════════════════════════════════════════════════
# Sign-in
# ═══════════════════════════════════════════════════════════════
def authenticate(store: TrackerStore, name: str, password: str) -> User | None:
    """Return the user when name and password match, else None."""
    user = store.find_user_by_name(name or "")
    if user is None or user.name != (name or "").strip():
        return None
    if not verify_password(password or "", user.password_hash):
        logger.info("Failed sign-in for user id=%s", user.id)
        return None
    return user
