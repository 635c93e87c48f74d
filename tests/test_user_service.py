"""
Tests for user administration, sign-in, notifications and documents.
"""

import pytest

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.enums import TeamName, UserRole
from app.services import document_service, submission_service, user_service
from app.services.notification import NotificationService
from app.utils.crypto import verify_password


# ── create / update ─────────────────────────────────────────────────────────


def test_create_user_hashes_password(store):
    user = user_service.create_user(store, {"name": "Jane", "password": "s3cret", "team": "Agency"})
    assert user.role == UserRole.MEMBER
    assert user.team == TeamName.AGENCY
    assert user.password_hash != "s3cret"
    assert verify_password("s3cret", user.password_hash)


def test_create_user_requires_name_and_password(store):
    with pytest.raises(ValidationError):
        user_service.create_user(store, {"name": "", "password": "x"})
    with pytest.raises(ValidationError):
        user_service.create_user(store, {"name": "Jane"})


def test_create_user_duplicate_name(store, member):
    with pytest.raises(ConflictError):
        user_service.create_user(store, {"name": member.name.upper(), "password": "x"})


def test_create_user_invalid_role(store):
    with pytest.raises(ValidationError):
        user_service.create_user(store, {"name": "Jane", "password": "x", "role": "owner"})


def test_update_user_keeps_password_when_blank(store, member):
    old_hash = member.password_hash
    user_service.update_user(store, member, {"password": "", "team": "Verticals"})
    assert member.password_hash == old_hash
    assert member.team == TeamName.VERTICALS

    user_service.update_user(store, member, {"password": "changed"})
    assert verify_password("changed", member.password_hash)


def test_update_user_rename_conflict(store, member, other_member):
    with pytest.raises(ConflictError):
        user_service.update_user(store, member, {"name": other_member.name})


def test_delete_user_unassigns_submissions(store, admin, member):
    sub = submission_service.create_submission(
        store, {"title": "PID-1", "developer_id": member.id, "qa_id": member.id}, submitter=admin,
    )
    user_service.delete_user(store, member)
    assert sub.developer_id is None
    assert sub.qa_id is None
    assert store.get_submission(sub.id) is not None


# ── authenticate ────────────────────────────────────────────────────────────


def test_authenticate(store, member):
    assert user_service.authenticate(store, "Akshat", "user").id == member.id
    assert user_service.authenticate(store, "Akshat", "wrong") is None
    assert user_service.authenticate(store, "akshat", "user") is None
    assert user_service.authenticate(store, "Nobody", "user") is None


# ── notifications ───────────────────────────────────────────────────────────


def test_notifications_unread_and_mark_read(store, member, other_member):
    first = NotificationService.create(user_id=member.id, text="one")
    NotificationService.create(user_id=member.id, text="two")
    assert NotificationService.create(user_id=None, text="nobody") is None
    assert NotificationService.unread_count(member.id) == 2

    NotificationService.mark_read(first.id, user_id=member.id)
    assert NotificationService.unread_count(member.id) == 1
    items, total = NotificationService.list_for_user(member.id, unread_only=True)
    assert total == 1
    assert items[0].text == "two"

    with pytest.raises(NotFoundError):
        NotificationService.mark_read(first.id, user_id=other_member.id)


# ── documents ───────────────────────────────────────────────────────────────


def test_documents(store, admin):
    doc = document_service.create_document(store, "Runbook", "steps", author=admin)
    assert doc.id is not None
    assert [d.title for d in document_service.list_documents(store)] == ["Runbook"]
    with pytest.raises(ValidationError):
        document_service.create_document(store, "  ")
