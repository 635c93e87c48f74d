"""
Tests for the bulk CSV import reconciler.

Covers:
  - Fatal header pre-checks (missing columns, no team/assignee column, empty file)
  - Per-row outcomes: success, duplicate, title/status/team errors
  - Assignee resolution: existing user, auto-created user, "Unassigned"
  - Row numbering in error messages
  - Template generation
"""

from datetime import date

import pytest

from app.core.exceptions import FatalImportError
from app.models.enums import TaskStatus, TeamName, UserRole
from app.services.bulk_import_service import (
    CSV_COLUMNS,
    generate_csv_template,
    import_submissions_from_csv,
    parse_csv,
)
from app.utils.crypto import verify_password

HEADER = ",".join(CSV_COLUMNS.values())


# ── Helpers ─────────────────────────────────────────────────────────────────


def _row(title="PID-1 Bakery", task="Homepage", assignee="", status="Open", team="Agency",
         created="2024-05-01", due="2024-05-15"):
    return ",".join([
        "Duda Partners", "P-1", "Acme", "A-1", title, "Active", task,
        assignee, status, created, due, team,
    ])


def _csv(*rows, header=HEADER):
    return "\n".join([header, *rows]) + "\n"


def _import(store, content):
    return import_submissions_from_csv(store, content, submitter_name="Hemanth", today=date(2024, 5, 6))


# ── Fatal pre-checks ────────────────────────────────────────────────────────


def test_header_only_is_fatal():
    with pytest.raises(FatalImportError, match="empty or has only a header"):
        parse_csv(HEADER + "\n")


def test_empty_file_is_fatal():
    with pytest.raises(FatalImportError):
        parse_csv("")


def test_non_utf8_bytes_are_fatal():
    with pytest.raises(FatalImportError, match="UTF-8"):
        parse_csv(HEADER.encode("utf-8") + b"\n\xff\xfe bad\n")


def test_missing_required_columns_is_fatal():
    content = "Task Title,Team\nHomepage,Agency\n"
    with pytest.raises(FatalImportError) as exc:
        parse_csv(content)
    assert "project title" in exc.value.message
    assert "task status" in exc.value.message


def test_missing_team_and_assignee_columns_is_fatal():
    content = "Project Title,Task Status\nPID-1,Open\n"
    with pytest.raises(FatalImportError, match="TEAM"):
        parse_csv(content)


def test_fatal_error_commits_nothing(store):
    with pytest.raises(FatalImportError):
        _import(store, "Project Title,Task Status\nPID-1,Open\n")
    assert store.list_submissions() == []


# ── Parsing ─────────────────────────────────────────────────────────────────


def test_headers_are_case_insensitive_and_quoted():
    content = '"project title","TASK STATUS","team"\n"PID-9","Open","Agency"\n'
    rows = parse_csv(content)
    assert rows[0]["title"] == "PID-9"
    assert rows[0]["status"] == "Open"
    assert rows[0]["assignee_name"] == ""
    assert rows[0]["row_num"] == 2


def test_bom_and_blank_lines_are_ignored():
    content = "\ufeff" + _csv("", _row(title="PID-2"), "")
    rows = parse_csv(content.encode("utf-8"))
    assert len(rows) == 1
    assert rows[0]["title"] == "PID-2"
    assert rows[0]["row_num"] == 2


# ── Reconciliation ──────────────────────────────────────────────────────────


def test_duplicate_within_batch(store):
    """Same title and task twice: the second row is a duplicate of the first."""
    result = _import(store, _csv(_row(title="A"), _row(title="A")))
    assert result.success_count == 1
    assert result.duplicate_count == 1
    assert result.error_count == 0
    assert len(store.list_submissions()) == 1


def test_duplicate_against_existing(store):
    _import(store, _csv(_row(title="A", task="T1")))
    result = _import(store, _csv(_row(title="A", task="T1"), _row(title="A", task="T2")))
    assert result.duplicate_count == 1
    assert result.success_count == 1


def test_missing_title_reports_row_number(store):
    result = _import(store, _csv(_row(title="OK-1"), _row(title="")))
    assert result.success_count == 1
    assert result.error_count == 1
    assert result.errors == ["Row 3: 'PROJECT TITLE' is missing."]


def test_invalid_status(store):
    result = _import(store, _csv(_row(status="Archived")))
    assert result.error_count == 1
    assert 'Received: "Archived"' in result.errors[0]


def test_empty_status(store):
    result = _import(store, _csv(_row(status="")))
    assert 'Received: "empty"' in result.errors[0]


def test_status_is_case_insensitive(store):
    result = _import(store, _csv(_row(status="in progress")))
    assert result.success_count == 1
    assert store.list_submissions()[0].status == TaskStatus.IN_PROGRESS


def test_new_assignee_without_team_is_error(store):
    result = _import(store, _csv(_row(assignee="Jane Smith", team="")))
    assert result.error_count == 1
    assert "New assignee 'Jane Smith'" in result.errors[0]
    assert store.find_user_by_name("Jane Smith") is None


def test_new_assignee_with_team_is_created(app, store):
    result = _import(store, _csv(_row(title="P1", assignee="Jane Smith", team="Verticals")))
    assert result.success_count == 1

    user = store.find_user_by_name("Jane Smith")
    assert user is not None
    assert user.role == UserRole.MEMBER
    assert user.team == TeamName.VERTICALS
    assert verify_password(app.config["DEFAULT_MEMBER_PASSWORD"], user.password_hash)

    sub = store.get_submission(result.created_ids[0])
    assert sub.developer_id == user.id


def test_new_assignee_created_once_per_batch(store):
    result = _import(store, _csv(
        _row(title="P1", assignee="Jane Smith", team="Agency"),
        _row(title="P2", assignee="jane smith", team="Agency"),
    ))
    assert result.success_count == 2
    assert len([u for u in store.list_users() if u.name.lower() == "jane smith"]) == 1


def test_failed_row_does_not_create_assignee(store):
    """A row that fails on status must not leave an orphan user behind."""
    result = _import(store, _csv(_row(assignee="Ghost", team="Agency", status="Nope")))
    assert result.error_count == 1
    assert store.find_user_by_name("Ghost") is None


def test_existing_assignee_supplies_team(store, member):
    result = _import(store, _csv(_row(assignee=member.name, team="")))
    assert result.success_count == 1
    sub = store.get_submission(result.created_ids[0])
    assert sub.team == TeamName.HIGH_VELOCITY
    assert sub.developer_id == member.id


def test_row_team_wins_over_assignee_team(store, member):
    result = _import(store, _csv(_row(assignee=member.name, team="Agency")))
    assert store.get_submission(result.created_ids[0]).team == TeamName.AGENCY


def test_invalid_row_team_is_error_even_with_assignee(store, member):
    result = _import(store, _csv(_row(assignee=member.name, team="Nonsense")))
    assert result.success_count == 0
    assert result.error_count == 1
    assert "Team is missing or invalid" in result.errors[0]


def test_no_team_and_no_assignee_is_error(store):
    result = _import(store, _csv(_row(team="")))
    assert result.error_count == 1
    assert "Team is missing or invalid" in result.errors[0]


def test_unassigned_literal_means_no_assignee(store):
    result = _import(store, _csv(_row(assignee="Unassigned", team="Agency")))
    assert result.success_count == 1
    assert store.get_submission(result.created_ids[0]).developer_id is None
    assert store.find_user_by_name("Unassigned") is None


def test_row_fields_are_copied(store):
    result = _import(store, _csv(_row(title="PID-7", task="Blog", created="2024-04-01", due="bad-date")))
    sub = store.get_submission(result.created_ids[0])
    assert sub.project_type == "Blog"
    assert sub.project_partner_name == "Duda Partners"
    assert sub.created_date == date(2024, 4, 1)
    assert sub.build_due_date is None
    assert sub.submitter_name == "Hemanth"
    assert sub.logged_hours == 0.0


def test_missing_created_date_defaults_to_today(store):
    result = _import(store, _csv(_row(created="")))
    assert store.get_submission(result.created_ids[0]).created_date == date(2024, 5, 6)


def test_every_row_lands_in_one_bucket(store):
    result = _import(store, _csv(
        _row(title="A"), _row(title="A"), _row(title=""), _row(title="B", status="x"),
    ))
    assert result.total_rows == 4
    payload = result.to_dict()
    assert payload["successCount"] == 1
    assert payload["duplicateCount"] == 1
    assert payload["errorCount"] == 2


# ── Template ────────────────────────────────────────────────────────────────


def test_template_parses_cleanly():
    rows = parse_csv(generate_csv_template())
    assert len(rows) == 1
    assert rows[0]["assignee_name"] == "Jane Smith"
