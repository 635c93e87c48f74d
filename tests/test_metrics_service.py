"""
Tests for utilization metrics, dashboard statistics and demo seeding.
"""

from datetime import date, timedelta

import pytest

from app.core.exceptions import NotFoundError, ValidationError
from app.models.enums import TaskStatus, TeamName, TimerState
from app.models.submission import Submission
from app.models.team import TeamStructure
from app.services import error_log_service, metrics_service
from app.services.seed import seed_demo_data

TODAY = date(2024, 5, 6)


# ── Helpers ─────────────────────────────────────────────────────────────────


def _sub(store, title, team, status=TaskStatus.OPEN, project_status=""):
    sub = Submission(title=title, team=team, status=status, project_status=project_status,
                     created_date=TODAY)
    store.add_submission(sub)
    store.commit()
    return sub


# ── Manual entries & ledger ─────────────────────────────────────────────────


def test_manual_metric_accumulates(store, member):
    metrics_service.add_manual_metric(store, member.id, 2, "2024-05-01")
    metric = metrics_service.add_manual_metric(store, member.id, "1.5", "2024-05-01")
    assert metric.hours == pytest.approx(3.5)
    assert len(store.metrics_between(user_ids=[member.id])) == 1


def test_manual_metric_validation(store, member):
    with pytest.raises(ValidationError):
        metrics_service.add_manual_metric(store, member.id, -1)
    with pytest.raises(ValidationError):
        metrics_service.add_manual_metric(store, member.id, "lots")
    with pytest.raises(ValidationError):
        metrics_service.add_manual_metric(store, member.id, 1, "not-a-date")
    with pytest.raises(NotFoundError):
        metrics_service.add_manual_metric(store, 9999, 1)


def test_daily_metrics_window(store, member):
    for offset, hours in enumerate([8, 7, 6]):
        store.accumulate_metric(member.id, TODAY - timedelta(days=offset), hours)
    store.commit()
    rows = metrics_service.daily_metrics_for_user(store, member.id, start=TODAY - timedelta(days=1), end=TODAY)
    assert [m.hours for m in rows] == [7, 8]


# ── filtered_user_metrics ───────────────────────────────────────────────────


def test_filtered_metrics_members_only(store, admin, member, other_member):
    store.accumulate_metric(member.id, TODAY, 6)
    store.accumulate_metric(member.id, TODAY - timedelta(days=1), 4)
    store.accumulate_metric(member.id, TODAY - timedelta(days=2), 0)
    store.accumulate_metric(admin.id, TODAY, 9)
    store.commit()

    rows = {r["user"]["name"]: r for r in metrics_service.filtered_user_metrics(store)}
    assert admin.name not in rows
    assert rows[member.name]["total_hours"] == pytest.approx(10)
    assert rows[member.name]["days"] == 2
    assert rows[member.name]["avg_hours"] == pytest.approx(5)
    assert rows[other_member.name]["days"] == 0
    assert rows[other_member.name]["avg_hours"] == 0.0


def test_filtered_metrics_by_team_and_date(store, member, other_member):
    store.accumulate_metric(member.id, TODAY, 6)
    store.accumulate_metric(member.id, TODAY - timedelta(days=10), 4)
    store.commit()

    rows = metrics_service.filtered_user_metrics(store, team="High Velocity", start=TODAY - timedelta(days=3))
    assert [r["user"]["id"] for r in rows] == [member.id]
    assert rows[0]["total_hours"] == pytest.approx(6)


def test_filtered_metrics_by_lead(store, member, other_member):
    store.session.add(TeamStructure(name=TeamName.AGENCY, lead="Theresa"))
    store.commit()
    rows = metrics_service.filtered_user_metrics(store, lead="Theresa", team="High Velocity")
    assert [r["user"]["id"] for r in rows] == [other_member.id]


def test_filtered_metrics_unknown_team(store):
    with pytest.raises(ValidationError):
        metrics_service.filtered_user_metrics(store, team="Nope")


# ── dashboard_stats ─────────────────────────────────────────────────────────


def test_dashboard_stats_admin(store, admin, member, other_member):
    hv = _sub(store, "HV", TeamName.HIGH_VELOCITY, TaskStatus.IN_PROGRESS, "On Track")
    _sub(store, "AG1", TeamName.AGENCY, TaskStatus.QA_REVIEW)
    _sub(store, "AG2", TeamName.AGENCY, TaskStatus.COMPLETED, "Completed")
    error_log_service.add_error_log(store, hv.id, "Broken form", reported_by_id=member.id)
    store.accumulate_metric(member.id, TODAY - timedelta(days=1), 8)
    store.accumulate_metric(other_member.id, TODAY - timedelta(days=2), 6)
    store.accumulate_metric(member.id, TODAY - timedelta(days=40), 100)
    store.commit()

    stats = metrics_service.dashboard_stats(store, admin, today=TODAY)
    assert stats["total_submissions"] == 3
    assert stats["in_progress"] == 1
    assert stats["pending"] == 1
    assert stats["completed"] == 1
    assert stats["total_errors"] == 1
    assert stats["avg_utilization"] == 7.0
    assert stats["project_status_counts"] == {"On Track": 1, "N/A": 1, "Completed": 1}
    assert stats["team_project_counts"]["Agency"] == 2
    assert stats["team_project_counts"]["Verticals"] == 0


def test_dashboard_stats_member_scoped(store, admin, member, other_member):
    _sub(store, "HV", TeamName.HIGH_VELOCITY)
    ag = _sub(store, "AG", TeamName.AGENCY)
    error_log_service.add_error_log(store, ag.id, "Agency bug")
    store.accumulate_metric(other_member.id, TODAY - timedelta(days=1), 8)
    store.commit()

    stats = metrics_service.dashboard_stats(store, member, today=TODAY)
    assert stats["total_submissions"] == 1
    assert stats["total_errors"] == 0
    assert stats["avg_utilization"] == 0.0


# ── Error logs ──────────────────────────────────────────────────────────────


def test_error_logs_scoped_by_team(store, admin, member, other_member):
    hv = _sub(store, "HV", TeamName.HIGH_VELOCITY)
    ag = _sub(store, "AG", TeamName.AGENCY)
    error_log_service.add_error_log(store, hv.id, "HV bug", reported_by_id=member.id)
    error_log_service.add_error_log(store, ag.id, "AG bug", reported_by_id=other_member.id)

    assert len(error_log_service.list_error_logs(store, admin)) == 2
    assert [log.description for log in error_log_service.list_error_logs(store, member)] == ["HV bug"]


def test_error_log_requires_description(store):
    sub = _sub(store, "HV", TeamName.HIGH_VELOCITY)
    with pytest.raises(ValidationError):
        error_log_service.add_error_log(store, sub.id, "  ")
    with pytest.raises(NotFoundError):
        error_log_service.add_error_log(store, 9999, "orphan")


# ── Demo seed ───────────────────────────────────────────────────────────────


def test_seed_demo_data_is_idempotent(store):
    assert seed_demo_data(store, today=TODAY) is True
    assert seed_demo_data(store, today=TODAY) is False

    admin = store.find_user_by_name("Hemanth")
    assert admin.is_admin
    subs = {s.title: s for s in store.list_submissions()}
    assert subs["HV Project Alpha"].timer_state == TimerState.RUNNING
    assert subs["Agency Site Build"].status == TaskStatus.COMPLETED
    assert len(store.list_teams()) == len(TeamName)
