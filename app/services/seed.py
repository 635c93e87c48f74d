"""
Demo data for a fresh in-memory tracker.

Usage:
    flask --app wsgi seed-demo
    (or automatically at start-up when SEED_DEMO_DATA is on)

Seeding is idempotent: nothing is written when any user already exists.
Dates are relative to ``today`` so the dashboard always looks current.
"""

import logging
from datetime import date, datetime, timedelta, timezone

from app.models.document import DmsDocument
from app.models.enums import TaskStatus, TeamName, TimerState, UserRole
from app.models.error_log import ErrorLog
from app.models.notification import Notification
from app.models.submission import Submission
from app.models.team import TeamMember, TeamStructure
from app.services.store import TrackerStore

logger = logging.getLogger(__name__)

ADMIN_PASSWORD = "admin"
MEMBER_PASSWORD = "user"

# (name, role, team)
USERS = [
    ("Hemanth", UserRole.ADMIN, None),
    ("Alice (Developer)", UserRole.MEMBER, None),
    ("Akshat", UserRole.MEMBER, TeamName.HIGH_VELOCITY),
    ("Sathish", UserRole.MEMBER, TeamName.HIGH_VELOCITY),
    ("Suriya", UserRole.MEMBER, TeamName.HIGH_VELOCITY),
    ("Srinivasa", UserRole.MEMBER, TeamName.HIGH_VELOCITY),
    ("Pradeep", UserRole.MEMBER, TeamName.HIGH_VELOCITY),
    ("Nishtha", UserRole.MEMBER, TeamName.HIGH_VELOCITY),
    ("Arun", UserRole.MEMBER, TeamName.HIGH_VELOCITY),
    ("Kavin", UserRole.MEMBER, TeamName.HIGH_VELOCITY),
    ("Krishna", UserRole.MEMBER, TeamName.AGENCY),
    ("Niharika", UserRole.MEMBER, TeamName.AGENCY),
    ("Sheethal", UserRole.MEMBER, TeamName.AGENCY),
    ("Priya", UserRole.MEMBER, TeamName.AGENCY),
    ("Shahzad", UserRole.MEMBER, TeamName.AGENCY),
    ("Shiraz", UserRole.MEMBER, TeamName.AGENCY),
    ("Theresa", UserRole.MEMBER, TeamName.AGENCY),
]

# team → (lead, build roster, qa roster); roster entries are (name, buddy, notes)
TEAM_STRUCTURE = {
    TeamName.HIGH_VELOCITY: ("John", [
        ("Akshat", "Sathish, Srinivasa", "2YOK, Agency SKU"),
        ("Sathish", "Srinivasa, Akshat", "-"),
        ("Suriya", "Pradeep, Sathish", "-"),
        ("Srinivasa", "Akshat, Sathish, Pradeep", "-"),
        ("Pradeep", "Suriya, Srinivasa", "-"),
    ], [
        ("Nishtha", "Kavin, Arun", "2YOK"),
        ("Arun", "Nishtha, Kavin", "-"),
        ("Kavin", "Nishtha, Pradeep", "-"),
    ]),
    TeamName.AGENCY: ("Theresa", [
        ("Hemanth", "Krishna, Sheethal, Nithish", "IMAU"),
        ("Krishna", "Hemanth, Niharika", "-"),
        ("Niharika", "Krishna, Sheethal", "-"),
        ("Sheethal", "Hemanth, Niharika", "Agency SKU, QM1P, DW"),
    ], [
        ("Priya", "Shahzad, Shiraz", "QM1P, IMAU"),
        ("Shahzad", "Priya, Shiraz", "CJ61"),
        ("Shiraz", "Shahzad, Priya, Ana", "-"),
        ("Theresa", "-", "-"),
    ]),
    TeamName.VERTICALS: ("Swaminathan", [
        ("Geeth", "Nithish, JD", "-"),
        ("Nithish", "Geeth, JD", "53JK"),
        ("JD", "Nithish, Geeth", "CJ61"),
    ], [
        ("Bill", "Preet, Jireh", "Agency SKU"),
        ("Preet", "Bill, Jireh", "Agency SKU, DW"),
        ("Jireh", "Bill, Preet", "53JK, Agency SKU"),
    ]),
    TeamName.BROADLY_DUDA: ("Shivaraman", [
        ("Nehemiah", "Ana, Shiraz", "-"),
        ("Hemanth", "Krishna, Sheethal, Nithish", "-"),
        ("Geethpriya", "Nithish, JD", "-"),
        ("Nithish", "JD", "-"),
        ("JD", "Nithish, Geeth", "-"),
        ("Akshat", "-", "-"),
        ("Sathish", "Srinivasa, Akshat", "-"),
    ], [
        ("Ana", "Shahzad, Priya, Ana", "-"),
        ("Shiraz", "Shahzad, Priya, Ana", "-"),
    ]),
}

# user → hours for yesterday, the day before, ...
DAILY_HOURS = {
    "Akshat": [7.5, 8, 6, 7, 6.5, 0, 0],
    "Sathish": [6.0, 5.5, 6.2, 5.0, 5.8, 0, 0],
    "Suriya": [4.0, 4.5, 5.0, 3.5, 4.2, 0, 0],
    "Krishna": [8.0, 8.2, 7.5, 6.9, 7.8, 0, 0],
    "Niharika": [3.0, 4.1, 2.5, 5.0, 4.5, 0, 0],
}
OLDER_HOURS = [("Akshat", 35, 8.5), ("Krishna", 40, 7.0)]

DOCUMENTS = [
    ("Onboarding Guide for New Developers", 10),
    ("QA Testing Protocol v2.1", 5),
    ("Style Guide for Agency Projects", 20),
]


def _seed_teams(store: TrackerStore) -> None:
    for team_name, (lead, build, qa) in TEAM_STRUCTURE.items():
        team = TeamStructure(name=team_name, lead=lead)
        for section, roster in (("build", build), ("qa", qa)):
            for name, buddy, notes in roster:
                team.members.append(TeamMember(section=section, name=name, buddy=buddy, notes=notes))
        store.session.add(team)


def seed_demo_data(store: TrackerStore, today: date | None = None, now: datetime | None = None) -> bool:
    """Seed the demo organization. Returns False when data already exists."""
    if store.list_users():
        logger.info("Demo seed skipped: users already present")
        return False

    today = today or date.today()
    now = now or datetime.now(timezone.utc)

    users = {}
    for name, role, team in USERS:
        password = ADMIN_PASSWORD if role == UserRole.ADMIN else MEMBER_PASSWORD
        users[name] = store.create_user(name=name, password=password, role=role, team=team)

    _seed_teams(store)

    alpha = Submission(
        title="HV Project Alpha",
        project_type="Homepage build",
        submitter_name="Hemanth",
        developer_id=users["Akshat"].id,
        build_due_date=today + timedelta(days=7),
        dev_task_hours=8,
        qa_id=users["Nishtha"].id,
        qa_due_date=today + timedelta(days=10),
        qa_task_hours=4,
        team=TeamName.HIGH_VELOCITY,
        status=TaskStatus.IN_PROGRESS,
        created_date=today,
        logged_hours=3.5,
        timer_state=TimerState.RUNNING,
        timer_start_time=now - timedelta(hours=3.5),
        last_tick=now,
        project_status="On Track",
        task_title="Initial Build",
    )
    agency = Submission(
        title="Agency Site Build",
        project_type="Revision",
        submitter_name="Hemanth",
        developer_id=users["Krishna"].id,
        build_due_date=today - timedelta(days=1),
        dev_task_hours=16,
        qa_id=users["Priya"].id,
        qa_due_date=today + timedelta(days=2),
        qa_task_hours=6,
        team=TeamName.AGENCY,
        status=TaskStatus.COMPLETED,
        created_date=today - timedelta(days=2),
        logged_hours=16,
        timer_state=TimerState.STOPPED,
        project_status="Completed",
        task_title="Final Revisions",
    )
    store.add_submission(alpha)
    store.add_submission(agency)

    store.session.add_all([
        ErrorLog(submission_id=alpha.id, reported_by_id=users["Nishtha"].id,
                 description="API endpoint returning 500 error on form submission.", created_at=now),
        ErrorLog(submission_id=agency.id, reported_by_id=users["Priya"].id,
                 description="CSS grid breaking on mobile viewport.", created_at=now - timedelta(days=1)),
    ])

    due_alpha = alpha.build_due_date.strftime("%b %d, %Y")
    due_alpha_qa = alpha.qa_due_date.strftime("%b %d, %Y")
    store.session.add_all([
        Notification(user_id=users["Akshat"].id, is_read=False, created_at=now,
                     text=f"Hemanth assigned you as Developer on project: HV Project Alpha. Due: {due_alpha}"),
        Notification(user_id=users["Nishtha"].id, is_read=True, created_at=now,
                     text=f"Hemanth assigned you as QA on project: HV Project Alpha. Due: {due_alpha_qa}"),
        Notification(user_id=users["Krishna"].id, is_read=True, created_at=now - timedelta(days=1),
                     text="Hemanth assigned you as Developer on project: Agency Site Build."),
    ])

    for name, hours_list in DAILY_HOURS.items():
        for offset, hours in enumerate(hours_list, start=1):
            store.accumulate_metric(users[name].id, today - timedelta(days=offset), hours)
    for name, days_ago, hours in OLDER_HOURS:
        store.accumulate_metric(users[name].id, today - timedelta(days=days_ago), hours)

    for title, days_ago in DOCUMENTS:
        store.session.add(DmsDocument(
            title=title, content="...", author_id=users["Hemanth"].id,
            last_updated=today - timedelta(days=days_ago),
        ))

    store.commit()
    logger.info("Demo data seeded: %d users, %d teams, 2 submissions", len(users), len(TEAM_STRUCTURE))
    return True
