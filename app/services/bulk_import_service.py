"""
Bulk Submission Import Service

CSV-based bulk submission import with per-row reconciliation and an
outcome report.

Features:
  - Parse CSV with the 12 dashboard columns (headers case-insensitive)
  - Fatal pre-check: required columns, TEAM or assignee column, data rows
  - Per row: title check, duplicate check, assignee resolution/creation,
    status and team validation, commit
  - Partial success: good rows commit even when others fail
  - Template CSV generation
"""

import csv
import io
import logging
from dataclasses import dataclass, field
from datetime import date

from flask import current_app, has_app_context

from app.core.exceptions import FatalImportError
from app.models.enums import TaskStatus, TeamName, TimerState, UserRole
from app.models.submission import Submission
from app.services.store import TrackerStore
from app.utils.helpers import parse_strict_date

logger = logging.getLogger(__name__)

DEFAULT_MEMBER_PASSWORD = "password123"
UNASSIGNED = "Unassigned"


# ═══════════════════════════════════════════════════════════════
# Column layout
# ═══════════════════════════════════════════════════════════════

CSV_COLUMNS = {
    "project_partner_name": "Project Partner Name",
    "project_partner_id": "Project Partner ID",
    "project_account_name": "Project Account Name",
    "project_account_id": "Project Account ID",
    "title": "Project Title",
    "project_status": "Project Status",
    "task_title": "Task Title",
    "assignee_name": "Task Assignee Full Name",
    "status": "Task Status",
    "created_date": "Task Created Date",
    "due_date": "Task Due Date",
    "team": "Team",
}

REQUIRED_COLUMNS = ("title", "status")

_LABEL_TO_KEY = {label.lower(): key for key, label in CSV_COLUMNS.items()}


def _normalize_header(label: str) -> str:
    return (label or "").strip().replace('"', "").strip().lower()


# ═══════════════════════════════════════════════════════════════
# CSV Template
# ═══════════════════════════════════════════════════════════════

CSV_TEMPLATE_EXAMPLE = [
    ["Duda Partners", "P-1001", "Acme Bakery", "A-2001", "PID-1234 Acme Bakery",
     "Active", "Homepage rebuild", "Jane Smith", "Open", "2024-05-01", "2024-05-15", "Agency"],
]


def generate_csv_template() -> str:
    """Generate a CSV template string for bulk submission import."""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(list(CSV_COLUMNS.values()))
    writer.writerows(CSV_TEMPLATE_EXAMPLE)
    return output.getvalue()


# ═══════════════════════════════════════════════════════════════
# CSV Parsing & header pre-check
# ═══════════════════════════════════════════════════════════════

def parse_csv(file_content: str | bytes) -> list[dict]:
    """
    Parse CSV content into a list of row dicts keyed by CSV_COLUMNS keys.

    Every row also carries ``row_num`` (the header is row 1). Unknown
    columns are ignored; recognized columns absent from the file read as "".
    Raises FatalImportError when the batch cannot be processed at all.
    """
    if isinstance(file_content, bytes):
        try:
            file_content = file_content.decode("utf-8-sig")  # Handle BOM
        except UnicodeDecodeError as exc:
            raise FatalImportError("CSV must be UTF-8 encoded.") from exc
    file_content = (file_content or "").lstrip("\ufeff")

    reader = csv.reader(io.StringIO(file_content))
    records = [r for r in reader if any((c or "").strip() for c in r)]
    if len(records) <= 1:
        raise FatalImportError("CSV is empty or has only a header row.")

    header = records[0]
    positions = {}
    for idx, label in enumerate(header):
        key = _LABEL_TO_KEY.get(_normalize_header(label))
        if key is not None and key not in positions:
            positions[key] = idx

    missing = [CSV_COLUMNS[k].lower() for k in REQUIRED_COLUMNS if k not in positions]
    if missing:
        raise FatalImportError(f"CSV is missing required columns: {', '.join(missing)}.")
    if "team" not in positions and "assignee_name" not in positions:
        raise FatalImportError(
            f"CSV must contain either a '{CSV_COLUMNS['team'].upper()}' "
            f"or a '{CSV_COLUMNS['assignee_name'].upper()}' column."
        )

    rows = []
    # blank lines are dropped before numbering, so row 2 is the first data row
    for row_num, values in enumerate(records[1:], start=2):
        row = {"row_num": row_num}
        for key in CSV_COLUMNS:
            idx = positions.get(key)
            row[key] = (values[idx] if idx is not None and idx < len(values) else "").strip()
        rows.append(row)
    return rows


# ═══════════════════════════════════════════════════════════════
# Reconciliation
# ═══════════════════════════════════════════════════════════════

@dataclass
class ImportResult:
    """Per-batch outcome. Each row lands in exactly one counter."""

    success_count: int = 0
    error_count: int = 0
    duplicate_count: int = 0
    errors: list[str] = field(default_factory=list)
    created_ids: list[int] = field(default_factory=list)

    def add_error(self, row_num: int, message: str) -> None:
        self.error_count += 1
        self.errors.append(f"Row {row_num}: {message}")

    @property
    def total_rows(self) -> int:
        return self.success_count + self.error_count + self.duplicate_count

    def to_dict(self) -> dict:
        return {
            "successCount": self.success_count,
            "errorCount": self.error_count,
            "duplicateCount": self.duplicate_count,
            "errors": list(self.errors),
            "created_ids": list(self.created_ids),
            "total_rows": self.total_rows,
        }


def _default_password() -> str:
    if has_app_context():
        return current_app.config.get("DEFAULT_MEMBER_PASSWORD", DEFAULT_MEMBER_PASSWORD)
    return DEFAULT_MEMBER_PASSWORD


def reconcile_rows(store: TrackerStore, rows: list[dict], submitter_name: str,
                   today: date | None = None) -> ImportResult:
    """
    Reconcile parsed rows into submissions, one row at a time.

    Rows are independent: a failed row is reported and skipped, and
    successful rows are flushed immediately so later rows in the same batch
    see them for duplicate and assignee lookups. The caller commits.
    """
    today = today or date.today()
    result = ImportResult()

    for row in rows:
        row_num = row["row_num"]

        # 1. Title required
        title = (row.get("title") or "").strip()
        if not title:
            result.add_error(row_num, "'PROJECT TITLE' is missing.")
            continue

        # 2. Duplicate against committed submissions (incl. this batch)
        task_title = (row.get("task_title") or "").strip()
        if store.find_duplicate(title, task_title) is not None:
            result.duplicate_count += 1
            logger.debug("Import row %s duplicate: %r / %r", row_num, title, task_title)
            continue

        # 3. Assignee
        raw_team = (row.get("team") or "").strip()
        row_team = TeamName.coerce(raw_team)
        assignee_name = (row.get("assignee_name") or "").strip()
        if assignee_name.lower() == UNASSIGNED.lower():
            assignee_name = ""
        assignee = store.find_user_by_name(assignee_name) if assignee_name else None
        if assignee_name and assignee is None and row_team is None:
            result.add_error(
                row_num,
                f"New assignee '{assignee_name}' found, but team is missing or invalid. "
                "Cannot create user.",
            )
            continue

        # 4. Status
        raw_status = (row.get("status") or "").strip()
        status = TaskStatus.coerce(raw_status)
        if status is None:
            result.add_error(
                row_num,
                f"'TASK STATUS' is missing or invalid. Received: \"{raw_status or 'empty'}\".",
            )
            continue

        # 5. Team: row value first; an empty cell takes the existing assignee's team
        team = row_team
        if not raw_team and assignee is not None:
            team = TeamName.coerce(assignee.team)
        if team is None:
            result.add_error(
                row_num,
                "Team is missing or invalid. Assign a valid team or a user who belongs to a team.",
            )
            continue

        # 6. Commit the row
        if assignee_name and assignee is None:
            assignee = store.create_user(
                name=assignee_name,
                password=_default_password(),
                role=UserRole.MEMBER,
                team=row_team,
            )
            logger.info("Import row %s created assignee %r (team %s)", row_num, assignee.name, row_team)

        sub = Submission(
            title=title,
            project_type=task_title or "N/A",
            submitter_name=submitter_name,
            developer_id=assignee.id if assignee is not None else None,
            build_due_date=parse_strict_date(row.get("due_date")),
            team=team,
            status=status,
            created_date=parse_strict_date(row.get("created_date")) or today,
            logged_hours=0.0,
            timer_state=TimerState.STOPPED,
            project_partner_name=row.get("project_partner_name", ""),
            project_partner_id=row.get("project_partner_id", ""),
            project_account_name=row.get("project_account_name", ""),
            project_account_id=row.get("project_account_id", ""),
            project_status=row.get("project_status", ""),
            task_title=task_title,
        )
        store.add_submission(sub)
        result.success_count += 1
        result.created_ids.append(sub.id)

    return result


def import_submissions_from_csv(store: TrackerStore, file_content: str | bytes,
                                submitter_name: str, today: date | None = None) -> ImportResult:
    """
    Full pipeline: parse → reconcile → commit.

    FatalImportError from parsing propagates before any row is touched.
    """
    rows = parse_csv(file_content)
    result = reconcile_rows(store, rows, submitter_name, today=today)
    store.commit()
    logger.info(
        "CSV import by %r: %d rows, %d created, %d duplicates, %d errors",
        submitter_name, result.total_rows, result.success_count,
        result.duplicate_count, result.error_count,
    )
    return result
