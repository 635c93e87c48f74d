import csv
import io
import logging
from datetime import datetime, timezone

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from app.services.bulk_import_service import CSV_COLUMNS, UNASSIGNED
from app.services.store import TrackerStore

logger = logging.getLogger(__name__)

HEADER_FILL = PatternFill(start_color="354A5F", end_color="354A5F", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True, size=11)
THIN_BORDER = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)

UTILIZATION_HEADERS = ["User", "Team", "Total Hours", "Days Logged", "Avg Hours / Day"]


def _apply_header_style(ws, row: int, col_count: int) -> None:
    """Apply dark-header styling to an Excel row (1-indexed)."""
    for col in range(1, col_count + 1):
        cell = ws.cell(row=row, column=col)
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
        cell.border = THIN_BORDER
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)


def _auto_width(ws) -> None:
    """Auto-size column widths based on content (capped at 60 chars)."""
    for col in ws.columns:
        max_len = 0
        col_letter = get_column_letter(col[0].column)
        for cell in col:
            if cell.value:
                max_len = max(max_len, min(len(str(cell.value)), 60))
        ws.column_dimensions[col_letter].width = max(max_len + 4, 12)


def _text(value) -> str:
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(getattr(value, "value", value))


def export_submissions_csv(store: TrackerStore, submissions) -> str:
    """Render submissions as the 12-column dashboard CSV.

    Every field is quoted with embedded quotes doubled, so the output can
    be fed straight back into the importer.
    """
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(list(CSV_COLUMNS.values()))
    count = 0
    for sub in submissions:
        developer = store.get_user(sub.developer_id) if sub.developer_id else None
        writer.writerow([
            _text(sub.project_partner_name),
            _text(sub.project_partner_id),
            _text(sub.project_account_name),
            _text(sub.project_account_id),
            _text(sub.title),
            _text(sub.project_status),
            _text(sub.task_title),
            developer.name if developer is not None else UNASSIGNED,
            _text(sub.status),
            _text(sub.created_date),
            _text(sub.build_due_date),
            _text(sub.team),
        ])
        count += 1
    logger.info("Exported %d submissions to CSV", count)
    return buf.getvalue()


def export_utilization_xlsx(rows: list[dict], start=None, end=None) -> bytes:
    """
    Generate a styled Excel workbook from filtered utilization rows.

    ``rows`` is the output of metrics_service.filtered_user_metrics.
    Returns the workbook bytes ready for Flask send_file.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = "Utilization"

    ws.merge_cells("A1:E1")
    ws["A1"] = "Team Utilization Report"
    ws["A1"].font = Font(size=16, bold=True)
    period = f"{_text(start) or 'beginning'} to {_text(end) or 'today'}"
    ws["A2"] = (
        f"Period: {period} | "
        f"Generated: {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M UTC')}"
    )
    ws["A2"].font = Font(size=10, italic=True, color="666666")

    header_row = 4
    for col, header in enumerate(UTILIZATION_HEADERS, 1):
        ws.cell(row=header_row, column=col, value=header)
    _apply_header_style(ws, header_row, len(UTILIZATION_HEADERS))

    row_i = header_row
    for entry in rows:
        row_i += 1
        user = entry["user"]
        values = [
            user.get("name"),
            user.get("team") or "",
            round(entry["total_hours"], 2),
            entry["days"],
            round(entry["avg_hours"], 2),
        ]
        for col, value in enumerate(values, 1):
            ws.cell(row=row_i, column=col, value=value).border = THIN_BORDER

    if rows:
        row_i += 1
        total_cell = ws.cell(row=row_i, column=1, value="Total")
        total_cell.font = Font(bold=True)
        ws.cell(row=row_i, column=3, value=round(sum(e["total_hours"] for e in rows), 2)).font = Font(bold=True)

    _auto_width(ws)

    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    return buf.getvalue()
