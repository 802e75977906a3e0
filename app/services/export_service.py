"""Report exports: CSV and styled Excel workbooks for registry listings.

Each report is a list of (header, field) columns over one entity listing.
Site reports resolve weak ``site_id`` references to the site code so
exported staff/asset/program rows are readable on their own.
"""
import csv
import io
import logging
from datetime import datetime, timezone

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from app.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

HEADER_FILL = PatternFill(start_color="354A5F", end_color="354A5F", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True, size=11)
THIN_BORDER = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)

FORMATS = ("csv", "xlsx")

REPORTS = {
    "sites": {
        "title": "Sites",
        "loader": "get_all_sites",
        "columns": [
            ("Site ID", "site_id"), ("Name", "name"), ("Type", "type"),
            ("District", "district"), ("Address", "physical_address"),
            ("Latitude", "gps_lat"), ("Longitude", "gps_lng"),
            ("Host Department", "host_department"), ("Agreement", "agreement_type"),
            ("Contact", "contact_person"), ("Contact Email", "contact_email"),
            ("Operational Status", "operational_status"),
            ("Assessment Status", "assessment_status"),
            ("Classrooms", "classrooms"), ("Computer Labs", "computer_labs"),
            ("Building Condition", "building_condition"),
            ("Last Visit", "last_visit_date"),
        ],
    },
    "staff": {
        "title": "Staff",
        "loader": "get_all_staff",
        "columns": [
            ("Staff ID", "staff_id"), ("First Name", "first_name"), ("Last Name", "last_name"),
            ("Position", "position"), ("Department", "department"), ("Email", "email"),
            ("Phone", "phone"), ("Verified", "verified"),
            ("Qualifications", "qualifications"), ("Skills", "skills"),
            ("Workload (h/week)", "workload"), ("Site", "site_id"),
        ],
    },
    "assets": {
        "title": "Assets",
        "loader": "get_all_assets",
        "columns": [
            ("Asset ID", "asset_id"), ("Name", "name"), ("Category", "category"),
            ("Manufacturer", "manufacturer"), ("Model", "model"),
            ("Serial Numbers", "serial_numbers"), ("Purchase Date", "purchase_date"),
            ("Purchase Price", "purchase_price"), ("Condition", "condition"),
            ("Location", "location"), ("Next Maintenance", "next_maintenance_date"),
            ("Site", "site_id"),
        ],
    },
    "programs": {
        "title": "Programs",
        "loader": "get_all_programs",
        "columns": [
            ("Program ID", "program_id"), ("Name", "name"), ("Category", "category"),
            ("Enrollment", "enrollment_count"), ("Start Date", "start_date"),
            ("End Date", "end_date"), ("Status", "status"), ("Site", "site_id"),
        ],
    },
}


def _cell_value(field: str, value, site_codes: dict):
    if field == "site_id" and isinstance(value, int):
        # Dangling references export as the bare id
        return site_codes.get(value, value)
    if isinstance(value, list):
        return "; ".join(str(v) for v in value)
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return value


def build_report(store, report: str) -> tuple[str, list[str], list[list]]:
    """Return ``(title, headers, rows)`` for a named report."""
    spec = REPORTS.get(report)
    if spec is None:
        raise ValidationError(
            f"Unknown report: {report}", details={"report": f"must be one of {sorted(REPORTS)}"},
        )
    # Sites report keeps its own string site_id column
    site_codes = {} if report == "sites" else {s["id"]: s["site_id"] for s in store.get_all_sites()}
    rows = getattr(store, spec["loader"])()
    headers = [header for header, _ in spec["columns"]]
    body = [
        [_cell_value(field, row[field], site_codes) for _, field in spec["columns"]]
        for row in rows
    ]
    return spec["title"], headers, body


def export_csv(store, report: str) -> str:
    _, headers, rows = build_report(store, report)
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(headers)
    writer.writerows(["" if v is None else v for v in row] for row in rows)
    return buf.getvalue()


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


def export_xlsx(store, report: str) -> io.BytesIO:
    """
    Generate a styled Excel workbook for a report.
    Returns a BytesIO buffer ready for Flask send_file.
    """
    title, headers, rows = build_report(store, report)
    wb = Workbook()
    ws = wb.active
    ws.title = title

    ws["A1"] = f"{title} Report"
    ws["A1"].font = Font(size=16, bold=True)
    ws["A2"] = f"Generated: {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M UTC')}"
    ws["A2"].font = Font(size=10, italic=True, color="666666")

    header_row = 4
    for col, header in enumerate(headers, 1):
        ws.cell(row=header_row, column=col, value=header)
    _apply_header_style(ws, header_row, len(headers))

    for offset, row in enumerate(rows, 1):
        for col, value in enumerate(row, 1):
            ws.cell(row=header_row + offset, column=col, value=value).border = THIN_BORDER

    ws.freeze_panes = ws.cell(row=header_row + 1, column=1)
    _auto_width(ws)

    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    logger.info("Exported %s report: %d rows", report, len(rows))
    return buf
