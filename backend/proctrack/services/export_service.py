"""Record exports: CSV, spreadsheet and PDF report tables.

Exports take the already filtered and sorted record list. CSV and XLSX are
rendered here; PDF layout belongs to the client, so for PDF this module only
builds the report table (title, generated line, headers, rows).
"""

import csv
import io
from datetime import date, datetime
from typing import Iterable, List, Optional

from openpyxl import Workbook
from openpyxl.styles import Font

from ..schemas.record import ReportResponse, ReportVariant
from .clock import as_utc, utcnow
from .hierarchy import LocationLookup

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
XLSX_SHEET_TITLE = "Procurements"

CSV_HEADERS = [
    "PR Number", "Description", "Location", "Shelf", "Cabinet", "Folder",
    "Status", "Date Added", "Created At",
]
XLSX_HEADERS = [
    "PR Number", "Description", "Location", "Status", "Urgency",
    "Date Added", "Tags", "Notes",
]
SUMMARY_HEADERS = ["PR Number", "Description", "Location", "Status", "Date Added"]
FULL_HEADERS = ["PR #", "Description", "Location", "Status", "Urgency", "Date", "Tags", "Created By"]

_REPORT_TITLES = {
    ReportVariant.SUMMARY: "Procurement Records - Summary Report",
    ReportVariant.FULL: "Procurement Records - Full Report",
}


# -- formatting -----------------------------------------------------------

def format_date(value: Optional[datetime]) -> str:
    """``Mar 5, 2024``"""
    if value is None:
        return ""
    value = as_utc(value)
    return f"{value:%b} {value.day}, {value.year}"


def format_datetime(value: Optional[datetime]) -> str:
    """``Mar 5, 2024 14:07``"""
    if value is None:
        return ""
    return f"{format_date(value)} {as_utc(value):%H:%M}"


def format_generated(value: datetime) -> str:
    """``Generated: March 5, 2024 - 02:07 PM``"""
    value = as_utc(value)
    return f"Generated: {value:%B} {value.day}, {value.year} - {value:%I:%M %p}"


def status_label(status) -> str:
    status = getattr(status, "value", status)
    return status.capitalize()


def truncate(text: Optional[str], limit: int) -> str:
    text = text or ""
    return text[:limit] + "..." if len(text) > limit else text


def export_filename(kind: str, today: Optional[date] = None) -> str:
    """Dated download name for an export kind: csv, xlsx, summary or full."""
    stamp = (today or utcnow().date()).isoformat()
    names = {
        "csv": f"procurement_records_{stamp}.csv",
        "xlsx": f"procurement-records-{stamp}.xlsx",
        "summary": f"procurement-summary-{stamp}.pdf",
        "full": f"procurement-full-{stamp}.pdf",
    }
    return names[kind]


def _unit_name(unit) -> str:
    return unit.name if unit is not None else ""


# -- CSV ------------------------------------------------------------------

def csv_rows(records: Iterable, lookup: LocationLookup) -> List[List[str]]:
    return [
        [
            r.pr_number,
            r.description,
            lookup.code_for(r),
            _unit_name(lookup.shelf(r.shelf_id)),
            _unit_name(lookup.cabinet(r.cabinet_id)),
            _unit_name(lookup.folder(r.folder_id)),
            status_label(r.status),
            format_date(r.date_added),
            format_datetime(r.created_at),
        ]
        for r in records
    ]


def render_csv(records: Iterable, lookup: LocationLookup) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_HEADERS)
    writer.writerows(csv_rows(records, lookup))
    return buffer.getvalue()


# -- XLSX -----------------------------------------------------------------

def xlsx_rows(records: Iterable, lookup: LocationLookup) -> List[List[str]]:
    return [
        [
            r.pr_number,
            r.description,
            lookup.code_for(r),
            status_label(r.status),
            r.urgency_level,
            format_date(r.date_added),
            ", ".join(r.tags or []),
            r.notes or "",
        ]
        for r in records
    ]


def render_xlsx(records: Iterable, lookup: LocationLookup) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = XLSX_SHEET_TITLE
    sheet.append(XLSX_HEADERS)
    for cell in sheet[1]:
        cell.font = Font(bold=True)

    for row in xlsx_rows(records, lookup):
        sheet.append(row)

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


# -- PDF report tables ----------------------------------------------------

def _summary_row(record, lookup: LocationLookup) -> List[str]:
    return [
        record.pr_number,
        truncate(record.description, 40),
        lookup.code_for(record),
        status_label(record.status),
        format_date(record.date_added),
    ]


def _full_row(record, lookup: LocationLookup) -> List[str]:
    return [
        record.pr_number,
        truncate(record.description, 30),
        lookup.code_for(record),
        status_label(record.status),
        record.urgency_level,
        format_date(record.date_added),
        ", ".join(record.tags or [])[:20],
        record.created_by_name or "N/A",
    ]


def build_report(
    records: Iterable,
    lookup: LocationLookup,
    variant: ReportVariant = ReportVariant.SUMMARY,
    now: Optional[datetime] = None,
) -> ReportResponse:
    variant = ReportVariant(variant)
    now = now or utcnow()
    records = list(records)
    if variant == ReportVariant.SUMMARY:
        headers, rows = SUMMARY_HEADERS, [_summary_row(r, lookup) for r in records]
    else:
        headers, rows = FULL_HEADERS, [_full_row(r, lookup) for r in records]
    return ReportResponse(
        variant=variant,
        title=_REPORT_TITLES[variant],
        generated=format_generated(now),
        headers=list(headers),
        rows=rows,
        filename=export_filename(variant.value, as_utc(now).date()),
        total=len(records),
    )
