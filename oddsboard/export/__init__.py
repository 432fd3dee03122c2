"""CSV and Excel exports of the selected racecourses."""

from datetime import datetime, timezone

from oddsboard.export.csv_export import render_csv
from oddsboard.export.xlsx_export import render_xlsx, sanitize_sheet_name

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def export_filename(extension: str, now: datetime) -> str:
    """``racing-odds-2025-03-01T04-05-06.csv`` for a UTC export time.

    Aware datetimes are converted to UTC; the fractional seconds are dropped.
    """
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return f"racing-odds-{now.strftime('%Y-%m-%dT%H-%M-%S')}.{extension.lstrip('.')}"


__all__ = [
    "CSV_MEDIA_TYPE",
    "XLSX_MEDIA_TYPE",
    "export_filename",
    "render_csv",
    "render_xlsx",
    "sanitize_sheet_name",
]
