#!/usr/bin/env python3
"""
Format renderer - projects a ReportDataset into csv, tsv, excel or printable html bytes.

Only the document format escapes cell values; the delimited formats emit raw
values. The tab-delimited variant does not quote embedded tabs or newlines,
so consumers that need strict round-tripping should ask for csv.
"""

import html
import io
import logging
import re
from datetime import date, datetime
from typing import Any, Optional, Union

import pandas as pd

from church_reports.core.config import settings
from church_reports.schemas.report import ReportDataset, ReportFormat, RenderedReport, TitleMetadata

logger = logging.getLogger(__name__)

EXCEL_SHEET_NAME_LIMIT = 31
_INVALID_SHEET_CHARS = re.compile(r"[\[\]:*?/\\]")
_INVALID_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9]+")

DOCUMENT_STYLE = """
body { font-family: Arial, sans-serif; margin: 20px; color: #222; }
.header { text-align: center; margin-bottom: 30px; border-bottom: 2px solid #333; padding-bottom: 20px; }
.header h1 { margin: 0; font-size: 22px; }
.header h2 { margin: 6px 0; font-size: 18px; font-weight: normal; }
.meta { font-size: 12px; color: #555; }
table { width: 100%; border-collapse: collapse; margin-top: 20px; font-size: 12px; }
th, td { border: 1px solid #ddd; padding: 8px; text-align: left; }
th { background-color: #f2f2f2; font-weight: bold; }
tr:nth-child(even) { background-color: #fafafa; }
.footer { margin-top: 30px; text-align: center; font-size: 11px; color: #666; }
@media print { body { margin: 0; } }
"""

def format_cell(value: Any) -> str:
    """Display text for a cell; None renders as an empty string"""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")
    if isinstance(value, date):
        return value.isoformat()
    return str(value)

def build_filename(title: str, report_format: ReportFormat, generated_at: datetime) -> str:
    stem = _INVALID_FILENAME_CHARS.sub("_", title).strip("_") or "report"
    return f"{stem}_{generated_at.strftime('%Y%m%d_%H%M%S')}.{report_format.extension}"

def sheet_name_for(title: str) -> str:
    name = _INVALID_SHEET_CHARS.sub(" ", title).strip() or "Report"
    return name[:EXCEL_SHEET_NAME_LIMIT].strip()

def render_csv(dataset: ReportDataset) -> bytes:
    frame = dataset.to_frame()
    text = frame.to_csv(index=False, na_rep="", lineterminator="\r\n")
    return text.encode("utf-8")

def render_tsv(dataset: ReportDataset) -> bytes:
    lines = ["\t".join(dataset.columns)]
    for row in dataset.rows:
        lines.append("\t".join(format_cell(value) for value in row))
    return ("\n".join(lines) + "\n").encode("utf-8")

def render_excel(dataset: ReportDataset, meta: TitleMetadata) -> bytes:
    frame = dataset.to_frame()
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        frame.to_excel(writer, sheet_name=sheet_name_for(meta.title), index=False)

        info = pd.DataFrame({
            "Field": ["Organization", "Report", "Generated", "Period", "Rows"],
            "Value": [
                meta.organization,
                meta.title,
                format_cell(meta.generated_at),
                _date_range_text(meta) or "",
                len(dataset),
            ],
        })
        info.to_excel(writer, sheet_name="Report Info", index=False)

    return output.getvalue()

def _date_range_text(meta: TitleMetadata) -> Optional[str]:
    if not meta.date_range:
        return None
    start, end = meta.date_range
    return f"{start.strftime('%B %d, %Y')} - {end.strftime('%B %d, %Y')}"

def render_document(dataset: ReportDataset, meta: TitleMetadata) -> bytes:
    """Printable html: title block, full table, copyright footer"""
    escape = html.escape
    parts = [
        "<!DOCTYPE html>",
        "<html>",
        "<head>",
        '<meta charset="utf-8">',
        f"<title>{escape(meta.title)} - {escape(meta.organization)}</title>",
        f"<style>{DOCUMENT_STYLE}</style>",
        "</head>",
        "<body>",
        '<div class="header">',
        f"<h1>{escape(meta.organization)}</h1>",
        f"<h2>{escape(meta.title)}</h2>",
        f'<p class="meta">Generated on: {escape(meta.generated_at.strftime("%B %d, %Y at %I:%M %p"))}</p>',
    ]
    period = _date_range_text(meta)
    if period:
        parts.append(f'<p class="meta">Period: {escape(period)}</p>')
    parts.append("</div>")

    parts.append("<table>")
    parts.append("<thead><tr>" + "".join(f"<th>{escape(column)}</th>" for column in dataset.columns) + "</tr></thead>")
    parts.append("<tbody>")
    for row in dataset.rows:
        parts.append("<tr>" + "".join(f"<td>{escape(format_cell(value))}</td>" for value in row) + "</tr>")
    if not dataset.rows:
        parts.append(f'<tr><td colspan="{max(len(dataset.columns), 1)}">No records found</td></tr>')
    parts.append("</tbody>")
    parts.append("</table>")

    parts.extend([
        '<div class="footer">',
        f"<p>Total records: {len(dataset)}</p>",
        f"<p>&copy; {meta.generated_at.year} {escape(meta.organization)}. All rights reserved.</p>",
        "</div>",
        "</body>",
        "</html>",
    ])
    return "\n".join(parts).encode("utf-8")

def render(dataset: ReportDataset, report_format: Union[str, ReportFormat],
           meta: Optional[TitleMetadata] = None) -> RenderedReport:
    """Render a dataset; the format is resolved before any output is produced"""
    report_format = ReportFormat.parse(report_format)
    meta = meta or TitleMetadata(organization=settings.CHURCH_NAME, title="Report")

    if report_format == ReportFormat.CSV:
        content = render_csv(dataset)
    elif report_format == ReportFormat.TSV:
        content = render_tsv(dataset)
    elif report_format == ReportFormat.EXCEL:
        content = render_excel(dataset, meta)
    else:
        content = render_document(dataset, meta)

    filename = build_filename(meta.title, report_format, meta.generated_at)
    logger.info(f"Rendered {meta.title} as {report_format.value} ({len(content)} bytes)")
    return RenderedReport(
        content=content,
        filename=filename,
        media_type=report_format.media_type,
        format=report_format,
        row_count=len(dataset),
    )
