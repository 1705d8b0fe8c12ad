"""PDF rendering of report data: Jinja2 HTML template printed by WeasyPrint."""

from __future__ import annotations

from datetime import date
from typing import Optional

from jinja2 import Environment, PackageLoader, select_autoescape

from ..common.datetime_utils import now_local
from .service import ReportData

PDF_MIMETYPE = "application/pdf"

_env = Environment(
    loader=PackageLoader("club_attendance.reports", "templates"),
    autoescape=select_autoescape(["html"]),
)


def render_report_html(data: ReportData, *, title: str, start: date, end: Optional[date] = None) -> str:
    template = _env.get_template("report.html")
    return template.render(
        title=title,
        start=start.isoformat(),
        end=(end or start).isoformat(),
        rows=data.rows,
        summary=data.summary,
        totals=data.totals,
        generated_at=now_local().strftime("%Y-%m-%d %H:%M"),
    )


def html_to_pdf(html: str) -> bytes:
    # weasyprint loads the native Pango libraries on import
    import weasyprint

    return weasyprint.HTML(string=html).write_pdf()


def to_pdf_bytes(data: ReportData, *, title: str, start: date, end: Optional[date] = None) -> bytes:
    return html_to_pdf(render_report_html(data, title=title, start=start, end=end))
