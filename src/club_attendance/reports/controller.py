from __future__ import annotations

import io
from datetime import date

from flask import Flask, request, send_file

from ..common.web import current_actor, date_arg, elevated_required, login_required, ok, optional_int
from ..container import Container
from ..core.exceptions import ValidationError
from . import pdf as pdf_export
from .export import XLSX_MIMETYPE, to_csv_bytes, to_excel_bytes
from .service import ReportData


_TITLES = {
    "attendance": "Attendance Report",
    "duty_log": "Duty Log Report",
    "penalties": "Penalty Report",
    "daily_summary": "Daily Summary",
}


def register(app: Flask, container: Container) -> None:
    service = container.report_service

    def _range() -> tuple[date, date]:
        today = date.today()
        start = date_arg(request.args.get("start"), "start", default=today.replace(day=1))
        end = date_arg(request.args.get("end"), "end", default=today)
        return start, end

    def _respond(data: ReportData, *, name: str, start: date, end: date):
        fmt = (request.args.get("format") or "json").lower()
        filename = f"{name}_{start.strftime('%Y%m%d')}_{end.strftime('%Y%m%d')}"

        if fmt == "json":
            return ok({"start": start.isoformat(), "end": end.isoformat(), **data.to_dict()})
        if fmt == "csv":
            return app.response_class(
                to_csv_bytes(data),
                mimetype="text/csv",
                headers={"Content-Disposition": f"attachment; filename={filename}.csv"},
            )
        if fmt in {"xlsx", "excel"}:
            output = io.BytesIO(to_excel_bytes(data, sheet_name=name))
            return send_file(
                output,
                download_name=f"{filename}.xlsx",
                as_attachment=True,
                mimetype=XLSX_MIMETYPE,
            )
        if fmt == "pdf":
            output = io.BytesIO(pdf_export.to_pdf_bytes(data, title=_TITLES[name], start=start, end=end))
            return send_file(
                output,
                download_name=f"{filename}.pdf",
                as_attachment=True,
                mimetype=pdf_export.PDF_MIMETYPE,
            )
        raise ValidationError("format must be one of: json, csv, xlsx, pdf")

    @app.route("/api/reports/attendance", methods=["GET"], endpoint="reports_attendance")
    @login_required
    def attendance_report():
        start, end = _range()
        data = service.attendance_summary(
            actor=current_actor(), start=start, end=end, user_id=optional_int(request.args.get("user_id"))
        )
        return _respond(data, name="attendance", start=start, end=end)

    @app.route("/api/reports/duty", methods=["GET"], endpoint="reports_duty")
    @login_required
    def duty_report():
        start, end = _range()
        data = service.duty_report(
            actor=current_actor(), start=start, end=end, user_id=optional_int(request.args.get("user_id"))
        )
        return _respond(data, name="duty_log", start=start, end=end)

    @app.route("/api/reports/penalties", methods=["GET"], endpoint="reports_penalties")
    @elevated_required
    def penalty_report():
        start, end = _range()
        data = service.penalty_report(actor=current_actor(), start=start, end=end)
        return _respond(data, name="penalties", start=start, end=end)

    @app.route("/api/reports/daily", methods=["GET"], endpoint="reports_daily")
    @elevated_required
    def daily_report():
        day = date_arg(request.args.get("date"), "date", default=date.today())
        data = service.daily_summary(actor=current_actor(), day=day)
        return _respond(data, name="daily_summary", start=day, end=day)
