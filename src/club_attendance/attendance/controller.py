from __future__ import annotations

from datetime import date

from flask import Flask, request

from ..common.validators import parse_enum
from ..common.web import current_actor, date_arg, elevated_required, id_list, json_body, login_required, ok, optional_int
from ..container import Container
from ..core.enums import AttendanceStatus
from .model import AttendanceFilter


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/attendance", methods=["POST"], endpoint="attendance_mark")
    @login_required
    def mark_attendance():
        actor = current_actor()
        data = json_body()
        record = service.mark_attendance(
            actor=actor,
            user_id=optional_int(data.get("user_id")) or actor.user_id,
            work_date=date_arg(data.get("date"), "date", default=date.today()),
            status=parse_enum(AttendanceStatus, data.get("status"), "status"),
            note=data.get("note"),
        )
        return ok(record.to_dict(), status=201, message="Attendance marked")

    @app.route("/api/attendance/<int:attendance_id>", methods=["GET"], endpoint="attendance_get")
    @login_required
    def get_attendance(attendance_id: int):
        return ok(service.get_details(actor=current_actor(), attendance_id=attendance_id))

    @app.route("/api/attendance/user/<int:user_id>", methods=["GET"], endpoint="attendance_for_user")
    @login_required
    def attendance_for_user(user_id: int):
        records = service.list_for_user(actor=current_actor(), user_id=user_id)
        return ok([r.to_dict() for r in records])

    @app.route("/api/attendance/date/<day>", methods=["GET"], endpoint="attendance_for_date")
    @elevated_required
    def attendance_for_date(day: str):
        records = service.list_for_date(actor=current_actor(), work_date=date_arg(day, "date"))
        return ok([r.to_dict() for r in records])

    @app.route("/api/attendance/pending", methods=["GET"], endpoint="attendance_pending")
    @elevated_required
    def pending_attendance():
        filters = AttendanceFilter(
            user_id=optional_int(request.args.get("user_id")),
            date_from=date_arg(request.args.get("from"), "from"),
            date_to=date_arg(request.args.get("to"), "to"),
        )
        page = service.list_pending(
            actor=current_actor(),
            filters=filters,
            page=request.args.get("page"),
            page_size=request.args.get("pageSize"),
        )
        page["items"] = [r.to_dict() for r in page["items"]]
        return ok(page)

    @app.route("/api/attendance/<int:attendance_id>/approve", methods=["PUT"], endpoint="attendance_approve")
    @elevated_required
    def approve_attendance(attendance_id: int):
        record = service.set_approval(actor=current_actor(), attendance_id=attendance_id, approve=True)
        return ok(record.to_dict(), message="Attendance approved")

    @app.route("/api/attendance/<int:attendance_id>/reject", methods=["PUT"], endpoint="attendance_reject")
    @elevated_required
    def reject_attendance(attendance_id: int):
        data = json_body()
        record = service.set_approval(
            actor=current_actor(), attendance_id=attendance_id, approve=False, reason=data.get("reason")
        )
        return ok(record.to_dict(), message="Attendance rejected")

    @app.route("/api/attendance/bulk-approve", methods=["POST"], endpoint="attendance_bulk_approve")
    @elevated_required
    def bulk_approve_attendance():
        result = service.bulk_approve(actor=current_actor(), attendance_ids=id_list(json_body()))
        return ok({"updated": [r.to_dict() for r in result["updated"]], "errors": result["errors"]})

    @app.route("/api/attendance/bulk-reject", methods=["POST"], endpoint="attendance_bulk_reject")
    @elevated_required
    def bulk_reject_attendance():
        data = json_body()
        result = service.bulk_reject(actor=current_actor(), attendance_ids=id_list(data), reason=data.get("reason"))
        return ok({"updated": [r.to_dict() for r in result["updated"]], "errors": result["errors"]})

    @app.route("/api/attendance/summary/<day>", methods=["GET"], endpoint="attendance_daily_summary")
    @elevated_required
    def daily_summary(day: str):
        return ok(service.daily_summary(actor=current_actor(), day=date_arg(day, "date")))

    @app.route("/api/attendance/stats", methods=["GET"], endpoint="attendance_stats")
    @elevated_required
    def attendance_stats():
        return ok(service.status_counts(actor=current_actor()))
