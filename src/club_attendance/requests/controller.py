from __future__ import annotations

from flask import Flask, request

from ..common.validators import parse_enum
from ..common.web import current_actor, date_arg, elevated_required, id_list, json_body, login_required, ok, optional_int
from ..container import Container
from ..core.enums import RequestStatus, RequestType
from ..core.exceptions import ValidationError
from .model import RequestFilter


def register(app: Flask, container: Container) -> None:
    service = container.request_service

    def _status_arg():
        status_s = request.args.get("status")
        return parse_enum(RequestStatus, status_s, "status") if status_s else None

    @app.route("/api/requests", methods=["POST"], endpoint="requests_submit")
    @login_required
    def submit_request():
        data = json_body()
        request_date = date_arg(data.get("request_date"), "request_date")
        if request_date is None:
            raise ValidationError("request_date is required")
        req = service.submit(
            actor=current_actor(),
            request_type=parse_enum(RequestType, data.get("request_type", RequestType.LEAVE.value), "request_type"),
            request_date=request_date,
            reason=data.get("reason", ""),
        )
        return ok(
            req.to_dict(),
            status=201,
            message="Request submitted",
            deadline_warning=service.deadline_warning(req.request_date),
        )

    @app.route("/api/requests/mine", methods=["GET"], endpoint="requests_mine")
    @login_required
    def my_requests():
        rows = service.list_mine(actor=current_actor(), status=_status_arg())
        return ok([r.to_dict() for r in rows])

    @app.route("/api/requests/pending", methods=["GET"], endpoint="requests_pending")
    @elevated_required
    def pending_requests():
        return ok([r.to_dict() for r in service.list_pending(actor=current_actor())])

    @app.route("/api/requests", methods=["GET"], endpoint="requests_list")
    @elevated_required
    def list_requests():
        filters = RequestFilter(
            user_id=optional_int(request.args.get("user_id")),
            status=_status_arg(),
            date_from=date_arg(request.args.get("from"), "from"),
            date_to=date_arg(request.args.get("to"), "to"),
        )
        page = service.list_all(
            actor=current_actor(),
            filters=filters,
            page=request.args.get("page"),
            page_size=request.args.get("pageSize"),
        )
        page["items"] = [r.to_dict() for r in page["items"]]
        return ok(page)

    @app.route("/api/requests/stats", methods=["GET"], endpoint="requests_stats")
    @elevated_required
    def request_stats():
        return ok(service.stats(actor=current_actor()))

    @app.route("/api/requests/<int:request_id>/approve", methods=["PUT"], endpoint="requests_approve")
    @elevated_required
    def approve_request(request_id: int):
        req = service.approve(actor=current_actor(), request_id=request_id)
        return ok(req.to_dict(), message="Request approved")

    @app.route("/api/requests/<int:request_id>/reject", methods=["PUT"], endpoint="requests_reject")
    @elevated_required
    def reject_request(request_id: int):
        data = json_body()
        req = service.reject(actor=current_actor(), request_id=request_id, reason=data.get("reason", ""))
        return ok(req.to_dict(), message="Request rejected")

    @app.route("/api/requests/bulk-approve", methods=["POST"], endpoint="requests_bulk_approve")
    @elevated_required
    def bulk_approve_requests():
        updated = service.bulk_approve(actor=current_actor(), request_ids=id_list(json_body()))
        return ok([r.to_dict() for r in updated], message=f"{len(updated)} request(s) approved")

    @app.route("/api/requests/<int:request_id>", methods=["PUT"], endpoint="requests_update")
    @login_required
    def update_request(request_id: int):
        data = json_body()
        req = service.update(
            actor=current_actor(),
            request_id=request_id,
            request_date=date_arg(data.get("request_date"), "request_date"),
            reason=data.get("reason"),
        )
        return ok(req.to_dict(), message="Request updated")

    @app.route("/api/requests/<int:request_id>", methods=["DELETE"], endpoint="requests_delete")
    @login_required
    def delete_request(request_id: int):
        service.delete(actor=current_actor(), request_id=request_id)
        return ok(message="Request deleted")
