from __future__ import annotations

from flask import Flask, request

from ..common.validators import parse_enum
from ..common.web import (
    current_actor,
    date_arg,
    elevated_required,
    flag_arg,
    id_list,
    json_body,
    login_required,
    ok,
    optional_int,
)
from ..container import Container
from ..core.enums import StrikeReason
from .model import StrikeFilter


def register(app: Flask, container: Container) -> None:
    service = container.strike_service

    @app.route("/api/strikes", methods=["GET"], endpoint="strikes_list")
    @login_required
    def list_strikes():
        reason_s = request.args.get("reason")
        filters = StrikeFilter(
            user_id=optional_int(request.args.get("user_id")),
            reason=parse_enum(StrikeReason, reason_s, "reason") if reason_s else None,
            is_active=flag_arg(request.args.get("active")),
            start_date=date_arg(request.args.get("from"), "from"),
            end_date=date_arg(request.args.get("to"), "to"),
        )
        page = service.list_strikes(
            actor=current_actor(),
            filters=filters,
            page=request.args.get("page"),
            page_size=request.args.get("pageSize"),
        )
        page["items"] = [s.to_dict() for s in page["items"]]
        return ok(page)

    @app.route("/api/strikes", methods=["POST"], endpoint="strikes_issue")
    @elevated_required
    def issue_strike():
        data = json_body()
        strike = service.issue_strike(
            actor=current_actor(),
            user_id=optional_int(data.get("user_id")),
            reason=parse_enum(StrikeReason, data.get("reason", StrikeReason.OTHER.value), "reason"),
            description=data.get("description", ""),
        )
        return ok(strike.to_dict(), status=201, message="Strike recorded")

    @app.route("/api/strikes/<int:strike_id>", methods=["GET"], endpoint="strikes_get")
    @login_required
    def get_strike(strike_id: int):
        return ok(service.get_strike(actor=current_actor(), strike_id=strike_id).to_dict())

    @app.route("/api/strikes/<int:strike_id>/resolve", methods=["PUT"], endpoint="strikes_resolve")
    @elevated_required
    def resolve_strike(strike_id: int):
        data = json_body()
        strike = service.resolve(actor=current_actor(), strike_id=strike_id, notes=data.get("notes"))
        return ok(strike.to_dict(), message="Strike resolved")

    @app.route("/api/strikes/bulk-resolve", methods=["POST"], endpoint="strikes_bulk_resolve")
    @elevated_required
    def bulk_resolve():
        data = json_body()
        result = service.bulk_resolve(actor=current_actor(), strike_ids=id_list(data), notes=data.get("notes"))
        return ok({"resolved": [s.to_dict() for s in result["resolved"]], "errors": result["errors"]})

    @app.route("/api/strikes/user/<int:user_id>/count", methods=["GET"], endpoint="strikes_count")
    @login_required
    def active_count(user_id: int):
        return ok({"user_id": user_id, "active": service.count_active(actor=current_actor(), user_id=user_id)})

    @app.route("/api/strikes/statistics", methods=["GET"], endpoint="strikes_statistics")
    @login_required
    def statistics():
        return ok(
            service.statistics(
                actor=current_actor(),
                user_id=optional_int(request.args.get("user_id")),
                start_date=date_arg(request.args.get("from"), "from"),
                end_date=date_arg(request.args.get("to"), "to"),
            )
        )

    @app.route("/api/strikes/user/<int:user_id>/suspension", methods=["GET"], endpoint="strikes_suspension")
    @login_required
    def suspension_status(user_id: int):
        return ok(service.check_suspension_expiry(actor=current_actor(), user_id=user_id))
