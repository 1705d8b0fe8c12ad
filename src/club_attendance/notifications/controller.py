from __future__ import annotations

from flask import Flask, request

from ..common.web import current_actor, flag_arg, login_required, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.notification_service

    @app.route("/api/notifications", methods=["GET"], endpoint="notifications_list")
    @login_required
    def list_notifications():
        page = service.list_for_user(
            actor=current_actor(),
            unread_only=bool(flag_arg(request.args.get("unread"))),
            page=request.args.get("page"),
            page_size=request.args.get("pageSize"),
        )
        page["items"] = [n.to_dict() for n in page["items"]]
        return ok(page)

    @app.route("/api/notifications/unread-count", methods=["GET"], endpoint="notifications_unread")
    @login_required
    def unread_count():
        return ok({"unread": service.unread_count(actor=current_actor())})

    @app.route("/api/notifications/<int:notification_id>/read", methods=["PUT"], endpoint="notifications_read")
    @login_required
    def mark_read(notification_id: int):
        service.mark_read(actor=current_actor(), notification_id=notification_id)
        return ok(message="Marked as read")

    @app.route("/api/notifications/read-all", methods=["PUT"], endpoint="notifications_read_all")
    @login_required
    def mark_all_read():
        count = service.mark_all_read(actor=current_actor())
        return ok({"updated": count}, message="All notifications marked as read")
