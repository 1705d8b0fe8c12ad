from __future__ import annotations

from flask import Flask, request

from ..common.validators import parse_enum
from ..common.web import current_actor, date_arg, elevated_required, json_body, login_required, ok, optional_int, time_arg
from ..container import Container
from ..core.enums import EventType
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    service = container.event_service

    @app.route("/api/events", methods=["GET"], endpoint="events_search")
    @login_required
    def search_events():
        events = service.search(request.args.get("query"), limit=request.args.get("limit"))
        return ok([e.to_dict() for e in events])

    @app.route("/api/events/<int:event_id>", methods=["GET"], endpoint="events_get")
    @login_required
    def get_event(event_id: int):
        return ok(service.get(event_id).to_dict())

    @app.route("/api/events", methods=["POST"], endpoint="events_create")
    @elevated_required
    def create_event():
        data = json_body()
        event_date = date_arg(data.get("event_date"), "event_date")
        if event_date is None:
            raise ValidationError("event_date is required")
        event = service.create(
            actor=current_actor(),
            name=data.get("name", ""),
            event_date=event_date,
            event_type=parse_enum(EventType, data.get("event_type", EventType.OTHER.value), "event_type"),
            description=data.get("description"),
            start_time=time_arg(data.get("start_time"), "start_time"),
            end_time=time_arg(data.get("end_time"), "end_time"),
            location=data.get("location"),
            max_participants=optional_int(data.get("max_participants")),
        )
        return ok(event.to_dict(), status=201, message="Event created")

    @app.route("/api/events/<int:event_id>", methods=["DELETE"], endpoint="events_archive")
    @elevated_required
    def archive_event(event_id: int):
        return ok(service.deactivate(actor=current_actor(), event_id=event_id).to_dict(), message="Event archived")
