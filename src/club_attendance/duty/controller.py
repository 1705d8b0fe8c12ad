from __future__ import annotations

from flask import Flask, request

from ..common.web import (
    current_actor,
    datetime_arg,
    elevated_required,
    json_body,
    login_required,
    ok,
    optional_int,
)
from ..container import Container


def register(app: Flask, container: Container) -> None:
    sessions = container.duty_session_service
    logs = container.hourly_log_service

    # ----- duty sessions ---------------------------------------------------

    @app.route("/api/duty-sessions/start", methods=["POST"], endpoint="duty_start")
    @login_required
    def start_session():
        data = json_body()
        session = sessions.start_session(
            actor=current_actor(), notes=data.get("notes"), event_id=optional_int(data.get("event_id"))
        )
        return ok(session.to_dict(), status=201, message="Duty session started")

    @app.route("/api/duty-sessions/<int:session_id>/end", methods=["POST"], endpoint="duty_end")
    @login_required
    def end_session(session_id: int):
        summary = sessions.end_session(actor=current_actor(), session_id=session_id)
        return ok(summary.to_dict(), message="Duty session ended")

    @app.route("/api/duty-sessions/current", methods=["GET"], endpoint="duty_current")
    @login_required
    def current_session():
        current = sessions.get_current_session(current_actor().user_id)
        return ok(current.to_dict() if current else None)

    @app.route("/api/duty-sessions/history", methods=["GET"], endpoint="duty_history")
    @login_required
    def session_history():
        rows = sessions.get_history(
            actor=current_actor(),
            user_id=optional_int(request.args.get("user_id")),
            start=datetime_arg(request.args.get("from"), "from"),
            end=datetime_arg(request.args.get("to"), "to"),
        )
        return ok([s.to_dict() for s in rows])

    @app.route("/api/duty-sessions/stats", methods=["GET"], endpoint="duty_stats")
    @login_required
    def session_stats():
        return ok(sessions.get_stats(actor=current_actor(), user_id=optional_int(request.args.get("user_id"))))

    @app.route("/api/duty-sessions/<int:session_id>", methods=["GET"], endpoint="duty_get")
    @login_required
    def get_session(session_id: int):
        return ok(sessions.get_session(actor=current_actor(), session_id=session_id).to_dict())

    @app.route("/api/duty-sessions/<int:session_id>", methods=["PUT"], endpoint="duty_update")
    @login_required
    def update_session(session_id: int):
        data = json_body()
        session = sessions.update_session(
            actor=current_actor(),
            session_id=session_id,
            notes=data.get("notes"),
            event_id=optional_int(data.get("event_id")),
        )
        return ok(session.to_dict(), message="Duty session updated")

    @app.route("/api/duty-sessions/<int:session_id>/eligibility", methods=["GET"], endpoint="duty_eligibility")
    @login_required
    def session_eligibility(session_id: int):
        sessions.get_session(actor=current_actor(), session_id=session_id)
        return ok(sessions.calculate_eligibility(session_id=session_id).to_dict())

    # ----- hourly logs -----------------------------------------------------

    @app.route("/api/duty-sessions/<int:session_id>/logs", methods=["GET"], endpoint="hourly_logs_list")
    @login_required
    def list_logs(session_id: int):
        return ok([log.to_dict() for log in logs.list_logs(actor=current_actor(), session_id=session_id)])

    @app.route("/api/duty-sessions/<int:session_id>/logs", methods=["POST"], endpoint="hourly_logs_create")
    @login_required
    def create_log(session_id: int):
        data = json_body()
        log = logs.create_log(
            actor=current_actor(),
            session_id=session_id,
            previous_hour_work=data.get("previous_hour_work", ""),
            next_hour_plan=data.get("next_hour_plan", ""),
        )
        return ok(log.to_dict(), status=201, message="Hourly log submitted")

    @app.route("/api/hourly-logs/<int:log_id>", methods=["PUT"], endpoint="hourly_logs_update")
    @login_required
    def update_log(log_id: int):
        data = json_body()
        log = logs.update_log(
            actor=current_actor(),
            log_id=log_id,
            previous_hour_work=data.get("previous_hour_work"),
            next_hour_plan=data.get("next_hour_plan"),
        )
        return ok(log.to_dict(), message="Hourly log updated")

    @app.route("/api/hourly-logs/<int:log_id>/break/start", methods=["POST"], endpoint="hourly_logs_break_start")
    @login_required
    def start_break(log_id: int):
        return ok(logs.start_break(actor=current_actor(), log_id=log_id).to_dict(), message="Break started")

    @app.route("/api/hourly-logs/<int:log_id>/break/end", methods=["POST"], endpoint="hourly_logs_break_end")
    @login_required
    def end_break(log_id: int):
        outcome = logs.end_break(actor=current_actor(), log_id=log_id)
        message = "Break ended"
        if outcome.strike:
            message = "Break ended; strike recorded for excessive break"
        return ok(outcome.to_dict(), message=message)

    @app.route("/api/hourly-logs/missed", methods=["GET"], endpoint="hourly_logs_missed")
    @login_required
    def missed_logs():
        actor = current_actor()
        user_id = optional_int(request.args.get("user_id")) or actor.user_id
        days = optional_int(request.args.get("days")) or 1
        return ok(logs.preview_missed_logs(actor=actor, user_id=user_id, days=days))

    @app.route(
        "/api/duty-sessions/<int:session_id>/missed-log-strikes",
        methods=["POST"],
        endpoint="hourly_logs_missed_strikes",
    )
    @elevated_required
    def issue_missed_log_strikes(session_id: int):
        created = logs.issue_missed_log_strikes(actor=current_actor(), session_id=session_id)
        return ok([s.to_dict() for s in created], message=f"{len(created)} strike(s) issued")
