from __future__ import annotations

from flask import Flask, request, session

from ..common.validators import parse_enum
from ..common.web import current_actor, elevated_required, json_body, login_required, ok
from ..container import Container
from ..core.enums import Role


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    def login():
        data = json_body()
        actor = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))

        session.clear()
        session.permanent = bool(data.get("remember_me"))
        session["user_id"] = actor.user_id
        session["name"] = actor.full_name
        session["role"] = actor.role.value

        user = container.user_service.get_profile(actor.user_id)
        return ok(user.to_dict(), message="Logged in")

    @app.route("/api/auth/logout", methods=["POST"], endpoint="auth_logout")
    def logout():
        session.clear()
        return ok(message="Logged out")

    @app.route("/api/auth/me", methods=["GET"], endpoint="auth_me")
    @login_required
    def me():
        actor = current_actor()
        user = container.user_service.get_profile(actor.user_id)
        return ok(user.to_dict())

    @app.route("/api/users", methods=["GET"], endpoint="users_list")
    @elevated_required
    def list_users():
        role_s = request.args.get("role")
        role = parse_enum(Role, role_s, "role") if role_s else None
        users = container.user_service.list_users(actor=current_actor(), role=role)
        return ok([u.to_dict() for u in users])

    @app.route("/api/users", methods=["POST"], endpoint="users_create")
    @elevated_required
    def create_user():
        data = json_body()
        user_id = container.user_service.create_account(
            actor=current_actor(),
            full_name=data.get("full_name", ""),
            email=data.get("email", ""),
            password=data.get("password", ""),
            role=parse_enum(Role, data.get("role", Role.STUDENT.value), "role"),
            student_code=data.get("student_code"),
        )
        return ok({"user_id": user_id}, status=201, message="Account created")

    @app.route("/api/users/<int:user_id>", methods=["GET"], endpoint="users_get")
    @login_required
    def get_user(user_id: int):
        user = container.user_service.get_visible_profile(actor=current_actor(), user_id=user_id)
        return ok(user.to_dict())
