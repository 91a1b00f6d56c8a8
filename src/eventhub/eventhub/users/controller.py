from __future__ import annotations

from datetime import timedelta

from flask import Flask, jsonify, session

from ..common.web import admin_required, current_operator, json_body, login_operator, login_required
from ..container import Container
from ..core.constants import DEFAULT_SESSION_DAYS


def register(app: Flask, container: Container) -> None:
    app.permanent_session_lifetime = timedelta(days=DEFAULT_SESSION_DAYS)

    @app.route("/auth/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body()
        op = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))

        session.clear()
        session.permanent = bool(data.get("remember_me"))
        login_operator(op)

        return jsonify(
            {
                "success": True,
                "user": {"user_id": op.user_id, "full_name": op.full_name, "role": op.role.value},
            }
        )

    @app.route("/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"success": True})

    @app.route("/auth/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        op = current_operator()
        return jsonify({"user_id": op.user_id, "full_name": op.full_name, "role": op.role.value})

    @app.route("/users", methods=["GET"], endpoint="list_users")
    @admin_required
    def list_users():
        users = container.user_service.list_users(current=current_operator())
        return jsonify(
            {
                "users": [
                    {
                        "user_id": u.user_id,
                        "full_name": u.full_name,
                        "email": u.email,
                        "role": u.role.value,
                        "is_active": u.is_active,
                    }
                    for u in users
                ]
            }
        )

    @app.route("/users", methods=["POST"], endpoint="create_organizer")
    @admin_required
    def create_organizer():
        data = json_body()
        user_id = container.user_service.create_organizer(
            current=current_operator(),
            full_name=data.get("full_name", ""),
            email=data.get("email", ""),
            password=data.get("password", ""),
        )
        return jsonify({"success": True, "user_id": user_id}), 201

    @app.route("/users/<int:user_id>/deactivate", methods=["POST"], endpoint="deactivate_user")
    @admin_required
    def deactivate_user(user_id: int):
        container.user_service.deactivate(current=current_operator(), user_id=user_id)
        return jsonify({"success": True})
