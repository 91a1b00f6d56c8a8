from __future__ import annotations

from functools import wraps
from typing import Any, Optional

from flask import current_app, jsonify, request, session

from ..core.exceptions import ValidationError
from ..users.model import Operator


def login_operator(op: Operator) -> None:
    session["user_id"] = op.user_id
    session["name"] = op.full_name
    session["role"] = op.role.value


def current_operator() -> Optional[Operator]:
    """Operator of this session, reloaded from the account table.

    A deactivated or deleted account ends the session.
    """

    if "user_id" not in session:
        return None

    users = current_app.extensions["eventhub.container"].users_repo
    user = users.get_by_id(int(session["user_id"]))
    if not user or not user.is_active:
        session.clear()
        return None

    return Operator(user_id=user.user_id, full_name=user.full_name, role=user.role)


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if current_operator() is None:
            return jsonify({"success": False, "error": "AuthenticationError", "message": "Login required"}), 401
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        op = current_operator()
        if op is None:
            return jsonify({"success": False, "error": "AuthenticationError", "message": "Login required"}), 401

        if not op.is_admin:
            return jsonify({"success": False, "error": "AuthorizationError", "message": "Admin only"}), 403

        return view(*args, **kwargs)

    return wrapper


def json_body() -> dict[str, Any]:
    """Request JSON object; form data is accepted too (scanner apps post forms)."""

    data = request.get_json(silent=True)
    if data is None:
        data = request.form.to_dict()
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data
