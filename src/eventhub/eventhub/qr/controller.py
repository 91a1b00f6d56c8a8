from __future__ import annotations

import io

from flask import Flask, jsonify, request, send_file

from ..common.web import current_operator, login_required
from ..container import Container
from ..core.exceptions import AuthorizationError


def register(app: Flask, container: Container) -> None:
    @app.route("/registrations/<int:registration_id>/qr", methods=["POST"], endpoint="issue_qr")
    @login_required
    def issue_qr(registration_id: int):
        reg = container.registration_service.get_registration(registration_id)
        container.event_service.require_manageable(reg.event_id, current_operator())

        token = container.qr_service.issue(registration_id)
        return jsonify({"success": True, "registration_id": registration_id, "qr_token": token}), 201

    @app.route("/registrations/<int:registration_id>/qr.png", methods=["GET"], endpoint="qr_png")
    def qr_png(registration_id: int):
        reg = container.registration_service.get_registration(registration_id)

        # Attendees prove ownership with their token; operators need to manage the event.
        token = (request.args.get("token") or "").strip()
        if not (token and reg.qr_token and token == reg.qr_token):
            op = current_operator()
            if op is None:
                raise AuthorizationError("Not authorized to view this QR code")
            container.event_service.require_manageable(reg.event_id, op)

        png = container.qr_service.render(registration_id)
        return send_file(
            io.BytesIO(png),
            mimetype="image/png",
            download_name=f"ticket_{registration_id}.png",
        )
