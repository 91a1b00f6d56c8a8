from __future__ import annotations

from flask import Flask, jsonify

from ..common.datetime_utils import iso_or_none
from ..common.web import admin_required, current_operator, json_body, login_required
from ..container import Container
from .model import Attendee, Registration


def registration_json(r: Registration) -> dict:
    return {
        "registration_id": r.registration_id,
        "event_id": r.event_id,
        "attendee_id": r.attendee_id,
        "ticket_type_id": r.ticket_type_id,
        "quantity": r.quantity,
        "total_amount": str(r.total_amount),
        "payment_status": r.payment_status.value,
        "registration_status": r.status.value,
        "special_requirements": r.special_requirements,
        "qr_token": r.qr_token,
        "created_at": iso_or_none(r.created_at),
        "cancelled_at": iso_or_none(r.cancelled_at),
    }


def attendee_json(a: Attendee | None) -> dict | None:
    if a is None:
        return None
    return {"attendee_id": a.attendee_id, "full_name": a.full_name, "email": a.email, "phone": a.phone}


def register(app: Flask, container: Container) -> None:
    @app.route("/events/<int:event_id>/register", methods=["POST"], endpoint="register_attendee")
    def register_attendee(event_id: int):
        data = json_body()
        result = container.registration_service.register(
            event_id=event_id,
            full_name=data.get("full_name", ""),
            email=data.get("email", ""),
            phone=data.get("phone"),
            ticket_type_id=data.get("ticket_type_id"),
            quantity=data.get("quantity", 1),
            special_requirements=data.get("special_requirements"),
        )
        return (
            jsonify(
                {
                    "success": True,
                    "registration": registration_json(result.registration),
                    "attendee": attendee_json(result.attendee),
                    "event_name": result.event_name,
                    "ticket_type": result.ticket_label,
                    "qr_token": result.qr_token,
                }
            ),
            201,
        )

    @app.route("/events/<int:event_id>/registrations", methods=["GET"], endpoint="list_registrations")
    @login_required
    def list_registrations(event_id: int):
        regs = container.registration_service.list_for_event(event_id, operator=current_operator())
        return jsonify({"event_id": event_id, "registrations": [registration_json(r) for r in regs]})

    @app.route("/registrations/<int:registration_id>", methods=["GET"], endpoint="get_registration")
    @login_required
    def get_registration(registration_id: int):
        reg = container.registration_service.get_registration(registration_id)
        container.event_service.require_manageable(reg.event_id, current_operator())
        return jsonify(registration_json(reg))

    @app.route("/registrations/<int:registration_id>/cancel", methods=["POST"], endpoint="cancel_registration")
    def cancel_registration(registration_id: int):
        data = json_body()
        reg = container.registration_service.cancel_registration(
            registration_id,
            operator=current_operator(),
            token=data.get("qr_token"),
        )
        return jsonify({"success": True, "registration": registration_json(reg)})

    @app.route(
        "/registrations/<int:registration_id>/payment/complete",
        methods=["POST"],
        endpoint="complete_payment",
    )
    @admin_required
    def complete_payment(registration_id: int):
        reg = container.registration_service.mark_payment_completed(registration_id)
        return jsonify({"success": True, "registration": registration_json(reg)})
