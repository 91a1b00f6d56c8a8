from __future__ import annotations

from flask import Flask, jsonify

from ..common.datetime_utils import iso_or_none
from ..common.web import current_operator, json_body, login_required
from ..container import Container
from ..core.exceptions import ValidationError
from ..registrations.controller import attendee_json
from .model import AttendanceRecord, CheckInResult


def attendance_json(rec: AttendanceRecord) -> dict:
    return {
        "attendance_id": rec.attendance_id,
        "registration_id": rec.registration_id,
        "event_id": rec.event_id,
        "check_in_time": iso_or_none(rec.check_in_time),
        "check_out_time": iso_or_none(rec.check_out_time),
        "method": rec.method.value,
        "recorded_by": rec.recorded_by,
        "state": rec.state.value,
    }


def _check_in_json(result: CheckInResult) -> dict:
    return {
        "success": True,
        "attendance": attendance_json(result.record),
        "attendee": attendee_json(result.attendee),
        "quantity": result.registration.quantity,
        "payment_status": result.registration.payment_status.value,
    }


def _registration_id(data: dict) -> int:
    try:
        return int(data.get("registration_id"))
    except (TypeError, ValueError):
        raise ValidationError("registration_id must be an integer")


def register(app: Flask, container: Container) -> None:
    @app.route("/events/<int:event_id>/checkin", methods=["POST"], endpoint="checkin")
    @login_required
    def checkin(event_id: int):
        data = json_body()
        result = container.checkin_service.check_in(
            event_id=event_id,
            token=str(data.get("qr_token") or ""),
            operator=current_operator(),
        )
        return jsonify(_check_in_json(result)), 201

    @app.route("/events/<int:event_id>/checkin/manual", methods=["POST"], endpoint="checkin_manual")
    @login_required
    def checkin_manual(event_id: int):
        data = json_body()
        result = container.checkin_service.check_in_manual(
            event_id=event_id,
            registration_id=_registration_id(data),
            operator=current_operator(),
        )
        return jsonify(_check_in_json(result)), 201

    @app.route("/events/<int:event_id>/checkout", methods=["POST"], endpoint="checkout")
    @login_required
    def checkout(event_id: int):
        data = json_body()
        record = container.checkin_service.check_out(
            event_id=event_id,
            registration_id=_registration_id(data),
            operator=current_operator(),
        )
        return jsonify({"success": True, "attendance": attendance_json(record)})
