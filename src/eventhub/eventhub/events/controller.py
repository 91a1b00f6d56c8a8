from __future__ import annotations

from typing import Optional

from flask import Flask, jsonify

from ..common.datetime_utils import iso_or_none, parse_iso_datetime
from ..common.web import current_operator, json_body, login_required
from ..container import Container
from ..core.constants import DEFAULT_MAX_TICKETS_PER_PERSON
from ..core.exceptions import ValidationError
from .model import Event, TicketType


def _parse_dt(value, field_name: str, *, required: bool = False):
    if not value:
        if required:
            raise ValidationError(f"{field_name} is required")
        return None
    try:
        return parse_iso_datetime(str(value))
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO-8601 timestamp")


def _optional_int(value, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")


def event_json(e: Event) -> dict:
    return {
        "event_id": e.event_id,
        "organizer_id": e.organizer_id,
        "name": e.name,
        "description": e.description,
        "venue": e.venue,
        "starts_at": iso_or_none(e.starts_at),
        "ends_at": iso_or_none(e.ends_at),
        "registration_deadline": iso_or_none(e.registration_deadline),
        "max_attendees": e.max_attendees,
        "max_tickets_per_person": e.max_tickets_per_person,
        "status": e.status.value,
    }


def ticket_type_json(t: TicketType) -> dict:
    return {
        "ticket_type_id": t.ticket_type_id,
        "event_id": t.event_id,
        "label": t.label,
        "price": str(t.price),
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/events", methods=["POST"], endpoint="create_event")
    @login_required
    def create_event():
        data = json_body()
        event_id = container.event_service.create_event(
            current=current_operator(),
            name=data.get("name", ""),
            starts_at=_parse_dt(data.get("starts_at"), "starts_at", required=True),
            ends_at=_parse_dt(data.get("ends_at"), "ends_at"),
            venue=data.get("venue"),
            description=data.get("description"),
            max_attendees=_optional_int(data.get("max_attendees"), "max_attendees"),
            max_tickets_per_person=data.get("max_tickets_per_person") or DEFAULT_MAX_TICKETS_PER_PERSON,
            registration_deadline=_parse_dt(data.get("registration_deadline"), "registration_deadline"),
        )
        return jsonify({"success": True, "event": event_json(container.event_service.get_event(event_id))}), 201

    @app.route("/events/mine", methods=["GET"], endpoint="my_events")
    @login_required
    def my_events():
        events = container.event_service.list_my_events(current=current_operator())
        return jsonify({"events": [event_json(e) for e in events]})

    @app.route("/events/<int:event_id>", methods=["GET"], endpoint="get_event")
    @login_required
    def get_event(event_id: int):
        event = container.event_service.require_manageable(event_id, current_operator())
        return jsonify(event_json(event))

    @app.route("/events/<int:event_id>/publish", methods=["POST"], endpoint="publish_event")
    @login_required
    def publish_event(event_id: int):
        container.event_service.publish(current=current_operator(), event_id=event_id)
        return jsonify({"success": True, "event": event_json(container.event_service.get_event(event_id))})

    @app.route("/events/<int:event_id>/cancel", methods=["POST"], endpoint="cancel_event")
    @login_required
    def cancel_event(event_id: int):
        container.event_service.cancel(current=current_operator(), event_id=event_id)
        return jsonify({"success": True, "event": event_json(container.event_service.get_event(event_id))})

    @app.route("/events/<int:event_id>/ticket-types", methods=["GET"], endpoint="list_ticket_types")
    def list_ticket_types(event_id: int):
        types = container.event_service.list_ticket_types(event_id)
        return jsonify({"ticket_types": [ticket_type_json(t) for t in types]})

    @app.route("/events/<int:event_id>/ticket-types", methods=["POST"], endpoint="add_ticket_type")
    @login_required
    def add_ticket_type(event_id: int):
        data = json_body()
        ticket_type_id = container.event_service.add_ticket_type(
            current=current_operator(),
            event_id=event_id,
            label=data.get("label", ""),
            price=data.get("price", "0"),
        )
        return jsonify({"success": True, "ticket_type_id": ticket_type_id}), 201
