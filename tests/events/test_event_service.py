from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest

from src.eventhub.eventhub.core.enums import EventStatus
from src.eventhub.eventhub.core.exceptions import (
    AuthorizationError,
    Conflict,
    InvalidRegistration,
    NotFound,
    ValidationError,
)


def test_new_event_is_draft(container, organizer, fixed_now):
    event_id = container.event_service.create_event(current=organizer, name=" Launch ", starts_at=fixed_now)

    event = container.event_service.get_event(event_id)
    assert event.status == EventStatus.DRAFT
    assert event.name == "Launch"
    assert event.organizer_id == organizer.user_id
    assert event.max_attendees is None


def test_create_event_validation(container, organizer, fixed_now):
    with pytest.raises(ValidationError):
        container.event_service.create_event(current=organizer, name="  ", starts_at=fixed_now)
    with pytest.raises(ValidationError):
        container.event_service.create_event(
            current=organizer, name="Back", starts_at=fixed_now, ends_at=fixed_now - timedelta(hours=1)
        )
    with pytest.raises(ValidationError):
        container.event_service.create_event(current=organizer, name="Neg", starts_at=fixed_now, max_attendees=-1)


def test_publish_needs_a_ticket_type(container, organizer, fixed_now):
    event_id = container.event_service.create_event(current=organizer, name="Empty", starts_at=fixed_now)

    with pytest.raises(ValidationError):
        container.event_service.publish(current=organizer, event_id=event_id)

    container.event_service.add_ticket_type(current=organizer, event_id=event_id, label="Standard", price="10")
    container.event_service.publish(current=organizer, event_id=event_id)
    assert container.event_service.get_event(event_id).status == EventStatus.PUBLISHED


def test_cancelled_event_cannot_be_republished(container, make_event, organizer):
    event_id, _ = make_event()
    container.event_service.cancel(current=organizer, event_id=event_id)

    with pytest.raises(InvalidRegistration):
        container.event_service.publish(current=organizer, event_id=event_id)
    with pytest.raises(InvalidRegistration):
        container.event_service.add_ticket_type(current=organizer, event_id=event_id, label="Late", price="1")


def test_only_owner_or_admin_manages(container, make_event, other_organizer, admin):
    event_id, _ = make_event()

    with pytest.raises(AuthorizationError):
        container.event_service.cancel(current=other_organizer, event_id=event_id)

    container.event_service.cancel(current=admin, event_id=event_id)
    assert container.event_service.get_event(event_id).status == EventStatus.CANCELLED


def test_ticket_types(container, make_event, organizer):
    event_id, _ = make_event()
    container.event_service.add_ticket_type(current=organizer, event_id=event_id, label="VIP", price="99.999")

    types = container.event_service.list_ticket_types(event_id)
    assert [t.label for t in types] == ["General", "VIP"]
    assert types[1].price == Decimal("100.00")

    with pytest.raises(Conflict):
        container.event_service.add_ticket_type(current=organizer, event_id=event_id, label="VIP", price="1")
    with pytest.raises(ValidationError):
        container.event_service.add_ticket_type(current=organizer, event_id=event_id, label="Neg", price="-1")


def test_unknown_event(container):
    with pytest.raises(NotFound):
        container.event_service.list_ticket_types(404)


def test_list_my_events(container, make_event, organizer, other_organizer):
    make_event()
    make_event()

    assert len(container.event_service.list_my_events(current=organizer)) == 2
    assert container.event_service.list_my_events(current=other_organizer) == []
