from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..common.validators import require_money, require_non_empty, require_positive_int
from ..core.constants import DEFAULT_MAX_TICKETS_PER_PERSON
from ..core.enums import EventStatus, Role
from ..core.exceptions import AuthorizationError, InvalidRegistration, NotFound, ValidationError
from ..users.model import Operator
from .model import Event, TicketType
from .repository import EventRepository, TicketTypeRepository

logger = logging.getLogger(__name__)


class EventService:
    """Use cases: create/publish/cancel events and manage their ticket types."""

    def __init__(self, events: EventRepository, ticket_types: TicketTypeRepository):
        self._events = events
        self._ticket_types = ticket_types

    def get_event(self, event_id: int) -> Event:
        event = self._events.get_by_id(int(event_id))
        if not event:
            raise NotFound("Event not found")
        return event

    def require_manageable(self, event_id: int, operator: Operator) -> Event:
        """Return the event if ``operator`` owns it or is an admin."""

        event = self.get_event(event_id)
        if not operator.is_admin and event.organizer_id != operator.user_id:
            raise AuthorizationError("Not authorized to manage this event")
        return event

    def create_event(
        self,
        *,
        current: Operator,
        name: str,
        starts_at: datetime,
        ends_at: Optional[datetime] = None,
        venue: Optional[str] = None,
        description: Optional[str] = None,
        max_attendees: Optional[int] = None,
        max_tickets_per_person: int = DEFAULT_MAX_TICKETS_PER_PERSON,
        registration_deadline: Optional[datetime] = None,
    ) -> int:
        if current.role not in (Role.ADMIN, Role.ORGANIZER):
            raise AuthorizationError("Only organizers can create events")

        name = require_non_empty(name, "Event name")
        if ends_at and ends_at < starts_at:
            raise ValidationError("Event cannot end before it starts")
        if max_attendees is not None:
            max_attendees = int(max_attendees)
            if max_attendees < 0:
                raise ValidationError("Max attendees cannot be negative")
        max_tickets_per_person = require_positive_int(max_tickets_per_person, "Max tickets per person")

        event_id = self._events.create_event(
            organizer_id=current.user_id,
            name=name,
            starts_at=starts_at,
            ends_at=ends_at,
            venue=(venue or "").strip() or None,
            description=(description or "").strip() or None,
            max_attendees=max_attendees,
            max_tickets_per_person=max_tickets_per_person,
            registration_deadline=registration_deadline,
        )
        logger.info("Event %s created by user %s", event_id, current.user_id)
        return event_id

    def publish(self, *, current: Operator, event_id: int) -> None:
        event = self.require_manageable(event_id, current)
        if event.status == EventStatus.CANCELLED:
            raise InvalidRegistration("A cancelled event cannot be published")
        if event.status == EventStatus.PUBLISHED:
            return
        if not self._ticket_types.list_for_event(event.event_id):
            raise ValidationError("Add at least one ticket type before publishing")

        self._events.set_status(event.event_id, EventStatus.PUBLISHED)
        logger.info("Event %s published", event.event_id)

    def cancel(self, *, current: Operator, event_id: int) -> None:
        event = self.require_manageable(event_id, current)
        if event.status == EventStatus.CANCELLED:
            return
        self._events.set_status(event.event_id, EventStatus.CANCELLED)
        logger.info("Event %s cancelled", event.event_id)

    def add_ticket_type(self, *, current: Operator, event_id: int, label: str, price) -> int:
        event = self.require_manageable(event_id, current)
        if event.status == EventStatus.CANCELLED:
            raise InvalidRegistration("Cannot add ticket types to a cancelled event")

        ticket_type_id = self._ticket_types.create(
            event_id=event.event_id,
            label=require_non_empty(label, "Ticket label"),
            price=require_money(price, "Price"),
        )
        return ticket_type_id

    def list_ticket_types(self, event_id: int) -> Sequence[TicketType]:
        event = self.get_event(event_id)
        return self._ticket_types.list_for_event(event.event_id)

    def list_my_events(self, *, current: Operator) -> Sequence[Event]:
        return self._events.list_for_organizer(current.user_id)
