from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import EventStatus
from .model import Event, TicketType


class EventRepository(Protocol):
    def get_by_id(self, event_id: int) -> Optional[Event]:
        raise NotImplementedError

    def create_event(
        self,
        *,
        organizer_id: int,
        name: str,
        starts_at: datetime,
        ends_at: Optional[datetime],
        venue: Optional[str],
        description: Optional[str],
        max_attendees: Optional[int],
        max_tickets_per_person: int,
        registration_deadline: Optional[datetime],
    ) -> int:
        raise NotImplementedError

    def set_status(self, event_id: int, status: EventStatus) -> bool:
        raise NotImplementedError

    def list_for_organizer(self, organizer_id: int) -> Sequence[Event]:
        raise NotImplementedError


class TicketTypeRepository(Protocol):
    def get_by_id(self, ticket_type_id: int) -> Optional[TicketType]:
        raise NotImplementedError

    def list_for_event(self, event_id: int) -> Sequence[TicketType]:
        raise NotImplementedError

    def create(self, *, event_id: int, label: str, price: Decimal) -> int:
        raise NotImplementedError
