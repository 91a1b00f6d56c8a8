from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import EventStatus


@dataclass(frozen=True)
class Event:
    """Domain entity: an event owned by an organizer."""

    event_id: int
    organizer_id: int
    name: str
    starts_at: datetime
    status: EventStatus
    ends_at: Optional[datetime] = None
    venue: Optional[str] = None
    description: Optional[str] = None
    max_attendees: Optional[int] = None
    max_tickets_per_person: int = 10
    registration_deadline: Optional[datetime] = None


@dataclass(frozen=True)
class TicketType:
    ticket_type_id: int
    event_id: int
    label: str
    price: Decimal
