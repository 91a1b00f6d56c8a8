from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import EventStatus
from ..core.exceptions import Conflict
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone, is_duplicate_key
from .model import Event, TicketType
from .repository import EventRepository, TicketTypeRepository

_EVENT_COLUMNS = """
    event_id, organizer_id, name, description, venue, starts_at, ends_at,
    registration_deadline, max_attendees, max_tickets_per_person, status
"""


def _to_event(r: dict) -> Event:
    return Event(
        event_id=int(r["event_id"]),
        organizer_id=int(r["organizer_id"]),
        name=r["name"],
        starts_at=r["starts_at"],
        status=EventStatus(r["status"]),
        ends_at=r.get("ends_at"),
        venue=r.get("venue"),
        description=r.get("description"),
        max_attendees=int(r["max_attendees"]) if r.get("max_attendees") is not None else None,
        max_tickets_per_person=int(r.get("max_tickets_per_person") or 10),
        registration_deadline=r.get("registration_deadline"),
    )


def _to_ticket_type(r: dict) -> TicketType:
    return TicketType(
        ticket_type_id=int(r["ticket_type_id"]),
        event_id=int(r["event_id"]),
        label=r["label"],
        price=as_decimal(r["price"]),
    )


class MySQLEventRepository(EventRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, event_id: int) -> Optional[Event]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_EVENT_COLUMNS} FROM events WHERE event_id=%s", (event_id,))
            r = fetchone(cur)
            return _to_event(r) if r else None

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO events(
                    organizer_id, name, description, venue, starts_at, ends_at,
                    registration_deadline, max_attendees, max_tickets_per_person, status
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    organizer_id,
                    name,
                    description,
                    venue,
                    starts_at,
                    ends_at,
                    registration_deadline,
                    max_attendees,
                    max_tickets_per_person,
                    EventStatus.DRAFT.value,
                ),
            )
            return int(cur.lastrowid)

    def set_status(self, event_id: int, status: EventStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE events SET status=%s WHERE event_id=%s", (status.value, event_id))
            return cur.rowcount > 0

    def list_for_organizer(self, organizer_id: int) -> Sequence[Event]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_EVENT_COLUMNS} FROM events WHERE organizer_id=%s ORDER BY starts_at DESC",
                (organizer_id,),
            )
            return [_to_event(r) for r in fetchall(cur)]


class MySQLTicketTypeRepository(TicketTypeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, ticket_type_id: int) -> Optional[TicketType]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT ticket_type_id, event_id, label, price FROM ticket_types WHERE ticket_type_id=%s",
                (ticket_type_id,),
            )
            r = fetchone(cur)
            return _to_ticket_type(r) if r else None

    def list_for_event(self, event_id: int) -> Sequence[TicketType]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT ticket_type_id, event_id, label, price
                FROM ticket_types
                WHERE event_id=%s
                ORDER BY price ASC, ticket_type_id ASC
                """,
                (event_id,),
            )
            return [_to_ticket_type(r) for r in fetchall(cur)]

    def create(self, *, event_id: int, label: str, price: Decimal) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO ticket_types(event_id, label, price) VALUES(%s,%s,%s)",
                    (event_id, label, price),
                )
                return int(cur.lastrowid)
        except IntegrityError as e:
            if is_duplicate_key(e):
                raise Conflict(f"Ticket type '{label}' already exists for this event") from e
            raise
