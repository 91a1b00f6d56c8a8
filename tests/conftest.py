from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from src.eventhub.eventhub.checkin.model import AttendanceRecord
from src.eventhub.eventhub.container import Container, assemble
from src.eventhub.eventhub.core.enums import (
    CheckInMethod,
    EventStatus,
    PaymentStatus,
    RegistrationStatus,
    Role,
)
from src.eventhub.eventhub.core.exceptions import Conflict, TokenCollision
from src.eventhub.eventhub.events.model import Event, TicketType
from src.eventhub.eventhub.registrations.model import Attendee, Registration
from src.eventhub.eventhub.reports.model import (
    AttendanceStatsRow,
    AttendeeListRow,
    AttendeeStatsRow,
    ScanHistoryRow,
    TicketSalesRow,
)
from src.eventhub.eventhub.users.model import Operator, User

ADMIN_PASSWORD = "admin-password"
ORGANIZER_PASSWORD = "organizer-password"


class InMemoryStore:
    """Shared tables for the in-memory repositories. One lock plays the database."""

    def __init__(self):
        self.lock = threading.RLock()
        self.users: dict[int, User] = {}
        self.events: dict[int, Event] = {}
        self.ticket_types: dict[int, TicketType] = {}
        self.attendees: dict[int, Attendee] = {}
        self.registrations: dict[int, Registration] = {}
        self.attendance: dict[int, AttendanceRecord] = {}
        self._ids: dict[str, int] = {}

    def next_id(self, table: str) -> int:
        self._ids[table] = self._ids.get(table, 0) + 1
        return self._ids[table]


class InMemoryUsers:
    def __init__(self, store: InMemoryStore):
        self._s = store

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._s.users.get(user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self._s.users.values() if u.email == email), None)

    def create_user(self, *, full_name: str, email: str, password_hash: str, role: Role) -> int:
        with self._s.lock:
            user_id = self._s.next_id("users")
            self._s.users[user_id] = User(user_id, full_name, email, password_hash, role)
            return user_id

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        with self._s.lock:
            user = self._s.users.get(user_id)
            if not user:
                return False
            self._s.users[user_id] = replace(user, is_active=is_active)
            return True

    def list_all(self):
        return list(self._s.users.values())


class InMemoryEvents:
    def __init__(self, store: InMemoryStore):
        self._s = store

    def get_by_id(self, event_id: int) -> Optional[Event]:
        return self._s.events.get(event_id)

    def create_event(self, *, organizer_id: int, name: str, starts_at: datetime, ends_at, venue, description,
                     max_attendees, max_tickets_per_person, registration_deadline) -> int:
        with self._s.lock:
            event_id = self._s.next_id("events")
            self._s.events[event_id] = Event(
                event_id=event_id,
                organizer_id=organizer_id,
                name=name,
                starts_at=starts_at,
                status=EventStatus.DRAFT,
                ends_at=ends_at,
                venue=venue,
                description=description,
                max_attendees=max_attendees,
                max_tickets_per_person=max_tickets_per_person,
                registration_deadline=registration_deadline,
            )
            return event_id

    def set_status(self, event_id: int, status: EventStatus) -> bool:
        with self._s.lock:
            self._s.events[event_id] = replace(self._s.events[event_id], status=status)
            return True

    def list_for_organizer(self, organizer_id: int):
        return [e for e in self._s.events.values() if e.organizer_id == organizer_id]


class InMemoryTicketTypes:
    def __init__(self, store: InMemoryStore):
        self._s = store

    def get_by_id(self, ticket_type_id: int) -> Optional[TicketType]:
        return self._s.ticket_types.get(ticket_type_id)

    def list_for_event(self, event_id: int):
        return [t for t in self._s.ticket_types.values() if t.event_id == event_id]

    def create(self, *, event_id: int, label: str, price: Decimal) -> int:
        with self._s.lock:
            if any(t.event_id == event_id and t.label == label for t in self._s.ticket_types.values()):
                raise Conflict("Ticket type label already exists for this event")
            ticket_type_id = self._s.next_id("ticket_types")
            self._s.ticket_types[ticket_type_id] = TicketType(ticket_type_id, event_id, label, Decimal(price))
            return ticket_type_id


class InMemoryAttendees:
    def __init__(self, store: InMemoryStore):
        self._s = store

    def get_by_id(self, attendee_id: int) -> Optional[Attendee]:
        return self._s.attendees.get(attendee_id)

    def get_by_email(self, email: str) -> Optional[Attendee]:
        return next((a for a in self._s.attendees.values() if a.email == email), None)

    def create(self, *, full_name: str, email: str, phone) -> int:
        with self._s.lock:
            existing = self.get_by_email(email)
            if existing:
                return existing.attendee_id
            attendee_id = self._s.next_id("attendees")
            self._s.attendees[attendee_id] = Attendee(attendee_id, full_name, email, phone)
            return attendee_id

    def update_contact(self, attendee_id: int, *, full_name: str, phone) -> bool:
        with self._s.lock:
            a = self._s.attendees[attendee_id]
            self._s.attendees[attendee_id] = replace(a, full_name=full_name, phone=phone or a.phone)
            return True


class InMemoryRegistrations:
    def __init__(self, store: InMemoryStore):
        self._s = store

    def get_by_id(self, registration_id: int) -> Optional[Registration]:
        return self._s.registrations.get(registration_id)

    def get_by_token(self, token: str) -> Optional[Registration]:
        with self._s.lock:
            return next((r for r in self._s.registrations.values() if r.qr_token == token), None)

    def find_confirmed_for_attendee(self, *, event_id: int, attendee_id: int) -> Optional[Registration]:
        return next(
            (
                r
                for r in self._s.registrations.values()
                if r.event_id == event_id and r.attendee_id == attendee_id and not r.is_cancelled
            ),
            None,
        )

    def confirmed_quantity(self, event_id: int) -> int:
        return sum(r.quantity for r in self._s.registrations.values() if r.event_id == event_id and not r.is_cancelled)

    def create_within_capacity(self, *, event_id, attendee_id, ticket_type_id, quantity, total_amount,
                               payment_status, special_requirements, max_attendees, created_at) -> Optional[int]:
        with self._s.lock:
            if max_attendees is not None and self.confirmed_quantity(event_id) + quantity > max_attendees:
                return None
            registration_id = self._s.next_id("registrations")
            self._s.registrations[registration_id] = Registration(
                registration_id=registration_id,
                event_id=event_id,
                attendee_id=attendee_id,
                ticket_type_id=ticket_type_id,
                quantity=quantity,
                total_amount=total_amount,
                payment_status=payment_status,
                status=RegistrationStatus.CONFIRMED,
                created_at=created_at,
                special_requirements=special_requirements,
            )
            return registration_id

    def assign_token(self, registration_id: int, *, token: str, issued_at: datetime) -> bool:
        with self._s.lock:
            if any(r.qr_token == token for r in self._s.registrations.values()):
                raise TokenCollision("Generated token is already in use")
            reg = self._s.registrations[registration_id]
            if reg.qr_token is not None:
                return False
            self._s.registrations[registration_id] = replace(reg, qr_token=token, qr_issued_at=issued_at)
            return True

    def cancel_if_not_checked_in(self, registration_id: int, *, payment_status: PaymentStatus,
                                 cancelled_at: datetime) -> bool:
        with self._s.lock:
            reg = self._s.registrations[registration_id]
            checked_in = any(a.registration_id == registration_id for a in self._s.attendance.values())
            if reg.is_cancelled or checked_in:
                return False
            self._s.registrations[registration_id] = replace(
                reg,
                status=RegistrationStatus.CANCELLED,
                payment_status=payment_status,
                cancelled_at=cancelled_at,
            )
            return True

    def update_payment_status(self, registration_id: int, *, expected: PaymentStatus,
                              new_status: PaymentStatus) -> bool:
        with self._s.lock:
            reg = self._s.registrations[registration_id]
            if reg.payment_status != expected:
                return False
            self._s.registrations[registration_id] = replace(reg, payment_status=new_status)
            return True

    def list_for_event(self, event_id: int):
        return [r for r in self._s.registrations.values() if r.event_id == event_id]


class InMemoryAttendance:
    def __init__(self, store: InMemoryStore):
        self._s = store

    def get_for_registration(self, registration_id: int) -> Optional[AttendanceRecord]:
        with self._s.lock:
            return next((a for a in self._s.attendance.values() if a.registration_id == registration_id), None)

    def create_if_absent(self, *, registration_id: int, event_id: int, check_in_time: datetime,
                         method: CheckInMethod, recorded_by) -> Optional[int]:
        with self._s.lock:
            reg = self._s.registrations.get(registration_id)
            if not reg or reg.event_id != event_id or reg.is_cancelled:
                return None
            if self.get_for_registration(registration_id):
                return None
            attendance_id = self._s.next_id("attendance")
            self._s.attendance[attendance_id] = AttendanceRecord(
                attendance_id=attendance_id,
                registration_id=registration_id,
                event_id=event_id,
                check_in_time=check_in_time,
                method=method,
                recorded_by=recorded_by,
            )
            return attendance_id

    def record_check_out(self, attendance_id: int, *, check_out_time: datetime) -> bool:
        with self._s.lock:
            rec = self._s.attendance[attendance_id]
            if rec.check_out_time is not None:
                return False
            self._s.attendance[attendance_id] = replace(rec, check_out_time=check_out_time)
            return True


class InMemoryReports:
    """Same aggregations as the SQL, computed over the in-memory tables."""

    def __init__(self, store: InMemoryStore):
        self._s = store

    def _confirmed(self, event_id: int):
        return [r for r in self._s.registrations.values() if r.event_id == event_id and not r.is_cancelled]

    def _attendance_for(self, registration_id: int) -> Optional[AttendanceRecord]:
        return next((a for a in self._s.attendance.values() if a.registration_id == registration_id), None)

    def attendee_stats(self, event_id: int) -> AttendeeStatsRow:
        confirmed = self._confirmed(event_id)
        paid = [r for r in confirmed if r.payment_status == PaymentStatus.COMPLETED]
        return AttendeeStatsRow(
            event_id=event_id,
            max_attendees=self._s.events[event_id].max_attendees,
            total_registered=len(confirmed),
            cancelled=len([r for r in self._s.registrations.values() if r.event_id == event_id and r.is_cancelled]),
            paid=len(paid),
            pending=len([r for r in confirmed if r.payment_status == PaymentStatus.PENDING]),
            checked_in=len([r for r in confirmed if self._attendance_for(r.registration_id)]),
            total_revenue=sum((r.total_amount for r in confirmed), Decimal("0.00")),
            collected_revenue=sum((r.total_amount for r in paid), Decimal("0.00")),
            tickets_sold=sum(r.quantity for r in confirmed),
        )

    def attendance_stats(self, event_id: int) -> AttendanceStatsRow:
        records = [self._attendance_for(r.registration_id) for r in self._confirmed(event_id)]
        return AttendanceStatsRow(
            total=len(records),
            checked_in=len([a for a in records if a]),
            checked_out=len([a for a in records if a and a.check_out_time]),
        )

    def scan_history(self, event_id: int, *, limit: int, offset: int):
        records = sorted(
            (a for a in self._s.attendance.values() if a.event_id == event_id),
            key=lambda a: (a.check_in_time, a.attendance_id),
            reverse=True,
        )
        rows = []
        for a in records[offset:offset + limit]:
            reg = self._s.registrations[a.registration_id]
            user = self._s.users.get(a.recorded_by)
            rows.append(
                ScanHistoryRow(
                    attendance_id=a.attendance_id,
                    registration_id=a.registration_id,
                    attendee_name=self._s.attendees[reg.attendee_id].full_name,
                    ticket_label=self._s.ticket_types[reg.ticket_type_id].label,
                    method=a.method,
                    check_in_time=a.check_in_time,
                    check_out_time=a.check_out_time,
                    recorded_by_email=user.email if user else None,
                )
            )
        return rows

    def ticket_sales(self, event_id: int):
        rows = []
        for t in sorted(self._s.ticket_types.values(), key=lambda t: (t.price, t.ticket_type_id)):
            if t.event_id != event_id:
                continue
            sold = [r for r in self._confirmed(event_id) if r.ticket_type_id == t.ticket_type_id]
            rows.append(
                TicketSalesRow(
                    ticket_type_id=t.ticket_type_id,
                    label=t.label,
                    price=t.price,
                    quantity_sold=sum(r.quantity for r in sold),
                    revenue=sum((r.total_amount for r in sold), Decimal("0.00")),
                )
            )
        return rows

    def attendee_rows(self, event_id: int):
        rows = []
        for r in sorted(self._s.registrations.values(), key=lambda r: (r.created_at, r.registration_id)):
            if r.event_id != event_id:
                continue
            a = self._s.attendees[r.attendee_id]
            att = self._attendance_for(r.registration_id)
            rows.append(
                AttendeeListRow(
                    registration_id=r.registration_id,
                    full_name=a.full_name,
                    email=a.email,
                    phone=a.phone,
                    ticket_label=self._s.ticket_types[r.ticket_type_id].label,
                    quantity=r.quantity,
                    total_amount=r.total_amount,
                    payment_status=r.payment_status,
                    registration_status=r.status,
                    created_at=r.created_at,
                    check_in_time=att.check_in_time if att else None,
                    check_out_time=att.check_out_time if att else None,
                )
            )
        return rows


def build_in_memory_container(store: InMemoryStore, *, tokens=None) -> Container:
    return assemble(
        conn=None,
        users_repo=InMemoryUsers(store),
        events_repo=InMemoryEvents(store),
        ticket_types_repo=InMemoryTicketTypes(store),
        attendees_repo=InMemoryAttendees(store),
        registrations_repo=InMemoryRegistrations(store),
        attendance_repo=InMemoryAttendance(store),
        reports_repo=InMemoryReports(store),
        tokens=tokens,
        qr_box_size=4,
        qr_border=1,
    )


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 1, 9, 0, 0)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def container(store: InMemoryStore) -> Container:
    return build_in_memory_container(store)


@pytest.fixture
def container_with_tokens(store: InMemoryStore):
    """Second container over the same store with its own token source."""

    def build(tokens) -> Container:
        return build_in_memory_container(store, tokens=tokens)

    return build


@pytest.fixture
def admin(store: InMemoryStore) -> Operator:
    user_id = InMemoryUsers(store).create_user(
        full_name="Administrator",
        email="admin@example.com",
        password_hash=generate_password_hash(ADMIN_PASSWORD),
        role=Role.ADMIN,
    )
    return Operator(user_id=user_id, full_name="Administrator", role=Role.ADMIN)


@pytest.fixture
def organizer(store: InMemoryStore) -> Operator:
    user_id = InMemoryUsers(store).create_user(
        full_name="Olivia Organizer",
        email="olivia@example.com",
        password_hash=generate_password_hash(ORGANIZER_PASSWORD),
        role=Role.ORGANIZER,
    )
    return Operator(user_id=user_id, full_name="Olivia Organizer", role=Role.ORGANIZER)


@pytest.fixture
def other_organizer(store: InMemoryStore) -> Operator:
    user_id = InMemoryUsers(store).create_user(
        full_name="Oscar Other",
        email="oscar@example.com",
        password_hash=generate_password_hash("oscar-password"),
        role=Role.ORGANIZER,
    )
    return Operator(user_id=user_id, full_name="Oscar Other", role=Role.ORGANIZER)


@pytest.fixture
def make_event(container: Container, organizer: Operator, fixed_now: datetime):
    """Create a published event owned by ``organizer`` with one ticket type.

    Returns ``(event_id, ticket_type_id)``.
    """

    def _make(*, max_attendees=None, price="0.00", max_tickets_per_person=10, registration_deadline=None,
              publish=True):
        event_id = container.event_service.create_event(
            current=organizer,
            name="Spring Meetup",
            starts_at=fixed_now.replace(month=4),
            venue="Main Hall",
            max_attendees=max_attendees,
            max_tickets_per_person=max_tickets_per_person,
            registration_deadline=registration_deadline,
        )
        ticket_type_id = container.event_service.add_ticket_type(
            current=organizer, event_id=event_id, label="General", price=price
        )
        if publish:
            container.event_service.publish(current=organizer, event_id=event_id)
        return event_id, ticket_type_id

    return _make
