from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import PaymentStatus, RegistrationStatus
from ..core.exceptions import TokenCollision
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone, is_duplicate_key
from .model import Attendee, Registration
from .repository import AttendeeRepository, RegistrationRepository

_REG_COLUMNS = """
    registration_id, event_id, attendee_id, ticket_type_id, quantity, total_amount,
    payment_status, registration_status, special_requirements, qr_token, qr_issued_at,
    created_at, cancelled_at
"""


def _to_registration(r: dict) -> Registration:
    return Registration(
        registration_id=int(r["registration_id"]),
        event_id=int(r["event_id"]),
        attendee_id=int(r["attendee_id"]),
        ticket_type_id=int(r["ticket_type_id"]),
        quantity=int(r["quantity"]),
        total_amount=as_decimal(r["total_amount"]),
        payment_status=PaymentStatus(r["payment_status"]),
        status=RegistrationStatus(r["registration_status"]),
        created_at=r["created_at"],
        qr_token=r.get("qr_token"),
        qr_issued_at=r.get("qr_issued_at"),
        special_requirements=r.get("special_requirements"),
        cancelled_at=r.get("cancelled_at"),
    )


def _to_attendee(r: dict) -> Attendee:
    return Attendee(
        attendee_id=int(r["attendee_id"]),
        full_name=r["full_name"],
        email=r["email"],
        phone=r.get("phone"),
    )


class MySQLAttendeeRepository(AttendeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendee_id: int) -> Optional[Attendee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT attendee_id, full_name, email, phone FROM attendees WHERE attendee_id=%s",
                (attendee_id,),
            )
            r = fetchone(cur)
            return _to_attendee(r) if r else None

    def get_by_email(self, email: str) -> Optional[Attendee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT attendee_id, full_name, email, phone FROM attendees WHERE email=%s",
                (email,),
            )
            r = fetchone(cur)
            return _to_attendee(r) if r else None

    def create(self, *, full_name: str, email: str, phone: Optional[str]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            # Two first-time registrations with the same email may race; keep the first row.
            cur.execute(
                """
                INSERT INTO attendees(full_name, email, phone)
                VALUES(%s,%s,%s)
                ON DUPLICATE KEY UPDATE attendee_id=LAST_INSERT_ID(attendee_id)
                """,
                (full_name, email, phone),
            )
            return int(cur.lastrowid)

    def update_contact(self, attendee_id: int, *, full_name: str, phone: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE attendees SET full_name=%s, phone=COALESCE(%s, phone) WHERE attendee_id=%s",
                (full_name, phone, attendee_id),
            )
            return cur.rowcount > 0


class MySQLRegistrationRepository(RegistrationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, registration_id: int) -> Optional[Registration]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_REG_COLUMNS} FROM registrations WHERE registration_id=%s", (registration_id,))
            r = fetchone(cur)
            return _to_registration(r) if r else None

    def get_by_token(self, token: str) -> Optional[Registration]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_REG_COLUMNS} FROM registrations WHERE qr_token=%s", (token,))
            r = fetchone(cur)
            return _to_registration(r) if r else None

    def find_confirmed_for_attendee(self, *, event_id: int, attendee_id: int) -> Optional[Registration]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_REG_COLUMNS} FROM registrations
                WHERE event_id=%s AND attendee_id=%s AND registration_status=%s
                LIMIT 1
                """,
                (event_id, attendee_id, RegistrationStatus.CONFIRMED.value),
            )
            r = fetchone(cur)
            return _to_registration(r) if r else None

    def confirmed_quantity(self, event_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COALESCE(SUM(quantity), 0) AS taken
                FROM registrations
                WHERE event_id=%s AND registration_status=%s
                """,
                (event_id, RegistrationStatus.CONFIRMED.value),
            )
            r = fetchone(cur)
            return int(r["taken"]) if r else 0

    def create_within_capacity(
        self,
        *,
        event_id: int,
        attendee_id: int,
        ticket_type_id: int,
        quantity: int,
        total_amount: Decimal,
        payment_status: PaymentStatus,
        special_requirements: Optional[str],
        max_attendees: Optional[int],
        created_at: datetime,
    ) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            # Row lock on the event serializes concurrent registrations for it.
            cur.execute("SELECT event_id FROM events WHERE event_id=%s FOR UPDATE", (event_id,))
            if not fetchone(cur):
                return None

            if max_attendees is not None:
                cur.execute(
                    """
                    SELECT COALESCE(SUM(quantity), 0) AS taken
                    FROM registrations
                    WHERE event_id=%s AND registration_status=%s
                    """,
                    (event_id, RegistrationStatus.CONFIRMED.value),
                )
                taken = int(fetchone(cur)["taken"])
                if taken + int(quantity) > int(max_attendees):
                    return None

            cur.execute(
                """
                INSERT INTO registrations(
                    event_id, attendee_id, ticket_type_id, quantity, total_amount,
                    payment_status, registration_status, special_requirements, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    event_id,
                    attendee_id,
                    ticket_type_id,
                    int(quantity),
                    total_amount,
                    payment_status.value,
                    RegistrationStatus.CONFIRMED.value,
                    special_requirements,
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def assign_token(self, registration_id: int, *, token: str, issued_at: datetime) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    UPDATE registrations
                    SET qr_token=%s, qr_issued_at=%s
                    WHERE registration_id=%s AND qr_token IS NULL
                    """,
                    (token, issued_at, registration_id),
                )
                return cur.rowcount > 0
        except IntegrityError as e:
            if is_duplicate_key(e):
                raise TokenCollision("Generated token is already in use") from e
            raise

    def cancel_if_not_checked_in(
        self,
        registration_id: int,
        *,
        payment_status: PaymentStatus,
        cancelled_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE registrations r
                SET r.registration_status=%s, r.payment_status=%s, r.cancelled_at=%s
                WHERE r.registration_id=%s
                  AND r.registration_status=%s
                  AND NOT EXISTS (
                      SELECT 1 FROM attendance_records ar WHERE ar.registration_id = r.registration_id
                  )
                """,
                (
                    RegistrationStatus.CANCELLED.value,
                    payment_status.value,
                    cancelled_at,
                    registration_id,
                    RegistrationStatus.CONFIRMED.value,
                ),
            )
            return cur.rowcount > 0

    def update_payment_status(
        self,
        registration_id: int,
        *,
        expected: PaymentStatus,
        new_status: PaymentStatus,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE registrations SET payment_status=%s
                WHERE registration_id=%s AND payment_status=%s
                """,
                (new_status.value, registration_id, expected.value),
            )
            return cur.rowcount > 0

    def list_for_event(self, event_id: int) -> Sequence[Registration]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_REG_COLUMNS} FROM registrations WHERE event_id=%s ORDER BY created_at DESC",
                (event_id,),
            )
            return [_to_registration(r) for r in fetchall(cur)]
