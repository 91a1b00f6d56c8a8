from __future__ import annotations

from typing import Sequence

from ..core.enums import CheckInMethod, PaymentStatus, RegistrationStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone
from .model import AttendanceStatsRow, AttendeeListRow, AttendeeStatsRow, ScanHistoryRow, TicketSalesRow
from .repository import ReportRepository


class MySQLReportRepository(ReportRepository):
    """Read-only aggregations for the organizer dashboard."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def attendee_stats(self, event_id: int) -> AttendeeStatsRow:
        with db_cursor(self._conn_factory) as (_, cur):
            # attendance_records is unique per registration, so the LEFT JOIN never fans out.
            cur.execute(
                """
                SELECT
                    e.event_id,
                    e.max_attendees,
                    COUNT(CASE WHEN r.registration_status='confirmed' THEN 1 END) AS total_registered,
                    COUNT(CASE WHEN r.registration_status='cancelled' THEN 1 END) AS cancelled,
                    COUNT(CASE WHEN r.registration_status='confirmed' AND r.payment_status='completed' THEN 1 END) AS paid,
                    COUNT(CASE WHEN r.registration_status='confirmed' AND r.payment_status='pending' THEN 1 END) AS pending,
                    COUNT(CASE WHEN r.registration_status='confirmed' AND ar.attendance_id IS NOT NULL THEN 1 END) AS checked_in,
                    COALESCE(SUM(CASE WHEN r.registration_status='confirmed' THEN r.total_amount END), 0) AS total_revenue,
                    COALESCE(SUM(CASE WHEN r.registration_status='confirmed' AND r.payment_status='completed'
                                      THEN r.total_amount END), 0) AS collected_revenue,
                    COALESCE(SUM(CASE WHEN r.registration_status='confirmed' THEN r.quantity END), 0) AS tickets_sold
                FROM events e
                LEFT JOIN registrations r ON r.event_id = e.event_id
                LEFT JOIN attendance_records ar ON ar.registration_id = r.registration_id
                WHERE e.event_id=%s
                GROUP BY e.event_id, e.max_attendees
                """,
                (event_id,),
            )
            r = fetchone(cur) or {}
            return AttendeeStatsRow(
                event_id=int(event_id),
                max_attendees=int(r["max_attendees"]) if r.get("max_attendees") is not None else None,
                total_registered=int(r.get("total_registered") or 0),
                cancelled=int(r.get("cancelled") or 0),
                paid=int(r.get("paid") or 0),
                pending=int(r.get("pending") or 0),
                checked_in=int(r.get("checked_in") or 0),
                total_revenue=as_decimal(r.get("total_revenue")),
                collected_revenue=as_decimal(r.get("collected_revenue")),
                tickets_sold=int(r.get("tickets_sold") or 0),
            )

    def attendance_stats(self, event_id: int) -> AttendanceStatsRow:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    COUNT(r.registration_id) AS total,
                    COUNT(ar.check_in_time) AS checked_in,
                    COUNT(ar.check_out_time) AS checked_out
                FROM registrations r
                LEFT JOIN attendance_records ar ON ar.registration_id = r.registration_id
                WHERE r.event_id=%s AND r.registration_status=%s
                """,
                (event_id, RegistrationStatus.CONFIRMED.value),
            )
            r = fetchone(cur) or {}
            return AttendanceStatsRow(
                total=int(r.get("total") or 0),
                checked_in=int(r.get("checked_in") or 0),
                checked_out=int(r.get("checked_out") or 0),
            )

    def scan_history(self, event_id: int, *, limit: int, offset: int) -> Sequence[ScanHistoryRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    ar.attendance_id, ar.registration_id, ar.check_in_time, ar.check_out_time, ar.method,
                    a.full_name AS attendee_name,
                    tt.label AS ticket_label,
                    u.email AS recorded_by_email
                FROM attendance_records ar
                JOIN registrations r ON r.registration_id = ar.registration_id
                JOIN attendees a ON a.attendee_id = r.attendee_id
                LEFT JOIN ticket_types tt ON tt.ticket_type_id = r.ticket_type_id
                LEFT JOIN users u ON u.user_id = ar.recorded_by
                WHERE ar.event_id=%s
                ORDER BY ar.check_in_time DESC, ar.attendance_id DESC
                LIMIT %s OFFSET %s
                """,
                (event_id, int(limit), int(offset)),
            )
            return [
                ScanHistoryRow(
                    attendance_id=int(r["attendance_id"]),
                    registration_id=int(r["registration_id"]),
                    attendee_name=r["attendee_name"],
                    ticket_label=r.get("ticket_label"),
                    method=CheckInMethod(r["method"]),
                    check_in_time=r["check_in_time"],
                    check_out_time=r.get("check_out_time"),
                    recorded_by_email=r.get("recorded_by_email"),
                )
                for r in fetchall(cur)
            ]

    def ticket_sales(self, event_id: int) -> Sequence[TicketSalesRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    tt.ticket_type_id, tt.label, tt.price,
                    COALESCE(SUM(r.quantity), 0) AS quantity_sold,
                    COALESCE(SUM(r.total_amount), 0) AS revenue
                FROM ticket_types tt
                LEFT JOIN registrations r
                    ON r.ticket_type_id = tt.ticket_type_id AND r.registration_status=%s
                WHERE tt.event_id=%s
                GROUP BY tt.ticket_type_id, tt.label, tt.price
                ORDER BY tt.price ASC, tt.ticket_type_id ASC
                """,
                (RegistrationStatus.CONFIRMED.value, event_id),
            )
            return [
                TicketSalesRow(
                    ticket_type_id=int(r["ticket_type_id"]),
                    label=r["label"],
                    price=as_decimal(r["price"]),
                    quantity_sold=int(r["quantity_sold"] or 0),
                    revenue=as_decimal(r["revenue"]),
                )
                for r in fetchall(cur)
            ]

    def attendee_rows(self, event_id: int) -> Sequence[AttendeeListRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    r.registration_id, r.quantity, r.total_amount, r.payment_status,
                    r.registration_status, r.created_at,
                    a.full_name, a.email, a.phone,
                    tt.label AS ticket_label,
                    ar.check_in_time, ar.check_out_time
                FROM registrations r
                JOIN attendees a ON a.attendee_id = r.attendee_id
                JOIN ticket_types tt ON tt.ticket_type_id = r.ticket_type_id
                LEFT JOIN attendance_records ar ON ar.registration_id = r.registration_id
                WHERE r.event_id=%s
                ORDER BY r.created_at ASC, r.registration_id ASC
                """,
                (event_id,),
            )
            return [
                AttendeeListRow(
                    registration_id=int(r["registration_id"]),
                    full_name=r["full_name"],
                    email=r["email"],
                    phone=r.get("phone"),
                    ticket_label=r["ticket_label"],
                    quantity=int(r["quantity"]),
                    total_amount=as_decimal(r["total_amount"]),
                    payment_status=PaymentStatus(r["payment_status"]),
                    registration_status=RegistrationStatus(r["registration_status"]),
                    created_at=r["created_at"],
                    check_in_time=r.get("check_in_time"),
                    check_out_time=r.get("check_out_time"),
                )
                for r in fetchall(cur)
            ]
