from __future__ import annotations

from datetime import datetime
from typing import Optional

from mysql.connector.errors import IntegrityError

from ..core.enums import CheckInMethod, RegistrationStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, is_duplicate_key
from .model import AttendanceRecord
from .repository import AttendanceRepository


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_registration(self, registration_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT attendance_id, registration_id, event_id, check_in_time, check_out_time, method, recorded_by
                FROM attendance_records
                WHERE registration_id=%s
                """,
                (registration_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return AttendanceRecord(
                attendance_id=int(r["attendance_id"]),
                registration_id=int(r["registration_id"]),
                event_id=int(r["event_id"]),
                check_in_time=r["check_in_time"],
                check_out_time=r.get("check_out_time"),
                method=CheckInMethod(r["method"]),
                recorded_by=r.get("recorded_by"),
            )

    def create_if_absent(
        self,
        *,
        registration_id: int,
        event_id: int,
        check_in_time: datetime,
        method: CheckInMethod,
        recorded_by: Optional[int],
    ) -> Optional[int]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(registration_id, event_id, check_in_time, method, recorded_by)
                    SELECT r.registration_id, r.event_id, %s, %s, %s
                    FROM registrations r
                    WHERE r.registration_id=%s AND r.event_id=%s AND r.registration_status=%s
                    """,
                    (
                        check_in_time,
                        method.value,
                        recorded_by,
                        registration_id,
                        event_id,
                        RegistrationStatus.CONFIRMED.value,
                    ),
                )
                if cur.rowcount == 0:
                    return None
                return int(cur.lastrowid)
        except IntegrityError as e:
            if is_duplicate_key(e):
                return None
            raise

    def record_check_out(self, attendance_id: int, *, check_out_time: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_out_time=%s
                WHERE attendance_id=%s AND check_out_time IS NULL
                """,
                (check_out_time, attendance_id),
            )
            return cur.rowcount > 0
