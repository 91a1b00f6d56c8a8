from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ..core.enums import CheckInMethod
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_for_registration(self, registration_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create_if_absent(
        self,
        *,
        registration_id: int,
        event_id: int,
        check_in_time: datetime,
        method: CheckInMethod,
        recorded_by: Optional[int],
    ) -> Optional[int]:
        """Conditional insert of the attendance record.

        Inserts only while the registration is confirmed and has no record yet
        (the UNIQUE key on registration_id backs this up). Returns the new id,
        or None when nothing was inserted.
        """

        raise NotImplementedError

    def record_check_out(self, attendance_id: int, *, check_out_time: datetime) -> bool:
        raise NotImplementedError
