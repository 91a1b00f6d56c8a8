from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AttendanceState, CheckInMethod
from ..registrations.model import Attendee, Registration


@dataclass(frozen=True)
class AttendanceRecord:
    """Evidence that a registration's holder checked in. At most one per registration."""

    attendance_id: int
    registration_id: int
    event_id: int
    check_in_time: datetime
    method: CheckInMethod
    check_out_time: Optional[datetime] = None
    recorded_by: Optional[int] = None

    @property
    def state(self) -> AttendanceState:
        if self.check_out_time is not None:
            return AttendanceState.CHECKED_OUT
        return AttendanceState.CHECKED_IN


@dataclass(frozen=True)
class CheckInResult:
    record: AttendanceRecord
    registration: Registration
    attendee: Optional[Attendee]
