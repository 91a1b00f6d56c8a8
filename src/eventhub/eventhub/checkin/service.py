from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import now_local
from ..core.enums import AttendanceState, CheckInMethod
from ..core.exceptions import Conflict, DuplicateCheckIn, InvalidRegistration, NotFound, ValidationError
from ..events.service import EventService
from ..registrations.model import Registration
from ..registrations.repository import AttendeeRepository, RegistrationRepository
from ..users.model import Operator
from .model import AttendanceRecord, CheckInResult
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class CheckInService:
    """Attendance state machine of a registration.

    registered -> checked_in -> checked_out. A registration gets at most one
    attendance record; the insert is conditional and backed by a UNIQUE key,
    so concurrent scans of the same token produce one success and
    ``DuplicateCheckIn`` for the rest.
    """

    def __init__(
        self,
        registrations: RegistrationRepository,
        attendees: AttendeeRepository,
        attendance: AttendanceRepository,
        events: EventService,
    ):
        self._registrations = registrations
        self._attendees = attendees
        self._attendance = attendance
        self._events = events

    def check_in(
        self,
        *,
        event_id: int,
        token: str,
        operator: Operator,
        now: Optional[datetime] = None,
    ) -> CheckInResult:
        event = self._events.require_manageable(event_id, operator)

        token = (token or "").strip()
        if not token:
            raise ValidationError("QR token is required")

        reg = self._registrations.get_by_token(token)
        if not reg or reg.event_id != event.event_id:
            logger.warning("Unknown token scanned for event %s", event.event_id)
            raise NotFound("Invalid QR code or attendee not registered for this event")

        return self._record(reg, method=CheckInMethod.QR_SCAN, operator=operator, now=now)

    def check_in_manual(
        self,
        *,
        event_id: int,
        registration_id: int,
        operator: Operator,
        now: Optional[datetime] = None,
    ) -> CheckInResult:
        event = self._events.require_manageable(event_id, operator)

        reg = self._registrations.get_by_id(int(registration_id))
        if not reg or reg.event_id != event.event_id:
            raise NotFound("Registration not found for this event")

        return self._record(reg, method=CheckInMethod.MANUAL, operator=operator, now=now)

    def _record(
        self,
        reg: Registration,
        *,
        method: CheckInMethod,
        operator: Operator,
        now: Optional[datetime],
    ) -> CheckInResult:
        now = now or now_local()

        if reg.is_cancelled:
            logger.warning("Check-in refused: registration %s is cancelled", reg.registration_id)
            raise InvalidRegistration("Registration is cancelled, cannot check in")

        attendance_id = self._attendance.create_if_absent(
            registration_id=reg.registration_id,
            event_id=reg.event_id,
            check_in_time=now,
            method=method,
            recorded_by=operator.user_id,
        )

        if attendance_id is None:
            existing = self._attendance.get_for_registration(reg.registration_id)
            if existing:
                logger.warning("Duplicate check-in for registration %s", reg.registration_id)
                raise DuplicateCheckIn(
                    "Attendee is already checked in",
                    registration_id=reg.registration_id,
                    check_in_time=existing.check_in_time,
                )
            # Cancelled between our read and the conditional insert.
            raise InvalidRegistration("Registration is cancelled, cannot check in")

        record = AttendanceRecord(
            attendance_id=attendance_id,
            registration_id=reg.registration_id,
            event_id=reg.event_id,
            check_in_time=now,
            method=method,
            recorded_by=operator.user_id,
        )
        logger.info(
            "Registration %s checked in (%s) by user %s",
            reg.registration_id, method.value, operator.user_id,
        )
        return CheckInResult(
            record=record,
            registration=reg,
            attendee=self._attendees.get_by_id(reg.attendee_id),
        )

    def check_out(
        self,
        *,
        event_id: int,
        registration_id: int,
        operator: Operator,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = now or now_local()
        event = self._events.require_manageable(event_id, operator)

        record = self._attendance.get_for_registration(int(registration_id))
        if not record or record.event_id != event.event_id:
            raise NotFound("No attendance record found")
        if record.check_out_time is not None:
            raise Conflict("Attendee is already checked out")
        if now < record.check_in_time:
            raise ValidationError("Check-out cannot be earlier than check-in")

        if not self._attendance.record_check_out(record.attendance_id, check_out_time=now):
            raise Conflict("Attendee is already checked out")

        logger.info("Registration %s checked out", record.registration_id)
        return AttendanceRecord(
            attendance_id=record.attendance_id,
            registration_id=record.registration_id,
            event_id=record.event_id,
            check_in_time=record.check_in_time,
            method=record.method,
            check_out_time=now,
            recorded_by=record.recorded_by,
        )

    def attendance_state(self, registration_id: int) -> AttendanceState:
        reg = self._registrations.get_by_id(int(registration_id))
        if not reg:
            raise NotFound("Registration not found")

        record = self._attendance.get_for_registration(reg.registration_id)
        return record.state if record else AttendanceState.REGISTERED
