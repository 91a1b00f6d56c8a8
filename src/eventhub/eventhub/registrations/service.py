from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from ..checkin.repository import AttendanceRepository
from ..common.datetime_utils import now_local
from ..common.validators import require_email, require_non_empty, require_positive_int
from ..core.enums import EventStatus, PaymentStatus
from ..core.exceptions import (
    AuthorizationError,
    CapacityExceeded,
    Conflict,
    InvalidRegistration,
    NotFound,
    ValidationError,
)
from ..events.repository import EventRepository, TicketTypeRepository
from ..qr.service import QrIssuanceService
from ..users.model import Operator
from .model import Attendee, Registration, RegistrationResult
from .repository import AttendeeRepository, RegistrationRepository

logger = logging.getLogger(__name__)


class RegistrationService:
    def __init__(
        self,
        registrations: RegistrationRepository,
        attendees: AttendeeRepository,
        events: EventRepository,
        ticket_types: TicketTypeRepository,
        attendance: AttendanceRepository,
        qr: QrIssuanceService,
    ):
        self._registrations = registrations
        self._attendees = attendees
        self._events = events
        self._ticket_types = ticket_types
        self._attendance = attendance
        self._qr = qr

    def register(
        self,
        *,
        event_id: int,
        full_name: str,
        email: str,
        ticket_type_id: int,
        quantity: int = 1,
        phone: Optional[str] = None,
        special_requirements: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> RegistrationResult:
        now = now or now_local()

        event = self._events.get_by_id(int(event_id))
        if not event:
            raise NotFound("Event not found")
        if event.status == EventStatus.CANCELLED:
            raise InvalidRegistration("Event is cancelled")
        if event.status != EventStatus.PUBLISHED:
            raise ValidationError("Event is not open for registration")
        if event.registration_deadline and event.registration_deadline < now:
            raise ValidationError("Registration deadline has passed")

        quantity = require_positive_int(quantity, "Quantity")
        if quantity > event.max_tickets_per_person:
            raise ValidationError(f"Maximum {event.max_tickets_per_person} tickets allowed per person")

        ticket_type = self._ticket_types.get_by_id(require_positive_int(ticket_type_id, "Ticket type"))
        if not ticket_type or ticket_type.event_id != event.event_id:
            raise NotFound("Ticket type not found for this event")

        attendee = self._upsert_attendee(full_name=full_name, email=email, phone=phone)

        existing = self._registrations.find_confirmed_for_attendee(
            event_id=event.event_id, attendee_id=attendee.attendee_id
        )
        if existing and existing.qr_token:
            raise Conflict("Attendee is already registered for this event")
        if existing:
            # An earlier attempt stored the row but never got its token.
            logger.warning("Registration %s has no QR token, issuing it now", existing.registration_id)
            stored_type = self._ticket_types.get_by_id(existing.ticket_type_id)
            return self._issue_and_load(
                existing.registration_id,
                attendee=attendee,
                event_name=event.name,
                ticket_label=stored_type.label if stored_type else ticket_type.label,
                now=now,
            )

        total_amount = (ticket_type.price * quantity).quantize(Decimal("0.01"))
        payment_status = PaymentStatus.PENDING if total_amount > 0 else PaymentStatus.COMPLETED

        registration_id = self._registrations.create_within_capacity(
            event_id=event.event_id,
            attendee_id=attendee.attendee_id,
            ticket_type_id=ticket_type.ticket_type_id,
            quantity=quantity,
            total_amount=total_amount,
            payment_status=payment_status,
            special_requirements=(special_requirements or "").strip() or None,
            max_attendees=event.max_attendees,
            created_at=now,
        )
        if registration_id is None:
            taken = self._registrations.confirmed_quantity(event.event_id)
            available = max(0, (event.max_attendees or 0) - taken)
            logger.warning(
                "Event %s full: requested %d, available %d", event.event_id, quantity, available
            )
            raise CapacityExceeded("Event is full", available=available, requested=quantity)

        logger.info(
            "Registration %s created for event %s (%d x %s)",
            registration_id, event.event_id, quantity, ticket_type.label,
        )

        return self._issue_and_load(
            registration_id,
            attendee=attendee,
            event_name=event.name,
            ticket_label=ticket_type.label,
            now=now,
        )

    def _issue_and_load(
        self,
        registration_id: int,
        *,
        attendee: Attendee,
        event_name: str,
        ticket_label: str,
        now: datetime,
    ) -> RegistrationResult:
        token = self._qr.issue(registration_id, now=now)
        return RegistrationResult(
            registration=self._registrations.get_by_id(registration_id),
            attendee=attendee,
            event_name=event_name,
            ticket_label=ticket_label,
            qr_token=token,
        )

    def _upsert_attendee(self, *, full_name: str, email: str, phone: Optional[str]) -> Attendee:
        full_name = require_non_empty(full_name, "Full name")
        email = require_email(email)
        phone = str(phone if phone is not None else "").strip() or None

        existing = self._attendees.get_by_email(email)
        if existing:
            if existing.full_name != full_name or (phone and existing.phone != phone):
                self._attendees.update_contact(existing.attendee_id, full_name=full_name, phone=phone)
            return Attendee(
                attendee_id=existing.attendee_id,
                full_name=full_name,
                email=email,
                phone=phone or existing.phone,
            )

        attendee_id = self._attendees.create(full_name=full_name, email=email, phone=phone)
        return Attendee(attendee_id=attendee_id, full_name=full_name, email=email, phone=phone)

    def get_registration(self, registration_id: int) -> Registration:
        reg = self._registrations.get_by_id(int(registration_id))
        if not reg:
            raise NotFound("Registration not found")
        return reg

    def list_for_event(self, event_id: int, *, operator: Operator) -> Sequence[Registration]:
        event = self._events.get_by_id(int(event_id))
        if not event:
            raise NotFound("Event not found")
        if not operator.is_admin and event.organizer_id != operator.user_id:
            raise AuthorizationError("Not authorized to view this event")
        return self._registrations.list_for_event(event.event_id)

    def cancel_registration(
        self,
        registration_id: int,
        *,
        operator: Optional[Operator] = None,
        token: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Registration:
        """Cancel a registration.

        Allowed for the event owner/admin, or for whoever presents the
        registration's own QR token. The token stays on the row so a later
        scan reports the cancellation instead of an unknown token.
        """

        now = now or now_local()
        reg = self.get_registration(registration_id)
        self._ensure_can_cancel(reg, operator=operator, token=token)

        if reg.is_cancelled:
            raise InvalidRegistration("Registration is already cancelled")
        if self._attendance.get_for_registration(reg.registration_id):
            raise InvalidRegistration("Cannot cancel a registration after check-in")

        refund = PaymentStatus.REFUNDED if reg.payment_status == PaymentStatus.COMPLETED else reg.payment_status
        if not self._registrations.cancel_if_not_checked_in(
            reg.registration_id, payment_status=refund, cancelled_at=now
        ):
            # Lost a race with a check-in or another cancellation.
            raise InvalidRegistration("Registration can no longer be cancelled")

        logger.info("Registration %s cancelled", reg.registration_id)
        return self.get_registration(reg.registration_id)

    def _ensure_can_cancel(self, reg: Registration, *, operator: Optional[Operator], token: Optional[str]) -> None:
        if token and reg.qr_token and str(token).strip() == reg.qr_token:
            return
        if operator:
            if operator.is_admin:
                return
            event = self._events.get_by_id(reg.event_id)
            if event and event.organizer_id == operator.user_id:
                return
        raise AuthorizationError("Not authorized to cancel this registration")

    def mark_payment_completed(self, registration_id: int) -> Registration:
        """Called once the payment gateway confirms the charge."""

        reg = self.get_registration(registration_id)
        if reg.is_cancelled or reg.payment_status == PaymentStatus.REFUNDED:
            raise InvalidRegistration("Registration is cancelled")
        if reg.payment_status == PaymentStatus.COMPLETED:
            return reg

        if not self._registrations.update_payment_status(
            reg.registration_id, expected=PaymentStatus.PENDING, new_status=PaymentStatus.COMPLETED
        ):
            raise Conflict("Payment status changed concurrently")

        logger.info("Payment completed for registration %s", reg.registration_id)
        return self.get_registration(reg.registration_id)
