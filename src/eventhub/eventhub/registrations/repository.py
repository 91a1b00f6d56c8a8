from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import PaymentStatus
from .model import Attendee, Registration


class AttendeeRepository(Protocol):
    def get_by_id(self, attendee_id: int) -> Optional[Attendee]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[Attendee]:
        raise NotImplementedError

    def create(self, *, full_name: str, email: str, phone: Optional[str]) -> int:
        raise NotImplementedError

    def update_contact(self, attendee_id: int, *, full_name: str, phone: Optional[str]) -> bool:
        raise NotImplementedError


class RegistrationRepository(Protocol):
    def get_by_id(self, registration_id: int) -> Optional[Registration]:
        raise NotImplementedError

    def get_by_token(self, token: str) -> Optional[Registration]:
        raise NotImplementedError

    def find_confirmed_for_attendee(self, *, event_id: int, attendee_id: int) -> Optional[Registration]:
        raise NotImplementedError

    def confirmed_quantity(self, event_id: int) -> int:
        raise NotImplementedError

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
        """Insert a confirmed registration unless it would exceed ``max_attendees``.

        The capacity check and the insert happen in one transaction.
        Returns the new id, or None when the event is full.
        """

        raise NotImplementedError

    def assign_token(self, registration_id: int, *, token: str, issued_at: datetime) -> bool:
        """Set the token only if the row has none yet.

        Returns False when a token is already present. Raises ``TokenCollision``
        when ``token`` is already used by another registration.
        """

        raise NotImplementedError

    def cancel_if_not_checked_in(
        self,
        registration_id: int,
        *,
        payment_status: PaymentStatus,
        cancelled_at: datetime,
    ) -> bool:
        raise NotImplementedError

    def update_payment_status(
        self,
        registration_id: int,
        *,
        expected: PaymentStatus,
        new_status: PaymentStatus,
    ) -> bool:
        raise NotImplementedError

    def list_for_event(self, event_id: int) -> Sequence[Registration]:
        raise NotImplementedError
