from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import PaymentStatus, RegistrationStatus


@dataclass(frozen=True)
class Attendee:
    attendee_id: int
    full_name: str
    email: str
    phone: Optional[str] = None


@dataclass(frozen=True)
class Registration:
    """Domain entity: a ticket purchase linking an attendee to an event.

    ``qr_token`` is None until issued and never changes afterwards.
    """

    registration_id: int
    event_id: int
    attendee_id: int
    ticket_type_id: int
    quantity: int
    total_amount: Decimal
    payment_status: PaymentStatus
    status: RegistrationStatus
    created_at: datetime
    qr_token: Optional[str] = None
    qr_issued_at: Optional[datetime] = None
    special_requirements: Optional[str] = None
    cancelled_at: Optional[datetime] = None

    @property
    def is_cancelled(self) -> bool:
        return self.status == RegistrationStatus.CANCELLED


@dataclass(frozen=True)
class RegistrationResult:
    """Returned by the register use case: the persisted row plus its issued token."""

    registration: Registration
    attendee: Attendee
    event_name: str
    ticket_label: str
    qr_token: str
