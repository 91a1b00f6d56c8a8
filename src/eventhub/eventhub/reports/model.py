from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import CheckInMethod, PaymentStatus, RegistrationStatus


@dataclass(frozen=True)
class AttendeeStatsRow:
    event_id: int
    max_attendees: Optional[int]
    total_registered: int
    cancelled: int
    paid: int
    pending: int
    checked_in: int
    total_revenue: Decimal
    collected_revenue: Decimal
    tickets_sold: int


@dataclass(frozen=True)
class AttendanceStatsRow:
    total: int
    checked_in: int
    checked_out: int


@dataclass(frozen=True)
class ScanHistoryRow:
    attendance_id: int
    registration_id: int
    attendee_name: str
    ticket_label: Optional[str]
    method: CheckInMethod
    check_in_time: datetime
    check_out_time: Optional[datetime] = None
    recorded_by_email: Optional[str] = None


@dataclass(frozen=True)
class TicketSalesRow:
    ticket_type_id: int
    label: str
    price: Decimal
    quantity_sold: int
    revenue: Decimal


@dataclass(frozen=True)
class AttendeeListRow:
    registration_id: int
    full_name: str
    email: str
    phone: Optional[str]
    ticket_label: str
    quantity: int
    total_amount: Decimal
    payment_status: PaymentStatus
    registration_status: RegistrationStatus
    created_at: datetime
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
