from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Operator roles used for authorization."""

    ADMIN = "admin"
    ORGANIZER = "organizer"


class EventStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    CANCELLED = "cancelled"


class RegistrationStatus(str, Enum):
    """Registration lifecycle stored in the database."""

    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REFUNDED = "refunded"


class CheckInMethod(str, Enum):
    QR_SCAN = "qr_scan"
    MANUAL = "manual"


class AttendanceState(str, Enum):
    """Derived attendance state of a registration (not stored)."""

    REGISTERED = "registered"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
