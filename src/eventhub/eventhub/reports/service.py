from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..common.datetime_utils import iso_or_none
from ..common.validators import require_positive_int
from ..core.constants import DEFAULT_HISTORY_LIMIT, MAX_HISTORY_LIMIT
from ..core.exceptions import ValidationError
from ..events.service import EventService
from ..users.model import Operator
from .repository import ReportRepository

ATTENDEE_CSV_FIELDS = [
    "registration_id",
    "full_name",
    "email",
    "phone",
    "ticket_type",
    "quantity",
    "total_amount",
    "payment_status",
    "registration_status",
    "registered_at",
    "check_in_time",
    "check_out_time",
]


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: dict


def _money(value: Decimal) -> str:
    return str(value.quantize(Decimal("0.01")))


def _percent(part: int, whole: int, places: str = "0.1") -> Optional[float]:
    if whole <= 0:
        return None
    return float((Decimal(part) * 100 / Decimal(whole)).quantize(Decimal(places), rounding=ROUND_HALF_UP))


class ReportService:
    """Dashboard queries. Every method is read-only and owner/admin scoped."""

    def __init__(self, reports: ReportRepository, events: EventService):
        self._reports = reports
        self._events = events

    def attendee_stats(self, *, event_id: int, operator: Operator) -> dict:
        event = self._events.require_manageable(event_id, operator)
        s = self._reports.attendee_stats(event.event_id)

        # Capacity is measured in tickets, the same unit registration checks against.
        max_attendees = event.max_attendees
        remaining = max(0, max_attendees - s.tickets_sold) if max_attendees is not None else None

        return {
            "event_id": event.event_id,
            "event_name": event.name,
            "registrations": {
                "total": s.total_registered,
                "paid": s.paid,
                "pending": s.pending,
                "checked_in": s.checked_in,
                "cancelled": s.cancelled,
            },
            "revenue": {
                "total": _money(s.total_revenue),
                "collected": _money(s.collected_revenue),
                "pending": _money(s.total_revenue - s.collected_revenue),
            },
            "tickets": {"sold": s.tickets_sold},
            "capacity": {
                "max_attendees": max_attendees,
                "current_registrations": s.total_registered,
                "percentage_filled": _percent(s.tickets_sold, max_attendees or 0, "0.01"),
                "remaining_spots": remaining,
            },
        }

    def attendance_stats(self, *, event_id: int, operator: Operator) -> dict:
        event = self._events.require_manageable(event_id, operator)
        s = self._reports.attendance_stats(event.event_id)

        return {
            "event_id": event.event_id,
            "event_name": event.name,
            "total": s.total,
            "checked_in": s.checked_in,
            "checked_out": s.checked_out,
            "no_show": s.total - s.checked_in,
            "attendance_rate": _percent(s.checked_in, s.total) or 0.0,
        }

    def scan_history(
        self,
        *,
        event_id: int,
        operator: Operator,
        limit: int = DEFAULT_HISTORY_LIMIT,
        offset: int = 0,
    ) -> list[dict]:
        event = self._events.require_manageable(event_id, operator)

        limit = min(require_positive_int(limit, "Limit"), MAX_HISTORY_LIMIT)
        try:
            offset = int(offset)
        except (TypeError, ValueError):
            raise ValidationError("Offset must be an integer")
        if offset < 0:
            raise ValidationError("Offset cannot be negative")

        return [
            {
                "attendance_id": r.attendance_id,
                "registration_id": r.registration_id,
                "attendee_name": r.attendee_name,
                "ticket_type": r.ticket_label or "-",
                "method": r.method.value,
                "check_in_time": iso_or_none(r.check_in_time),
                "check_out_time": iso_or_none(r.check_out_time),
                "recorded_by": r.recorded_by_email,
            }
            for r in self._reports.scan_history(event.event_id, limit=limit, offset=offset)
        ]

    def ticket_sales(self, *, event_id: int, operator: Operator) -> ReportData:
        event = self._events.require_manageable(event_id, operator)

        rows: list[dict] = []
        total_sold = 0
        total_revenue = Decimal("0.00")
        for r in self._reports.ticket_sales(event.event_id):
            rows.append(
                {
                    "ticket_type_id": r.ticket_type_id,
                    "label": r.label,
                    "price": _money(r.price),
                    "quantity_sold": r.quantity_sold,
                    "revenue": _money(r.revenue),
                }
            )
            total_sold += r.quantity_sold
            total_revenue += r.revenue

        return ReportData(
            rows=rows,
            summary={
                "event_name": event.name,
                "total_tickets_sold": total_sold,
                "total_revenue": _money(total_revenue),
            },
        )

    def attendee_rows(self, *, event_id: int, operator: Operator) -> list[dict]:
        event = self._events.require_manageable(event_id, operator)

        return [
            {
                "registration_id": r.registration_id,
                "full_name": r.full_name,
                "email": r.email,
                "phone": r.phone or "",
                "ticket_type": r.ticket_label,
                "quantity": r.quantity,
                "total_amount": _money(r.total_amount),
                "payment_status": r.payment_status.value,
                "registration_status": r.registration_status.value,
                "registered_at": r.created_at.strftime("%Y-%m-%d %H:%M"),
                "check_in_time": r.check_in_time.strftime("%Y-%m-%d %H:%M") if r.check_in_time else "-",
                "check_out_time": r.check_out_time.strftime("%Y-%m-%d %H:%M") if r.check_out_time else "-",
            }
            for r in self._reports.attendee_rows(event.event_id)
        ]
