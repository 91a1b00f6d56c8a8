from __future__ import annotations

from typing import Protocol, Sequence

from .model import AttendanceStatsRow, AttendeeListRow, AttendeeStatsRow, ScanHistoryRow, TicketSalesRow


class ReportRepository(Protocol):
    def attendee_stats(self, event_id: int) -> AttendeeStatsRow:
        raise NotImplementedError

    def attendance_stats(self, event_id: int) -> AttendanceStatsRow:
        raise NotImplementedError

    def scan_history(self, event_id: int, *, limit: int, offset: int) -> Sequence[ScanHistoryRow]:
        raise NotImplementedError

    def ticket_sales(self, event_id: int) -> Sequence[TicketSalesRow]:
        raise NotImplementedError

    def attendee_rows(self, event_id: int) -> Sequence[AttendeeListRow]:
        raise NotImplementedError
