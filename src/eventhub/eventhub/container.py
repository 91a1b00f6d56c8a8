from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .checkin.mysql_attendance_repository import MySQLAttendanceRepository
from .checkin.repository import AttendanceRepository
from .checkin.service import CheckInService
from .core.constants import DEFAULT_TOKEN_BYTES
from .database.connection import DBConfig, DatabaseConnection
from .events.mysql_event_repository import MySQLEventRepository, MySQLTicketTypeRepository
from .events.repository import EventRepository, TicketTypeRepository
from .events.service import EventService
from .qr.service import QrIssuanceService
from .qr.tokens import TokenFactory, token_factory
from .registrations.mysql_registration_repository import MySQLAttendeeRepository, MySQLRegistrationRepository
from .registrations.repository import AttendeeRepository, RegistrationRepository
from .registrations.service import RegistrationService
from .reports.mysql_report_repository import MySQLReportRepository
from .reports.repository import ReportRepository
from .reports.service import ReportService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    events_repo: EventRepository
    ticket_types_repo: TicketTypeRepository
    attendees_repo: AttendeeRepository
    registrations_repo: RegistrationRepository
    attendance_repo: AttendanceRepository
    reports_repo: ReportRepository

    auth_service: AuthService
    user_service: UserService
    event_service: EventService
    qr_service: QrIssuanceService
    registration_service: RegistrationService
    checkin_service: CheckInService
    report_service: ReportService


def assemble(
    *,
    conn: Optional[DatabaseConnection],
    users_repo: UserRepository,
    events_repo: EventRepository,
    ticket_types_repo: TicketTypeRepository,
    attendees_repo: AttendeeRepository,
    registrations_repo: RegistrationRepository,
    attendance_repo: AttendanceRepository,
    reports_repo: ReportRepository,
    tokens: Optional[TokenFactory] = None,
    qr_box_size: int = 10,
    qr_border: int = 2,
) -> Container:
    """Wire services on top of the given repositories (MySQL or in-memory)."""

    event_service = EventService(events_repo, ticket_types_repo)
    qr_service = QrIssuanceService(
        registrations_repo,
        token_factory=tokens,
        box_size=qr_box_size,
        border=qr_border,
    )
    registration_service = RegistrationService(
        registrations_repo,
        attendees_repo,
        events_repo,
        ticket_types_repo,
        attendance_repo,
        qr_service,
    )
    checkin_service = CheckInService(registrations_repo, attendees_repo, attendance_repo, event_service)

    return Container(
        conn=conn,
        users_repo=users_repo,
        events_repo=events_repo,
        ticket_types_repo=ticket_types_repo,
        attendees_repo=attendees_repo,
        registrations_repo=registrations_repo,
        attendance_repo=attendance_repo,
        reports_repo=reports_repo,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo),
        event_service=event_service,
        qr_service=qr_service,
        registration_service=registration_service,
        checkin_service=checkin_service,
        report_service=ReportService(reports_repo, event_service),
    )


def build_container(
    *,
    db_config: dict,
    qr_token_bytes: int = DEFAULT_TOKEN_BYTES,
    qr_box_size: int = 10,
    qr_border: int = 2,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return assemble(
        conn=conn,
        users_repo=MySQLUserRepository(conn),
        events_repo=MySQLEventRepository(conn),
        ticket_types_repo=MySQLTicketTypeRepository(conn),
        attendees_repo=MySQLAttendeeRepository(conn),
        registrations_repo=MySQLRegistrationRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        reports_repo=MySQLReportRepository(conn),
        tokens=token_factory(qr_token_bytes),
        qr_box_size=qr_box_size,
        qr_border=qr_border,
    )
