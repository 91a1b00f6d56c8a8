"""Example: drive the service layer directly (no Flask).

Controllers are thin; the register -> issue token -> check-in flow lives in services.
"""

import importlib

from config import get_settings_module

from src.eventhub.eventhub.container import build_container
from src.eventhub.eventhub.core.enums import Role
from src.eventhub.eventhub.users.model import Operator


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)

    event_id = 1
    ticket_types = container.event_service.list_ticket_types(event_id)
    result = container.registration_service.register(
        event_id=event_id,
        full_name="Ada Lovelace",
        email="ada@example.com",
        ticket_type_id=ticket_types[0].ticket_type_id,
    )
    print("registered:", result.registration.registration_id, "token:", result.qr_token)

    admin = Operator(user_id=1, full_name="Administrator", role=Role.ADMIN)
    checked_in = container.checkin_service.check_in(event_id=event_id, token=result.qr_token, operator=admin)
    print("checked in at", checked_in.record.check_in_time)
    print(container.report_service.attendee_stats(event_id=event_id, operator=admin))


if __name__ == "__main__":
    main()
