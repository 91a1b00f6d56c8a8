from __future__ import annotations

import pytest

from src.eventhub.eventhub.core.enums import Role
from src.eventhub.eventhub.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFound,
    ValidationError,
)

ADMIN_PASSWORD = "admin-password"
ORGANIZER_PASSWORD = "organizer-password"


def test_authenticate_returns_operator(container, organizer):
    op = container.auth_service.authenticate("Olivia@Example.com ", ORGANIZER_PASSWORD)

    assert op.user_id == organizer.user_id
    assert op.role == Role.ORGANIZER
    assert not op.is_admin


def test_wrong_password(container, organizer):
    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate("olivia@example.com", "nope")


def test_unknown_email(container):
    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate("ghost@example.com", "whatever")


def test_placeholder_hash_never_authenticates(container, store):
    container.users_repo.create_user(
        full_name="Seeded", email="seeded@example.com", password_hash="not-a-hash", role=Role.ORGANIZER
    )

    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate("seeded@example.com", "not-a-hash")


def test_admin_creates_organizer_who_can_log_in(container, admin):
    user_id = container.user_service.create_organizer(
        current=admin, full_name="New Org", email="new@example.com", password="longenough"
    )

    op = container.auth_service.authenticate("new@example.com", "longenough")
    assert op.user_id == user_id
    assert container.auth_service.authenticate("admin@example.com", ADMIN_PASSWORD).is_admin


def test_create_organizer_rules(container, admin, organizer):
    with pytest.raises(AuthorizationError):
        container.user_service.create_organizer(
            current=organizer, full_name="X", email="x@example.com", password="longenough"
        )
    with pytest.raises(ValidationError):
        container.user_service.create_organizer(current=admin, full_name="X", email="x@example.com", password="short")
    with pytest.raises(ValidationError):
        container.user_service.create_organizer(
            current=admin, full_name="Dup", email="olivia@example.com", password="longenough"
        )


def test_deactivated_organizer_cannot_log_in(container, admin, organizer):
    container.user_service.deactivate(current=admin, user_id=organizer.user_id)

    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate("olivia@example.com", ORGANIZER_PASSWORD)


def test_deactivate_rules(container, admin, organizer):
    with pytest.raises(AuthorizationError):
        container.user_service.deactivate(current=organizer, user_id=admin.user_id)
    with pytest.raises(ValidationError):
        container.user_service.deactivate(current=admin, user_id=admin.user_id)
    with pytest.raises(NotFound):
        container.user_service.deactivate(current=admin, user_id=999)
