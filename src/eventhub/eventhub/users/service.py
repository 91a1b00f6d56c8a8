from __future__ import annotations

import logging
from typing import Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_email, require_min_length, require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFound, ValidationError
from .model import Operator, User
from .repository import UserRepository

logger = logging.getLogger(__name__)


class AuthService:
    """Use case: authenticate an operator (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> Operator:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # placeholder hashes in seed data
            ok = False

        if not ok:
            logger.warning("Failed login for %s", user.email)
            raise AuthenticationError("Invalid email or password")

        return Operator(user_id=user.user_id, full_name=user.full_name, role=user.role)


class UserService:
    """Use case: manage operator accounts (admin)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def create_organizer(self, *, current: Operator, full_name: str, email: str, password: str) -> int:
        if not current.is_admin:
            raise AuthorizationError("Only admins can create organizer accounts")

        full_name = require_non_empty(full_name, "Full name")
        email = require_email(email)
        require_min_length(password, "Password", 8)

        if self._users.get_by_email(email):
            raise ValidationError("Email is already in use")

        user_id = self._users.create_user(
            full_name=full_name,
            email=email,
            password_hash=generate_password_hash(password),
            role=Role.ORGANIZER,
        )
        logger.info("Organizer %s created (user_id=%s)", email, user_id)
        return user_id

    def deactivate(self, *, current: Operator, user_id: int) -> None:
        if not current.is_admin:
            raise AuthorizationError("Only admins can deactivate accounts")

        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFound("User not found")
        if user.role == Role.ADMIN:
            raise ValidationError("Admin accounts cannot be deactivated")

        self._users.set_active(user_id, is_active=False)

    def list_users(self, *, current: Operator) -> Sequence[User]:
        if not current.is_admin:
            raise AuthorizationError("Only admins can list accounts")
        return self._users.list_all()
