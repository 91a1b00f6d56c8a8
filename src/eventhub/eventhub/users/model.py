from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Operator account (admin or organizer).

    Plain data object; no database access here.
    """

    user_id: int
    full_name: str
    email: str
    password_hash: str
    role: Role
    is_active: bool = True


@dataclass(frozen=True)
class Operator:
    """What we store into the Flask session after login."""

    user_id: int
    full_name: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
