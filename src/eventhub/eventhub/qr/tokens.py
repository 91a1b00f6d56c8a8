from __future__ import annotations

import secrets
from typing import Callable

from ..core.constants import DEFAULT_TOKEN_BYTES

TokenFactory = Callable[[], str]


def generate_token(nbytes: int = DEFAULT_TOKEN_BYTES) -> str:
    """Random URL-safe token; carries no registration id or timestamp."""
    return secrets.token_urlsafe(int(nbytes))


def token_factory(nbytes: int = DEFAULT_TOKEN_BYTES) -> TokenFactory:
    return lambda: generate_token(nbytes)
