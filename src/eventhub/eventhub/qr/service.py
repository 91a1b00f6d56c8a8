from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import now_local
from ..core.constants import MAX_TOKEN_ATTEMPTS
from ..core.exceptions import Conflict, InvalidRegistration, NotFound, TokenCollision
from ..registrations.repository import RegistrationRepository
from .render import render_png
from .tokens import TokenFactory, generate_token

logger = logging.getLogger(__name__)


class QrIssuanceService:
    """Issue the single QR token of a registration and render it.

    Issuance is single-use: the token is written to the registration row
    (only where it is still NULL) before anything is returned, so row and
    token never disagree.
    """

    def __init__(
        self,
        registrations: RegistrationRepository,
        *,
        token_factory: Optional[TokenFactory] = None,
        max_attempts: int = MAX_TOKEN_ATTEMPTS,
        box_size: int = 10,
        border: int = 2,
    ):
        self._registrations = registrations
        self._token_factory = token_factory or generate_token
        self._max_attempts = max(1, int(max_attempts))
        self._box_size = int(box_size)
        self._border = int(border)

    def issue(self, registration_id: int, *, now: Optional[datetime] = None) -> str:
        now = now or now_local()

        reg = self._registrations.get_by_id(int(registration_id))
        if not reg:
            raise NotFound("Registration not found")
        if reg.qr_token:
            raise Conflict("A QR token was already issued for this registration")
        if reg.is_cancelled:
            raise InvalidRegistration("Registration is cancelled")

        for attempt in range(1, self._max_attempts + 1):
            token = self._token_factory()
            try:
                assigned = self._registrations.assign_token(reg.registration_id, token=token, issued_at=now)
            except TokenCollision:
                logger.warning(
                    "Token collision for registration %s (attempt %d/%d)",
                    reg.registration_id, attempt, self._max_attempts,
                )
                continue

            if not assigned:
                # Another request issued the token between our read and write.
                raise Conflict("A QR token was already issued for this registration")

            logger.info("QR token issued for registration %s", reg.registration_id)
            return token

        raise Conflict("Could not allocate a unique QR token")

    def render(self, registration_id: int) -> bytes:
        """PNG of the stored token. Never issues one."""

        reg = self._registrations.get_by_id(int(registration_id))
        if not reg or not reg.qr_token:
            raise NotFound("No QR token issued for this registration")
        return render_png(reg.qr_token, box_size=self._box_size, border=self._border)
