from __future__ import annotations

import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    CapacityExceeded,
    Conflict,
    DomainError,
    DuplicateCheckIn,
    InvalidRegistration,
    NotFound,
    Unavailable,
    ValidationError,
)

logger = logging.getLogger(__name__)

# First match wins, so subclasses come before their bases.
STATUS_CODES: list[tuple[type[DomainError], int]] = [
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFound, 404),
    (DuplicateCheckIn, 409),
    (Conflict, 409),
    (CapacityExceeded, 409),
    (InvalidRegistration, 422),
    (Unavailable, 503),
]


def status_code_for(error: DomainError) -> int:
    for error_class, code in STATUS_CODES:
        if isinstance(error, error_class):
            return code
    return 500


def _error_body(error: Exception, message: str) -> dict:
    return {"success": False, "error": type(error).__name__, "message": message}


def domain_error_handler(error: DomainError):
    code = status_code_for(error)
    body = _error_body(error, str(error))

    if isinstance(error, DuplicateCheckIn):
        body["registration_id"] = error.registration_id
        body["check_in_time"] = error.check_in_time.isoformat() if error.check_in_time else None
    elif isinstance(error, CapacityExceeded):
        body["available"] = error.available
        body["requested"] = error.requested

    if code >= 500:
        logger.error("%s: %s", type(error).__name__, error)
    return jsonify(body), code


def http_error_handler(error: HTTPException):
    return jsonify(_error_body(error, error.description or error.name)), error.code or 500


def unexpected_error_handler(error: Exception):
    logger.exception("Unhandled error")
    return jsonify({"success": False, "error": "InternalServerError", "message": "Internal server error"}), 500


def register_error_handlers(app: Flask) -> None:
    app.register_error_handler(DomainError, domain_error_handler)
    app.register_error_handler(HTTPException, http_error_handler)
    app.register_error_handler(Exception, unexpected_error_handler)
