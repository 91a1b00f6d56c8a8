"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_TOKEN_BYTES = 16
MAX_TOKEN_ATTEMPTS = 3
DEFAULT_HISTORY_LIMIT = 50
MAX_HISTORY_LIMIT = 500
DEFAULT_MAX_TICKETS_PER_PERSON = 10
DEFAULT_SESSION_DAYS = 7
