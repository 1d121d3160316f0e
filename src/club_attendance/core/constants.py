"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_RECENT_LIMIT = 10
DEFAULT_COURSE_RECENT_LIMIT = 20
DEFAULT_PAYMENT_MIN_YEAR = 2020
DEFAULT_PAYMENT_MAX_YEAR = 2030
MIN_NAME_LENGTH = 2
