"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_MIN_DUTY_MINUTES = 120
DEFAULT_MAX_BREAK_MINUTES = 30
DEFAULT_LOG_INTERVAL_MINUTES = 60
DEFAULT_LOG_WINDOW_MINUTES = 15
DEFAULT_LOG_EDIT_WINDOW_MINUTES = 15

DEFAULT_STRIKE_WARNING_THRESHOLD = 3
DEFAULT_STRIKE_SUSPENSION_THRESHOLD = 5
DEFAULT_SUSPENSION_DAYS = 7
DEFAULT_DUPLICATE_STRIKE_WINDOW_HOURS = 24

DEFAULT_LEAVE_CUTOFF_HOUR = 9
MIN_LEAVE_REASON_LENGTH = 10
MIN_REJECTION_REASON_LENGTH = 5
MIN_PASSWORD_LENGTH = 6

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
DEFAULT_HISTORY_LIMIT = 200

MIN_EVENT_QUERY_LENGTH = 2
DEFAULT_EVENT_SEARCH_LIMIT = 10
