"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_COACH_BACKDATE_WINDOW_DAYS = 7
DEFAULT_ADMIN_BACKDATE_WINDOW_DAYS = 30

# Fixed English labels so matrix output does not depend on the process locale.
DAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

MAX_REASON_LENGTH = 500
