"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time
from decimal import Decimal

STANDARD_START_TIME = time(9, 0)
STANDARD_END_TIME = time(18, 0)
STANDARD_WORKING_MINUTES = 480

NIGHT_START_TIME = time(22, 0)
NIGHT_WINDOW_HOURS = 7

# Statutory break tiers: (minimum elapsed minutes, break minutes), highest first.
BREAK_TIERS = (
    (480, 60),
    (360, 45),
)

DEFAULT_TIMEZONE = "Asia/Tokyo"
DEFAULT_HISTORY_DAYS = 30
DEFAULT_CLOCK_OUT_MAX_ATTEMPTS = 3
DEFAULT_CLOCK_OUT_BACKOFF_MS = 100

DEFAULT_PAID_LEAVE_BASE_DAYS = 10

HALF_DAY = Decimal("0.5")
DAYS_SCALE = Decimal("0.01")

EMPLOYEE_CANCELLATION_COMMENT = "Cancelled by employee"
APPROVAL_SUBJECT_LEAVE_REQUEST = "LEAVE_REQUEST"
