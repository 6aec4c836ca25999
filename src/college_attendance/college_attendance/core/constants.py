"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_ATTENDANCE_THRESHOLD = 75
EXCELLENT_ATTENDANCE = 90
DEFAULT_LOW_ATTENDANCE_MIN_CLASSES = 5
DEFAULT_TREND_MONTHS = 4

DEFAULT_TIMEZONE = "Asia/Kolkata"

DEFAULT_PUSH_TIMEOUT_SECONDS = 5
DEFAULT_DISPATCH_WORKERS = 8

DEFAULT_LOW_ATTENDANCE_AT = "20:00"
DEFAULT_WEEKLY_SUMMARY_AT = "19:00"
DEFAULT_DAILY_REMINDER_AT = "07:30"

BRANCHES = ("CSE", "CSD", "IT", "ECE", "EEE", "MECH", "CIVIL")

MIN_SEMESTER = 1
MAX_SEMESTER = 8
MIN_CREDITS = 1
MAX_CREDITS = 14
DEFAULT_CREDITS = 4
