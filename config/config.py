"""Settings shared by every environment. Environment modules import these and override."""

import os

SECRET_KEY = os.getenv("SECRET_KEY", "college-attendance-secret")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "college_attendance"),
}

DEBUG = bool(int(os.getenv("DEBUG", "0")))
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

# Institution
TIMEZONE = os.getenv("TIMEZONE", "Asia/Kolkata")
ATTENDANCE_THRESHOLD = int(os.getenv("ATTENDANCE_THRESHOLD", "75"))
EXCELLENT_THRESHOLD = int(os.getenv("EXCELLENT_THRESHOLD", "90"))
LOW_ATTENDANCE_MIN_CLASSES = int(os.getenv("LOW_ATTENDANCE_MIN_CLASSES", "5"))

# Push gateway; without a URL messages are only logged
PUSH_GATEWAY_URL = os.getenv("PUSH_GATEWAY_URL") or None
PUSH_GATEWAY_KEY = os.getenv("PUSH_GATEWAY_KEY") or None
PUSH_TIMEOUT_SECONDS = float(os.getenv("PUSH_TIMEOUT_SECONDS", "5"))
DISPATCH_WORKERS = int(os.getenv("DISPATCH_WORKERS", "8"))

# Job times (HH:MM, institutional timezone)
LOW_ATTENDANCE_AT = os.getenv("LOW_ATTENDANCE_AT", "20:00")
WEEKLY_SUMMARY_AT = os.getenv("WEEKLY_SUMMARY_AT", "19:00")
DAILY_REMINDER_AT = os.getenv("DAILY_REMINDER_AT", "07:30")
