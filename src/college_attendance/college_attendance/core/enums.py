from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Principal role used for authorization."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class PeriodStatus(str, Enum):
    """Status stored on each period entry."""

    PRESENT = "present"
    ABSENT = "absent"


class SubjectType(str, Enum):
    THEORY = "Theory"
    LAB = "Lab"
    PRACTICAL = "Practical"
    ELECTIVE = "Elective"
    PROJECT = "Project"


class Weekday(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"


# Schedules run Monday through Saturday.
TEACHING_DAYS = (
    Weekday.MONDAY,
    Weekday.TUESDAY,
    Weekday.WEDNESDAY,
    Weekday.THURSDAY,
    Weekday.FRIDAY,
    Weekday.SATURDAY,
)


class Standing(str, Enum):
    """Attendance band shown in reports."""

    EXCELLENT = "excellent"
    GOOD = "good"
    WARNING = "warning"


class ScheduleStatus(str, Enum):
    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"


class NotificationType(str, Enum):
    ATTENDANCE_MARKED = "attendance_marked"
    ATTENDANCE_UPDATED = "attendance_updated"
    LOW_ATTENDANCE = "low_attendance"
    ATTENDANCE_REMINDER = "attendance_reminder"
    WEEKLY_SUMMARY = "weekly_summary"


class DispatchOutcome(str, Enum):
    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"
