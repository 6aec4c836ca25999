"""Notification texts.

Tiering depends only on the status and the percentage after the change.
"""

from __future__ import annotations

from ..core.constants import DEFAULT_ATTENDANCE_THRESHOLD, EXCELLENT_ATTENDANCE
from ..core.enums import NotificationType, PeriodStatus
from .model import PushMessage


def _subject_data(subject_id: int, subject_name: str, **extra) -> dict:
    return {"subject_id": str(subject_id), "subject_name": subject_name, **{k: str(v) for k, v in extra.items()}}


def marked_message(
    *,
    subject_id: int,
    subject_name: str,
    status: PeriodStatus,
    percentage: int,
    threshold: int = DEFAULT_ATTENDANCE_THRESHOLD,
    excellent: int = EXCELLENT_ATTENDANCE,
    updated: bool = False,
) -> PushMessage:
    verb = "updated to" if updated else "marked"
    kind = NotificationType.ATTENDANCE_UPDATED if updated else NotificationType.ATTENDANCE_MARKED
    data = _subject_data(subject_id, subject_name, status=status.value, percentage=percentage)

    if status == PeriodStatus.PRESENT:
        if percentage >= excellent:
            return PushMessage(
                title="🌟 Attendance Marked",
                body=f"Excellent! You were {verb} present in {subject_name}. Keep it up! ({percentage}%)",
                kind=kind,
                data=data,
            )
        return PushMessage(
            title="✓ Attendance Marked",
            body=f"You were {verb} present in {subject_name}. Current: {percentage}%",
            kind=kind,
            data=data,
        )

    if percentage < threshold:
        return PushMessage(
            title="⚠️ Low Attendance Alert",
            body=(
                f"You were {verb} absent in {subject_name}. "
                f"Your attendance dropped to {percentage}%! Please attend next classes."
            ),
            kind=NotificationType.LOW_ATTENDANCE,
            data=data,
        )
    return PushMessage(
        title="✗ Attendance Marked",
        body=f"You were {verb} absent in {subject_name}. Current: {percentage}%",
        kind=kind,
        data=data,
    )


def low_attendance_message(
    *,
    subject_id: int,
    subject_name: str,
    percentage: int,
    classes_needed: int,
    threshold: int = DEFAULT_ATTENDANCE_THRESHOLD,
) -> PushMessage:
    return PushMessage(
        title="⚠️ Low Attendance Alert",
        body=(
            f"Your {subject_name} attendance is {percentage}%. "
            f"You need to attend {classes_needed} more classes to reach {threshold}%."
        ),
        kind=NotificationType.LOW_ATTENDANCE,
        data=_subject_data(subject_id, subject_name, percentage=percentage, classes_needed=classes_needed),
    )


def weekly_summary_message(
    *,
    percentage: int,
    threshold: int = DEFAULT_ATTENDANCE_THRESHOLD,
    excellent: int = EXCELLENT_ATTENDANCE,
) -> PushMessage:
    if percentage < threshold:
        emoji, note = "⚠️", "Please attend classes regularly to improve your attendance."
    elif percentage >= excellent:
        emoji, note = "🌟", "Excellent attendance! Keep it up!"
    else:
        emoji, note = "✓", "Keep up the good work!"
    return PushMessage(
        title=f"{emoji} Weekly Attendance Summary",
        body=f"Your overall attendance: {percentage}%. {note}",
        kind=NotificationType.WEEKLY_SUMMARY,
        data={"percentage": str(percentage)},
    )


def daily_reminder_message() -> PushMessage:
    return PushMessage(
        title="📚 Good Morning!",
        body="Don't forget to attend your classes today. Every class counts!",
        kind=NotificationType.ATTENDANCE_REMINDER,
    )
