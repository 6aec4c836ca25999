from __future__ import annotations

import pytest

from src.college_attendance.college_attendance.core.enums import DispatchOutcome, NotificationType, PeriodStatus
from src.college_attendance.college_attendance.notifications.dispatcher import (
    REASON_NO_TARGET,
    REASON_OPTED_OUT,
    NotificationDispatcher,
)
from src.college_attendance.college_attendance.notifications.messages import daily_reminder_message, marked_message
from src.college_attendance.college_attendance.students.model import NotificationSettings, Student
from src.college_attendance.college_attendance.subjects.model import Subject

from tests.fakes import RecordingNotifier

SUBJECT = Subject(1, "CS501", "Compiler Design", "CSE", 5)


def student(i, token="default", notifications=True):
    return Student(
        i,
        f"21CSE00{i}",
        "CSE",
        5,
        device_token=f"tok-{i}" if token == "default" else token,
        settings=NotificationSettings(notifications=notifications),
    )


@pytest.fixture
def recorder():
    return RecordingNotifier()


@pytest.fixture
def dispatcher(recorder):
    d = NotificationDispatcher(recorder, threshold=75, excellent=90, timeout=2)
    yield d
    d.close()


@pytest.mark.parametrize(
    "status, pct, title, kind",
    [
        (PeriodStatus.PRESENT, 95, "🌟 Attendance Marked", NotificationType.ATTENDANCE_MARKED),
        (PeriodStatus.PRESENT, 90, "🌟 Attendance Marked", NotificationType.ATTENDANCE_MARKED),
        (PeriodStatus.PRESENT, 89, "✓ Attendance Marked", NotificationType.ATTENDANCE_MARKED),
        (PeriodStatus.PRESENT, 40, "✓ Attendance Marked", NotificationType.ATTENDANCE_MARKED),
        (PeriodStatus.ABSENT, 74, "⚠️ Low Attendance Alert", NotificationType.LOW_ATTENDANCE),
        (PeriodStatus.ABSENT, 75, "✗ Attendance Marked", NotificationType.ATTENDANCE_MARKED),
    ],
)
def test_marked_message_tiers(status, pct, title, kind):
    message = marked_message(subject_id=1, subject_name="Compiler Design", status=status, percentage=pct)

    assert message.title == title
    assert message.kind == kind
    assert f"{pct}%" in message.body


def test_updated_wording():
    message = marked_message(
        subject_id=1, subject_name="Compiler Design", status=PeriodStatus.ABSENT, percentage=80, updated=True
    )
    assert message.kind == NotificationType.ATTENDANCE_UPDATED
    assert message.body.startswith("You were updated to absent")


def test_payload_is_flat_strings():
    message = marked_message(subject_id=1, subject_name="Compiler Design", status=PeriodStatus.PRESENT, percentage=80)
    payload = message.payload()
    assert payload["type"] == "attendance_marked"
    assert payload["subject_id"] == "1"
    assert payload["percentage"] == "80"
    assert all(isinstance(v, str) for v in payload.values())


def test_sends_to_device_token(dispatcher, recorder):
    result = dispatcher.notify_marked(student(1), SUBJECT, PeriodStatus.PRESENT, 100)

    assert result.sent
    target, title, _, data = recorder.sent[0]
    assert target == "tok-1"
    assert title == "🌟 Attendance Marked"
    assert data["subject_name"] == "Compiler Design"


def test_skips_opted_out_and_token_less(dispatcher, recorder):
    opted_out = dispatcher.notify_marked(student(1, notifications=False), SUBJECT, PeriodStatus.PRESENT, 100)
    no_token = dispatcher.notify_marked(student(2, token=None), SUBJECT, PeriodStatus.PRESENT, 100)

    assert (opted_out.outcome, opted_out.reason) == (DispatchOutcome.SKIPPED, REASON_OPTED_OUT)
    assert (no_token.outcome, no_token.reason) == (DispatchOutcome.SKIPPED, REASON_NO_TARGET)
    assert recorder.sent == []


def test_failures_are_isolated():
    notifier = RecordingNotifier(fail_tokens={"tok-2"}, reject_tokens={"tok-3"})
    dispatcher = NotificationDispatcher(notifier, timeout=2)
    try:
        message = marked_message(subject_id=1, subject_name="X", status=PeriodStatus.PRESENT, percentage=100)
        report = dispatcher.deliver_many((student(i), message) for i in (1, 2, 3, 4))
    finally:
        dispatcher.close()

    assert report.to_dict() == {"succeeded": 2, "failed": 2, "skipped": 0}
    reasons = {r.student_id: r.reason for r in report.results if not r.sent}
    assert reasons[3] == "rejected"
    assert "tok-2" in reasons[2]


def test_slow_send_times_out():
    notifier = RecordingNotifier(slow_tokens={"tok-1"})
    dispatcher = NotificationDispatcher(notifier, timeout=0.1)
    try:
        result = dispatcher.notify_daily_reminder(student(1))
        after = dispatcher.notify_daily_reminder(student(2))
    finally:
        notifier.release.set()
        dispatcher.close()

    assert (result.outcome, result.reason) == (DispatchOutcome.FAILED, "timeout")
    assert after.sent


def test_unexpected_notifier_error_is_a_failure():
    class Broken(RecordingNotifier):
        def send(self, target, title, body, data):
            raise KeyError("boom")

    dispatcher = NotificationDispatcher(Broken(), timeout=1)
    try:
        result = dispatcher.notify_weekly_summary(student(1), 80)
    finally:
        dispatcher.close()

    assert result.outcome == DispatchOutcome.FAILED


def test_broadcast_skips_and_counts(dispatcher, recorder):
    message = marked_message(subject_id=1, subject_name="X", status=PeriodStatus.PRESENT, percentage=100)

    report = dispatcher.broadcast([student(1), student(2, token=None), student(3)], message)

    assert report.to_dict() == {"succeeded": 2, "failed": 0, "skipped": 1}
    assert sorted(t for t, _, _, _ in recorder.sent) == ["tok-1", "tok-3"]


def test_broadcast_failure_counts_every_reachable_student():
    class Unreachable(RecordingNotifier):
        def send_many(self, targets, title, body, data):
            raise ConnectionError("gateway socket reset")

    dispatcher = NotificationDispatcher(Unreachable(), timeout=1)
    try:
        message = marked_message(subject_id=1, subject_name="X", status=PeriodStatus.PRESENT, percentage=100)
        report = dispatcher.broadcast([student(1), student(2), student(3, notifications=False)], message)
    finally:
        dispatcher.close()

    assert report.to_dict() == {"succeeded": 0, "failed": 2, "skipped": 1}


def test_slow_broadcast_times_out():
    class Stalled(RecordingNotifier):
        def send_many(self, targets, title, body, data):
            self.release.wait(5)
            return super().send_many(targets, title, body, data)

    notifier = Stalled()
    dispatcher = NotificationDispatcher(notifier, timeout=0.1)
    try:
        report = dispatcher.broadcast([student(1), student(2)], daily_reminder_message())
    finally:
        notifier.release.set()
        dispatcher.close()

    assert report.to_dict() == {"succeeded": 0, "failed": 2, "skipped": 0}


def test_low_attendance_text(dispatcher, recorder):
    dispatcher.notify_low_attendance(student(1), SUBJECT, 60, 6)

    _, title, body, data = recorder.sent[0]
    assert title == "⚠️ Low Attendance Alert"
    assert body == (
        "Your Compiler Design attendance is 60%. You need to attend 6 more classes to reach 75%."
    )
    assert data["type"] == "low_attendance"
