from __future__ import annotations

import threading
from datetime import date

import pytest

from src.college_attendance.college_attendance.attendance.model import PeriodSlot, StudentStatus
from src.college_attendance.college_attendance.core.enums import NotificationType, PeriodStatus, Weekday
from src.college_attendance.college_attendance.core.exceptions import (
    AlreadyMarkedError,
    AuthorizationError,
    NothingToEditError,
    NotFoundError,
    ValidationError,
)
from src.college_attendance.college_attendance.schedules.model import Schedule
from src.college_attendance.college_attendance.users.principal import Principal

from tests.conftest import OTHER_TEACHER_ID, PENDING_TEACHER_ID, SCHEDULE_ID, SUBJECT_ID
from tests.fakes import RecordingNotifier

DAY = date(2025, 1, 10)


def slots(*numbers):
    return [PeriodSlot(n, f"{8 + n:02d}:00", f"{8 + n:02d}:50") for n in numbers]


def everyone(status, ids=(1, 2, 3)):
    return [StudentStatus(i, PeriodStatus(status)) for i in ids]


def mark(container, teacher, numbers, statuses, day=DAY):
    return container.marking_service.mark(
        actor=teacher,
        schedule_id=SCHEDULE_ID,
        attend_date=day,
        periods=slots(*numbers),
        statuses=statuses,
    )


def test_mark_then_mark_again_scenario(container, teacher):
    mark(container, teacher, [1], everyone("present"))
    for student_id in (1, 2, 3):
        summary = container.aggregator.summarize(student_id, SUBJECT_ID)
        assert (summary.attended_classes, summary.total_classes, summary.percentage) == (1, 1, 100)

    mark(container, teacher, [2], everyone("absent"))
    for student_id in (1, 2, 3):
        summary = container.aggregator.summarize(student_id, SUBJECT_ID)
        assert (summary.attended_classes, summary.total_classes, summary.percentage) == (1, 2, 50)

    with pytest.raises(AlreadyMarkedError):
        mark(container, teacher, [1], everyone("present"))


def test_overlapping_periods_are_rejected_and_disjoint_ones_accepted(container, teacher, attendance_repo):
    mark(container, teacher, [1, 2], everyone("present", ids=(1,)))

    with pytest.raises(AlreadyMarkedError) as exc:
        mark(container, teacher, [2, 3], everyone("present", ids=(1,)))
    assert exc.value.conflicts == ((1, (2,)),)

    mark(container, teacher, [4], everyone("absent", ids=(1,)))
    numbers = sorted(n for r in attendance_repo.records.values() for n in r.period_numbers)
    assert numbers == [1, 2, 4]


def test_one_overlap_rejects_the_whole_batch(container, teacher, attendance_repo):
    mark(container, teacher, [1], everyone("present", ids=(1,)))

    with pytest.raises(AlreadyMarkedError):
        mark(container, teacher, [1], everyone("present", ids=(1, 2, 3)))

    assert [r.student_id for r in attendance_repo.records.values()] == [1]


def test_same_period_on_another_date_is_independent(container, teacher):
    mark(container, teacher, [1], everyone("present"), day=date(2025, 1, 8))
    mark(container, teacher, [1], everyone("present"), day=DAY)

    assert container.aggregator.summarize(1, SUBJECT_ID).total_classes == 2


def test_mark_result_counts(container, teacher):
    result = mark(container, teacher, [1, 2], [StudentStatus(1, "present"), StudentStatus(2, "present"), StudentStatus(3, "absent")])

    assert result.present_count == 2
    assert result.absent_count == 1
    assert result.total_students == 3
    assert result.class_percentage == 67
    assert result.period_numbers == (1, 2)
    assert result.time_range == "09:00 - 10:50"
    assert result.to_dict()["class_attendance"] == 67


def test_each_student_gets_one_record_with_uniform_status(container, teacher, attendance_repo):
    mark(container, teacher, [3, 1], [StudentStatus(1, "absent"), StudentStatus(2, "present")])

    records = {r.student_id: r for r in attendance_repo.records.values()}
    assert [p.period_number for p in records[1].periods] == [1, 3]
    assert {p.status for p in records[1].periods} == {PeriodStatus.ABSENT}
    assert {p.status for p in records[2].periods} == {PeriodStatus.PRESENT}
    assert records[1].weekday == Weekday.FRIDAY
    assert records[1].marked_by == 10


def test_teacher_must_own_the_schedule(container):
    with pytest.raises(AuthorizationError):
        mark(container, Principal.teacher(OTHER_TEACHER_ID), [1], everyone("present"))


def test_admin_cannot_mark(container, admin):
    with pytest.raises(AuthorizationError):
        mark(container, admin, [1], everyone("present"))


def test_pending_teacher_cannot_mark(container, schedules_repo):
    schedules_repo.by_id[200] = Schedule(
        200, PENDING_TEACHER_ID, SUBJECT_ID, "CSE", 5, (Weekday.FRIDAY,), "Period 5", "13:00", "13:50"
    )
    with pytest.raises(AuthorizationError):
        container.marking_service.mark(
            actor=Principal.teacher(PENDING_TEACHER_ID),
            schedule_id=200,
            attend_date=DAY,
            periods=slots(5),
            statuses=everyone("present"),
        )


def test_unknown_schedule_and_student(container, teacher, attendance_repo):
    with pytest.raises(NotFoundError):
        container.marking_service.mark(
            actor=teacher, schedule_id=999, attend_date=DAY, periods=slots(1), statuses=everyone("present")
        )

    with pytest.raises(NotFoundError):
        mark(container, teacher, [1], everyone("present", ids=(1, 42)))

    assert attendance_repo.records == {}


@pytest.mark.parametrize(
    "periods, statuses, day",
    [
        ([], everyone("present"), DAY),
        ([PeriodSlot(1, "9am", "09:50")], everyone("present"), DAY),
        ([PeriodSlot(1, "09:50", "09:00")], everyone("present"), DAY),
        ([PeriodSlot(0, "09:00", "09:50")], everyone("present"), DAY),
        (slots(1) + slots(1), everyone("present"), DAY),
        (slots(1), [], DAY),
        (slots(1), [StudentStatus(1, "late")], DAY),
        (slots(1), [StudentStatus(1, "present"), StudentStatus(1, "absent")], DAY),
        (slots(1), everyone("present"), date(2025, 1, 11)),
        (slots(1), everyone("present"), "10-01-2025"),
        (slots(1), everyone("present"), 20250110),
        ([PeriodSlot(1, 900, "09:50")], everyone("present"), DAY),
        ([PeriodSlot(1.7, "09:00", "09:50")], everyone("present"), DAY),
        ([PeriodSlot(True, "09:00", "09:50")], everyone("present"), DAY),
    ],
)
def test_invalid_input_is_rejected_before_any_write(container, teacher, attendance_repo, periods, statuses, day):
    with pytest.raises(ValidationError):
        container.marking_service.mark(
            actor=teacher, schedule_id=SCHEDULE_ID, attend_date=day, periods=periods, statuses=statuses
        )
    assert attendance_repo.create_calls == 0


def test_student_outside_the_class_is_rejected(container, teacher, students_repo):
    students_repo.create(roll_number="21ECE001", branch="ECE", semester=5)
    with pytest.raises(ValidationError):
        mark(container, teacher, [1], everyone("present", ids=(1, 6)))


def test_deactivated_student_cannot_be_marked(container, teacher, students_repo, attendance_repo):
    students_repo.set_active(2, is_active=False)

    with pytest.raises(ValidationError):
        mark(container, teacher, [1], everyone("present"))

    assert attendance_repo.create_calls == 0


def test_iso_date_string_is_accepted(container, teacher):
    result = mark(container, teacher, [1], everyone("present"), day="2025-01-10")
    assert result.attend_date == DAY


def test_marked_notifications_are_sent_per_student(container, teacher, notifier):
    result = mark(container, teacher, [1], [StudentStatus(1, "present"), StudentStatus(2, "absent")])

    report = result.notifications.result(timeout=5)
    assert report.succeeded == 2
    assert notifier.titles_for("tok-1") == ["🌟 Attendance Marked"]
    assert notifier.titles_for("tok-2") == ["⚠️ Low Attendance Alert"]


def test_dispatch_failure_does_not_fail_the_batch(make_container, teacher, attendance_repo):
    container = make_container(RecordingNotifier(fail_tokens={"tok-3"}))

    result = mark(container, teacher, [1], everyone("present", ids=(1, 2, 3, 4, 5)))

    assert result.total_students == 5
    assert len(attendance_repo.records) == 5
    report = result.notifications.result(timeout=5)
    assert (report.succeeded, report.failed) == (4, 1)


def test_skipped_students_are_not_failures(make_container, teacher, students_repo):
    students_repo.set_device_token(student_id=2, token=None)
    container = make_container(RecordingNotifier())

    report = mark(container, teacher, [1], everyone("present")).notifications.result(timeout=5)

    assert (report.succeeded, report.failed, report.skipped) == (2, 0, 1)


def test_concurrent_marking_has_one_winner(container, teacher):
    barrier = threading.Barrier(2)
    outcomes = []

    def attempt():
        barrier.wait()
        try:
            mark(container, teacher, [1], everyone("present", ids=(1,)))
            outcomes.append("ok")
        except AlreadyMarkedError:
            outcomes.append("already")

    threads = [threading.Thread(target=attempt) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes) == ["already", "ok"]
    assert container.aggregator.summarize(1, SUBJECT_ID).total_classes == 1


def test_store_uniqueness_backs_up_the_check(container, teacher, attendance_repo, monkeypatch):
    mark(container, teacher, [1], everyone("present", ids=(1,)))
    monkeypatch.setattr(attendance_repo, "find_for_students_on_date", lambda *args, **kwargs: [])

    with pytest.raises(AlreadyMarkedError):
        mark(container, teacher, [1], everyone("present", ids=(1,)))
    assert len(attendance_repo.records) == 1


def test_edit_changes_only_matching_periods(container, teacher, attendance_repo):
    mark(container, teacher, [1, 2], everyone("present", ids=(1, 2)))

    result = container.marking_service.edit(
        actor=teacher,
        schedule_id=SCHEDULE_ID,
        attend_date=DAY,
        periods=slots(2),
        statuses=[StudentStatus(1, "absent")],
    )

    assert (result.present_count, result.absent_count) == (0, 1)
    records = {r.student_id: r for r in attendance_repo.records.values()}
    assert [(p.period_number, p.status) for p in records[1].periods] == [
        (1, PeriodStatus.PRESENT),
        (2, PeriodStatus.ABSENT),
    ]
    assert {p.status for p in records[2].periods} == {PeriodStatus.PRESENT}
    assert container.aggregator.summarize(1, SUBJECT_ID).percentage == 50


def test_edit_sends_update_notifications(container, teacher, notifier):
    mark(container, teacher, [1], everyone("present", ids=(1,))).notifications.result(timeout=5)

    result = container.marking_service.edit(
        actor=teacher, schedule_id=SCHEDULE_ID, attend_date=DAY, periods=slots(1), statuses=[StudentStatus(1, "present")]
    )
    result.notifications.result(timeout=5)

    kinds = [data["type"] for target, _, _, data in notifier.sent if target == "tok-1"]
    assert kinds == [NotificationType.ATTENDANCE_MARKED.value, NotificationType.ATTENDANCE_UPDATED.value]


def test_edit_with_no_matching_record(container, teacher):
    mark(container, teacher, [1], everyone("present", ids=(1,)))

    with pytest.raises(NothingToEditError):
        container.marking_service.edit(
            actor=teacher, schedule_id=SCHEDULE_ID, attend_date=DAY, periods=slots(3), statuses=[StudentStatus(1, "absent")]
        )

    with pytest.raises(NothingToEditError):
        container.marking_service.edit(
            actor=teacher, schedule_id=SCHEDULE_ID, attend_date=DAY, periods=slots(1), statuses=[StudentStatus(2, "absent")]
        )


def test_edit_requires_ownership(container, teacher):
    mark(container, teacher, [1], everyone("present", ids=(1,)))

    with pytest.raises(AuthorizationError):
        container.marking_service.edit(
            actor=Principal.teacher(OTHER_TEACHER_ID),
            schedule_id=SCHEDULE_ID,
            attend_date=DAY,
            periods=slots(1),
            statuses=[StudentStatus(1, "absent")],
        )


def test_roster_lists_marked_periods(container, teacher, admin):
    mark(container, teacher, [1, 2], everyone("present", ids=(1, 2)))

    roster = container.marking_service.roster(actor=admin, schedule_id=SCHEDULE_ID, attend_date=DAY)

    assert [e.roll_number for e in roster] == [f"21CSE00{i}" for i in range(1, 6)]
    marked = {e.student_id: e.marked_periods for e in roster}
    assert marked[1] == frozenset({1, 2})
    assert marked[3] == frozenset()
