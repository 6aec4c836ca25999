from __future__ import annotations

from datetime import date, datetime

import pytest

from src.college_attendance.college_attendance.attendance.aggregator import AttendanceAggregator, standing
from src.college_attendance.college_attendance.attendance.model import (
    PeriodEntry,
    PeriodRecord,
    Tally,
    attendance_percentage,
)
from src.college_attendance.college_attendance.core.enums import PeriodStatus, Standing
from src.college_attendance.college_attendance.core.exceptions import ValidationError

from tests.fakes import InMemoryAttendance

P = PeriodStatus.PRESENT
A = PeriodStatus.ABSENT


def record(student_id, day, *statuses, subject_id=1):
    periods = tuple(
        PeriodEntry(n, f"{8 + n:02d}:00", f"{8 + n:02d}:50", s) for n, s in enumerate(statuses, start=1)
    )
    return PeriodRecord(None, student_id, subject_id, 10, day, periods, 10, datetime(2025, 1, 10, 9, 0))


@pytest.fixture
def repo():
    return InMemoryAttendance()


@pytest.fixture
def aggregator(repo, clock):
    return AttendanceAggregator(repo, threshold=75, excellent=90, clock=clock)


@pytest.mark.parametrize(
    "attended, total, expected",
    [(3, 4, 75), (1, 3, 33), (2, 3, 67), (1, 8, 13), (0, 0, 0), (5, 5, 100), (0, 7, 0)],
)
def test_percentage_rounds_half_up(attended, total, expected):
    assert attendance_percentage(attended, total) == expected


def test_summary_counts_every_period(repo, aggregator):
    repo.create_many(
        [
            record(1, date(2025, 1, 6), P, P, A),
            record(1, date(2025, 1, 8), P),
        ]
    )

    summary = aggregator.summarize(1, 1)

    assert (summary.total_classes, summary.attended_classes, summary.percentage) == (4, 3, 75)
    assert summary.missed_classes == 1


def test_empty_summary(aggregator):
    summary = aggregator.summarize(1, 1)
    assert summary.to_dict() == {"total_classes": 0, "attended_classes": 0, "percentage": 0}


def test_scope_ignores_other_subjects_and_duplicates(repo, aggregator):
    repo.create_many(
        [
            record(1, date(2025, 1, 6), P, A, subject_id=1),
            record(1, date(2025, 1, 6), P, subject_id=2),
            record(1, date(2025, 1, 6), A, A, A, subject_id=3),
        ]
    )

    scoped = aggregator.summarize_scope(1, [1, 2, 2])

    assert (scoped.total_classes, scoped.attended_classes) == (3, 2)
    assert aggregator.overall(1).total_classes == 6


def test_monthly_breakdown_most_recent_first(repo, aggregator):
    repo.create_many(
        [
            record(1, date(2024, 12, 2), P, A),
            record(1, date(2025, 1, 6), P),
            record(1, date(2024, 11, 4), A),
            record(1, date(2025, 1, 8), A),
        ]
    )

    buckets = aggregator.monthly_breakdown(1, 1)

    assert [b.label for b in buckets] == ["January 2025", "December 2024", "November 2024"]
    assert [b.summary.percentage for b in buckets] == [50, 50, 0]
    assert buckets[0].to_dict()["label"] == "January 2025"


def test_weekly_breakdown_uses_iso_weeks(repo, aggregator):
    repo.create_many(
        [
            record(1, date(2024, 12, 30), P),
            record(1, date(2025, 1, 6), P, A),
        ]
    )

    buckets = aggregator.weekly_breakdown(1, 1)

    assert [b.label for b in buckets] == ["2025-W02", "2025-W01"]


def test_class_summary_matches_per_student_totals(repo, aggregator):
    repo.create_many(
        [
            record(1, date(2025, 1, 6), P, P),
            record(2, date(2025, 1, 6), A, P),
            record(3, date(2025, 1, 6), A, A),
            record(9, date(2025, 1, 6), P, P),
        ]
    )

    summary = aggregator.class_summary(1, [3, 1, 2, 4])

    combined = Tally()
    for student_id in (1, 2, 3, 4):
        single = aggregator.summarize(student_id, 1)
        assert summary.per_student[student_id] == single
        combined = combined + Tally(single.total_classes, single.attended_classes)
    assert summary.total == combined.summary()
    assert summary.per_student[4].total_classes == 0
    assert 9 not in summary.per_student


def test_class_report_flags_standing(repo, aggregator):
    repo.create_many(
        [
            record(1, date(2025, 1, 6), P, P, P, P),
            record(2, date(2025, 1, 6), P, P, P, A),
            record(3, date(2025, 1, 6), P, A, A, A),
        ]
    )

    report = aggregator.class_report(1, [1, 2, 3])

    assert {r.student_id: r.standing for r in report.rows} == {
        1: Standing.EXCELLENT,
        2: Standing.GOOD,
        3: Standing.WARNING,
    }
    assert report.total_sessions == 4
    assert report.total_students == 3
    assert report.overall_percentage == 67


@pytest.mark.parametrize("pct, expected", [(90, Standing.EXCELLENT), (89, Standing.GOOD), (75, Standing.GOOD), (74, Standing.WARNING)])
def test_standing_bands(pct, expected):
    assert standing(pct, 75, 90) == expected


def test_trend_is_oldest_first_with_empty_months(repo, aggregator):
    repo.create_many(
        [
            record(1, date(2024, 10, 7), P),
            record(1, date(2024, 11, 4), P, A),
            record(1, date(2025, 1, 6), P, P),
            record(1, date(2024, 9, 30), A),
        ]
    )

    trend = aggregator.trend(1)

    assert [b.label for b in trend] == ["Oct", "Nov", "Dec", "Jan"]
    assert [b.summary.percentage for b in trend] == [100, 50, 0, 100]


def test_subject_stats(repo, aggregator):
    repo.create_many(
        [
            record(1, date(2025, 1, 6), P, A),
            record(2, date(2025, 1, 6), P, P),
            record(1, date(2025, 1, 8), A),
        ]
    )

    stats = aggregator.subject_stats(1)

    assert stats.sessions == 2
    assert (stats.total_classes, stats.present_count, stats.absent_count) == (5, 3, 2)
    assert stats.overall_percentage == 60


def test_day_summary_counts_any_present_period(repo, aggregator):
    repo.create_many(
        [
            record(1, date(2025, 1, 6), P, A),
            record(2, date(2025, 1, 6), A, A),
            record(3, date(2025, 1, 6), P, P),
            record(3, date(2025, 1, 8), A),
        ]
    )

    day = aggregator.day_summary(1, date(2025, 1, 6))

    assert (day.total_students, day.present_count, day.absent_count, day.percentage) == (3, 2, 1, 67)


def test_threshold_must_leave_room_for_classes_needed(repo):
    with pytest.raises(ValidationError):
        AttendanceAggregator(repo, threshold=100)


def test_student_report_combines_subjects(repo, aggregator, students_repo, subjects_repo):
    repo.create_many(
        [
            record(1, date(2025, 1, 6), P, P, P, P, P, P, P, P, P, P, subject_id=1),
            record(1, date(2025, 1, 6), P, A, A, A, subject_id=2),
        ]
    )
    subjects = subjects_repo.list_for_class("CSE", 5)

    report = aggregator.student_report(students_repo.get_by_id(1), subjects)

    assert [(line.code, line.summary.percentage, line.standing) for line in report.subjects] == [
        ("CS501", 100, Standing.EXCELLENT),
        ("CS502", 25, Standing.WARNING),
    ]
    assert (report.overview.total_classes, report.overview.attended_classes, report.overview.percentage) == (14, 11, 79)
    assert [b.label for b in report.trend] == ["Oct", "Nov", "Dec", "Jan"]
    assert report.trend[-1].summary.total_classes == 14
