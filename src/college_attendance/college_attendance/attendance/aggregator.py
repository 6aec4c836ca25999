from __future__ import annotations

import calendar
from collections import defaultdict
from datetime import date
from typing import Callable, Dict, Hashable, Iterable, List, Optional, Sequence, Tuple

from ..common.datetime_utils import Clock, month_label, shift_month
from ..common.validators import require_threshold
from ..core.constants import DEFAULT_ATTENDANCE_THRESHOLD, DEFAULT_TREND_MONTHS, EXCELLENT_ATTENDANCE
from ..core.enums import Standing
from ..students.model import Student
from ..subjects.model import Subject
from .model import (
    AttendanceSummary,
    ClassReport,
    ClassSummary,
    DaySummary,
    PeriodBucket,
    PeriodRecord,
    StudentReport,
    StudentStanding,
    SubjectLine,
    SubjectStats,
    Tally,
    attendance_percentage,
)
from .repository import AttendanceRepository


def standing(percentage: int, threshold: int = DEFAULT_ATTENDANCE_THRESHOLD, excellent: int = EXCELLENT_ATTENDANCE) -> Standing:
    if percentage >= excellent:
        return Standing.EXCELLENT
    if percentage >= threshold:
        return Standing.GOOD
    return Standing.WARNING


def summarize_records(records: Iterable[PeriodRecord]) -> AttendanceSummary:
    return Tally.of_records(records).summary()


def _buckets(
    records: Iterable[PeriodRecord],
    key: Callable[[PeriodRecord], Hashable],
    label: Callable[[Hashable], str],
) -> List[PeriodBucket]:
    """Group records by `key` and return one bucket per key, largest key first."""
    tallies: Dict[Hashable, Tally] = defaultdict(Tally)
    for record in records:
        tallies[key(record)] = tallies[key(record)] + Tally.of(record)
    return [PeriodBucket(label(k), tallies[k].summary()) for k in sorted(tallies, reverse=True)]


def _month_key(record: PeriodRecord) -> Tuple[int, int]:
    return record.attend_date.year, record.attend_date.month


def _week_key(record: PeriodRecord) -> Tuple[int, int]:
    iso = record.attend_date.isocalendar()
    return iso[0], iso[1]


class AttendanceAggregator:
    """Turns stored period marks into counts and percentages.

    Every figure is derived from the same (total, attended) tally, so summing per-student
    results over a class gives the class figure regardless of order.
    """

    def __init__(
        self,
        records: AttendanceRepository,
        *,
        threshold: int = DEFAULT_ATTENDANCE_THRESHOLD,
        excellent: int = EXCELLENT_ATTENDANCE,
        clock: Optional[Clock] = None,
    ):
        self._records = records
        self._threshold = require_threshold(threshold)
        self._excellent = excellent
        self._clock = clock or Clock()

    @property
    def threshold(self) -> int:
        return self._threshold

    def standing(self, percentage: int, threshold: Optional[int] = None) -> Standing:
        return standing(percentage, threshold if threshold is not None else self._threshold, self._excellent)

    def summarize(self, student_id: int, subject_id: int) -> AttendanceSummary:
        return summarize_records(self._records.list_for_student_subject(int(student_id), int(subject_id)))

    def summarize_scope(self, student_id: int, subject_ids: Iterable[int]) -> AttendanceSummary:
        tally = Tally()
        for subject_id in set(int(s) for s in subject_ids):
            tally = tally + Tally.of_records(self._records.list_for_student_subject(int(student_id), subject_id))
        return tally.summary()

    def overall(self, student_id: int) -> AttendanceSummary:
        return summarize_records(self._records.list_for_student(int(student_id)))

    def monthly_breakdown(self, student_id: int, subject_id: int) -> List[PeriodBucket]:
        """Per calendar month ("January 2025"), most recent month first."""
        records = self._records.list_for_student_subject(int(student_id), int(subject_id))
        return _buckets(records, _month_key, lambda k: month_label(*k))

    def weekly_breakdown(self, student_id: int, subject_id: int) -> List[PeriodBucket]:
        """Per ISO week ("2025-W02"), most recent week first."""
        records = self._records.list_for_student_subject(int(student_id), int(subject_id))
        return _buckets(records, _week_key, lambda k: f"{k[0]}-W{k[1]:02d}")

    def class_summary(self, subject_id: int, student_ids: Sequence[int]) -> ClassSummary:
        """Aggregate many students in one read. Students without records get an empty summary."""
        ids = [int(i) for i in student_ids]
        tallies: Dict[int, Tally] = {i: Tally() for i in ids}
        for record in self._records.list_for_subject(int(subject_id), student_ids=ids):
            if record.student_id in tallies:
                tallies[record.student_id] = tallies[record.student_id] + Tally.of(record)

        total = Tally()
        for tally in tallies.values():
            total = total + tally
        return ClassSummary(
            subject_id=int(subject_id),
            per_student={i: t.summary() for i, t in tallies.items()},
            total=total.summary(),
        )

    def class_report(
        self, subject_id: int, student_ids: Sequence[int], threshold: Optional[int] = None
    ) -> ClassReport:
        summary = self.class_summary(subject_id, student_ids)
        rows = tuple(
            StudentStanding(student_id=i, summary=s, standing=self.standing(s.percentage, threshold))
            for i, s in summary.per_student.items()
        )
        return ClassReport(
            subject_id=int(subject_id),
            rows=rows,
            total_sessions=max((r.summary.total_classes for r in rows), default=0),
            overall_percentage=summary.total.percentage,
        )

    def trend(self, student_id: int, months: int = DEFAULT_TREND_MONTHS, today: Optional[date] = None) -> List[PeriodBucket]:
        """Last `months` calendar months up to `today`, oldest first. Empty months read 0%."""
        today = today or self._clock.today()
        first_y, first_m = shift_month(today.year, today.month, -(months - 1))
        start = date(first_y, first_m, 1)
        end = date(today.year, today.month, calendar.monthrange(today.year, today.month)[1])

        tallies: Dict[Tuple[int, int], Tally] = defaultdict(Tally)
        for record in self._records.list_for_student(int(student_id), start=start, end=end):
            tallies[_month_key(record)] = tallies[_month_key(record)] + Tally.of(record)

        buckets = []
        for offset in range(months - 1, -1, -1):
            y, m = shift_month(today.year, today.month, -offset)
            buckets.append(PeriodBucket(calendar.month_abbr[m], tallies[(y, m)].summary()))
        return buckets

    def subject_stats(self, subject_id: int) -> SubjectStats:
        records = self._records.list_for_subject(int(subject_id))
        tally = Tally.of_records(records)
        return SubjectStats(
            subject_id=int(subject_id),
            sessions=len({r.attend_date for r in records}),
            total_classes=tally.total,
            present_count=tally.attended,
            absent_count=tally.total - tally.attended,
            overall_percentage=attendance_percentage(tally.attended, tally.total),
        )

    def day_summary(self, subject_id: int, attend_date: date) -> DaySummary:
        """A student counts as present for the day if any of their periods is present."""
        records = self._records.list_for_subject(int(subject_id), attend_date=attend_date)
        present = sum(1 for r in records if r.attended > 0)
        return DaySummary(
            subject_id=int(subject_id),
            attend_date=attend_date,
            total_students=len(records),
            present_count=present,
            absent_count=len(records) - present,
            percentage=attendance_percentage(present, len(records)),
        )

    def student_report(self, student: Student, subjects: Sequence[Subject], today: Optional[date] = None) -> StudentReport:
        lines = []
        tally = Tally()
        for subject in subjects:
            records = self._records.list_for_student_subject(student.student_id, subject.subject_id)
            subject_tally = Tally.of_records(records)
            tally = tally + subject_tally
            summary = subject_tally.summary()
            lines.append(
                SubjectLine(
                    subject_id=subject.subject_id,
                    code=subject.code,
                    name=subject.name,
                    summary=summary,
                    standing=self.standing(summary.percentage),
                )
            )
        return StudentReport(
            student_id=student.student_id,
            subjects=tuple(lines),
            overview=tally.summary(),
            trend=tuple(self.trend(student.student_id, today=today)),
        )
