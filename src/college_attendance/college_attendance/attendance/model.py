from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from ..common.datetime_utils import weekday_of
from ..core.enums import PeriodStatus, Standing, Weekday


def attendance_percentage(attended: int, total: int) -> int:
    """round(100 * attended / total) with halves rounded up; 0 when total is 0."""
    if total <= 0:
        return 0
    return (200 * attended + total) // (2 * total)


@dataclass(frozen=True)
class PeriodSlot:
    """One period being marked: number and time range, no status yet."""

    period_number: int
    start_time: str
    end_time: str


@dataclass(frozen=True)
class PeriodEntry:
    period_number: int
    start_time: str
    end_time: str
    status: PeriodStatus

    @property
    def is_present(self) -> bool:
        return self.status == PeriodStatus.PRESENT

    @classmethod
    def from_slot(cls, slot: PeriodSlot, status: PeriodStatus) -> "PeriodEntry":
        return cls(slot.period_number, slot.start_time, slot.end_time, status)


@dataclass(frozen=True)
class PeriodRecord:
    """Attendance for one student, one subject, one date.

    Period numbers within a record are unique and the entries are kept ordered by number.
    """

    record_id: Optional[int]
    student_id: int
    subject_id: int
    teacher_id: int
    attend_date: date
    periods: Tuple[PeriodEntry, ...]
    marked_by: int
    marked_at: datetime

    @property
    def weekday(self) -> Weekday:
        return weekday_of(self.attend_date)

    @property
    def period_numbers(self) -> FrozenSet[int]:
        return frozenset(p.period_number for p in self.periods)

    @property
    def total(self) -> int:
        return len(self.periods)

    @property
    def attended(self) -> int:
        return sum(1 for p in self.periods if p.is_present)

    def overlaps(self, period_numbers: Iterable[int]) -> FrozenSet[int]:
        return self.period_numbers.intersection(period_numbers)

    def with_statuses(
        self,
        period_numbers: Iterable[int],
        status: PeriodStatus,
        *,
        marked_by: int,
        marked_at: datetime,
    ) -> "PeriodRecord":
        """Overwrite the status of matching periods only; other periods are kept as they are."""
        by_number: Dict[int, PeriodEntry] = {p.period_number: p for p in self.periods}
        for number in period_numbers:
            if number in by_number:
                by_number[number] = replace(by_number[number], status=status)
        return replace(
            self,
            periods=tuple(by_number[n] for n in sorted(by_number)),
            marked_by=marked_by,
            marked_at=marked_at,
        )


@dataclass(frozen=True)
class StudentStatus:
    student_id: int
    status: PeriodStatus


@dataclass(frozen=True)
class AttendanceSummary:
    total_classes: int = 0
    attended_classes: int = 0
    percentage: int = 0

    @property
    def missed_classes(self) -> int:
        return self.total_classes - self.attended_classes

    def to_dict(self) -> dict:
        return {
            "total_classes": self.total_classes,
            "attended_classes": self.attended_classes,
            "percentage": self.percentage,
        }


@dataclass(frozen=True)
class Tally:
    """Running (total, attended) counts. Addition is associative and commutative."""

    total: int = 0
    attended: int = 0

    def __add__(self, other: "Tally") -> "Tally":
        return Tally(self.total + other.total, self.attended + other.attended)

    @classmethod
    def of(cls, record: PeriodRecord) -> "Tally":
        return cls(record.total, record.attended)

    @classmethod
    def of_records(cls, records: Iterable[PeriodRecord]) -> "Tally":
        tally = cls()
        for record in records:
            tally = tally + cls.of(record)
        return tally

    def summary(self) -> AttendanceSummary:
        return AttendanceSummary(self.total, self.attended, attendance_percentage(self.attended, self.total))


@dataclass(frozen=True)
class PeriodBucket:
    """One row of a monthly/weekly breakdown or trend."""

    label: str
    summary: AttendanceSummary

    def to_dict(self) -> dict:
        return {"label": self.label, **self.summary.to_dict()}


@dataclass(frozen=True)
class ClassSummary:
    subject_id: int
    per_student: Dict[int, AttendanceSummary]
    total: AttendanceSummary


@dataclass(frozen=True)
class StudentStanding:
    student_id: int
    summary: AttendanceSummary
    standing: Standing


@dataclass(frozen=True)
class ClassReport:
    subject_id: int
    rows: Tuple[StudentStanding, ...]
    total_sessions: int
    overall_percentage: int

    @property
    def total_students(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class SubjectStats:
    subject_id: int
    sessions: int
    total_classes: int
    present_count: int
    absent_count: int
    overall_percentage: int


@dataclass(frozen=True)
class DaySummary:
    subject_id: int
    attend_date: date
    total_students: int
    present_count: int
    absent_count: int
    percentage: int


@dataclass(frozen=True)
class SubjectLine:
    subject_id: int
    code: str
    name: str
    summary: AttendanceSummary
    standing: Standing


@dataclass(frozen=True)
class StudentReport:
    student_id: int
    subjects: Tuple[SubjectLine, ...]
    overview: AttendanceSummary
    trend: Tuple[PeriodBucket, ...]


@dataclass(frozen=True)
class MarkResult:
    subject_id: int
    attend_date: date
    period_numbers: Tuple[int, ...]
    time_range: str
    present_count: int
    absent_count: int
    record_ids: Tuple[int, ...] = ()
    notifications: Optional[Future] = field(default=None, compare=False)

    @property
    def total_students(self) -> int:
        return self.present_count + self.absent_count

    @property
    def class_percentage(self) -> int:
        return attendance_percentage(self.present_count, self.total_students)

    def to_dict(self) -> dict:
        return {
            "subject_id": self.subject_id,
            "date": self.attend_date.isoformat(),
            "periods": list(self.period_numbers),
            "time": self.time_range,
            "present_count": self.present_count,
            "absent_count": self.absent_count,
            "total_students": self.total_students,
            "class_attendance": self.class_percentage,
        }


@dataclass(frozen=True)
class EditResult(MarkResult):
    pass


@dataclass(frozen=True)
class RosterEntry:
    student_id: int
    roll_number: str
    marked_periods: FrozenSet[int] = frozenset()

    def to_dict(self) -> dict:
        return {
            "student_id": self.student_id,
            "roll_number": self.roll_number,
            "marked_periods": sorted(self.marked_periods),
        }


def periods_time_range(slots: List[PeriodSlot]) -> str:
    ordered = sorted(slots, key=lambda s: s.period_number)
    return f"{ordered[0].start_time} - {ordered[-1].end_time}" if ordered else ""
