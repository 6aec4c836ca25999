from __future__ import annotations

from datetime import date
from typing import Iterable, List, Optional, Protocol, Sequence

from .model import PeriodRecord


class AttendanceRepository(Protocol):
    """Storage for PeriodRecords.

    Implementations guarantee that (student, subject, date, period number) is stored at most once.
    """

    def list_for_student_subject(self, student_id: int, subject_id: int) -> Sequence[PeriodRecord]:
        raise NotImplementedError

    def list_for_student(
        self,
        student_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[PeriodRecord]:
        """All subjects, optionally limited to [start, end] inclusive."""

        raise NotImplementedError

    def list_for_subject(
        self,
        subject_id: int,
        *,
        student_ids: Optional[Iterable[int]] = None,
        attend_date: Optional[date] = None,
    ) -> Sequence[PeriodRecord]:
        raise NotImplementedError

    def find_for_students_on_date(
        self, student_ids: Iterable[int], subject_id: int, attend_date: date
    ) -> Sequence[PeriodRecord]:
        raise NotImplementedError

    def create_many(self, records: Sequence[PeriodRecord]) -> List[int]:
        """Insert all records or none. Raises AlreadyMarkedError on a duplicate period."""

        raise NotImplementedError

    def save_periods(self, records: Sequence[PeriodRecord]) -> int:
        """Persist period statuses and the marked-by/at stamp of existing records, all or none."""

        raise NotImplementedError
