from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Weekday
from .model import NewSchedule, Schedule


class ScheduleRepository(Protocol):
    def get_by_id(self, schedule_id: int) -> Optional[Schedule]:
        raise NotImplementedError

    def list_active_for_teacher(self, teacher_id: int) -> Sequence[Schedule]:
        raise NotImplementedError

    def list_for_class(self, branch: str, semester: int) -> Sequence[Schedule]:
        raise NotImplementedError

    def list_for_day(self, day: Weekday) -> Sequence[Schedule]:
        """Active schedules running on `day`, ordered by start time."""

        raise NotImplementedError

    def create(self, schedule: NewSchedule) -> int:
        raise NotImplementedError

    def update(self, schedule: Schedule) -> bool:
        raise NotImplementedError

    def set_active(self, schedule_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError
