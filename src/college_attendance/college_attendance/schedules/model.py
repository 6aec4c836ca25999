from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

from ..common.datetime_utils import parse_hhmm
from ..core.enums import ScheduleStatus, Weekday


@dataclass(frozen=True)
class Schedule:
    """A recurring weekly time block. Times are "HH:MM" strings."""

    schedule_id: int
    teacher_id: int
    subject_id: int
    branch: str
    semester: int
    days: Tuple[Weekday, ...]
    period: str
    start_time: str
    end_time: str
    is_active: bool = True

    @property
    def start_minutes(self) -> int:
        return parse_hhmm(self.start_time)

    @property
    def end_minutes(self) -> int:
        return parse_hhmm(self.end_time)

    @property
    def time_range(self) -> str:
        return f"{self.start_time} - {self.end_time}"


@dataclass(frozen=True)
class NewSchedule:
    teacher_id: int
    subject_id: int
    branch: str
    semester: int
    days: Tuple[Weekday, ...]
    period: str
    start_time: str
    end_time: str


@dataclass(frozen=True)
class ScheduleConflict:
    schedule_id: int
    subject_name: str
    days: Tuple[Weekday, ...]
    time: str

    def to_dict(self) -> dict:
        return {
            "schedule_id": self.schedule_id,
            "subject": self.subject_name,
            "days": [d.value for d in self.days],
            "time": self.time,
        }


@dataclass(frozen=True)
class ConflictCheck:
    collisions: Tuple[ScheduleConflict, ...] = field(default_factory=tuple)

    @property
    def conflict(self) -> bool:
        return len(self.collisions) > 0

    def to_dict(self) -> dict:
        return {"has_conflict": self.conflict, "conflicts": [c.to_dict() for c in self.collisions]}


@dataclass(frozen=True)
class TodaySlot:
    schedule: Schedule
    status: ScheduleStatus
