from __future__ import annotations

from typing import Iterable, Optional

from ..common.datetime_utils import parse_hhmm
from ..common.validators import require_enum
from ..core.enums import Weekday
from ..core.exceptions import ValidationError
from ..subjects.repository import SubjectRepository
from .model import ConflictCheck, ScheduleConflict
from .repository import ScheduleRepository


def intervals_overlap(s1: int, e1: int, s2: int, e2: int) -> bool:
    """Half-open [s, e) overlap. Blocks that only touch (e1 == s2) do not overlap."""
    return s1 < e2 and s2 < e1


def normalize_days(days: Iterable) -> tuple[Weekday, ...]:
    if isinstance(days, (str, Weekday)):
        days = [days]
    result = []
    for d in days or []:
        day = require_enum(d, Weekday, "Day")
        if day not in result:
            result.append(day)
    if not result:
        raise ValidationError("At least one day is required")
    return tuple(result)


class ScheduleConflictDetector:
    """Checks a proposed weekly block against a teacher's active blocks."""

    def __init__(self, schedules: ScheduleRepository, subjects: SubjectRepository):
        self._schedules = schedules
        self._subjects = subjects

    def has_conflict(
        self,
        teacher_id: int,
        proposed_days: Iterable,
        start_time: str,
        end_time: str,
        exclude_schedule_id: Optional[int] = None,
    ) -> ConflictCheck:
        days = set(normalize_days(proposed_days))
        start = parse_hhmm(start_time)
        end = parse_hhmm(end_time)
        if start >= end:
            raise ValidationError("Start time must be before end time")

        candidates = [
            s
            for s in self._schedules.list_active_for_teacher(int(teacher_id))
            if s.is_active
            and s.teacher_id == int(teacher_id)
            and (exclude_schedule_id is None or s.schedule_id != int(exclude_schedule_id))
            and days.intersection(s.days)
        ]
        colliding = [s for s in candidates if intervals_overlap(start, end, s.start_minutes, s.end_minutes)]
        if not colliding:
            return ConflictCheck()

        names = {sub.subject_id: sub.name for sub in self._subjects.get_many({s.subject_id for s in colliding})}
        return ConflictCheck(
            collisions=tuple(
                ScheduleConflict(
                    schedule_id=s.schedule_id,
                    subject_name=names.get(s.subject_id, f"Subject {s.subject_id}"),
                    days=s.days,
                    time=s.time_range,
                )
                for s in colliding
            )
        )
