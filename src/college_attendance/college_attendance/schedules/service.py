from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from ..common.datetime_utils import Clock, format_hhmm, parse_hhmm, weekday_of
from ..common.validators import require_branch, require_non_empty, require_semester
from ..core.enums import TEACHING_DAYS, Role, ScheduleStatus, Weekday
from ..core.exceptions import NotFoundError, ValidationError
from ..subjects.repository import SubjectRepository
from ..teachers.repository import TeacherRepository
from ..users.principal import Principal, require_role
from .conflicts import ScheduleConflictDetector, normalize_days
from .model import NewSchedule, Schedule, TodaySlot
from .repository import ScheduleRepository

logger = logging.getLogger(__name__)


def slot_status(schedule: Schedule, minute_of_day: int) -> ScheduleStatus:
    if schedule.start_minutes <= minute_of_day <= schedule.end_minutes:
        return ScheduleStatus.ACTIVE
    if minute_of_day > schedule.end_minutes:
        return ScheduleStatus.COMPLETED
    return ScheduleStatus.UPCOMING


class ScheduleService:
    def __init__(
        self,
        schedules: ScheduleRepository,
        subjects: SubjectRepository,
        teachers: TeacherRepository,
        *,
        detector: ScheduleConflictDetector,
        clock: Optional[Clock] = None,
    ):
        self._schedules = schedules
        self._subjects = subjects
        self._teachers = teachers
        self._detector = detector
        self._clock = clock or Clock()

    def get(self, schedule_id: int) -> Schedule:
        schedule = self._schedules.get_by_id(int(schedule_id))
        if not schedule:
            raise NotFoundError("Schedule not found")
        return schedule

    @staticmethod
    def _clean_days(days: Iterable) -> tuple:
        cleaned = normalize_days(days)
        for day in cleaned:
            if day not in TEACHING_DAYS:
                raise ValidationError(f"Classes cannot be scheduled on {day.value}")
        return cleaned

    @staticmethod
    def _clean_times(start_time: str, end_time: str) -> tuple:
        start = parse_hhmm(start_time)
        end = parse_hhmm(end_time)
        if start >= end:
            raise ValidationError("Start time must be before end time")
        return format_hhmm(start), format_hhmm(end)

    def _reject_conflicts(self, teacher_id: int, days, start: str, end: str, exclude: Optional[int] = None) -> None:
        check = self._detector.has_conflict(teacher_id, days, start, end, exclude_schedule_id=exclude)
        if check.conflict:
            details = "; ".join(f"{c.subject_name} ({c.time})" for c in check.collisions)
            raise ValidationError(f"Schedule conflicts with existing classes: {details}")

    def create(
        self,
        *,
        actor: Principal,
        teacher_id: int,
        subject_id: int,
        branch: str,
        semester: int,
        days: Iterable,
        period: str,
        start_time: str,
        end_time: str,
    ) -> int:
        require_role(actor, Role.ADMIN)

        branch = require_branch(branch)
        semester = require_semester(semester)
        period = require_non_empty(period, "Period")
        days = self._clean_days(days)
        start, end = self._clean_times(start_time, end_time)

        teacher = self._teachers.get_by_id(int(teacher_id))
        if not teacher:
            raise NotFoundError("Teacher not found")
        subject = self._subjects.get_by_id(int(subject_id))
        if not subject:
            raise NotFoundError("Subject not found")

        self._reject_conflicts(teacher.teacher_id, days, start, end)

        schedule_id = self._schedules.create(
            NewSchedule(
                teacher_id=teacher.teacher_id,
                subject_id=subject.subject_id,
                branch=branch,
                semester=semester,
                days=days,
                period=period,
                start_time=start,
                end_time=end,
            )
        )

        if not teacher.teaches(subject.subject_id):
            self._teachers.add_assignment(
                teacher_id=teacher.teacher_id,
                subject_id=subject.subject_id,
                branch=branch,
                semester=semester,
                assigned_on=self._clock.today(),
            )
            logger.info("Assigned %s to teacher %d with schedule %d", subject.code, teacher.teacher_id, schedule_id)

        return schedule_id

    def update(
        self,
        *,
        actor: Principal,
        schedule_id: int,
        days: Optional[Iterable] = None,
        period: Optional[str] = None,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
    ) -> Schedule:
        require_role(actor, Role.ADMIN)
        current = self.get(schedule_id)

        new_days = self._clean_days(days) if days is not None else current.days
        start, end = self._clean_times(start_time or current.start_time, end_time or current.end_time)
        self._reject_conflicts(current.teacher_id, new_days, start, end, exclude=current.schedule_id)

        updated = replace(
            current,
            days=new_days,
            period=require_non_empty(period, "Period") if period is not None else current.period,
            start_time=start,
            end_time=end,
        )
        self._schedules.update(updated)
        return updated

    def deactivate(self, *, actor: Principal, schedule_id: int) -> None:
        require_role(actor, Role.ADMIN)
        self.get(schedule_id)
        self._schedules.set_active(int(schedule_id), is_active=False)

    def weekly_for_teacher(self, teacher_id: int) -> Dict[Weekday, List[Schedule]]:
        week: Dict[Weekday, List[Schedule]] = {day: [] for day in TEACHING_DAYS}
        for schedule in self._schedules.list_active_for_teacher(int(teacher_id)):
            for day in schedule.days:
                if day in week:
                    week[day].append(schedule)
        for blocks in week.values():
            blocks.sort(key=lambda s: s.start_minutes)
        return week

    def for_class(self, branch: str, semester: int) -> Sequence[Schedule]:
        return self._schedules.list_for_class(require_branch(branch), require_semester(semester))

    def today(self, now: Optional[datetime] = None) -> List[TodaySlot]:
        now = now or self._clock.now()
        minute = now.hour * 60 + now.minute
        blocks = sorted(self._schedules.list_for_day(weekday_of(now.date())), key=lambda s: s.start_minutes)
        return [TodaySlot(schedule=s, status=slot_status(s, minute)) for s in blocks]
