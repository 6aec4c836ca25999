from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..common.datetime_utils import Clock, format_hhmm, parse_hhmm, parse_iso_date
from ..common.validators import require_enum, require_positive
from ..core.enums import PeriodStatus, Role
from ..core.exceptions import AlreadyMarkedError, AuthorizationError, NothingToEditError, NotFoundError, ValidationError
from ..notifications.dispatcher import NotificationDispatcher
from ..notifications.model import DispatchReport, DispatchResult
from ..schedules.model import Schedule
from ..schedules.repository import ScheduleRepository
from ..students.model import Student
from ..students.repository import StudentRepository
from ..subjects.model import Subject
from ..subjects.repository import SubjectRepository
from ..teachers.repository import TeacherRepository
from ..users.principal import Principal, require_role
from .aggregator import AttendanceAggregator
from .locks import KeyedLock
from .model import EditResult, MarkResult, PeriodEntry, PeriodRecord, PeriodSlot, RosterEntry, StudentStatus, periods_time_range
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def parse_slots(raw: Iterable[Mapping]) -> List[PeriodSlot]:
    """Build PeriodSlots from request rows ({"period_number", "start_time", "end_time"})."""
    if not isinstance(raw, list):
        raise ValidationError("Periods must be a list")
    slots = []
    for row in raw:
        if not isinstance(row, Mapping):
            raise ValidationError("Each period must be an object")
        slots.append(
            PeriodSlot(
                period_number=row.get("period_number"),
                start_time=row.get("start_time") or "",
                end_time=row.get("end_time") or "",
            )
        )
    return slots


def parse_statuses(raw: Iterable[Mapping]) -> List[StudentStatus]:
    if not isinstance(raw, list):
        raise ValidationError("Attendance must be a list")
    statuses = []
    for row in raw:
        if not isinstance(row, Mapping):
            raise ValidationError("Each attendance entry must be an object")
        statuses.append(StudentStatus(student_id=row.get("student_id"), status=row.get("status")))
    return statuses


def _clean_slots(slots: Sequence[PeriodSlot]) -> List[PeriodSlot]:
    if not slots:
        raise ValidationError("At least one period is required")
    cleaned: Dict[int, PeriodSlot] = {}
    for slot in slots:
        number = require_positive(slot.period_number, "Period number")
        if number in cleaned:
            raise ValidationError(f"Period {number} is listed twice")
        start = parse_hhmm(slot.start_time)
        end = parse_hhmm(slot.end_time)
        if start >= end:
            raise ValidationError(f"Period {number} must start before it ends")
        cleaned[number] = PeriodSlot(number, format_hhmm(start), format_hhmm(end))
    return [cleaned[n] for n in sorted(cleaned)]


def _clean_statuses(statuses: Sequence[StudentStatus]) -> List[StudentStatus]:
    if not statuses:
        raise ValidationError("At least one student is required")
    cleaned: Dict[int, StudentStatus] = {}
    for entry in statuses:
        student_id = require_positive(entry.student_id, "Student id")
        if student_id in cleaned:
            raise ValidationError(f"Student {student_id} is listed twice")
        cleaned[student_id] = StudentStatus(student_id, require_enum(entry.status, PeriodStatus, "Status"))
    return list(cleaned.values())


class AttendanceMarkingService:
    """Records period attendance for a class and triggers per-student notifications.

    A batch is written completely or not at all. The existence check and the write for one
    (subject, date) happen under a single lock, and storage rejects duplicate periods as well.
    """

    def __init__(
        self,
        records: AttendanceRepository,
        schedules: ScheduleRepository,
        subjects: SubjectRepository,
        students: StudentRepository,
        teachers: TeacherRepository,
        *,
        aggregator: AttendanceAggregator,
        dispatcher: NotificationDispatcher,
        clock: Optional[Clock] = None,
        locks: Optional[KeyedLock] = None,
        background: Optional[ThreadPoolExecutor] = None,
    ):
        self._records = records
        self._schedules = schedules
        self._subjects = subjects
        self._students = students
        self._teachers = teachers
        self._aggregator = aggregator
        self._dispatcher = dispatcher
        self._clock = clock or Clock()
        self._locks = locks or KeyedLock()
        self._background = background or ThreadPoolExecutor(max_workers=2, thread_name_prefix="notify")

    def _resolve(self, actor: Principal, schedule_id: int, *, allow_admin: bool = False) -> Tuple[Schedule, Subject]:
        roles = (Role.TEACHER, Role.ADMIN) if allow_admin else (Role.TEACHER,)
        require_role(actor, *roles)

        schedule = self._schedules.get_by_id(int(schedule_id))
        if not schedule:
            raise NotFoundError("Schedule not found")

        if actor.is_teacher:
            if schedule.teacher_id != actor.principal_id:
                raise AuthorizationError("Not authorized to mark attendance for this class")
            teacher = self._teachers.get_by_id(actor.principal_id)
            if not teacher:
                raise NotFoundError("Teacher not found")
            if not teacher.can_write:
                raise AuthorizationError("Teacher account is not approved or inactive")

        subject = self._subjects.get_by_id(schedule.subject_id)
        if not subject:
            raise NotFoundError("Subject not found")
        return schedule, subject

    def _clean_date(self, value) -> date:
        day = value if isinstance(value, date) else parse_iso_date(value)
        if day > self._clock.today():
            raise ValidationError("Cannot mark attendance for a future date")
        return day

    def _load_students(self, statuses: Sequence[StudentStatus], schedule: Schedule) -> Dict[int, Student]:
        ids = [s.student_id for s in statuses]
        found = {s.student_id: s for s in self._students.get_many(ids)}
        missing = [i for i in ids if i not in found]
        if missing:
            raise NotFoundError(f"Student not found: {', '.join(str(i) for i in missing)}")
        for student in found.values():
            if not student.is_active:
                raise ValidationError(f"Student {student.roll_number} is no longer active")
            if student.branch != schedule.branch or student.semester != schedule.semester:
                raise ValidationError(
                    f"Student {student.roll_number} is not in {schedule.branch} semester {schedule.semester}"
                )
        return found

    def mark(
        self,
        *,
        actor: Principal,
        schedule_id: int,
        attend_date,
        periods: Sequence[PeriodSlot],
        statuses: Sequence[StudentStatus],
    ) -> MarkResult:
        schedule, subject = self._resolve(actor, schedule_id)
        slots = _clean_slots(periods)
        entries = _clean_statuses(statuses)
        day = self._clean_date(attend_date)
        students = self._load_students(entries, schedule)

        numbers = frozenset(s.period_number for s in slots)
        now = self._clock.now()

        with self._locks.hold((subject.subject_id, day)):
            existing = self._records.find_for_students_on_date(students.keys(), subject.subject_id, day)
            conflicts = [
                (r.student_id, tuple(sorted(r.overlaps(numbers)))) for r in existing if r.overlaps(numbers)
            ]
            if conflicts:
                raise AlreadyMarkedError(
                    "Attendance already marked for one or more of the selected periods on this date",
                    conflicts,
                )

            record_ids = self._records.create_many(
                [
                    PeriodRecord(
                        record_id=None,
                        student_id=e.student_id,
                        subject_id=subject.subject_id,
                        teacher_id=schedule.teacher_id,
                        attend_date=day,
                        periods=tuple(PeriodEntry.from_slot(s, e.status) for s in slots),
                        marked_by=actor.principal_id,
                        marked_at=now,
                    )
                    for e in entries
                ]
            )

        present = sum(1 for e in entries if e.status == PeriodStatus.PRESENT)
        logger.info(
            "Marked %s on %s periods %s: %d present, %d absent",
            subject.code,
            day.isoformat(),
            sorted(numbers),
            present,
            len(entries) - present,
        )

        return MarkResult(
            subject_id=subject.subject_id,
            attend_date=day,
            period_numbers=tuple(sorted(numbers)),
            time_range=periods_time_range(slots),
            present_count=present,
            absent_count=len(entries) - present,
            record_ids=tuple(record_ids),
            notifications=self._notify_later(students, subject, entries, updated=False),
        )

    def edit(
        self,
        *,
        actor: Principal,
        schedule_id: int,
        attend_date,
        periods: Sequence[PeriodSlot],
        statuses: Sequence[StudentStatus],
    ) -> EditResult:
        schedule, subject = self._resolve(actor, schedule_id)
        slots = _clean_slots(periods)
        entries = _clean_statuses(statuses)
        day = self._clean_date(attend_date)
        by_student = {e.student_id: e for e in entries}

        numbers = frozenset(s.period_number for s in slots)
        now = self._clock.now()

        with self._locks.hold((subject.subject_id, day)):
            existing = self._records.find_for_students_on_date(by_student.keys(), subject.subject_id, day)
            matching = [r for r in existing if r.student_id in by_student and r.overlaps(numbers)]
            if not matching:
                raise NothingToEditError("No attendance records found to edit")

            updated = [
                r.with_statuses(numbers, by_student[r.student_id].status, marked_by=actor.principal_id, marked_at=now)
                for r in matching
            ]
            self._records.save_periods(updated)

        touched = [by_student[r.student_id] for r in updated]
        present = sum(1 for e in touched if e.status == PeriodStatus.PRESENT)
        logger.info(
            "Edited %s on %s periods %s: %d records",
            subject.code,
            day.isoformat(),
            sorted(numbers),
            len(updated),
        )

        students = {s.student_id: s for s in self._students.get_many([e.student_id for e in touched])}
        return EditResult(
            subject_id=subject.subject_id,
            attend_date=day,
            period_numbers=tuple(sorted(numbers)),
            time_range=periods_time_range(slots),
            present_count=present,
            absent_count=len(touched) - present,
            record_ids=tuple(r.record_id for r in updated),
            notifications=self._notify_later(students, subject, touched, updated=True),
        )

    def roster(self, *, actor: Principal, schedule_id: int, attend_date) -> List[RosterEntry]:
        """Eligible students for the schedule's class with the periods already marked on that date."""
        schedule, subject = self._resolve(actor, schedule_id, allow_admin=True)
        day = attend_date if isinstance(attend_date, date) else parse_iso_date(attend_date)

        students = self._students.find_eligible(schedule.branch, schedule.semester)
        marked: Dict[int, set] = {s.student_id: set() for s in students}
        for record in self._records.list_for_subject(
            subject.subject_id, student_ids=list(marked), attend_date=day
        ):
            marked.setdefault(record.student_id, set()).update(record.period_numbers)

        return [
            RosterEntry(s.student_id, s.roll_number, frozenset(marked.get(s.student_id, ())))
            for s in students
        ]

    def _notify_later(
        self,
        students: Mapping[int, Student],
        subject: Subject,
        entries: Sequence[StudentStatus],
        *,
        updated: bool,
    ) -> Future:
        return self._background.submit(self._notify, dict(students), subject, list(entries), updated)

    def _notify(
        self,
        students: Mapping[int, Student],
        subject: Subject,
        entries: Sequence[StudentStatus],
        updated: bool,
    ) -> DispatchReport:
        report = DispatchReport()
        for entry in entries:
            student = students.get(entry.student_id)
            if student is None:
                continue
            try:
                percentage = self._aggregator.summarize(student.student_id, subject.subject_id).percentage
                if updated:
                    result = self._dispatcher.notify_updated(student, subject, entry.status, percentage)
                else:
                    result = self._dispatcher.notify_marked(student, subject, entry.status, percentage)
            except Exception as e:
                logger.exception("Notification for %s failed", student.roll_number)
                result = DispatchResult.failed(student.student_id, str(e) or type(e).__name__)
            report.add(result)

        logger.info("%s notifications for %s: %s", "Update" if updated else "Marked", subject.code, report.to_dict())
        return report

    def close(self) -> None:
        self._background.shutdown(wait=True)
