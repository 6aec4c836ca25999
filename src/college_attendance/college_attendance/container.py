from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .alerts.scanner import ThresholdAlertScanner
from .attendance.aggregator import AttendanceAggregator
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceMarkingService
from .common.datetime_utils import Clock
from .common.validators import require_threshold
from .core.constants import (
    DEFAULT_ATTENDANCE_THRESHOLD,
    DEFAULT_DISPATCH_WORKERS,
    DEFAULT_PUSH_TIMEOUT_SECONDS,
    DEFAULT_TIMEZONE,
    EXCELLENT_ATTENDANCE,
)
from .database.connection import DBConfig, DatabaseConnection
from .notifications.dispatcher import NotificationDispatcher
from .notifications.notifier import HttpPushNotifier, LoggingPushNotifier, PushNotifier
from .schedules.conflicts import ScheduleConflictDetector
from .schedules.mysql_schedule_repository import MySQLScheduleRepository
from .schedules.repository import ScheduleRepository
from .schedules.service import ScheduleService
from .students.mysql_student_repository import MySQLStudentRepository
from .students.repository import StudentRepository
from .students.service import StudentService
from .subjects.mysql_subject_repository import MySQLSubjectRepository
from .subjects.repository import SubjectRepository
from .subjects.service import SubjectService
from .teachers.mysql_teacher_repository import MySQLTeacherRepository
from .teachers.repository import TeacherRepository
from .teachers.service import TeacherService


@dataclass(frozen=True)
class Container:
    clock: Clock

    students_repo: StudentRepository
    subjects_repo: SubjectRepository
    teachers_repo: TeacherRepository
    schedules_repo: ScheduleRepository
    attendance_repo: AttendanceRepository

    notifier: PushNotifier
    dispatcher: NotificationDispatcher
    aggregator: AttendanceAggregator
    conflict_detector: ScheduleConflictDetector

    student_service: StudentService
    subject_service: SubjectService
    teacher_service: TeacherService
    schedule_service: ScheduleService
    marking_service: AttendanceMarkingService
    alert_scanner: ThresholdAlertScanner

    conn: Optional[DatabaseConnection] = None

    def close(self) -> None:
        self.marking_service.close()
        self.dispatcher.close()


def wire(
    *,
    students_repo: StudentRepository,
    subjects_repo: SubjectRepository,
    teachers_repo: TeacherRepository,
    schedules_repo: ScheduleRepository,
    attendance_repo: AttendanceRepository,
    notifier: PushNotifier,
    clock: Optional[Clock] = None,
    threshold: int = DEFAULT_ATTENDANCE_THRESHOLD,
    excellent: int = EXCELLENT_ATTENDANCE,
    push_timeout: float = DEFAULT_PUSH_TIMEOUT_SECONDS,
    dispatch_workers: int = DEFAULT_DISPATCH_WORKERS,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    threshold = require_threshold(threshold)
    clock = clock or Clock()

    dispatcher = NotificationDispatcher(
        notifier,
        threshold=threshold,
        excellent=excellent,
        timeout=push_timeout,
        workers=dispatch_workers,
    )
    aggregator = AttendanceAggregator(attendance_repo, threshold=threshold, excellent=excellent, clock=clock)
    conflict_detector = ScheduleConflictDetector(schedules_repo, subjects_repo)

    student_service = StudentService(students_repo)
    subject_service = SubjectService(subjects_repo)
    teacher_service = TeacherService(teachers_repo, subjects_repo, clock=clock)
    schedule_service = ScheduleService(
        schedules_repo,
        subjects_repo,
        teachers_repo,
        detector=conflict_detector,
        clock=clock,
    )
    marking_service = AttendanceMarkingService(
        attendance_repo,
        schedules_repo,
        subjects_repo,
        students_repo,
        teachers_repo,
        aggregator=aggregator,
        dispatcher=dispatcher,
        clock=clock,
    )
    alert_scanner = ThresholdAlertScanner(
        students_repo,
        subjects_repo,
        aggregator,
        dispatcher,
        threshold=threshold,
    )

    return Container(
        clock=clock,
        students_repo=students_repo,
        subjects_repo=subjects_repo,
        teachers_repo=teachers_repo,
        schedules_repo=schedules_repo,
        attendance_repo=attendance_repo,
        notifier=notifier,
        dispatcher=dispatcher,
        aggregator=aggregator,
        conflict_detector=conflict_detector,
        student_service=student_service,
        subject_service=subject_service,
        teacher_service=teacher_service,
        schedule_service=schedule_service,
        marking_service=marking_service,
        alert_scanner=alert_scanner,
        conn=conn,
    )


def build_notifier(settings=None) -> PushNotifier:
    url = getattr(settings, "PUSH_GATEWAY_URL", None)
    if not url:
        return LoggingPushNotifier()
    return HttpPushNotifier(
        url,
        getattr(settings, "PUSH_GATEWAY_KEY", None),
        timeout=float(getattr(settings, "PUSH_TIMEOUT_SECONDS", DEFAULT_PUSH_TIMEOUT_SECONDS)),
    )


def build_container(*, db_config: dict, settings=None, notifier: Optional[PushNotifier] = None) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    return wire(
        students_repo=MySQLStudentRepository(conn),
        subjects_repo=MySQLSubjectRepository(conn),
        teachers_repo=MySQLTeacherRepository(conn),
        schedules_repo=MySQLScheduleRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        notifier=notifier or build_notifier(settings),
        clock=Clock(getattr(settings, "TIMEZONE", DEFAULT_TIMEZONE)),
        threshold=int(getattr(settings, "ATTENDANCE_THRESHOLD", DEFAULT_ATTENDANCE_THRESHOLD)),
        excellent=int(getattr(settings, "EXCELLENT_THRESHOLD", EXCELLENT_ATTENDANCE)),
        push_timeout=float(getattr(settings, "PUSH_TIMEOUT_SECONDS", DEFAULT_PUSH_TIMEOUT_SECONDS)),
        dispatch_workers=int(getattr(settings, "DISPATCH_WORKERS", DEFAULT_DISPATCH_WORKERS)),
        conn=conn,
    )
