from __future__ import annotations

from datetime import datetime

import pytest

from src.college_attendance.college_attendance.common.datetime_utils import FixedClock
from src.college_attendance.college_attendance.container import wire
from src.college_attendance.college_attendance.core.enums import Weekday
from src.college_attendance.college_attendance.schedules.model import Schedule
from src.college_attendance.college_attendance.students.model import Student
from src.college_attendance.college_attendance.subjects.model import Subject
from src.college_attendance.college_attendance.teachers.model import Assignment, Teacher
from src.college_attendance.college_attendance.users.principal import Principal

from tests.fakes import (
    InMemoryAttendance,
    InMemorySchedules,
    InMemoryStudents,
    InMemorySubjects,
    InMemoryTeachers,
    RecordingNotifier,
)

TEACHER_ID = 10
OTHER_TEACHER_ID = 11
PENDING_TEACHER_ID = 12
SCHEDULE_ID = 100
SUBJECT_ID = 1


@pytest.fixture
def fixed_now() -> datetime:
    # Friday afternoon
    return datetime(2025, 1, 10, 16, 0)


@pytest.fixture
def clock(fixed_now):
    return FixedClock(fixed_now)


@pytest.fixture
def students_repo():
    return InMemoryStudents(
        Student(i, f"21CSE00{i}", "CSE", 5, device_token=f"tok-{i}") for i in range(1, 6)
    )


@pytest.fixture
def subjects_repo():
    return InMemorySubjects(
        [
            Subject(1, "CS501", "Compiler Design", "CSE", 5),
            Subject(2, "CS502", "Computer Networks", "CSE", 5),
        ]
    )


@pytest.fixture
def teachers_repo():
    return InMemoryTeachers(
        [
            Teacher(
                TEACHER_ID,
                "R. Lakshmi",
                "CSE",
                is_approved=True,
                assignments=(Assignment(1, TEACHER_ID, SUBJECT_ID, "CSE", 5),),
            ),
            Teacher(OTHER_TEACHER_ID, "K. Varma", "CSE", is_approved=True),
            Teacher(PENDING_TEACHER_ID, "New Joinee", "CSE", is_approved=False),
        ]
    )


@pytest.fixture
def schedules_repo():
    return InMemorySchedules(
        [
            Schedule(
                SCHEDULE_ID,
                TEACHER_ID,
                SUBJECT_ID,
                "CSE",
                5,
                (Weekday.MONDAY, Weekday.WEDNESDAY, Weekday.FRIDAY),
                "Period 1",
                "09:00",
                "09:50",
            )
        ]
    )


@pytest.fixture
def attendance_repo():
    return InMemoryAttendance()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def make_container(students_repo, subjects_repo, teachers_repo, schedules_repo, attendance_repo, clock):
    built = []

    def _make(notifier=None, **overrides):
        container = wire(
            students_repo=students_repo,
            subjects_repo=subjects_repo,
            teachers_repo=teachers_repo,
            schedules_repo=schedules_repo,
            attendance_repo=attendance_repo,
            notifier=notifier or RecordingNotifier(),
            clock=clock,
            **overrides,
        )
        built.append(container)
        return container

    yield _make

    for container in built:
        container.close()


@pytest.fixture
def container(make_container, notifier):
    return make_container(notifier)


@pytest.fixture
def admin() -> Principal:
    return Principal.admin(1)


@pytest.fixture
def teacher() -> Principal:
    return Principal.teacher(TEACHER_ID)
