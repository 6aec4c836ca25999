from __future__ import annotations

import pytest

from src.college_attendance.college_attendance.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from src.college_attendance.college_attendance.students.model import NewStudent, year_for_semester
from src.college_attendance.college_attendance.users.principal import Principal


@pytest.mark.parametrize(
    "semester, year",
    [(1, "1st Year"), (2, "1st Year"), (3, "2nd Year"), (5, "3rd Year"), (6, "3rd Year"), (7, "4th Year"), (8, "4th Year")],
)
def test_year_follows_semester(semester, year):
    assert year_for_semester(semester) == year


def test_create_normalizes_roll_and_branch(container, admin, students_repo):
    student_id = container.student_service.create(
        actor=admin, student=NewStudent(roll_number=" 21cse010 ", branch="cse", semester="3")
    )

    student = students_repo.get_by_id(student_id)
    assert (student.roll_number, student.branch, student.semester) == ("21CSE010", "CSE", 3)
    assert student.year == "2nd Year"
    assert student.device_token is None


def test_create_rejects_duplicates_and_bad_values(container, admin, teacher):
    with pytest.raises(ValidationError):
        container.student_service.create(actor=admin, student=NewStudent("21CSE001", "CSE", 5))
    with pytest.raises(ValidationError):
        container.student_service.create(actor=admin, student=NewStudent("21XYZ001", "XYZ", 5))
    with pytest.raises(ValidationError):
        container.student_service.create(actor=admin, student=NewStudent("21CSE099", "CSE", 9))
    with pytest.raises(AuthorizationError):
        container.student_service.create(actor=teacher, student=NewStudent("21CSE099", "CSE", 5))


def test_bulk_create_reports_row_errors(container, admin):
    result = container.student_service.bulk_create(
        actor=admin,
        rows=[
            {"roll_number": "21CSE020", "branch": "CSE", "semester": 5},
            {"roll_number": "21CSE001", "branch": "CSE", "semester": 5},
            {"roll_number": "", "branch": "CSE", "semester": 5},
            {"roll_number": "21ECE001", "branch": "ECE", "semester": 1},
        ],
    )

    assert (result.created, result.failed) == (2, 2)
    assert [e.key for e in result.errors] == ["21CSE001", "?"]


def test_update_semester_changes_year(container, admin):
    student = container.student_service.update(actor=admin, student_id=1, semester=7)
    assert student.year == "4th Year"
    assert student.roll_number == "21CSE001"


def test_update_rejects_taken_roll(container, admin):
    with pytest.raises(ValidationError):
        container.student_service.update(actor=admin, student_id=1, roll_number="21CSE002")


def test_promote_moves_whole_class(container, admin, students_repo):
    moved = container.student_service.promote(actor=admin, branch="CSE", from_semester=5, to_semester=6)

    assert moved == 5
    assert {s.semester for s in students_repo.by_id.values()} == {6}
    with pytest.raises(ValidationError):
        container.student_service.promote(actor=admin, branch="CSE", from_semester=6, to_semester=6)


def test_deactivate_excludes_from_class(container, admin, students_repo):
    container.student_service.deactivate(actor=admin, student_id=2)
    assert [s.student_id for s in students_repo.find_eligible("CSE", 5)] == [1, 3, 4, 5]


def test_student_manages_own_settings(container):
    me = Principal.student(1)

    settings = container.student_service.update_notification_settings(actor=me, student_id=1, notifications=False)

    assert settings.notifications is False
    assert container.student_service.get(1).opted_in is False
    with pytest.raises(AuthorizationError):
        container.student_service.update_notification_settings(actor=me, student_id=2, notifications=False)


def test_device_registration(container):
    me = Principal.student(3)

    container.student_service.clear_device(actor=me, student_id=3)
    assert container.student_service.get(3).has_target is False

    container.student_service.register_device(actor=me, student_id=3, token="new-token")
    assert container.student_service.get(3).device_token == "new-token"

    with pytest.raises(ValidationError):
        container.student_service.register_device(actor=me, student_id=3, token="  ")


def test_unknown_student(container):
    with pytest.raises(NotFoundError):
        container.student_service.get(404)
