from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional

from ..common.bulk import BulkError, BulkResult
from ..common.validators import require_branch, require_non_empty, require_semester
from ..core.enums import Role
from ..core.exceptions import DomainError, NotFoundError, ValidationError
from ..users.principal import Principal, require_role, require_self_or_admin
from .model import NewStudent, NotificationSettings, Student
from .repository import StudentRepository

logger = logging.getLogger(__name__)


class StudentService:
    """Use cases: admin-side student management and student-side preferences."""

    def __init__(self, students: StudentRepository):
        self._students = students

    def get(self, student_id: int) -> Student:
        student = self._students.get_by_id(int(student_id))
        if not student:
            raise NotFoundError("Student not found")
        return student

    @staticmethod
    def _clean(row: NewStudent) -> NewStudent:
        return NewStudent(
            roll_number=require_non_empty(row.roll_number, "Roll number").upper(),
            branch=require_branch(row.branch),
            semester=require_semester(row.semester),
            device_token=(row.device_token or "").strip() or None,
        )

    def create(self, *, actor: Principal, student: NewStudent) -> int:
        require_role(actor, Role.ADMIN)
        row = self._clean(student)
        if self._students.get_by_roll(row.roll_number):
            raise ValidationError(f"Student with roll number {row.roll_number} already exists")

        return self._students.create(
            roll_number=row.roll_number,
            branch=row.branch,
            semester=row.semester,
            device_token=row.device_token,
        )

    def bulk_create(self, *, actor: Principal, rows: Iterable[Mapping]) -> BulkResult:
        """Create many students; a bad row is reported and skipped, never aborts the batch."""
        require_role(actor, Role.ADMIN)

        result = BulkResult()
        for raw in rows:
            key = str(raw.get("roll_number") or "").strip().upper() or "?"
            try:
                new_id = self.create(
                    actor=actor,
                    student=NewStudent(
                        roll_number=raw.get("roll_number") or "",
                        branch=raw.get("branch") or "",
                        semester=raw.get("semester"),
                        device_token=raw.get("device_token"),
                    ),
                )
                result.created_ids.append(new_id)
            except DomainError as e:
                result.errors.append(BulkError(key=key, error=str(e)))

        logger.info("Bulk student import: %d created, %d failed", result.created, result.failed)
        return result

    def update(
        self,
        *,
        actor: Principal,
        student_id: int,
        roll_number: Optional[str] = None,
        branch: Optional[str] = None,
        semester: Optional[int] = None,
    ) -> Student:
        require_role(actor, Role.ADMIN)
        current = self.get(student_id)

        new_roll = require_non_empty(roll_number, "Roll number").upper() if roll_number else current.roll_number
        if new_roll != current.roll_number and self._students.get_by_roll(new_roll):
            raise ValidationError(f"Student with roll number {new_roll} already exists")

        new_branch = require_branch(branch) if branch else current.branch
        new_semester = require_semester(semester) if semester is not None else current.semester

        self._students.update(
            student_id=current.student_id,
            roll_number=new_roll,
            branch=new_branch,
            semester=new_semester,
        )
        return self.get(current.student_id)

    def deactivate(self, *, actor: Principal, student_id: int) -> None:
        """Soft delete; attendance history keeps referencing the row."""
        require_role(actor, Role.ADMIN)
        self.get(student_id)
        self._students.set_active(int(student_id), is_active=False)

    def promote(self, *, actor: Principal, branch: str, from_semester: int, to_semester: int) -> int:
        require_role(actor, Role.ADMIN)
        branch = require_branch(branch)
        from_semester = require_semester(from_semester)
        to_semester = require_semester(to_semester)
        if from_semester == to_semester:
            raise ValidationError("Target semester must differ from the current semester")

        count = self._students.promote(branch=branch, from_semester=from_semester, to_semester=to_semester)
        logger.info("Promoted %d %s students from semester %d to %d", count, branch, from_semester, to_semester)
        return count

    def update_notification_settings(
        self,
        *,
        actor: Principal,
        student_id: int,
        notifications: Optional[bool] = None,
        email_alerts: Optional[bool] = None,
    ) -> NotificationSettings:
        require_self_or_admin(actor, student_id)
        current = self.get(student_id).settings

        settings = NotificationSettings(
            notifications=current.notifications if notifications is None else bool(notifications),
            email_alerts=current.email_alerts if email_alerts is None else bool(email_alerts),
        )
        self._students.update_settings(student_id=int(student_id), settings=settings)
        return settings

    def register_device(self, *, actor: Principal, student_id: int, token: str) -> None:
        require_self_or_admin(actor, student_id)
        self.get(student_id)
        self._students.set_device_token(student_id=int(student_id), token=require_non_empty(token, "Device token"))

    def clear_device(self, *, actor: Principal, student_id: int) -> None:
        require_self_or_admin(actor, student_id)
        self.get(student_id)
        self._students.set_device_token(student_id=int(student_id), token=None)
