from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.datetime_utils import Clock
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..subjects.repository import SubjectRepository
from ..users.principal import Principal, require_role
from .model import Assignment, Teacher
from .repository import TeacherRepository

logger = logging.getLogger(__name__)


class TeacherService:
    def __init__(self, teachers: TeacherRepository, subjects: SubjectRepository, *, clock: Optional[Clock] = None):
        self._teachers = teachers
        self._subjects = subjects
        self._clock = clock or Clock()

    def get(self, teacher_id: int) -> Teacher:
        teacher = self._teachers.get_by_id(int(teacher_id))
        if not teacher:
            raise NotFoundError("Teacher not found")
        return teacher

    def require_can_write(self, teacher_id: int) -> Teacher:
        teacher = self.get(teacher_id)
        if not teacher.is_active:
            raise AuthorizationError("Teacher account is inactive")
        if not teacher.is_approved:
            raise AuthorizationError("Teacher account is pending approval")
        return teacher

    def list_pending(self, *, actor: Principal) -> Sequence[Teacher]:
        require_role(actor, Role.ADMIN)
        return self._teachers.list_pending()

    def approve(self, *, actor: Principal, teacher_id: int) -> None:
        require_role(actor, Role.ADMIN)
        teacher = self.get(teacher_id)
        if teacher.is_approved:
            raise ValidationError("Teacher is already approved")
        self._teachers.set_approved(teacher.teacher_id, is_approved=True)
        logger.info("Teacher %d approved by %d", teacher.teacher_id, actor.principal_id)

    def reject(self, *, actor: Principal, teacher_id: int) -> None:
        """Reject a pending registration; the account is kept but deactivated."""
        require_role(actor, Role.ADMIN)
        teacher = self.get(teacher_id)
        self._teachers.set_approved(teacher.teacher_id, is_approved=False)
        self._teachers.set_active(teacher.teacher_id, is_active=False)
        logger.info("Teacher %d rejected by %d", teacher.teacher_id, actor.principal_id)

    def deactivate(self, *, actor: Principal, teacher_id: int) -> None:
        require_role(actor, Role.ADMIN)
        self.get(teacher_id)
        self._teachers.set_active(int(teacher_id), is_active=False)

    def assign_subject(self, *, actor: Principal, teacher_id: int, subject_id: int) -> Assignment:
        """Authorize a teacher for a subject; branch and semester come from the subject."""
        require_role(actor, Role.ADMIN)
        teacher = self.get(teacher_id)
        subject = self._subjects.get_by_id(int(subject_id))
        if not subject:
            raise NotFoundError("Subject not found")
        if teacher.teaches(subject.subject_id):
            raise ValidationError(f"Teacher is already assigned to {subject.code}")

        return self._teachers.add_assignment(
            teacher_id=teacher.teacher_id,
            subject_id=subject.subject_id,
            branch=subject.branch,
            semester=subject.semester,
            assigned_on=self._clock.today(),
        )

    def remove_assignment(self, *, actor: Principal, teacher_id: int, subject_id: int) -> None:
        require_role(actor, Role.ADMIN)
        self.get(teacher_id)
        if not self._teachers.remove_assignment(teacher_id=int(teacher_id), subject_id=int(subject_id)):
            raise NotFoundError("Assignment not found")
