from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role
from ..core.exceptions import AuthorizationError


@dataclass(frozen=True)
class Principal:
    """The authenticated caller.

    One shape for admins, teachers and students; role-specific checks switch on `role`.
    `principal_id` is the teacher_id / student_id for those roles and the admin's id otherwise.
    """

    role: Role
    principal_id: int
    display_name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_teacher(self) -> bool:
        return self.role == Role.TEACHER

    @property
    def is_student(self) -> bool:
        return self.role == Role.STUDENT

    @classmethod
    def admin(cls, admin_id: int = 0, name: str = "admin") -> "Principal":
        return cls(role=Role.ADMIN, principal_id=admin_id, display_name=name)

    @classmethod
    def teacher(cls, teacher_id: int, name: Optional[str] = None) -> "Principal":
        return cls(role=Role.TEACHER, principal_id=teacher_id, display_name=name)

    @classmethod
    def student(cls, student_id: int, name: Optional[str] = None) -> "Principal":
        return cls(role=Role.STUDENT, principal_id=student_id, display_name=name)


def require_role(actor: Principal, *roles: Role) -> Principal:
    if actor is None or actor.role not in roles:
        raise AuthorizationError("You are not allowed to perform this action")
    return actor


def require_self_or_admin(actor: Principal, student_id: int) -> Principal:
    if actor.is_admin:
        return actor
    if actor.is_student and actor.principal_id == int(student_id):
        return actor
    raise AuthorizationError("You can only change your own settings")
