from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import Assignment, Teacher


class TeacherRepository(Protocol):
    def get_by_id(self, teacher_id: int) -> Optional[Teacher]:
        """Teacher with its assignments loaded."""

        raise NotImplementedError

    def list_pending(self) -> Sequence[Teacher]:
        raise NotImplementedError

    def set_approved(self, teacher_id: int, *, is_approved: bool) -> bool:
        raise NotImplementedError

    def set_active(self, teacher_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def add_assignment(
        self,
        *,
        teacher_id: int,
        subject_id: int,
        branch: str,
        semester: int,
        assigned_on: date,
    ) -> Assignment:
        raise NotImplementedError

    def remove_assignment(self, *, teacher_id: int, subject_id: int) -> bool:
        raise NotImplementedError
