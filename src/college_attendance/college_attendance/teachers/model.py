from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Tuple


@dataclass(frozen=True)
class Assignment:
    """A teacher's authorization to teach one subject for one branch/semester."""

    assignment_id: int
    teacher_id: int
    subject_id: int
    branch: str
    semester: int
    assigned_on: Optional[date] = None


@dataclass(frozen=True)
class Teacher:
    teacher_id: int
    full_name: str
    department: Optional[str] = None
    is_approved: bool = False
    is_active: bool = True
    assignments: Tuple[Assignment, ...] = field(default_factory=tuple)

    @property
    def can_write(self) -> bool:
        return self.is_approved and self.is_active

    def teaches(self, subject_id: int) -> bool:
        return any(a.subject_id == int(subject_id) for a in self.assignments)
