from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


def year_for_semester(semester: int) -> str:
    """Academic year label derived from the semester (two semesters per year)."""
    if semester <= 2:
        return "1st Year"
    if semester <= 4:
        return "2nd Year"
    if semester <= 6:
        return "3rd Year"
    return "4th Year"


@dataclass(frozen=True)
class NotificationSettings:
    notifications: bool = True
    email_alerts: bool = False


@dataclass(frozen=True)
class Student:
    """Domain entity: Student.

    `year` is derived from `semester` on every read, never stored.
    """

    student_id: int
    roll_number: str
    branch: str
    semester: int
    is_active: bool = True
    device_token: Optional[str] = None
    settings: NotificationSettings = field(default_factory=NotificationSettings)

    @property
    def year(self) -> str:
        return year_for_semester(self.semester)

    @property
    def has_target(self) -> bool:
        return bool(self.device_token)

    @property
    def opted_in(self) -> bool:
        return self.settings.notifications

    @property
    def can_receive_push(self) -> bool:
        return self.has_target and self.opted_in


@dataclass(frozen=True)
class NewStudent:
    roll_number: str
    branch: str
    semester: int
    device_token: Optional[str] = None
