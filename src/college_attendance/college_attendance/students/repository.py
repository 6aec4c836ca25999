from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from .model import NotificationSettings, Student


class StudentRepository(Protocol):
    """Repository interface for students.

    Also the roster provider: `find_eligible` supplies the student population of a class.
    """

    def get_by_id(self, student_id: int) -> Optional[Student]:
        raise NotImplementedError

    def get_many(self, student_ids: Iterable[int]) -> Sequence[Student]:
        raise NotImplementedError

    def get_by_roll(self, roll_number: str) -> Optional[Student]:
        raise NotImplementedError

    def find_eligible(self, branch: str, semester: int) -> Sequence[Student]:
        """Active students of one branch/semester, ordered by roll number."""

        raise NotImplementedError

    def list_active(self, *, branch: Optional[str] = None, semester: Optional[int] = None) -> Sequence[Student]:
        raise NotImplementedError

    def create(self, *, roll_number: str, branch: str, semester: int, device_token: Optional[str] = None) -> int:
        raise NotImplementedError

    def update(self, *, student_id: int, roll_number: str, branch: str, semester: int) -> bool:
        raise NotImplementedError

    def set_active(self, student_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def promote(self, *, branch: str, from_semester: int, to_semester: int) -> int:
        """Move every active student of a class to another semester. Returns rows changed."""

        raise NotImplementedError

    def update_settings(self, *, student_id: int, settings: NotificationSettings) -> bool:
        raise NotImplementedError

    def set_device_token(self, *, student_id: int, token: Optional[str]) -> bool:
        raise NotImplementedError
