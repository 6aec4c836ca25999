from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from .model import NewSubject, Subject


class SubjectRepository(Protocol):
    def get_by_id(self, subject_id: int) -> Optional[Subject]:
        raise NotImplementedError

    def get_many(self, subject_ids: Iterable[int]) -> Sequence[Subject]:
        raise NotImplementedError

    def get_by_code(self, code: str, branch: str) -> Optional[Subject]:
        raise NotImplementedError

    def list_for_class(self, branch: str, semester: int) -> Sequence[Subject]:
        """Active subjects of one branch/semester, ordered by code."""

        raise NotImplementedError

    def create(self, subject: NewSubject) -> int:
        raise NotImplementedError

    def update(self, subject: Subject) -> bool:
        raise NotImplementedError

    def set_active(self, subject_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError
