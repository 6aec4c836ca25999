from __future__ import annotations

from dataclasses import dataclass

from ..core.constants import DEFAULT_CREDITS
from ..core.enums import SubjectType


@dataclass(frozen=True)
class Subject:
    """Domain entity: Subject. `code` is unique within a branch."""

    subject_id: int
    code: str
    name: str
    branch: str
    semester: int
    credits: int = DEFAULT_CREDITS
    subject_type: SubjectType = SubjectType.THEORY
    is_active: bool = True


@dataclass(frozen=True)
class NewSubject:
    code: str
    name: str
    branch: str
    semester: int
    credits: int = DEFAULT_CREDITS
    subject_type: SubjectType = SubjectType.THEORY
