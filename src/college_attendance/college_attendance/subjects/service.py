from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Mapping, Optional, Sequence

from ..common.bulk import BulkError, BulkResult
from ..common.validators import require_branch, require_enum, require_int_range, require_non_empty, require_semester
from ..core.constants import DEFAULT_CREDITS, MAX_CREDITS, MIN_CREDITS
from ..core.enums import Role, SubjectType
from ..core.exceptions import DomainError, NotFoundError, ValidationError
from ..users.principal import Principal, require_role
from .model import NewSubject, Subject
from .repository import SubjectRepository

logger = logging.getLogger(__name__)


class SubjectService:
    def __init__(self, subjects: SubjectRepository):
        self._subjects = subjects

    def get(self, subject_id: int) -> Subject:
        subject = self._subjects.get_by_id(int(subject_id))
        if not subject:
            raise NotFoundError("Subject not found")
        return subject

    def list_for_class(self, branch: str, semester: int) -> Sequence[Subject]:
        return self._subjects.list_for_class(require_branch(branch), require_semester(semester))

    @staticmethod
    def _clean(subject: NewSubject) -> NewSubject:
        return NewSubject(
            code=require_non_empty(subject.code, "Subject code").upper(),
            name=require_non_empty(subject.name, "Subject name"),
            branch=require_branch(subject.branch),
            semester=require_semester(subject.semester),
            credits=require_int_range(subject.credits, "Credits", MIN_CREDITS, MAX_CREDITS),
            subject_type=require_enum(subject.subject_type, SubjectType, "Subject type"),
        )

    def create(self, *, actor: Principal, subject: NewSubject) -> int:
        require_role(actor, Role.ADMIN)
        row = self._clean(subject)
        if self._subjects.get_by_code(row.code, row.branch):
            raise ValidationError(f"Subject {row.code} already exists for {row.branch}")
        return self._subjects.create(row)

    def bulk_create(self, *, actor: Principal, rows: Iterable[Mapping]) -> BulkResult:
        require_role(actor, Role.ADMIN)

        result = BulkResult()
        for raw in rows:
            key = str(raw.get("code") or "").strip().upper() or "?"
            try:
                new_id = self.create(
                    actor=actor,
                    subject=NewSubject(
                        code=raw.get("code") or "",
                        name=raw.get("name") or "",
                        branch=raw.get("branch") or "",
                        semester=raw.get("semester"),
                        credits=raw.get("credits", DEFAULT_CREDITS),
                        subject_type=raw.get("subject_type", SubjectType.THEORY),
                    ),
                )
                result.created_ids.append(new_id)
            except DomainError as e:
                result.errors.append(BulkError(key=key, error=str(e)))

        logger.info("Bulk subject import: %d created, %d failed", result.created, result.failed)
        return result

    def update(
        self,
        *,
        actor: Principal,
        subject_id: int,
        name: Optional[str] = None,
        credits: Optional[int] = None,
        subject_type: Optional[str] = None,
        semester: Optional[int] = None,
    ) -> Subject:
        require_role(actor, Role.ADMIN)
        current = self.get(subject_id)

        updated = replace(
            current,
            name=require_non_empty(name, "Subject name") if name is not None else current.name,
            credits=require_int_range(credits, "Credits", MIN_CREDITS, MAX_CREDITS) if credits is not None else current.credits,
            subject_type=require_enum(subject_type, SubjectType, "Subject type") if subject_type else current.subject_type,
            semester=require_semester(semester) if semester is not None else current.semester,
        )
        self._subjects.update(updated)
        return updated

    def deactivate(self, *, actor: Principal, subject_id: int) -> None:
        require_role(actor, Role.ADMIN)
        self.get(subject_id)
        self._subjects.set_active(int(subject_id), is_active=False)

    def copy_to(self, *, actor: Principal, from_branch: str, to_branch: str, semester: int) -> BulkResult:
        """Duplicate a class's active subjects into another branch, skipping existing codes."""
        require_role(actor, Role.ADMIN)
        from_branch = require_branch(from_branch)
        to_branch = require_branch(to_branch)
        semester = require_semester(semester)
        if from_branch == to_branch:
            raise ValidationError("Source and target branch must differ")

        result = BulkResult()
        for subject in self._subjects.list_for_class(from_branch, semester):
            if self._subjects.get_by_code(subject.code, to_branch):
                result.errors.append(BulkError(key=subject.code, error=f"Already exists in {to_branch}"))
                continue
            result.created_ids.append(
                self._subjects.create(
                    NewSubject(
                        code=subject.code,
                        name=subject.name,
                        branch=to_branch,
                        semester=semester,
                        credits=subject.credits,
                        subject_type=subject.subject_type,
                    )
                )
            )
        return result
