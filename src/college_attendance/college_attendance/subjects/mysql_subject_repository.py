from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..core.enums import SubjectType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import NewSubject, Subject
from .repository import SubjectRepository

_COLUMNS = "subject_id, subject_code, subject_name, branch, semester, credits, subject_type, is_active"


def _to_subject(r: dict) -> Subject:
    return Subject(
        subject_id=int(r["subject_id"]),
        code=r["subject_code"],
        name=r["subject_name"],
        branch=r["branch"],
        semester=int(r["semester"]),
        credits=int(r["credits"]),
        subject_type=SubjectType(r["subject_type"]),
        is_active=bool(r["is_active"]),
    )


class MySQLSubjectRepository(SubjectRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, subject_id: int) -> Optional[Subject]:
        with db_cursor(self._conn_factory) as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM subjects WHERE subject_id=%s", (int(subject_id),))
            r = fetchone(cur)
            return _to_subject(r) if r else None

    def get_many(self, subject_ids: Iterable[int]) -> Sequence[Subject]:
        ids = [int(i) for i in subject_ids]
        if not ids:
            return []
        with db_cursor(self._conn_factory) as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM subjects WHERE subject_id IN ({in_clause(ids)})", tuple(ids))
            return [_to_subject(r) for r in fetchall(cur)]

    def get_by_code(self, code: str, branch: str) -> Optional[Subject]:
        with db_cursor(self._conn_factory) as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM subjects WHERE subject_code=%s AND branch=%s", (code, branch))
            r = fetchone(cur)
            return _to_subject(r) if r else None

    def list_for_class(self, branch: str, semester: int) -> Sequence[Subject]:
        with db_cursor(self._conn_factory) as cur:
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM subjects
                WHERE branch=%s AND semester=%s AND is_active=1
                ORDER BY subject_code
                """,
                (branch, int(semester)),
            )
            return [_to_subject(r) for r in fetchall(cur)]

    def create(self, subject: NewSubject) -> int:
        with db_cursor(self._conn_factory) as cur:
            cur.execute(
                """
                INSERT INTO subjects(subject_code, subject_name, branch, semester, credits, subject_type)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    subject.code,
                    subject.name,
                    subject.branch,
                    int(subject.semester),
                    int(subject.credits),
                    subject.subject_type.value,
                ),
            )
            return int(cur.lastrowid)

    def update(self, subject: Subject) -> bool:
        with db_cursor(self._conn_factory) as cur:
            cur.execute(
                """
                UPDATE subjects
                SET subject_code=%s, subject_name=%s, branch=%s, semester=%s, credits=%s, subject_type=%s
                WHERE subject_id=%s
                """,
                (
                    subject.code,
                    subject.name,
                    subject.branch,
                    int(subject.semester),
                    int(subject.credits),
                    subject.subject_type.value,
                    int(subject.subject_id),
                ),
            )
            return cur.rowcount > 0

    def set_active(self, subject_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as cur:
            cur.execute("UPDATE subjects SET is_active=%s WHERE subject_id=%s", (1 if is_active else 0, int(subject_id)))
            return cur.rowcount > 0
