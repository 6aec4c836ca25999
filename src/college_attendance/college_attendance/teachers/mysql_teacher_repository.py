from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import Assignment, Teacher
from .repository import TeacherRepository


def _to_assignment(r: dict) -> Assignment:
    return Assignment(
        assignment_id=int(r["assignment_id"]),
        teacher_id=int(r["teacher_id"]),
        subject_id=int(r["subject_id"]),
        branch=r["branch"],
        semester=int(r["semester"]),
        assigned_on=r.get("assigned_on"),
    )


def _to_teacher(r: dict, assignments: Sequence[Assignment] = ()) -> Teacher:
    return Teacher(
        teacher_id=int(r["teacher_id"]),
        full_name=r["full_name"],
        department=r.get("department"),
        is_approved=bool(r["is_approved"]),
        is_active=bool(r["is_active"]),
        assignments=tuple(assignments),
    )


class MySQLTeacherRepository(TeacherRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _assignments_for(self, cur, teacher_ids: List[int]) -> Dict[int, List[Assignment]]:
        grouped: Dict[int, List[Assignment]] = {tid: [] for tid in teacher_ids}
        if not teacher_ids:
            return grouped
        cur.execute(
            f"""
            SELECT assignment_id, teacher_id, subject_id, branch, semester, assigned_on
            FROM teacher_assignments
            WHERE teacher_id IN ({in_clause(teacher_ids)})
            ORDER BY assignment_id
            """,
            tuple(teacher_ids),
        )
        for r in fetchall(cur):
            grouped[int(r["teacher_id"])].append(_to_assignment(r))
        return grouped

    def get_by_id(self, teacher_id: int) -> Optional[Teacher]:
        with db_cursor(self._conn_factory) as cur:
            cur.execute(
                "SELECT teacher_id, full_name, department, is_approved, is_active FROM teachers WHERE teacher_id=%s",
                (int(teacher_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            assignments = self._assignments_for(cur, [int(r["teacher_id"])])
            return _to_teacher(r, assignments[int(r["teacher_id"])])

    def list_pending(self) -> Sequence[Teacher]:
        with db_cursor(self._conn_factory) as cur:
            cur.execute(
                """
                SELECT teacher_id, full_name, department, is_approved, is_active
                FROM teachers
                WHERE is_approved=0 AND is_active=1
                ORDER BY created_at
                """
            )
            rows = fetchall(cur)
            assignments = self._assignments_for(cur, [int(r["teacher_id"]) for r in rows])
            return [_to_teacher(r, assignments[int(r["teacher_id"])]) for r in rows]

    def set_approved(self, teacher_id: int, *, is_approved: bool) -> bool:
        with db_cursor(self._conn_factory) as cur:
            cur.execute(
                "UPDATE teachers SET is_approved=%s WHERE teacher_id=%s",
                (1 if is_approved else 0, int(teacher_id)),
            )
            return cur.rowcount > 0

    def set_active(self, teacher_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as cur:
            cur.execute(
                "UPDATE teachers SET is_active=%s WHERE teacher_id=%s",
                (1 if is_active else 0, int(teacher_id)),
            )
            return cur.rowcount > 0

    def add_assignment(
        self,
        *,
        teacher_id: int,
        subject_id: int,
        branch: str,
        semester: int,
        assigned_on: date,
    ) -> Assignment:
        with db_cursor(self._conn_factory) as cur:
            cur.execute(
                """
                INSERT INTO teacher_assignments(teacher_id, subject_id, branch, semester, assigned_on)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(teacher_id), int(subject_id), branch, int(semester), assigned_on),
            )
            return Assignment(
                assignment_id=int(cur.lastrowid),
                teacher_id=int(teacher_id),
                subject_id=int(subject_id),
                branch=branch,
                semester=int(semester),
                assigned_on=assigned_on,
            )

    def remove_assignment(self, *, teacher_id: int, subject_id: int) -> bool:
        with db_cursor(self._conn_factory) as cur:
            cur.execute(
                "DELETE FROM teacher_assignments WHERE teacher_id=%s AND subject_id=%s",
                (int(teacher_id), int(subject_id)),
            )
            return cur.rowcount > 0
