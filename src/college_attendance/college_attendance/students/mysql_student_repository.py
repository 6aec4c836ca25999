from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import NotificationSettings, Student
from .repository import StudentRepository

_COLUMNS = """
    student_id, roll_number, branch, semester, is_active, device_token,
    notifications_enabled, email_alerts
"""


def _to_student(r: dict) -> Student:
    return Student(
        student_id=int(r["student_id"]),
        roll_number=r["roll_number"],
        branch=r["branch"],
        semester=int(r["semester"]),
        is_active=bool(r["is_active"]),
        device_token=r.get("device_token") or None,
        settings=NotificationSettings(
            notifications=bool(r.get("notifications_enabled", 1)),
            email_alerts=bool(r.get("email_alerts", 0)),
        ),
    )


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, student_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM students WHERE student_id=%s", (int(student_id),))
            r = fetchone(cur)
            return _to_student(r) if r else None

    def get_many(self, student_ids: Iterable[int]) -> Sequence[Student]:
        ids = [int(i) for i in student_ids]
        if not ids:
            return []
        with db_cursor(self._conn_factory) as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM students WHERE student_id IN ({in_clause(ids)})", tuple(ids))
            return [_to_student(r) for r in fetchall(cur)]

    def get_by_roll(self, roll_number: str) -> Optional[Student]:
        with db_cursor(self._conn_factory) as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM students WHERE roll_number=%s", (roll_number,))
            r = fetchone(cur)
            return _to_student(r) if r else None

    def find_eligible(self, branch: str, semester: int) -> Sequence[Student]:
        return self.list_active(branch=branch, semester=semester)

    def list_active(self, *, branch: Optional[str] = None, semester: Optional[int] = None) -> Sequence[Student]:
        where = ["is_active=1"]
        params: list = []
        if branch:
            where.append("branch=%s")
            params.append(branch)
        if semester:
            where.append("semester=%s")
            params.append(int(semester))

        with db_cursor(self._conn_factory) as cur:
            cur.execute(
                f"SELECT {_COLUMNS} FROM students WHERE {' AND '.join(where)} ORDER BY roll_number",
                tuple(params),
            )
            return [_to_student(r) for r in fetchall(cur)]

    def create(self, *, roll_number: str, branch: str, semester: int, device_token: Optional[str] = None) -> int:
        with db_cursor(self._conn_factory) as cur:
            cur.execute(
                """
                INSERT INTO students(roll_number, branch, semester, device_token)
                VALUES(%s,%s,%s,%s)
                """,
                (roll_number, branch, int(semester), device_token),
            )
            return int(cur.lastrowid)

    def update(self, *, student_id: int, roll_number: str, branch: str, semester: int) -> bool:
        with db_cursor(self._conn_factory) as cur:
            cur.execute(
                "UPDATE students SET roll_number=%s, branch=%s, semester=%s WHERE student_id=%s",
                (roll_number, branch, int(semester), int(student_id)),
            )
            return cur.rowcount > 0

    def set_active(self, student_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as cur:
            cur.execute("UPDATE students SET is_active=%s WHERE student_id=%s", (1 if is_active else 0, int(student_id)))
            return cur.rowcount > 0

    def promote(self, *, branch: str, from_semester: int, to_semester: int) -> int:
        with db_cursor(self._conn_factory) as cur:
            cur.execute(
                "UPDATE students SET semester=%s WHERE branch=%s AND semester=%s AND is_active=1",
                (int(to_semester), branch, int(from_semester)),
            )
            return int(cur.rowcount)

    def update_settings(self, *, student_id: int, settings: NotificationSettings) -> bool:
        with db_cursor(self._conn_factory) as cur:
            cur.execute(
                "UPDATE students SET notifications_enabled=%s, email_alerts=%s WHERE student_id=%s",
                (int(settings.notifications), int(settings.email_alerts), int(student_id)),
            )
            return cur.rowcount > 0

    def set_device_token(self, *, student_id: int, token: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as cur:
            cur.execute("UPDATE students SET device_token=%s WHERE student_id=%s", (token, int(student_id)))
            return cur.rowcount > 0
