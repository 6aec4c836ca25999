from __future__ import annotations

from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..core.enums import PeriodStatus
from ..core.exceptions import AlreadyMarkedError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, in_clause, normalize_mysql_time
from .model import PeriodEntry, PeriodRecord
from .repository import AttendanceRepository

_RECORD_COLUMNS = "record_id, student_id, subject_id, teacher_id, attend_date, marked_by, marked_at"


def _naive(value: datetime) -> datetime:
    # DATETIME columns hold institutional local time.
    return value.replace(tzinfo=None) if value.tzinfo else value


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _hydrate(self, cur, rows: List[dict]) -> List[PeriodRecord]:
        ids = [int(r["record_id"]) for r in rows]
        periods: Dict[int, List[PeriodEntry]] = {i: [] for i in ids}
        if ids:
            cur.execute(
                f"""
                SELECT record_id, period_number, start_time, end_time, status
                FROM attendance_periods
                WHERE record_id IN ({in_clause(ids)})
                ORDER BY record_id, period_number
                """,
                tuple(ids),
            )
            for p in fetchall(cur):
                periods[int(p["record_id"])].append(
                    PeriodEntry(
                        period_number=int(p["period_number"]),
                        start_time=normalize_mysql_time(p["start_time"]),
                        end_time=normalize_mysql_time(p["end_time"]),
                        status=PeriodStatus(p["status"]),
                    )
                )

        return [
            PeriodRecord(
                record_id=int(r["record_id"]),
                student_id=int(r["student_id"]),
                subject_id=int(r["subject_id"]),
                teacher_id=int(r["teacher_id"]),
                attend_date=r["attend_date"],
                periods=tuple(periods[int(r["record_id"])]),
                marked_by=int(r["marked_by"]),
                marked_at=r["marked_at"],
            )
            for r in rows
        ]

    def _select(self, where: str, params: tuple) -> List[PeriodRecord]:
        with db_cursor(self._conn_factory) as cur:
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance_records WHERE {where} ORDER BY attend_date DESC, record_id",
                params,
            )
            return self._hydrate(cur, fetchall(cur))

    def list_for_student_subject(self, student_id: int, subject_id: int) -> Sequence[PeriodRecord]:
        return self._select("student_id=%s AND subject_id=%s", (int(student_id), int(subject_id)))

    def list_for_student(
        self,
        student_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[PeriodRecord]:
        where = ["student_id=%s"]
        params: list = [int(student_id)]
        if start is not None:
            where.append("attend_date >= %s")
            params.append(start)
        if end is not None:
            where.append("attend_date <= %s")
            params.append(end)
        return self._select(" AND ".join(where), tuple(params))

    def list_for_subject(
        self,
        subject_id: int,
        *,
        student_ids: Optional[Iterable[int]] = None,
        attend_date: Optional[date] = None,
    ) -> Sequence[PeriodRecord]:
        where = ["subject_id=%s"]
        params: list = [int(subject_id)]
        if student_ids is not None:
            ids = [int(i) for i in student_ids]
            if not ids:
                return []
            where.append(f"student_id IN ({in_clause(ids)})")
            params.extend(ids)
        if attend_date is not None:
            where.append("attend_date=%s")
            params.append(attend_date)
        return self._select(" AND ".join(where), tuple(params))

    def find_for_students_on_date(
        self, student_ids: Iterable[int], subject_id: int, attend_date: date
    ) -> Sequence[PeriodRecord]:
        return self.list_for_subject(subject_id, student_ids=student_ids, attend_date=attend_date)

    def create_many(self, records: Sequence[PeriodRecord]) -> List[int]:
        if not records:
            return []
        try:
            with db_cursor(self._conn_factory) as cur:
                ids: List[int] = []
                for record in records:
                    cur.execute(
                        """
                        INSERT INTO attendance_records(student_id, subject_id, teacher_id, attend_date, weekday, marked_by, marked_at)
                        VALUES(%s,%s,%s,%s,%s,%s,%s)
                        """,
                        (
                            record.student_id,
                            record.subject_id,
                            record.teacher_id,
                            record.attend_date,
                            record.weekday.value,
                            record.marked_by,
                            _naive(record.marked_at),
                        ),
                    )
                    record_id = int(cur.lastrowid)
                    cur.executemany(
                        """
                        INSERT INTO attendance_periods(record_id, student_id, subject_id, attend_date, period_number, start_time, end_time, status)
                        VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                        """,
                        [
                            (
                                record_id,
                                record.student_id,
                                record.subject_id,
                                record.attend_date,
                                p.period_number,
                                p.start_time,
                                p.end_time,
                                p.status.value,
                            )
                            for p in record.periods
                        ],
                    )
                    ids.append(record_id)
                return ids
        except mysql.connector.IntegrityError as e:
            if e.errno == errorcode.ER_DUP_ENTRY:
                raise AlreadyMarkedError(
                    "Attendance already marked for one or more of the selected periods on this date"
                ) from e
            raise

    def save_periods(self, records: Sequence[PeriodRecord]) -> int:
        if not records:
            return 0
        with db_cursor(self._conn_factory) as cur:
            for record in records:
                cur.executemany(
                    "UPDATE attendance_periods SET status=%s WHERE record_id=%s AND period_number=%s",
                    [(p.status.value, record.record_id, p.period_number) for p in record.periods],
                )
                cur.execute(
                    "UPDATE attendance_records SET marked_by=%s, marked_at=%s WHERE record_id=%s",
                    (record.marked_by, _naive(record.marked_at), record.record_id),
                )
            return len(records)
