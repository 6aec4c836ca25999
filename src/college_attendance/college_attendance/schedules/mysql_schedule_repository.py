from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from ..core.enums import Weekday
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, normalize_mysql_time
from .model import NewSchedule, Schedule
from .repository import ScheduleRepository

_COLUMNS = "schedule_id, teacher_id, subject_id, branch, semester, period_label, start_time, end_time, is_active"

_DAY_ORDER = {d: i for i, d in enumerate(Weekday)}


def _to_schedule(r: dict, days: List[Weekday]) -> Schedule:
    return Schedule(
        schedule_id=int(r["schedule_id"]),
        teacher_id=int(r["teacher_id"]),
        subject_id=int(r["subject_id"]),
        branch=r["branch"],
        semester=int(r["semester"]),
        days=tuple(sorted(days, key=_DAY_ORDER.__getitem__)),
        period=r["period_label"],
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        is_active=bool(r["is_active"]),
    )


class MySQLScheduleRepository(ScheduleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _hydrate(self, cur, rows: List[dict]) -> List[Schedule]:
        ids = [int(r["schedule_id"]) for r in rows]
        days: Dict[int, List[Weekday]] = {i: [] for i in ids}
        if ids:
            cur.execute(
                f"SELECT schedule_id, weekday FROM schedule_days WHERE schedule_id IN ({in_clause(ids)})",
                tuple(ids),
            )
            for d in fetchall(cur):
                days[int(d["schedule_id"])].append(Weekday(d["weekday"]))
        return [_to_schedule(r, days[int(r["schedule_id"])]) for r in rows]

    def _select(self, where: str, params: tuple) -> List[Schedule]:
        with db_cursor(self._conn_factory) as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM schedules WHERE {where} ORDER BY start_time, schedule_id", params)
            return self._hydrate(cur, fetchall(cur))

    def get_by_id(self, schedule_id: int) -> Optional[Schedule]:
        with db_cursor(self._conn_factory) as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM schedules WHERE schedule_id=%s", (int(schedule_id),))
            r = fetchone(cur)
            if not r:
                return None
            return self._hydrate(cur, [r])[0]

    def list_active_for_teacher(self, teacher_id: int) -> Sequence[Schedule]:
        return self._select("teacher_id=%s AND is_active=1", (int(teacher_id),))

    def list_for_class(self, branch: str, semester: int) -> Sequence[Schedule]:
        return self._select("branch=%s AND semester=%s AND is_active=1", (branch, int(semester)))

    def list_for_day(self, day: Weekday) -> Sequence[Schedule]:
        return self._select(
            "is_active=1 AND schedule_id IN (SELECT schedule_id FROM schedule_days WHERE weekday=%s)",
            (day.value,),
        )

    @staticmethod
    def _write_days(cur, schedule_id: int, days) -> None:
        cur.execute("DELETE FROM schedule_days WHERE schedule_id=%s", (schedule_id,))
        cur.executemany(
            "INSERT INTO schedule_days(schedule_id, weekday) VALUES(%s,%s)",
            [(schedule_id, d.value) for d in days],
        )

    def create(self, schedule: NewSchedule) -> int:
        with db_cursor(self._conn_factory) as cur:
            cur.execute(
                """
                INSERT INTO schedules(teacher_id, subject_id, branch, semester, period_label, start_time, end_time)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(schedule.teacher_id),
                    int(schedule.subject_id),
                    schedule.branch,
                    int(schedule.semester),
                    schedule.period,
                    schedule.start_time,
                    schedule.end_time,
                ),
            )
            schedule_id = int(cur.lastrowid)
            self._write_days(cur, schedule_id, schedule.days)
            return schedule_id

    def update(self, schedule: Schedule) -> bool:
        with db_cursor(self._conn_factory) as cur:
            cur.execute(
                """
                UPDATE schedules
                SET teacher_id=%s, subject_id=%s, branch=%s, semester=%s, period_label=%s, start_time=%s, end_time=%s
                WHERE schedule_id=%s
                """,
                (
                    int(schedule.teacher_id),
                    int(schedule.subject_id),
                    schedule.branch,
                    int(schedule.semester),
                    schedule.period,
                    schedule.start_time,
                    schedule.end_time,
                    int(schedule.schedule_id),
                ),
            )
            changed = cur.rowcount > 0
            self._write_days(cur, int(schedule.schedule_id), schedule.days)
            return changed

    def set_active(self, schedule_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as cur:
            cur.execute("UPDATE schedules SET is_active=%s WHERE schedule_id=%s", (1 if is_active else 0, int(schedule_id)))
            return cur.rowcount > 0
