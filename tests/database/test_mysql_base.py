from __future__ import annotations

from datetime import time, timedelta

import pytest

from src.college_attendance.college_attendance.database.mysql_base import db_cursor, in_clause, normalize_mysql_time


class FakeCursor:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self):
        self.cursor_obj = FakeCursor()
        self.events = []

    def cursor(self, dictionary=False):
        assert dictionary
        return self.cursor_obj

    def commit(self):
        self.events.append("commit")

    def rollback(self):
        self.events.append("rollback")

    def close(self):
        self.events.append("close")


class FakeFactory:
    def __init__(self):
        self.conn = FakeConnection()

    def connect(self):
        return self.conn


def test_cursor_commits_on_success():
    factory = FakeFactory()
    with db_cursor(factory) as cur:
        assert cur is factory.conn.cursor_obj
    assert factory.conn.events == ["commit", "close"]
    assert factory.conn.cursor_obj.closed


def test_cursor_rolls_back_and_reraises():
    factory = FakeFactory()
    with pytest.raises(RuntimeError):
        with db_cursor(factory):
            raise RuntimeError("duplicate")
    assert factory.conn.events == ["rollback", "close"]


@pytest.mark.parametrize(
    "value, expected",
    [
        (timedelta(hours=9, minutes=5), "09:05"),
        (timedelta(hours=13, minutes=50, seconds=30), "13:50"),
        (time(8, 0), "08:00"),
        ("9:30:00", "09:30"),
    ],
)
def test_time_columns_become_hhmm(value, expected):
    assert normalize_mysql_time(value) == expected


def test_unknown_time_type_is_an_error():
    with pytest.raises(TypeError):
        normalize_mysql_time(930)


def test_in_clause():
    assert in_clause([4, 5, 6]) == "%s, %s, %s"
