from __future__ import annotations

import calendar
import re
from datetime import date, datetime

import pytz

from ..core.constants import DEFAULT_TIMEZONE
from ..core.enums import Weekday
from ..core.exceptions import ValidationError

_HHMM = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    if not isinstance(value, str):
        raise ValidationError(f"Invalid date {value!r} (expected YYYY-MM-DD)")
    try:
        return datetime.strptime(value.strip()[:10], "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid date {value!r} (expected YYYY-MM-DD)")


def parse_hhmm(value: str) -> int:
    """Convert an "HH:MM" string into minutes since midnight."""
    if not isinstance(value, str):
        raise ValidationError(f"Invalid time {value!r} (expected HH:MM)")
    m = _HHMM.match(value.strip())
    if not m:
        raise ValidationError(f"Invalid time {value!r} (expected HH:MM)")
    hours, minutes = int(m.group(1)), int(m.group(2))
    if hours > 23 or minutes > 59:
        raise ValidationError(f"Invalid time {value!r} (expected HH:MM)")
    return hours * 60 + minutes


def format_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def weekday_of(value: date) -> Weekday:
    return list(Weekday)[value.weekday()]


def month_label(year: int, month: int) -> str:
    """Long month label, e.g. "January 2025"."""
    return f"{calendar.month_name[month]} {year}"


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


class Clock:
    """Current date/time in the institution's fixed timezone.

    Note: Wrapped so tests can pass a frozen clock.
    """

    def __init__(self, tz_name: str = DEFAULT_TIMEZONE):
        self._tz = pytz.timezone(tz_name)

    @property
    def tz_name(self) -> str:
        return self._tz.zone

    def now(self) -> datetime:
        return datetime.now(self._tz)

    def today(self) -> date:
        return self.now().date()


class FixedClock(Clock):
    def __init__(self, moment: datetime, tz_name: str = DEFAULT_TIMEZONE):
        super().__init__(tz_name)
        self._moment = moment if moment.tzinfo else self._tz.localize(moment)

    def now(self) -> datetime:
        return self._moment
