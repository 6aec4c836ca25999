from __future__ import annotations

from enum import Enum
from typing import Iterable, Type, TypeVar

from ..core.constants import BRANCHES, MAX_SEMESTER, MIN_SEMESTER
from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_int_range(value, field_name: str, low: int, high: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if number < low or number > high:
        raise ValidationError(f"{field_name} must be between {low} and {high}")
    return number


def require_positive(value, field_name: str) -> int:
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f"{field_name} must be a whole number")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if number <= 0:
        raise ValidationError(f"{field_name} must be positive")
    return number


def require_semester(value) -> int:
    return require_int_range(value, "Semester", MIN_SEMESTER, MAX_SEMESTER)


def require_branch(value: str, choices: Iterable[str] = BRANCHES) -> str:
    branch = require_non_empty(value, "Branch").upper()
    if branch not in choices:
        raise ValidationError(f"Unknown branch {branch!r}")
    return branch


def require_enum(value, enum_type: Type[E], field_name: str) -> E:
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        raise ValidationError(f"{field_name} {value!r} is not valid")


def require_threshold(value) -> int:
    # classes-needed math divides by (100 - threshold)
    return require_int_range(value, "Threshold", 1, 99)
