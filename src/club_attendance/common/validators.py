from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Iterable, Optional, Tuple, Type, TypeVar

from ..core.enums import Weekday
from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value.strip()) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value.strip()


def optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def parse_enum(enum_cls: Type[E], value, field_name: str) -> E:
    """Accept an enum member or its exact token; anything else is rejected."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"Invalid {field_name}: {value!r} (expected one of {allowed})") from None


def parse_weekdays(values: Iterable) -> Tuple[Weekday, ...]:
    if isinstance(values, str):
        values = [v for v in values.split(",") if v]
    days: list[Weekday] = []
    for v in values or []:
        day = parse_enum(Weekday, v, "attendance day")
        if day not in days:
            days.append(day)
    if not days:
        raise ValidationError("At least one attendance day must be selected")
    return tuple(days)


def require_month(month) -> int:
    try:
        month = int(month)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid month: {month!r}") from None
    if not 1 <= month <= 12:
        raise ValidationError(f"Month must be between 1 and 12 (got {month})")
    return month


def require_year(year, *, min_year: int, max_year: int) -> int:
    try:
        year = int(year)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid year: {year!r}") from None
    if not min_year <= year <= max_year:
        raise ValidationError(f"Year must be between {min_year} and {max_year} (got {year})")
    return year


def optional_amount(value) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"Invalid amount: {value!r}") from None
    if not amount.is_finite():
        raise ValidationError(f"Invalid amount: {value!r}")
    if amount < 0:
        raise ValidationError("Amount cannot be negative")
    return amount


def require_date(value) -> date:
    if isinstance(value, date):
        # datetime is a date subclass; keep only the calendar part.
        return value if type(value) is date else value.date()
    raise ValidationError(f"Invalid date: {value!r}")
