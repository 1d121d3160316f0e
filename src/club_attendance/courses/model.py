from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from ..core.enums import LevelTier, Weekday


@dataclass(frozen=True)
class CourseLevel:
    """A proficiency tier of a course with its weekly attendance days."""

    course_level_id: str
    course_id: str
    level: LevelTier
    attendance_days: Tuple[Weekday, ...]
    course_name: Optional[str] = None

    def holds_session_on(self, day: Weekday) -> bool:
        return day in self.attendance_days


@dataclass(frozen=True)
class Course:
    course_id: str
    name: str
    description: Optional[str] = None
    levels: Tuple[CourseLevel, ...] = field(default_factory=tuple)
    student_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class LevelInput:
    """Validated level definition used by course create/update."""

    level: LevelTier
    attendance_days: Tuple[Weekday, ...]


def join_days(days) -> str:
    return ",".join(d.value for d in days)


def split_days(value: Optional[str]) -> Tuple[Weekday, ...]:
    if not value:
        return ()
    return tuple(Weekday(v) for v in value.split(",") if v)
