from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple

from ..core.enums import Gender, LevelTier, Weekday


@dataclass(frozen=True)
class ParentContacts:
    mother_first_name: Optional[str] = None
    mother_last_name: Optional[str] = None
    mother_phone: Optional[str] = None
    father_first_name: Optional[str] = None
    father_last_name: Optional[str] = None
    father_phone: Optional[str] = None


@dataclass(frozen=True)
class Student:
    student_id: str
    first_name: str
    last_name: str
    birth_date: date
    gender: Gender
    parents: ParentContacts = ParentContacts()
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass(frozen=True)
class Enrollment:
    """A student's place in one course level."""

    student_id: str
    course_id: str
    course_level_id: str
    enrolled_at: Optional[datetime] = None
    course_name: Optional[str] = None
    level: Optional[LevelTier] = None
    attendance_days: Tuple[Weekday, ...] = ()


@dataclass(frozen=True)
class EnrolledStudent:
    """Read-model: a student together with one of their enrollments."""

    student: Student
    enrollment: Enrollment
