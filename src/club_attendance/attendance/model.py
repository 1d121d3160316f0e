from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from ..core.enums import AttendanceStatus, Gender, LevelTier


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one student's attendance for a course level on a day."""

    attendance_id: str
    student_id: str
    course_id: str
    course_level_id: str
    date: datetime
    status: AttendanceStatus
    notes: str = ""
    staff_id: Optional[str] = None
    created_at: Optional[datetime] = None
    student_name: Optional[str] = None
    course_name: Optional[str] = None
    level: Optional[LevelTier] = None


@dataclass(frozen=True)
class AttendanceEntry:
    """One line of a taking session."""

    student_id: str
    status: AttendanceStatus
    notes: str = ""


@dataclass(frozen=True)
class EligibilityResult:
    can_take: bool
    reason: str


@dataclass(frozen=True)
class RecordResult:
    count: int


@dataclass(frozen=True)
class RosterRow:
    """Read-model for the taking screen: an enrolled student and their status that day."""

    student_id: str
    first_name: str
    last_name: str
    gender: Gender
    status: AttendanceStatus
    attendance_id: Optional[str] = None
    notes: str = ""


@dataclass(frozen=True)
class AttendanceStats:
    total_sessions: int
    present_sessions: int
    absent_sessions: int
    attendance_rate: float


@dataclass(frozen=True)
class StudentRecentAttendance:
    """Read-model: a student's latest records and the rate over just those."""

    student_id: str
    student_name: str
    recent: Tuple[AttendanceRecord, ...]
    attendance_rate: int
