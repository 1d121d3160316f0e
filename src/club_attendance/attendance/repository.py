from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence, Tuple

from ..core.enums import AttendanceStatus
from .model import AttendanceEntry, AttendanceRecord


class AttendanceRepository(Protocol):
    def exists_in_window(self, *, course_level_id: str, start: datetime, end: datetime) -> bool:
        raise NotImplementedError

    def list_in_window(self, *, course_level_id: str, start: datetime, end: datetime) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def replace_window(
        self,
        *,
        course_level_id: str,
        start: datetime,
        end: datetime,
        recorded_at: datetime,
        entries: Sequence[AttendanceEntry],
        staff_id: Optional[str] = None,
    ) -> int:
        """Delete the level's rows in [start, end] and insert ``entries``.

        Runs as one transaction. Raises NotFoundError (before deleting) when
        the level does not exist. Returns the number of inserted rows.
        """

        raise NotImplementedError

    def get_by_id(self, attendance_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def update_record(self, *, attendance_id: str, status: AttendanceStatus, notes: str) -> bool:
        raise NotImplementedError

    def list_records(
        self,
        *,
        course_id: Optional[str] = None,
        course_level_id: Optional[str] = None,
        student_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def count_for_student(self, *, student_id: str, course_id: Optional[str] = None) -> Tuple[int, int]:
        """Return (total, present)."""

        raise NotImplementedError

    def recent_for_student(
        self, *, student_id: str, limit: int, course_id: Optional[str] = None
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def recent_for_course(self, *, course_id: str, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
