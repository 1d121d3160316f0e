from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Iterable, Mapping, Optional, Sequence

from ..common.datetime_utils import day_window, local_midnight, now_local
from ..common.validators import parse_enum, require_date, require_non_empty
from ..core.constants import DEFAULT_COURSE_RECENT_LIMIT, DEFAULT_RECENT_LIMIT
from ..core.enums import AttendanceStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..courses.repository import CourseRepository
from ..students.repository import StudentRepository
from .eligibility import EligibilityChecker
from .model import (
    AttendanceEntry,
    AttendanceRecord,
    AttendanceStats,
    EligibilityResult,
    RecordResult,
    RosterRow,
    StudentRecentAttendance,
)
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def parse_entries(entries: Iterable) -> list[AttendanceEntry]:
    """Validate ``[{"student_id", "status", "notes"?}, ...]`` of one taking session."""
    out: list[AttendanceEntry] = []
    seen: set[str] = set()
    for raw in entries or []:
        if isinstance(raw, AttendanceEntry):
            entry = raw
        elif not isinstance(raw, Mapping):
            raise ValidationError("Each attendance entry must be an object")
        else:
            entry = AttendanceEntry(
                student_id=require_non_empty(raw.get("student_id"), "Student"),
                status=parse_enum(AttendanceStatus, raw.get("status"), "attendance status"),
                notes=str(raw.get("notes") or "").strip(),
            )
        if entry.student_id in seen:
            raise ValidationError(f"Student {entry.student_id} appears more than once in the session")
        seen.add(entry.student_id)
        out.append(entry)
    return out


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        courses: CourseRepository,
        students: StudentRepository,
        *,
        checker: Optional[EligibilityChecker] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._courses = courses
        self._students = students
        self._checker = checker or EligibilityChecker(courses, attendance)
        self._clock = clock

    def can_take_attendance(self, course_level_id: str, day: date) -> EligibilityResult:
        return self._checker.check(course_level_id, require_date(day))

    def can_take_attendance_today(self, course_level_id: str) -> EligibilityResult:
        return self._checker.check(course_level_id, self._clock().date())

    def record_attendance(
        self,
        course_level_id: str,
        day: date,
        entries: Iterable,
        *,
        staff_id: Optional[str] = None,
    ) -> RecordResult:
        """Replace the whole day's attendance of a level with this session.

        Rows of students missing from ``entries`` are removed, not kept.
        """
        day = require_date(day)
        parsed = parse_entries(entries)

        # Resolve before anything destructive happens.
        if not self._courses.get_level(course_level_id):
            raise NotFoundError("Course level not found")
        for entry in parsed:
            if not self._students.get_by_id(entry.student_id):
                raise NotFoundError(f"Student not found: {entry.student_id}")

        start, end = day_window(day)
        count = self._attendance.replace_window(
            course_level_id=course_level_id,
            start=start,
            end=end,
            recorded_at=local_midnight(day),
            entries=parsed,
            staff_id=staff_id or None,
        )
        logger.info(
            "Recorded attendance for level %s on %s: %d rows (staff=%s)",
            course_level_id,
            day.isoformat(),
            count,
            staff_id or "-",
        )
        return RecordResult(count=count)

    def update_attendance(self, attendance_id: str, status, notes: Optional[str] = None) -> AttendanceRecord:
        status = parse_enum(AttendanceStatus, status, "attendance status")
        notes = str(notes or "").strip()
        if not self._attendance.update_record(attendance_id=attendance_id, status=status, notes=notes):
            raise NotFoundError("Attendance record not found")

        record = self._attendance.get_by_id(attendance_id)
        if record is None:
            raise NotFoundError("Attendance record not found")
        logger.info("Updated attendance %s -> %s", attendance_id, status.value)
        return record

    def students_for_attendance(self, course_level_id: str, day: date) -> list[RosterRow]:
        day = require_date(day)
        if not self._courses.get_level(course_level_id):
            raise NotFoundError("Course level not found")

        start, end = day_window(day)
        existing = {
            r.student_id: r
            for r in self._attendance.list_in_window(course_level_id=course_level_id, start=start, end=end)
        }

        rows: list[RosterRow] = []
        for enrolled in self._students.enrolled_in_level(course_level_id):
            s = enrolled.student
            record = existing.get(s.student_id)
            rows.append(
                RosterRow(
                    student_id=s.student_id,
                    first_name=s.first_name,
                    last_name=s.last_name,
                    gender=s.gender,
                    status=record.status if record else AttendanceStatus.ABSENT,
                    attendance_id=record.attendance_id if record else None,
                    notes=record.notes if record else "",
                )
            )
        return rows

    def list_records(
        self,
        *,
        course_id: Optional[str] = None,
        course_level_id: Optional[str] = None,
        student_id: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> Sequence[AttendanceRecord]:
        if date_from and date_to and date_from > date_to:
            raise ValidationError("date_from must not be after date_to")
        return self._attendance.list_records(
            course_id=course_id or None,
            course_level_id=course_level_id or None,
            student_id=student_id or None,
            start=day_window(date_from)[0] if date_from else None,
            end=day_window(date_to)[1] if date_to else None,
        )

    def student_stats(self, student_id: str, *, course_id: Optional[str] = None) -> AttendanceStats:
        total, present = self._attendance.count_for_student(student_id=student_id, course_id=course_id or None)
        rate = round(present / total * 100, 2) if total > 0 else 0.0
        return AttendanceStats(
            total_sessions=total,
            present_sessions=present,
            absent_sessions=total - present,
            attendance_rate=rate,
        )

    def recent_for_student(self, student_id: str, *, limit: int = DEFAULT_RECENT_LIMIT) -> Sequence[AttendanceRecord]:
        if int(limit) <= 0:
            raise ValidationError("limit must be positive")
        return self._attendance.recent_for_student(student_id=student_id, limit=int(limit))

    def recent_overview(
        self, *, course_id: Optional[str] = None, limit: int = DEFAULT_RECENT_LIMIT
    ) -> list[StudentRecentAttendance]:
        """Every student's latest records with the whole-number rate over those records.

        With ``course_id`` only students enrolled in that course are listed and
        only that course's records count.
        """
        if int(limit) <= 0:
            raise ValidationError("limit must be positive")

        out: list[StudentRecentAttendance] = []
        for s in self._students.list_all(course_id=course_id or None):
            recent = tuple(
                self._attendance.recent_for_student(student_id=s.student_id, limit=int(limit), course_id=course_id or None)
            )
            present = sum(1 for r in recent if r.status == AttendanceStatus.PRESENT)
            rate = round(present / len(recent) * 100) if recent else 0
            out.append(
                StudentRecentAttendance(
                    student_id=s.student_id,
                    student_name=s.full_name,
                    recent=recent,
                    attendance_rate=rate,
                )
            )
        return out

    def recent_for_course(self, course_id: str, *, limit: int = DEFAULT_COURSE_RECENT_LIMIT) -> Sequence[AttendanceRecord]:
        if int(limit) <= 0:
            raise ValidationError("limit must be positive")
        return self._attendance.recent_for_course(course_id=course_id, limit=int(limit))
