from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..common.datetime_utils import day_window
from ..core.enums import Weekday
from ..courses.model import CourseLevel
from ..courses.repository import CourseRepository
from .model import EligibilityResult
from .repository import AttendanceRepository

LEVEL_NOT_FOUND = "Course level not found"
READY = "Attendance can be taken"
WILL_OVERWRITE = "Attendance already exists for this date - saving will overwrite it"


def evaluate(level: Optional[CourseLevel], day: date, *, has_existing: bool = False) -> EligibilityResult:
    """Decide whether attendance may be taken for ``level`` on ``day``.

    Only the weekday matters. An existing record for the day changes the
    reason, never the outcome, because a new session replaces it.
    """
    if level is None:
        return EligibilityResult(can_take=False, reason=LEVEL_NOT_FOUND)

    weekday = Weekday.from_date(day)
    if not level.holds_session_on(weekday):
        allowed = ", ".join(d.display_name for d in level.attendance_days) or "none"
        return EligibilityResult(
            can_take=False,
            reason=(
                f"{level.course_name or 'Course'} - {level.level.label}: "
                f"{weekday.display_name} is not an attendance day (attendance days: {allowed})"
            ),
        )

    return EligibilityResult(can_take=True, reason=WILL_OVERWRITE if has_existing else READY)


@dataclass
class EligibilityChecker:
    """Looks up the level and any existing session, then applies ``evaluate``."""

    courses: CourseRepository
    attendance: AttendanceRepository

    def check(self, course_level_id: str, day: date) -> EligibilityResult:
        level = self.courses.get_level(course_level_id)
        result = evaluate(level, day)
        if not result.can_take:
            return result

        start, end = day_window(day)
        has_existing = self.attendance.exists_in_window(course_level_id=course_level_id, start=start, end=end)
        return evaluate(level, day, has_existing=has_existing)
