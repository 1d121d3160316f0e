from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional, Sequence

from ..common.validators import optional_text, parse_enum, parse_weekdays, require_min_length, require_non_empty
from ..core.constants import MIN_NAME_LENGTH
from ..core.enums import LevelTier
from ..core.exceptions import NotFoundError, ValidationError
from .model import Course, CourseLevel, LevelInput
from .repository import CourseRepository

logger = logging.getLogger(__name__)


def parse_levels(levels: Iterable[Mapping]) -> list[LevelInput]:
    """Validate ``[{"level": ..., "attendance_days": [...]}, ...]``."""
    out: list[LevelInput] = []
    seen: set[LevelTier] = set()
    for raw in levels or []:
        if not isinstance(raw, Mapping):
            raise ValidationError("Each course level must be an object")
        tier = parse_enum(LevelTier, raw.get("level"), "level")
        if tier in seen:
            raise ValidationError(f"Level {tier.value!r} is listed more than once")
        seen.add(tier)
        out.append(LevelInput(level=tier, attendance_days=parse_weekdays(raw.get("attendance_days") or [])))
    if not out:
        raise ValidationError("At least one course level is required")
    return out


class CourseService:
    """Use case: manage courses and their levels (staff)."""

    def __init__(self, courses: CourseRepository):
        self._courses = courses

    def list_courses(self) -> Sequence[Course]:
        return self._courses.list_all()

    def get_course(self, course_id: str) -> Course:
        course = self._courses.get_by_id(course_id)
        if not course:
            raise NotFoundError("Course not found")
        return course

    def get_levels(self, course_id: str) -> Sequence[CourseLevel]:
        return self._courses.list_levels(course_id)

    def get_level(self, course_level_id: str) -> CourseLevel:
        level = self._courses.get_level(course_level_id)
        if not level:
            raise NotFoundError("Course level not found")
        return level

    def create_course(self, *, name: str, description: Optional[str] = None, levels: Iterable[Mapping]) -> Course:
        name = require_min_length(require_non_empty(name, "Course name"), "Course name", MIN_NAME_LENGTH)
        parsed = parse_levels(levels)

        course_id = self._courses.create(name=name, description=optional_text(description), levels=parsed)
        logger.info("Created course %s (%s) with %d levels", course_id, name, len(parsed))
        return self.get_course(course_id)

    def update_course(
        self,
        *,
        course_id: str,
        name: str,
        description: Optional[str] = None,
        levels: Iterable[Mapping],
    ) -> Course:
        name = require_min_length(require_non_empty(name, "Course name"), "Course name", MIN_NAME_LENGTH)
        parsed = parse_levels(levels)

        if not self._courses.update(course_id=course_id, name=name, description=optional_text(description), levels=parsed):
            raise NotFoundError("Course not found")
        logger.info("Updated course %s", course_id)
        return self.get_course(course_id)
