from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Course, CourseLevel, LevelInput


class CourseRepository(Protocol):
    def list_all(self) -> Sequence[Course]:
        raise NotImplementedError

    def get_by_id(self, course_id: str) -> Optional[Course]:
        raise NotImplementedError

    def get_level(self, course_level_id: str) -> Optional[CourseLevel]:
        """Level joined with its course name, or None."""

        raise NotImplementedError

    def list_levels(self, course_id: str) -> Sequence[CourseLevel]:
        raise NotImplementedError

    def create(self, *, name: str, description: Optional[str], levels: Sequence[LevelInput]) -> str:
        """Create course and levels in one transaction. Returns course_id."""

        raise NotImplementedError

    def update(self, *, course_id: str, name: str, description: Optional[str], levels: Sequence[LevelInput]) -> bool:
        """Update course and sync its levels in one transaction.

        Levels with the same tier are updated in place, new tiers created, and
        levels missing from ``levels`` deleted only when nobody is enrolled.
        """

        raise NotImplementedError
