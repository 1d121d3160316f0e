from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import Gender
from .model import EnrolledStudent, Enrollment, ParentContacts, Student


class StudentRepository(Protocol):
    def get_by_id(self, student_id: str) -> Optional[Student]:
        raise NotImplementedError

    def list_all(self, *, course_id: Optional[str] = None) -> Sequence[Student]:
        raise NotImplementedError

    def create(
        self,
        *,
        first_name: str,
        last_name: str,
        birth_date: date,
        gender: Gender,
        parents: ParentContacts,
        course_level_ids: Sequence[str],
    ) -> str:
        """Insert student and enrollments together. Returns student_id."""

        raise NotImplementedError

    def update(
        self,
        *,
        student_id: str,
        first_name: str,
        last_name: str,
        birth_date: date,
        gender: Gender,
        parents: ParentContacts,
        course_level_ids: Sequence[str],
    ) -> bool:
        """Update profile and replace all enrollments."""

        raise NotImplementedError

    def delete(self, student_id: str) -> bool:
        raise NotImplementedError

    def enrollments_of(self, student_id: str) -> Sequence[Enrollment]:
        raise NotImplementedError

    def enrolled_in_course(self, course_id: str) -> Sequence[EnrolledStudent]:
        raise NotImplementedError

    def enrolled_in_level(self, course_level_id: str) -> Sequence[EnrolledStudent]:
        raise NotImplementedError
