from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Mapping, Optional, Sequence

from ..common.validators import optional_text, parse_enum, require_date, require_min_length
from ..core.constants import MIN_NAME_LENGTH
from ..core.enums import Gender
from ..core.exceptions import NotFoundError, ValidationError
from ..courses.repository import CourseRepository
from .model import EnrolledStudent, Enrollment, ParentContacts, Student
from .repository import StudentRepository

logger = logging.getLogger(__name__)

PARENT_FIELDS = (
    "mother_first_name",
    "mother_last_name",
    "mother_phone",
    "father_first_name",
    "father_last_name",
    "father_phone",
)


def parse_parents(values: Optional[Mapping]) -> ParentContacts:
    values = values or {}
    return ParentContacts(**{name: optional_text(values.get(name)) for name in PARENT_FIELDS})


class StudentService:
    """Use case: student profiles and their course-level enrollments."""

    def __init__(self, students: StudentRepository, courses: CourseRepository):
        self._students = students
        self._courses = courses

    def _validate(
        self,
        *,
        first_name: str,
        last_name: str,
        birth_date,
        gender,
        course_level_ids: Iterable[str],
    ) -> dict:
        first_name = require_min_length(first_name or "", "First name", MIN_NAME_LENGTH)
        last_name = require_min_length(last_name or "", "Last name", MIN_NAME_LENGTH)
        birth_date = require_date(birth_date)
        gender = parse_enum(Gender, gender or Gender.MALE, "gender")

        level_ids = list(dict.fromkeys(str(i) for i in (course_level_ids or []) if i))
        if not level_ids:
            raise ValidationError("At least one course level must be selected")
        for level_id in level_ids:
            if not self._courses.get_level(level_id):
                raise NotFoundError(f"Course level not found: {level_id}")

        return dict(
            first_name=first_name,
            last_name=last_name,
            birth_date=birth_date,
            gender=gender,
            course_level_ids=level_ids,
        )

    def create_student(
        self,
        *,
        first_name: str,
        last_name: str,
        birth_date: date,
        gender=Gender.MALE,
        parents: Optional[Mapping] = None,
        course_level_ids: Iterable[str],
    ) -> Student:
        fields = self._validate(
            first_name=first_name,
            last_name=last_name,
            birth_date=birth_date,
            gender=gender,
            course_level_ids=course_level_ids,
        )
        student_id = self._students.create(parents=parse_parents(parents), **fields)
        logger.info("Created student %s enrolled in %d levels", student_id, len(fields["course_level_ids"]))
        return self.get_student(student_id)

    def update_student(
        self,
        *,
        student_id: str,
        first_name: str,
        last_name: str,
        birth_date: date,
        gender,
        parents: Optional[Mapping] = None,
        course_level_ids: Iterable[str],
    ) -> Student:
        fields = self._validate(
            first_name=first_name,
            last_name=last_name,
            birth_date=birth_date,
            gender=gender,
            course_level_ids=course_level_ids,
        )
        if not self._students.update(student_id=student_id, parents=parse_parents(parents), **fields):
            raise NotFoundError("Student not found")
        logger.info("Updated student %s", student_id)
        return self.get_student(student_id)

    def delete_student(self, student_id: str) -> None:
        if not self._students.delete(student_id):
            raise NotFoundError("Student not found")
        logger.info("Deleted student %s", student_id)

    def get_student(self, student_id: str) -> Student:
        student = self._students.get_by_id(student_id)
        if not student:
            raise NotFoundError("Student not found")
        return student

    def list_students(self, *, course_id: Optional[str] = None) -> Sequence[Student]:
        return self._students.list_all(course_id=course_id or None)

    def courses_of(self, student_id: str) -> Sequence[Enrollment]:
        self.get_student(student_id)
        return self._students.enrollments_of(student_id)

    def students_of_course(self, course_id: str) -> Sequence[EnrolledStudent]:
        return self._students.enrolled_in_course(course_id)
