from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..common.ids import new_id
from ..core.enums import Gender, LevelTier
from ..courses.model import split_days
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, placeholders
from .model import EnrolledStudent, Enrollment, ParentContacts, Student
from .repository import StudentRepository

_STUDENT_COLUMNS = """
    s.student_id, s.first_name, s.last_name, s.birth_date, s.gender,
    s.mother_first_name, s.mother_last_name, s.mother_phone,
    s.father_first_name, s.father_last_name, s.father_phone,
    s.created_at, s.updated_at
"""

_ENROLLMENT_COLUMNS = """
    e.student_id, e.course_id, e.course_level_id, e.enrolled_at,
    c.name AS course_name, cl.level, cl.attendance_days
"""


def _to_student(r: dict) -> Student:
    return Student(
        student_id=r["student_id"],
        first_name=r["first_name"],
        last_name=r["last_name"],
        birth_date=r["birth_date"],
        gender=Gender(r["gender"]),
        parents=ParentContacts(
            mother_first_name=r.get("mother_first_name"),
            mother_last_name=r.get("mother_last_name"),
            mother_phone=r.get("mother_phone"),
            father_first_name=r.get("father_first_name"),
            father_last_name=r.get("father_last_name"),
            father_phone=r.get("father_phone"),
        ),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def _to_enrollment(r: dict) -> Enrollment:
    return Enrollment(
        student_id=r["student_id"],
        course_id=r["course_id"],
        course_level_id=r["course_level_id"],
        enrolled_at=r.get("enrolled_at"),
        course_name=r.get("course_name"),
        level=LevelTier(r["level"]) if r.get("level") else None,
        attendance_days=split_days(r.get("attendance_days")),
    )


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, student_id: str) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_STUDENT_COLUMNS} FROM students s WHERE s.student_id=%s", (student_id,))
            r = fetchone(cur)
            return _to_student(r) if r else None

    def list_all(self, *, course_id: Optional[str] = None) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            if course_id:
                cur.execute(
                    f"""
                    SELECT {_STUDENT_COLUMNS} FROM students s
                    WHERE EXISTS (SELECT 1 FROM enrollments e WHERE e.student_id = s.student_id AND e.course_id=%s)
                    ORDER BY s.first_name ASC
                    """,
                    (course_id,),
                )
            else:
                cur.execute(f"SELECT {_STUDENT_COLUMNS} FROM students s ORDER BY s.first_name ASC")
            return [_to_student(r) for r in fetchall(cur)]

    def _level_courses(self, cur, course_level_ids: Sequence[str]) -> dict[str, str]:
        if not course_level_ids:
            return {}
        cur.execute(
            f"SELECT course_level_id, course_id FROM course_levels WHERE course_level_id IN ({placeholders(course_level_ids)})",
            tuple(course_level_ids),
        )
        return {r["course_level_id"]: r["course_id"] for r in fetchall(cur)}

    def _enroll(self, cur, student_id: str, course_level_ids: Sequence[str]) -> None:
        level_courses = self._level_courses(cur, course_level_ids)
        rows = [(student_id, level_courses[lid], lid) for lid in course_level_ids if lid in level_courses]
        if rows:
            cur.executemany(
                "INSERT INTO enrollments(student_id, course_id, course_level_id) VALUES(%s,%s,%s)",
                rows,
            )

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
        student_id = new_id()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO students(
                    student_id, first_name, last_name, birth_date, gender,
                    mother_first_name, mother_last_name, mother_phone,
                    father_first_name, father_last_name, father_phone)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    student_id, first_name, last_name, birth_date, gender.value,
                    parents.mother_first_name, parents.mother_last_name, parents.mother_phone,
                    parents.father_first_name, parents.father_last_name, parents.father_phone,
                ),
            )
            self._enroll(cur, student_id, course_level_ids)
        return student_id

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 FROM students WHERE student_id=%s", (student_id,))
            if not fetchone(cur):
                return False
            cur.execute(
                """
                UPDATE students
                SET first_name=%s, last_name=%s, birth_date=%s, gender=%s,
                    mother_first_name=%s, mother_last_name=%s, mother_phone=%s,
                    father_first_name=%s, father_last_name=%s, father_phone=%s
                WHERE student_id=%s
                """,
                (
                    first_name, last_name, birth_date, gender.value,
                    parents.mother_first_name, parents.mother_last_name, parents.mother_phone,
                    parents.father_first_name, parents.father_last_name, parents.father_phone,
                    student_id,
                ),
            )
            cur.execute("DELETE FROM enrollments WHERE student_id=%s", (student_id,))
            self._enroll(cur, student_id, course_level_ids)
            return True

    def delete(self, student_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM enrollments WHERE student_id=%s", (student_id,))
            cur.execute("DELETE FROM students WHERE student_id=%s", (student_id,))
            return cur.rowcount > 0

    def enrollments_of(self, student_id: str) -> Sequence[Enrollment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_ENROLLMENT_COLUMNS}
                FROM enrollments e
                JOIN courses c ON c.course_id = e.course_id
                JOIN course_levels cl ON cl.course_level_id = e.course_level_id
                WHERE e.student_id=%s
                ORDER BY e.enrolled_at DESC
                """,
                (student_id,),
            )
            return [_to_enrollment(r) for r in fetchall(cur)]

    def _enrolled_where(self, column: str, value: str) -> Sequence[EnrolledStudent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_STUDENT_COLUMNS}, {_ENROLLMENT_COLUMNS}
                FROM enrollments e
                JOIN students s ON s.student_id = e.student_id
                JOIN courses c ON c.course_id = e.course_id
                JOIN course_levels cl ON cl.course_level_id = e.course_level_id
                WHERE e.{column}=%s
                ORDER BY s.first_name ASC, s.last_name ASC
                """,
                (value,),
            )
            return [EnrolledStudent(student=_to_student(r), enrollment=_to_enrollment(r)) for r in fetchall(cur)]

    def enrolled_in_course(self, course_id: str) -> Sequence[EnrolledStudent]:
        return self._enrolled_where("course_id", course_id)

    def enrolled_in_level(self, course_level_id: str) -> Sequence[EnrolledStudent]:
        return self._enrolled_where("course_level_id", course_level_id)
