from __future__ import annotations

from typing import Optional, Sequence

from ..common.ids import new_id
from ..core.enums import LevelTier
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, placeholders
from .model import Course, CourseLevel, LevelInput, join_days, split_days
from .repository import CourseRepository


def _to_level(r: dict) -> CourseLevel:
    return CourseLevel(
        course_level_id=r["course_level_id"],
        course_id=r["course_id"],
        level=LevelTier(r["level"]),
        attendance_days=split_days(r["attendance_days"]),
        course_name=r.get("course_name"),
    )


class MySQLCourseRepository(CourseRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _levels_by_course(self, cur, course_ids: Sequence[str]) -> dict[str, list[CourseLevel]]:
        out: dict[str, list[CourseLevel]] = {cid: [] for cid in course_ids}
        if not course_ids:
            return out
        marks = placeholders(course_ids)
        cur.execute(
            f"""
            SELECT cl.course_level_id, cl.course_id, cl.level, cl.attendance_days, c.name AS course_name
            FROM course_levels cl
            JOIN courses c ON c.course_id = cl.course_id
            WHERE cl.course_id IN ({marks})
            ORDER BY cl.level ASC
            """,
            tuple(course_ids),
        )
        for r in fetchall(cur):
            out[r["course_id"]].append(_to_level(r))
        return out

    def list_all(self) -> Sequence[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT c.course_id, c.name, c.description, c.created_at, c.updated_at,
                       (SELECT COUNT(*) FROM enrollments e WHERE e.course_id = c.course_id) AS student_count
                FROM courses c
                ORDER BY c.name ASC
                """
            )
            rows = fetchall(cur)
            levels = self._levels_by_course(cur, [r["course_id"] for r in rows])
            return [
                Course(
                    course_id=r["course_id"],
                    name=r["name"],
                    description=r.get("description"),
                    levels=tuple(levels[r["course_id"]]),
                    student_count=int(r.get("student_count") or 0),
                    created_at=r.get("created_at"),
                    updated_at=r.get("updated_at"),
                )
                for r in rows
            ]

    def get_by_id(self, course_id: str) -> Optional[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT c.course_id, c.name, c.description, c.created_at, c.updated_at,
                       (SELECT COUNT(*) FROM enrollments e WHERE e.course_id = c.course_id) AS student_count
                FROM courses c
                WHERE c.course_id=%s
                """,
                (course_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            levels = self._levels_by_course(cur, [course_id])
            return Course(
                course_id=r["course_id"],
                name=r["name"],
                description=r.get("description"),
                levels=tuple(levels[course_id]),
                student_count=int(r.get("student_count") or 0),
                created_at=r.get("created_at"),
                updated_at=r.get("updated_at"),
            )

    def get_level(self, course_level_id: str) -> Optional[CourseLevel]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT cl.course_level_id, cl.course_id, cl.level, cl.attendance_days, c.name AS course_name
                FROM course_levels cl
                JOIN courses c ON c.course_id = cl.course_id
                WHERE cl.course_level_id=%s
                """,
                (course_level_id,),
            )
            r = fetchone(cur)
            return _to_level(r) if r else None

    def list_levels(self, course_id: str) -> Sequence[CourseLevel]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._levels_by_course(cur, [course_id])[course_id]

    def create(self, *, name: str, description: Optional[str], levels: Sequence[LevelInput]) -> str:
        course_id = new_id()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO courses(course_id, name, description) VALUES(%s,%s,%s)",
                (course_id, name, description),
            )
            cur.executemany(
                """
                INSERT INTO course_levels(course_level_id, course_id, level, attendance_days)
                VALUES(%s,%s,%s,%s)
                """,
                [(new_id(), course_id, lvl.level.value, join_days(lvl.attendance_days)) for lvl in levels],
            )
        return course_id

    def update(self, *, course_id: str, name: str, description: Optional[str], levels: Sequence[LevelInput]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE courses SET name=%s, description=%s WHERE course_id=%s",
                (name, description, course_id),
            )
            cur.execute("SELECT 1 FROM courses WHERE course_id=%s", (course_id,))
            if not fetchone(cur):
                return False

            cur.execute("SELECT course_level_id, level FROM course_levels WHERE course_id=%s", (course_id,))
            existing = {r["level"]: r["course_level_id"] for r in fetchall(cur)}

            kept: set[str] = set()
            for lvl in levels:
                days = join_days(lvl.attendance_days)
                level_id = existing.get(lvl.level.value)
                if level_id:
                    cur.execute(
                        "UPDATE course_levels SET attendance_days=%s WHERE course_level_id=%s",
                        (days, level_id),
                    )
                else:
                    level_id = new_id()
                    cur.execute(
                        """
                        INSERT INTO course_levels(course_level_id, course_id, level, attendance_days)
                        VALUES(%s,%s,%s,%s)
                        """,
                        (level_id, course_id, lvl.level.value, days),
                    )
                kept.add(level_id)

            for level_id in set(existing.values()) - kept:
                # Levels with enrolled students are left untouched.
                cur.execute(
                    """
                    DELETE FROM course_levels
                    WHERE course_level_id=%s
                      AND NOT EXISTS (SELECT 1 FROM enrollments e WHERE e.course_level_id=%s)
                    """,
                    (level_id, level_id),
                )
            return True
