from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence, Tuple

from ..common.ids import new_id
from ..core.enums import AttendanceStatus, LevelTier
from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, where_clause
from .model import AttendanceEntry, AttendanceRecord
from .repository import AttendanceRepository

_SELECT = """
    SELECT
        a.attendance_id, a.student_id, a.course_id, a.course_level_id, a.date,
        a.status, a.notes, a.staff_id, a.created_at,
        CONCAT(s.first_name, ' ', s.last_name) AS student_name,
        c.name AS course_name, cl.level
    FROM attendance a
    JOIN students s ON s.student_id = a.student_id
    JOIN courses c ON c.course_id = a.course_id
    JOIN course_levels cl ON cl.course_level_id = a.course_level_id
"""


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=r["attendance_id"],
        student_id=r["student_id"],
        course_id=r["course_id"],
        course_level_id=r["course_level_id"],
        date=r["date"],
        status=AttendanceStatus(r["status"]),
        notes=r.get("notes") or "",
        staff_id=r.get("staff_id"),
        created_at=r.get("created_at"),
        student_name=r.get("student_name"),
        course_name=r.get("course_name"),
        level=LevelTier(r["level"]) if r.get("level") else None,
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def exists_in_window(self, *, course_level_id: str, start: datetime, end: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 FROM attendance WHERE course_level_id=%s AND date BETWEEN %s AND %s LIMIT 1",
                (course_level_id, start, end),
            )
            return fetchone(cur) is not None

    def list_in_window(self, *, course_level_id: str, start: datetime, end: datetime) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE a.course_level_id=%s AND a.date BETWEEN %s AND %s ORDER BY s.first_name ASC",
                (course_level_id, start, end),
            )
            return [_to_record(r) for r in fetchall(cur)]

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
        # Lookup, delete and insert share one transaction: a failure at any
        # step rolls the delete back.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT course_id FROM course_levels WHERE course_level_id=%s", (course_level_id,))
            level = fetchone(cur)
            if not level:
                raise NotFoundError("Course level not found")
            course_id = level["course_id"]

            cur.execute(
                "DELETE FROM attendance WHERE course_level_id=%s AND date BETWEEN %s AND %s",
                (course_level_id, start, end),
            )
            if entries:
                cur.executemany(
                    """
                    INSERT INTO attendance(
                        attendance_id, student_id, course_id, course_level_id, staff_id, date, status, notes)
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    [
                        (
                            new_id(),
                            e.student_id,
                            course_id,
                            course_level_id,
                            staff_id,
                            recorded_at,
                            e.status.value,
                            e.notes or "",
                        )
                        for e in entries
                    ],
                )
            return len(entries)

    def get_by_id(self, attendance_id: str) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE a.attendance_id=%s", (attendance_id,))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def update_record(self, *, attendance_id: str, status: AttendanceStatus, notes: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE attendance SET status=%s, notes=%s WHERE attendance_id=%s",
                (status.value, notes, attendance_id),
            )
            if cur.rowcount > 0:
                return True
            # rowcount is 0 when the values did not change; check existence.
            cur.execute("SELECT 1 FROM attendance WHERE attendance_id=%s", (attendance_id,))
            return fetchone(cur) is not None

    def list_records(
        self,
        *,
        course_id: Optional[str] = None,
        course_level_id: Optional[str] = None,
        student_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[AttendanceRecord]:
        clauses: list[str] = []
        params: list[object] = []

        if course_id:
            clauses.append("a.course_id=%s")
            params.append(course_id)
        if course_level_id:
            clauses.append("a.course_level_id=%s")
            params.append(course_level_id)
        if student_id:
            clauses.append("a.student_id=%s")
            params.append(student_id)
        if start is not None:
            clauses.append("a.date >= %s")
            params.append(start)
        if end is not None:
            clauses.append("a.date <= %s")
            params.append(end)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} {where_clause(clauses)} ORDER BY a.date DESC, s.first_name ASC",
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def count_for_student(self, *, student_id: str, course_id: Optional[str] = None) -> Tuple[int, int]:
        clauses = ["student_id=%s"]
        params: list[object] = [student_id]
        if course_id:
            clauses.append("course_id=%s")
            params.append(course_id)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS total, COALESCE(SUM(status='PRESENT'), 0) AS present
                FROM attendance
                {where_clause(clauses)}
                """,
                tuple(params),
            )
            r = fetchone(cur) or {}
            return int(r.get("total") or 0), int(r.get("present") or 0)

    def recent_for_student(
        self, *, student_id: str, limit: int, course_id: Optional[str] = None
    ) -> Sequence[AttendanceRecord]:
        clauses = ["a.student_id=%s"]
        params: list[object] = [student_id]
        if course_id:
            clauses.append("a.course_id=%s")
            params.append(course_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} {where_clause(clauses)} ORDER BY a.date DESC LIMIT %s",
                (*params, int(limit)),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def recent_for_course(self, *, course_id: str, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE a.course_id=%s ORDER BY a.date DESC LIMIT %s", (course_id, int(limit)))
            return [_to_record(r) for r in fetchall(cur)]
