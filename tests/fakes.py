from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from club_attendance.attendance.model import AttendanceRecord
from club_attendance.core.enums import AttendanceStatus, Gender, LevelTier, PaymentStatus, Weekday
from club_attendance.core.exceptions import NotFoundError
from club_attendance.courses.model import Course, CourseLevel
from club_attendance.payments.model import Payment, PaymentWrite
from club_attendance.students.model import EnrolledStudent, Enrollment, ParentContacts, Student


class InMemoryCourses:
    def __init__(self):
        self.courses: dict[str, Course] = {}
        self.levels: dict[str, CourseLevel] = {}
        # Set by InMemoryStudents; levels with enrollments survive an update.
        self.students: Optional["InMemoryStudents"] = None
        self._id = 0

    def _next(self, prefix: str) -> str:
        self._id += 1
        return f"{prefix}-{self._id}"

    def add_level(self, course_id: str, course_name: str, level: LevelTier, days, *, level_id: Optional[str] = None):
        level_id = level_id or self._next("lvl")
        cl = CourseLevel(
            course_level_id=level_id,
            course_id=course_id,
            level=level,
            attendance_days=tuple(days),
            course_name=course_name,
        )
        self.levels[level_id] = cl
        self.courses.setdefault(course_id, Course(course_id=course_id, name=course_name))
        return cl

    def list_all(self):
        return [self.get_by_id(cid) for cid in self.courses]

    def get_by_id(self, course_id: str) -> Optional[Course]:
        course = self.courses.get(course_id)
        if not course:
            return None
        return replace(course, levels=tuple(self.list_levels(course_id)))

    def get_level(self, course_level_id: str) -> Optional[CourseLevel]:
        return self.levels.get(course_level_id)

    def list_levels(self, course_id: str):
        return [lvl for lvl in self.levels.values() if lvl.course_id == course_id]

    def create(self, *, name, description, levels) -> str:
        course_id = self._next("course")
        self.courses[course_id] = Course(course_id=course_id, name=name, description=description)
        for li in levels:
            self.add_level(course_id, name, li.level, li.attendance_days)
        return course_id

    def update(self, *, course_id, name, description, levels) -> bool:
        if course_id not in self.courses:
            return False
        self.courses[course_id] = Course(course_id=course_id, name=name, description=description)
        by_tier = {lvl.level: lvl for lvl in self.list_levels(course_id)}
        for li in levels:
            existing = by_tier.pop(li.level, None)
            if existing:
                self.levels[existing.course_level_id] = replace(
                    existing, attendance_days=li.attendance_days, course_name=name
                )
            else:
                self.add_level(course_id, name, li.level, li.attendance_days)
        for gone in by_tier.values():
            if self.students and self.students.enrolled_in_level(gone.course_level_id):
                continue
            del self.levels[gone.course_level_id]
        return True


class InMemoryStudents:
    def __init__(self, courses: InMemoryCourses):
        self._courses = courses
        courses.students = self
        self.students: dict[str, Student] = {}
        self.level_ids: dict[str, list[str]] = {}
        self._id = 0

    def add(self, first_name: str, last_name: str, level_ids, *, student_id: Optional[str] = None) -> Student:
        self._id += 1
        student = Student(
            student_id=student_id or f"stu-{self._id}",
            first_name=first_name,
            last_name=last_name,
            birth_date=date(2012, 5, 1),
            gender=Gender.FEMALE,
        )
        self.students[student.student_id] = student
        self.level_ids[student.student_id] = list(level_ids)
        return student

    def get_by_id(self, student_id: str) -> Optional[Student]:
        return self.students.get(student_id)

    def list_all(self, *, course_id=None):
        if not course_id:
            return list(self.students.values())
        return [e.student for e in self.enrolled_in_course(course_id)]

    def create(self, *, first_name, last_name, birth_date, gender, parents: ParentContacts, course_level_ids) -> str:
        self._id += 1
        student_id = f"stu-{self._id}"
        self.students[student_id] = Student(
            student_id=student_id,
            first_name=first_name,
            last_name=last_name,
            birth_date=birth_date,
            gender=gender,
            parents=parents,
        )
        self.level_ids[student_id] = list(course_level_ids)
        return student_id

    def update(self, *, student_id, first_name, last_name, birth_date, gender, parents, course_level_ids) -> bool:
        if student_id not in self.students:
            return False
        self.students[student_id] = replace(
            self.students[student_id],
            first_name=first_name,
            last_name=last_name,
            birth_date=birth_date,
            gender=gender,
            parents=parents,
        )
        self.level_ids[student_id] = list(course_level_ids)
        return True

    def delete(self, student_id: str) -> bool:
        self.level_ids.pop(student_id, None)
        return self.students.pop(student_id, None) is not None

    def enrollments_of(self, student_id: str):
        out = []
        for level_id in self.level_ids.get(student_id, []):
            lvl = self._courses.get_level(level_id)
            out.append(
                Enrollment(
                    student_id=student_id,
                    course_id=lvl.course_id,
                    course_level_id=level_id,
                    course_name=lvl.course_name,
                    level=lvl.level,
                    attendance_days=lvl.attendance_days,
                )
            )
        return out

    def _enrolled(self, predicate):
        return [
            EnrolledStudent(student=self.students[sid], enrollment=e)
            for sid in self.students
            for e in self.enrollments_of(sid)
            if predicate(e)
        ]

    def enrolled_in_course(self, course_id: str):
        return self._enrolled(lambda e: e.course_id == course_id)

    def enrolled_in_level(self, course_level_id: str):
        return self._enrolled(lambda e: e.course_level_id == course_level_id)


class InMemoryAttendance:
    def __init__(self, courses: InMemoryCourses):
        self._courses = courses
        self.records: list[AttendanceRecord] = []
        self.replace_calls = 0
        self._id = 0

    def _in_window(self, r: AttendanceRecord, course_level_id: str, start: datetime, end: datetime) -> bool:
        return r.course_level_id == course_level_id and start <= r.date <= end

    def exists_in_window(self, *, course_level_id, start, end) -> bool:
        return any(self._in_window(r, course_level_id, start, end) for r in self.records)

    def list_in_window(self, *, course_level_id, start, end):
        return [r for r in self.records if self._in_window(r, course_level_id, start, end)]

    def replace_window(self, *, course_level_id, start, end, recorded_at, entries, staff_id=None) -> int:
        self.replace_calls += 1
        level = self._courses.get_level(course_level_id)
        if not level:
            raise NotFoundError("Course level not found")
        self.records = [r for r in self.records if not self._in_window(r, course_level_id, start, end)]
        for e in entries:
            self._id += 1
            self.records.append(
                AttendanceRecord(
                    attendance_id=f"att-{self._id}",
                    student_id=e.student_id,
                    course_id=level.course_id,
                    course_level_id=course_level_id,
                    date=recorded_at,
                    status=e.status,
                    notes=e.notes,
                    staff_id=staff_id,
                )
            )
        return len(entries)

    def get_by_id(self, attendance_id: str) -> Optional[AttendanceRecord]:
        return next((r for r in self.records if r.attendance_id == attendance_id), None)

    def update_record(self, *, attendance_id, status, notes) -> bool:
        for i, r in enumerate(self.records):
            if r.attendance_id == attendance_id:
                self.records[i] = replace(r, status=status, notes=notes)
                return True
        return False

    def list_records(self, *, course_id=None, course_level_id=None, student_id=None, start=None, end=None):
        out = self.records
        if course_id:
            out = [r for r in out if r.course_id == course_id]
        if course_level_id:
            out = [r for r in out if r.course_level_id == course_level_id]
        if student_id:
            out = [r for r in out if r.student_id == student_id]
        if start:
            out = [r for r in out if r.date >= start]
        if end:
            out = [r for r in out if r.date <= end]
        return sorted(out, key=lambda r: r.date, reverse=True)

    def count_for_student(self, *, student_id, course_id=None):
        rows = self.list_records(student_id=student_id, course_id=course_id)
        return len(rows), sum(1 for r in rows if r.status == AttendanceStatus.PRESENT)

    def recent_for_student(self, *, student_id, limit, course_id=None):
        return self.list_records(student_id=student_id, course_id=course_id)[:limit]

    def recent_for_course(self, *, course_id, limit):
        return self.list_records(course_id=course_id)[:limit]


class InMemoryPayments:
    def __init__(self):
        self.rows: dict[tuple[str, str, int, int], Payment] = {}
        self.fail_for: set[str] = set()
        self._id = 0

    def get_for_period(self, *, student_id, course_level_id, month, year):
        return self.rows.get((student_id, course_level_id, month, year))

    def upsert(self, write: PaymentWrite) -> Payment:
        if write.student_id in self.fail_for:
            raise RuntimeError("connection lost")
        key = (write.student_id, write.course_level_id, write.month, write.year)
        existing = self.rows.get(key)
        if existing:
            payment = replace(
                existing,
                status=write.status,
                amount=write.amount,
                notes=write.notes,
                paid_at=write.paid_at,
                updated_at=write.written_at,
            )
        else:
            self._id += 1
            payment = Payment(
                payment_id=f"pay-{self._id}",
                student_id=write.student_id,
                course_id=write.course_id,
                course_level_id=write.course_level_id,
                month=write.month,
                year=write.year,
                status=write.status,
                amount=write.amount,
                notes=write.notes,
                paid_at=write.paid_at,
                created_at=write.written_at,
                updated_at=write.written_at,
            )
        self.rows[key] = payment
        return payment

    def list_for_level_month(self, *, course_level_id, month, year):
        return [p for p in self.rows.values() if (p.course_level_id, p.month, p.year) == (course_level_id, month, year)]

    def list_for_student(self, *, student_id, year):
        rows = [p for p in self.rows.values() if p.student_id == student_id and p.year == year]
        return sorted(rows, key=lambda p: p.month)

    def history(self, *, course_id, course_level_id, year):
        rows = [
            p
            for p in self.rows.values()
            if (p.course_id, p.course_level_id, p.year) == (course_id, course_level_id, year)
        ]
        return sorted(rows, key=lambda p: p.month)

    def count_for_month(self, *, course_id, course_level_id, month, year) -> int:
        return sum(
            1
            for p in self.rows.values()
            if (p.course_id, p.course_level_id, p.month, p.year) == (course_id, course_level_id, month, year)
        )

    def stats(self, *, year, course_id=None, course_level_id=None, month=None):
        rows = [p for p in self.rows.values() if p.year == year]
        if course_id:
            rows = [p for p in rows if p.course_id == course_id]
        if course_level_id:
            rows = [p for p in rows if p.course_level_id == course_level_id]
        if month:
            rows = [p for p in rows if p.month == month]
        counts: dict[PaymentStatus, int] = {}
        for p in rows:
            counts[p.status] = counts.get(p.status, 0) + 1
        total = sum((p.amount or Decimal("0") for p in rows if p.status == PaymentStatus.PAID), Decimal("0"))
        return counts, total


def gymnastics(courses: InMemoryCourses) -> CourseLevel:
    """Course level that meets on Monday and Wednesday."""
    return courses.add_level(
        "course-gym",
        "Gymnastics",
        LevelTier.TEMEL,
        (Weekday.MONDAY, Weekday.WEDNESDAY),
        level_id="lvl-gym-temel",
    )


class StubCursor:
    """Records SQL; ``fetchone`` answers from ``answers`` keyed by a substring of the last statement."""

    def __init__(self, answers=None, *, rowcount: int = 0, fail_on: Optional[str] = None):
        self.answers = answers or {}
        self.fail_on = fail_on
        self.statements: list[str] = []
        self.rowcount = 0
        self.closed = False
        self._rowcount = rowcount
        self._last = ""
        self.last_params = None

    def _run(self, sql: str, params) -> None:
        sql = " ".join(sql.split())
        self.statements.append(sql)
        self._last = sql
        self.last_params = params
        if self.fail_on and self.fail_on in sql:
            raise RuntimeError(f"failed: {self.fail_on}")

    def execute(self, sql, params=None):
        self._run(sql, params)
        self.rowcount = self._rowcount if self._last.startswith("UPDATE") else 0

    def executemany(self, sql, seq):
        seq = list(seq)
        self._run(sql, seq)
        self.rowcount = len(seq)

    def fetchone(self):
        for key, value in self.answers.items():
            if key in self._last:
                return value(self.last_params) if callable(value) else value
        return None

    def fetchall(self):
        return []

    def close(self):
        self.closed = True


class StubConnection:
    def __init__(self, cursor: StubCursor):
        self.cur = cursor
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self, dictionary: bool = False):
        return self.cur

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class StubConnectionFactory:
    def __init__(self, conn: StubConnection):
        self.conn = conn

    def connect(self, **_):
        return self.conn
