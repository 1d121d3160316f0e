from datetime import datetime

import pytest

from club_attendance.attendance.model import AttendanceEntry
from club_attendance.attendance.mysql_attendance_repository import MySQLAttendanceRepository
from club_attendance.core.enums import AttendanceStatus
from club_attendance.core.exceptions import NotFoundError
from tests.fakes import StubConnection, StubConnectionFactory, StubCursor

START = datetime(2024, 3, 4)
END = datetime(2024, 3, 4, 23, 59, 59, 999000)
ENTRIES = [
    AttendanceEntry(student_id="s1", status=AttendanceStatus.PRESENT),
    AttendanceEntry(student_id="s2", status=AttendanceStatus.ABSENT, notes="late bus"),
]


def _repo(cursor: StubCursor):
    conn = StubConnection(cursor)
    return MySQLAttendanceRepository(StubConnectionFactory(conn)), conn


def _replace(repo, entries=ENTRIES, course_level_id="lvl-1"):
    return repo.replace_window(
        course_level_id=course_level_id,
        start=START,
        end=END,
        recorded_at=START,
        entries=entries,
        staff_id="coach-1",
    )


def test_replace_window_deletes_and_inserts_in_one_commit():
    cursor = StubCursor({"FROM course_levels": {"course_id": "course-1"}})
    repo, conn = _repo(cursor)

    assert _replace(repo) == 2

    assert [s.split()[0] for s in cursor.statements] == ["SELECT", "DELETE", "INSERT"]
    assert conn.committed is True
    assert conn.rolled_back is False
    assert conn.closed is True
    rows = cursor.last_params
    assert [(r[1], r[2], r[4], r[6], r[7]) for r in rows] == [
        ("s1", "course-1", "coach-1", "PRESENT", ""),
        ("s2", "course-1", "coach-1", "ABSENT", "late bus"),
    ]


def test_insert_failure_rolls_back_the_delete():
    cursor = StubCursor({"FROM course_levels": {"course_id": "course-1"}}, fail_on="INSERT INTO attendance")
    repo, conn = _repo(cursor)

    with pytest.raises(RuntimeError):
        _replace(repo)

    assert any(s.startswith("DELETE") for s in cursor.statements)
    assert conn.committed is False
    assert conn.rolled_back is True
    assert conn.closed is True


def test_unknown_level_raises_before_delete():
    cursor = StubCursor()
    repo, conn = _repo(cursor)

    with pytest.raises(NotFoundError):
        _replace(repo, course_level_id="missing")

    assert not any(s.startswith("DELETE") for s in cursor.statements)
    assert conn.committed is False
    assert conn.rolled_back is True


def test_empty_session_only_clears_the_day():
    cursor = StubCursor({"FROM course_levels": {"course_id": "course-1"}})
    repo, conn = _repo(cursor)

    assert _replace(repo, entries=[]) == 0

    assert [s.split()[0] for s in cursor.statements] == ["SELECT", "DELETE"]
    assert conn.committed is True
