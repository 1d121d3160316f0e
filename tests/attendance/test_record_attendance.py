from __future__ import annotations

from datetime import date, datetime

import pytest

from club_attendance.attendance.service import AttendanceService, parse_entries
from club_attendance.core.enums import AttendanceStatus
from club_attendance.core.exceptions import NotFoundError, ValidationError
from tests.fakes import InMemoryAttendance, InMemoryCourses, InMemoryStudents, gymnastics

MONDAY = date(2024, 3, 4)
WEDNESDAY = date(2024, 3, 6)


@pytest.fixture
def setup():
    courses = InMemoryCourses()
    level = gymnastics(courses)
    students = InMemoryStudents(courses)
    s1 = students.add("Ayse", "Kaya", [level.course_level_id], student_id="s1")
    s2 = students.add("Mehmet", "Demir", [level.course_level_id], student_id="s2")
    s3 = students.add("Zeynep", "Arslan", [level.course_level_id], student_id="s3")
    attendance = InMemoryAttendance(courses)
    svc = AttendanceService(attendance, courses, students)
    return svc, attendance, level, (s1, s2, s3)


def _statuses(attendance: InMemoryAttendance, day: date):
    return {
        r.student_id: r.status
        for r in attendance.records
        if r.date.date() == day
    }


def test_resubmission_replaces_the_whole_day(setup):
    svc, attendance, level, _ = setup

    first = svc.record_attendance(
        level.course_level_id,
        MONDAY,
        [
            {"student_id": "s1", "status": "PRESENT"},
            {"student_id": "s2", "status": "ABSENT"},
            {"student_id": "s3", "status": "PRESENT"},
        ],
    )
    second = svc.record_attendance(
        level.course_level_id,
        MONDAY,
        [
            {"student_id": "s1", "status": "ABSENT"},
            {"student_id": "s2", "status": "EXCUSED", "notes": "sick"},
        ],
    )

    assert first.count == 3
    assert second.count == 2
    # s3 is gone: the second session is the whole day, not a merge.
    assert _statuses(attendance, MONDAY) == {"s1": AttendanceStatus.ABSENT, "s2": AttendanceStatus.EXCUSED}
    assert len(attendance.records) == 2


def test_other_days_are_untouched(setup):
    svc, attendance, level, _ = setup
    svc.record_attendance(level.course_level_id, WEDNESDAY, [{"student_id": "s1", "status": "PRESENT"}])

    svc.record_attendance(level.course_level_id, MONDAY, [{"student_id": "s2", "status": "PRESENT"}])
    svc.record_attendance(level.course_level_id, MONDAY, [])

    assert _statuses(attendance, WEDNESDAY) == {"s1": AttendanceStatus.PRESENT}
    assert _statuses(attendance, MONDAY) == {}


def test_records_are_stored_at_local_midnight_with_empty_notes(setup):
    svc, attendance, level, _ = setup

    svc.record_attendance(
        level.course_level_id,
        datetime(2024, 3, 4, 17, 45),
        [{"student_id": "s1", "status": "PRESENT"}],
        staff_id="coach-1",
    )

    (record,) = attendance.records
    assert record.date == datetime(2024, 3, 4, 0, 0)
    assert record.notes == ""
    assert record.staff_id == "coach-1"
    assert record.course_id == level.course_id


def test_unknown_level_fails_before_anything_is_deleted(setup):
    svc, attendance, level, _ = setup
    svc.record_attendance(level.course_level_id, MONDAY, [{"student_id": "s1", "status": "PRESENT"}])
    calls = attendance.replace_calls

    with pytest.raises(NotFoundError):
        svc.record_attendance("missing", MONDAY, [{"student_id": "s1", "status": "ABSENT"}])

    assert attendance.replace_calls == calls
    assert _statuses(attendance, MONDAY) == {"s1": AttendanceStatus.PRESENT}


def test_invalid_status_is_rejected():
    with pytest.raises(ValidationError, match="attendance status"):
        parse_entries([{"student_id": "s1", "status": "LATE"}])


def test_duplicate_student_in_session_is_rejected(setup):
    svc, attendance, level, _ = setup

    with pytest.raises(ValidationError):
        svc.record_attendance(
            level.course_level_id,
            MONDAY,
            [{"student_id": "s1", "status": "PRESENT"}, {"student_id": "s1", "status": "ABSENT"}],
        )
    assert attendance.replace_calls == 0


def test_update_attendance(setup):
    svc, attendance, level, _ = setup
    svc.record_attendance(level.course_level_id, MONDAY, [{"student_id": "s1", "status": "ABSENT"}])
    (record,) = attendance.records

    updated = svc.update_attendance(record.attendance_id, "EXCUSED", "  doctor note ")

    assert updated.status == AttendanceStatus.EXCUSED
    assert updated.notes == "doctor note"

    with pytest.raises(NotFoundError):
        svc.update_attendance("missing", "PRESENT")


def test_roster_defaults_to_absent(setup):
    svc, _, level, _ = setup
    svc.record_attendance(level.course_level_id, MONDAY, [{"student_id": "s2", "status": "PRESENT"}])

    rows = {r.student_id: r for r in svc.students_for_attendance(level.course_level_id, MONDAY)}

    assert rows["s1"].status == AttendanceStatus.ABSENT
    assert rows["s1"].attendance_id is None
    assert rows["s2"].status == AttendanceStatus.PRESENT
    assert rows["s2"].attendance_id is not None
    assert set(rows) == {"s1", "s2", "s3"}


def test_student_stats_rounds_rate(setup):
    svc, _, level, _ = setup
    svc.record_attendance(level.course_level_id, date(2024, 3, 4), [{"student_id": "s1", "status": "PRESENT"}])
    svc.record_attendance(level.course_level_id, date(2024, 3, 6), [{"student_id": "s1", "status": "ABSENT"}])
    svc.record_attendance(level.course_level_id, date(2024, 3, 11), [{"student_id": "s1", "status": "EXCUSED"}])

    stats = svc.student_stats("s1")

    assert stats.total_sessions == 3
    assert stats.present_sessions == 1
    assert stats.absent_sessions == 2
    assert stats.attendance_rate == 33.33
    assert svc.student_stats("nobody").attendance_rate == 0.0


def test_list_records_and_recent(setup):
    svc, _, level, _ = setup
    svc.record_attendance(level.course_level_id, date(2024, 3, 4), [{"student_id": "s1", "status": "PRESENT"}])
    svc.record_attendance(level.course_level_id, date(2024, 3, 6), [{"student_id": "s1", "status": "PRESENT"}])

    rows = svc.list_records(student_id="s1", date_from=date(2024, 3, 5), date_to=date(2024, 3, 6))
    assert [r.date.date() for r in rows] == [date(2024, 3, 6)]

    recent = svc.recent_for_course(level.course_id, limit=1)
    assert [r.date.date() for r in recent] == [date(2024, 3, 6)]

    with pytest.raises(ValidationError):
        svc.list_records(date_from=date(2024, 3, 6), date_to=date(2024, 3, 5))
    with pytest.raises(ValidationError):
        svc.recent_for_student("s1", limit=0)


def test_unknown_student_fails_before_anything_is_written(setup):
    svc, attendance, level, _ = setup
    svc.record_attendance(level.course_level_id, MONDAY, [{"student_id": "s1", "status": "PRESENT"}])
    calls = attendance.replace_calls

    with pytest.raises(NotFoundError, match="ghost"):
        svc.record_attendance(
            level.course_level_id,
            MONDAY,
            [{"student_id": "s2", "status": "PRESENT"}, {"student_id": "ghost", "status": "PRESENT"}],
        )

    assert attendance.replace_calls == calls
    assert _statuses(attendance, MONDAY) == {"s1": AttendanceStatus.PRESENT}


def test_update_attendance_accepts_non_text_notes(setup):
    svc, attendance, level, _ = setup
    svc.record_attendance(level.course_level_id, MONDAY, [{"student_id": "s1", "status": "ABSENT"}])
    (record,) = attendance.records

    assert svc.update_attendance(record.attendance_id, "ABSENT", 42).notes == "42"
    assert svc.update_attendance(record.attendance_id, "ABSENT", None).notes == ""


def test_recent_overview_rounds_rate_over_recent_records(setup):
    svc, _, level, _ = setup
    svc.record_attendance(
        level.course_level_id,
        date(2024, 3, 4),
        [{"student_id": "s1", "status": "PRESENT"}, {"student_id": "s2", "status": "ABSENT"}],
    )
    svc.record_attendance(level.course_level_id, date(2024, 3, 6), [{"student_id": "s1", "status": "PRESENT"}])
    svc.record_attendance(level.course_level_id, date(2024, 3, 11), [{"student_id": "s1", "status": "ABSENT"}])

    rows = {r.student_id: r for r in svc.recent_overview(course_id=level.course_id)}

    assert set(rows) == {"s1", "s2", "s3"}
    assert rows["s1"].student_name == "Ayse Kaya"
    assert [r.date.date() for r in rows["s1"].recent] == [date(2024, 3, 11), date(2024, 3, 6), date(2024, 3, 4)]
    assert rows["s1"].attendance_rate == 67
    assert rows["s2"].attendance_rate == 0
    assert rows["s3"].recent == ()

    assert [len(r.recent) for r in svc.recent_overview(course_id="other-course")] == []
    assert len({r.student_id: r for r in svc.recent_overview(limit=1)}["s1"].recent) == 1
