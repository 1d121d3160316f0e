from __future__ import annotations

from dataclasses import dataclass

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_PAYMENT_MAX_YEAR, DEFAULT_PAYMENT_MIN_YEAR
from .courses.mysql_course_repository import MySQLCourseRepository
from .courses.service import CourseService
from .database.connection import DBConfig, DatabaseConnection
from .payments.mysql_payment_repository import MySQLPaymentRepository
from .payments.service import PaymentService
from .students.mysql_student_repository import MySQLStudentRepository
from .students.service import StudentService


@dataclass(frozen=True)
class Container:
    course_service: CourseService
    student_service: StudentService
    attendance_service: AttendanceService
    payment_service: PaymentService


def build_container(
    *,
    db_config: dict,
    payment_min_year: int = DEFAULT_PAYMENT_MIN_YEAR,
    payment_max_year: int = DEFAULT_PAYMENT_MAX_YEAR,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    courses_repo = MySQLCourseRepository(conn)
    students_repo = MySQLStudentRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    payments_repo = MySQLPaymentRepository(conn)

    return Container(
        course_service=CourseService(courses_repo),
        student_service=StudentService(students_repo, courses_repo),
        attendance_service=AttendanceService(attendance_repo, courses_repo, students_repo),
        payment_service=PaymentService(
            payments_repo,
            courses_repo,
            students_repo,
            min_year=payment_min_year,
            max_year=payment_max_year,
        ),
    )
