from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import optional_amount, optional_text, parse_enum, require_month, require_non_empty, require_year
from ..core.constants import DEFAULT_PAYMENT_MAX_YEAR, DEFAULT_PAYMENT_MIN_YEAR
from ..core.enums import PaymentStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..courses.model import CourseLevel
from ..courses.repository import CourseRepository
from ..students.repository import StudentRepository
from .model import BatchResult, MonthlyControl, Payment, PaymentControlRow, PaymentStats, PaymentWrite
from .repository import PaymentRepository

logger = logging.getLogger(__name__)


class PaymentService:
    """Use case: monthly payment control per course level."""

    def __init__(
        self,
        payments: PaymentRepository,
        courses: CourseRepository,
        students: StudentRepository,
        *,
        min_year: int = DEFAULT_PAYMENT_MIN_YEAR,
        max_year: int = DEFAULT_PAYMENT_MAX_YEAR,
        clock: Callable[[], datetime] = now_local,
    ):
        if int(min_year) > int(max_year):
            raise ValueError("min_year must not exceed max_year")
        self._payments = payments
        self._courses = courses
        self._students = students
        self._min_year = int(min_year)
        self._max_year = int(max_year)
        self._clock = clock

    def _year(self, year) -> int:
        return require_year(year, min_year=self._min_year, max_year=self._max_year)

    def _year_or_current(self, year) -> int:
        if year is None or year == "":
            return self._clock().year
        return self._year(year)

    def _level_of_course(self, course_id: str, course_level_id: str) -> CourseLevel:
        level = self._courses.get_level(course_level_id)
        if not level:
            raise NotFoundError("Course level not found")
        if level.course_id != course_id:
            raise ValidationError("Course level does not belong to the given course")
        return level

    def upsert_payment(
        self,
        *,
        student_id: str,
        course_id: str,
        course_level_id: str,
        month,
        year,
        status,
        amount=None,
        notes: Optional[str] = None,
    ) -> Payment:
        """Create or update the payment of (student, level, month, year).

        ``paid_at`` is recomputed on every write: now for PAID, cleared otherwise.
        """
        month = require_month(month)
        year = self._year(year)
        status = parse_enum(PaymentStatus, status, "payment status")
        amount = optional_amount(amount)
        student_id = require_non_empty(student_id, "Student")

        self._level_of_course(course_id, course_level_id)
        if not self._students.get_by_id(student_id):
            raise NotFoundError("Student not found")

        now = self._clock()
        payment = self._payments.upsert(
            PaymentWrite(
                student_id=student_id,
                course_id=course_id,
                course_level_id=course_level_id,
                month=month,
                year=year,
                status=status,
                amount=amount,
                notes=optional_text(notes),
                paid_at=now if status == PaymentStatus.PAID else None,
                written_at=now,
            )
        )
        logger.info(
            "Payment %s/%s for student %s level %s -> %s",
            month,
            year,
            student_id,
            course_level_id,
            status.value,
        )
        return payment

    def upsert_batch(
        self,
        *,
        course_id: str,
        course_level_id: str,
        month,
        year,
        entries: Iterable[Mapping],
    ) -> BatchResult:
        """Upsert one payment per entry without cross-row atomicity.

        Rows saved before a failure stay saved; failures are reported per
        student so the caller can recheck them.
        """
        month = require_month(month)
        year = self._year(year)
        self._level_of_course(course_id, course_level_id)

        saved: list[Payment] = []
        failed: list[tuple[str, str]] = []
        for raw in entries or []:
            if not isinstance(raw, Mapping):
                raw = {}
            student_id = str(raw.get("student_id") or "")
            try:
                saved.append(
                    self.upsert_payment(
                        student_id=student_id,
                        course_id=course_id,
                        course_level_id=course_level_id,
                        month=month,
                        year=year,
                        status=raw.get("status"),
                        amount=raw.get("amount"),
                        notes=raw.get("notes"),
                    )
                )
            except Exception as e:
                logger.warning("Payment batch entry failed for student %s: %s", student_id or "?", e, exc_info=True)
                failed.append((student_id, str(e)))

        if failed:
            logger.warning(
                "Payment batch for level %s %s/%s: %d saved, %d failed",
                course_level_id,
                month,
                year,
                len(saved),
                len(failed),
            )
        return BatchResult(saved=tuple(saved), failed=tuple(failed))

    def students_for_payment_control(self, *, course_id: str, course_level_id: str, month, year) -> list[PaymentControlRow]:
        month = require_month(month)
        year = self._year(year)
        self._level_of_course(course_id, course_level_id)

        by_student = {
            p.student_id: p
            for p in self._payments.list_for_level_month(course_level_id=course_level_id, month=month, year=year)
        }
        return [
            PaymentControlRow(
                student=e.student,
                course_id=e.enrollment.course_id,
                course_level_id=e.enrollment.course_level_id,
                payment=by_student.get(e.student.student_id),
            )
            for e in self._students.enrolled_in_level(course_level_id)
            if e.enrollment.course_id == course_id
        ]

    def student_payments(self, student_id: str, *, year=None) -> Sequence[Payment]:
        return self._payments.list_for_student(student_id=student_id, year=self._year_or_current(year))

    def payment_history(self, *, course_id: str, course_level_id: str, year=None) -> Sequence[Payment]:
        return self._payments.history(
            course_id=course_id,
            course_level_id=course_level_id,
            year=self._year_or_current(year),
        )

    def check_monthly_control(self, *, course_id: str, course_level_id: str, month, year) -> MonthlyControl:
        count = self._payments.count_for_month(
            course_id=course_id,
            course_level_id=course_level_id,
            month=require_month(month),
            year=self._year(year),
        )
        return MonthlyControl(has_control=count > 0, payment_count=count)

    def payment_stats(
        self,
        *,
        course_id: Optional[str] = None,
        course_level_id: Optional[str] = None,
        month=None,
        year=None,
    ) -> PaymentStats:
        counts, total = self._payments.stats(
            year=self._year_or_current(year),
            course_id=course_id or None,
            course_level_id=course_level_id or None,
            month=require_month(month) if month not in (None, "") else None,
        )
        return PaymentStats(
            counts={s: int(counts.get(s, 0)) for s in PaymentStatus},
            total_paid_amount=total,
        )
