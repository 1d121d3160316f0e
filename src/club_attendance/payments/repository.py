from __future__ import annotations

from decimal import Decimal
from typing import Dict, Optional, Protocol, Sequence, Tuple

from ..core.enums import PaymentStatus
from .model import Payment, PaymentWrite


class PaymentRepository(Protocol):
    def get_for_period(self, *, student_id: str, course_level_id: str, month: int, year: int) -> Optional[Payment]:
        raise NotImplementedError

    def upsert(self, write: PaymentWrite) -> Payment:
        """Insert or update the row keyed by (student, level, month, year)."""

        raise NotImplementedError

    def list_for_level_month(self, *, course_level_id: str, month: int, year: int) -> Sequence[Payment]:
        raise NotImplementedError

    def list_for_student(self, *, student_id: str, year: int) -> Sequence[Payment]:
        raise NotImplementedError

    def history(self, *, course_id: str, course_level_id: str, year: int) -> Sequence[Payment]:
        raise NotImplementedError

    def count_for_month(self, *, course_id: str, course_level_id: str, month: int, year: int) -> int:
        raise NotImplementedError

    def stats(
        self,
        *,
        year: int,
        course_id: Optional[str] = None,
        course_level_id: Optional[str] = None,
        month: Optional[int] = None,
    ) -> Tuple[Dict[PaymentStatus, int], Decimal]:
        """Return (counts by status, total amount of PAID rows)."""

        raise NotImplementedError
