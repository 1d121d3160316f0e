from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional, Tuple

from ..core.enums import LevelTier, PaymentStatus
from ..students.model import Student


@dataclass(frozen=True)
class Payment:
    """Domain entity: a student's payment for one course level and month."""

    payment_id: str
    student_id: str
    course_id: str
    course_level_id: str
    month: int
    year: int
    status: PaymentStatus
    amount: Optional[Decimal] = None
    notes: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    student_name: Optional[str] = None
    course_name: Optional[str] = None
    level: Optional[LevelTier] = None


@dataclass(frozen=True)
class PaymentWrite:
    """Validated values of one upsert; ``paid_at`` is already derived."""

    student_id: str
    course_id: str
    course_level_id: str
    month: int
    year: int
    status: PaymentStatus
    amount: Optional[Decimal]
    notes: Optional[str]
    paid_at: Optional[datetime]
    written_at: datetime


@dataclass(frozen=True)
class PaymentControlRow:
    """Read-model: an enrolled student and their payment for the month, if any."""

    student: Student
    course_id: str
    course_level_id: str
    payment: Optional[Payment] = None


@dataclass(frozen=True)
class MonthlyControl:
    has_control: bool
    payment_count: int


@dataclass(frozen=True)
class PaymentStats:
    counts: Dict[PaymentStatus, int]
    total_paid_amount: Decimal


@dataclass(frozen=True)
class BatchResult:
    """Outcome of a best-effort batch: some rows may be saved while others failed."""

    saved: Tuple[Payment, ...] = ()
    failed: Tuple[Tuple[str, str], ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failed
