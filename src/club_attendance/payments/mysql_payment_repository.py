from __future__ import annotations

from decimal import Decimal
from typing import Dict, Optional, Sequence, Tuple

from ..common.ids import new_id
from ..core.enums import LevelTier, PaymentStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, where_clause
from .model import Payment, PaymentWrite
from .repository import PaymentRepository

_SELECT = """
    SELECT
        p.payment_id, p.student_id, p.course_id, p.course_level_id, p.month, p.year,
        p.status, p.amount, p.notes, p.paid_at, p.created_at, p.updated_at,
        CONCAT(s.first_name, ' ', s.last_name) AS student_name,
        c.name AS course_name, cl.level
    FROM payments p
    JOIN students s ON s.student_id = p.student_id
    JOIN courses c ON c.course_id = p.course_id
    JOIN course_levels cl ON cl.course_level_id = p.course_level_id
"""


def _to_payment(r: dict) -> Payment:
    return Payment(
        payment_id=r["payment_id"],
        student_id=r["student_id"],
        course_id=r["course_id"],
        course_level_id=r["course_level_id"],
        month=int(r["month"]),
        year=int(r["year"]),
        status=PaymentStatus(r["status"]),
        amount=r.get("amount"),
        notes=r.get("notes"),
        paid_at=r.get("paid_at"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
        student_name=r.get("student_name"),
        course_name=r.get("course_name"),
        level=LevelTier(r["level"]) if r.get("level") else None,
    )


class MySQLPaymentRepository(PaymentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_period(self, *, student_id: str, course_level_id: str, month: int, year: int) -> Optional[Payment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE p.student_id=%s AND p.course_level_id=%s AND p.month=%s AND p.year=%s",
                (student_id, course_level_id, int(month), int(year)),
            )
            r = fetchone(cur)
            return _to_payment(r) if r else None

    def upsert(self, write: PaymentWrite) -> Payment:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO payments(
                    payment_id, student_id, course_id, course_level_id, month, year,
                    status, amount, notes, paid_at, created_at, updated_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    status=VALUES(status), amount=VALUES(amount), notes=VALUES(notes),
                    paid_at=VALUES(paid_at), updated_at=VALUES(updated_at)
                """,
                (
                    new_id(),
                    write.student_id,
                    write.course_id,
                    write.course_level_id,
                    write.month,
                    write.year,
                    write.status.value,
                    write.amount,
                    write.notes,
                    write.paid_at,
                    write.written_at,
                    write.written_at,
                ),
            )
            cur.execute(
                _SELECT + " WHERE p.student_id=%s AND p.course_level_id=%s AND p.month=%s AND p.year=%s",
                (write.student_id, write.course_level_id, write.month, write.year),
            )
            return _to_payment(fetchone(cur))

    def list_for_level_month(self, *, course_level_id: str, month: int, year: int) -> Sequence[Payment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE p.course_level_id=%s AND p.month=%s AND p.year=%s",
                (course_level_id, int(month), int(year)),
            )
            return [_to_payment(r) for r in fetchall(cur)]

    def list_for_student(self, *, student_id: str, year: int) -> Sequence[Payment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE p.student_id=%s AND p.year=%s ORDER BY c.name ASC, cl.level ASC, p.month ASC",
                (student_id, int(year)),
            )
            return [_to_payment(r) for r in fetchall(cur)]

    def history(self, *, course_id: str, course_level_id: str, year: int) -> Sequence[Payment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT
                + " WHERE p.course_id=%s AND p.course_level_id=%s AND p.year=%s ORDER BY p.month ASC, s.first_name ASC",
                (course_id, course_level_id, int(year)),
            )
            return [_to_payment(r) for r in fetchall(cur)]

    def count_for_month(self, *, course_id: str, course_level_id: str, month: int, year: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS n FROM payments
                WHERE course_id=%s AND course_level_id=%s AND month=%s AND year=%s
                """,
                (course_id, course_level_id, int(month), int(year)),
            )
            r = fetchone(cur) or {}
            return int(r.get("n") or 0)

    def stats(
        self,
        *,
        year: int,
        course_id: Optional[str] = None,
        course_level_id: Optional[str] = None,
        month: Optional[int] = None,
    ) -> Tuple[Dict[PaymentStatus, int], Decimal]:
        clauses = ["year=%s"]
        params: list[object] = [int(year)]
        if course_id:
            clauses.append("course_id=%s")
            params.append(course_id)
        if course_level_id:
            clauses.append("course_level_id=%s")
            params.append(course_level_id)
        if month:
            clauses.append("month=%s")
            params.append(int(month))
        where = where_clause(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT status, COUNT(*) AS n FROM payments {where} GROUP BY status", tuple(params))
            counts = {PaymentStatus(r["status"]): int(r["n"]) for r in fetchall(cur)}

            cur.execute(
                f"SELECT COALESCE(SUM(amount), 0) AS total FROM payments {where} AND status='PAID'",
                tuple(params),
            )
            r = fetchone(cur) or {}
            return counts, Decimal(str(r.get("total") or 0))
