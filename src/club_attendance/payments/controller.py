from __future__ import annotations

from flask import Flask, request

from ..common.http import int_arg, json_body, json_endpoint, ok
from ..common.validators import require_non_empty
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.payment_service

    def _level_args(source) -> dict:
        return dict(
            course_id=require_non_empty(source.get("course_id"), "course_id"),
            course_level_id=require_non_empty(source.get("course_level_id"), "course_level_id"),
        )

    @app.route("/api/payments/control", methods=["GET"], endpoint="payments_control")
    @json_endpoint
    def payments_control():
        args = request.args
        rows = service.students_for_payment_control(
            **_level_args(args),
            month=int_arg(args.get("month"), "month"),
            year=int_arg(args.get("year"), "year"),
        )
        return ok(rows)

    @app.route("/api/payments", methods=["PUT"], endpoint="payments_upsert")
    @json_endpoint
    def payments_upsert():
        data = json_body()
        payment = service.upsert_payment(
            student_id=data.get("student_id"),
            **_level_args(data),
            month=data.get("month"),
            year=data.get("year"),
            status=data.get("status"),
            amount=data.get("amount"),
            notes=data.get("notes"),
        )
        return ok(payment)

    @app.route("/api/payments/batch", methods=["POST"], endpoint="payments_batch")
    @json_endpoint
    def payments_batch():
        data = json_body()
        result = service.upsert_batch(
            **_level_args(data),
            month=data.get("month"),
            year=data.get("year"),
            entries=data.get("payments") or [],
        )
        return ok(
            {
                "ok": result.ok,
                "saved": result.saved,
                "failed": [{"student_id": sid, "message": msg} for sid, msg in result.failed],
            }
        )

    @app.route("/api/payments/students/<student_id>", methods=["GET"], endpoint="payments_student")
    @json_endpoint
    def payments_student(student_id: str):
        return ok(service.student_payments(student_id, year=int_arg(request.args.get("year"), "year")))

    @app.route("/api/payments/history", methods=["GET"], endpoint="payments_history")
    @json_endpoint
    def payments_history():
        args = request.args
        return ok(service.payment_history(**_level_args(args), year=int_arg(args.get("year"), "year")))

    @app.route("/api/payments/control/status", methods=["GET"], endpoint="payments_control_status")
    @json_endpoint
    def payments_control_status():
        args = request.args
        control = service.check_monthly_control(
            **_level_args(args),
            month=int_arg(args.get("month"), "month"),
            year=int_arg(args.get("year"), "year"),
        )
        return ok(control)

    @app.route("/api/payments/stats", methods=["GET"], endpoint="payments_stats")
    @json_endpoint
    def payments_stats():
        args = request.args
        stats = service.payment_stats(
            course_id=args.get("course_id"),
            course_level_id=args.get("course_level_id"),
            month=int_arg(args.get("month"), "month"),
            year=int_arg(args.get("year"), "year"),
        )
        return ok(stats)
