from __future__ import annotations

from flask import Flask, request

from ..common.http import int_arg, json_body, json_endpoint, ok, parse_date_arg, require_date_arg
from ..common.validators import require_non_empty
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/attendance/eligibility", methods=["GET"], endpoint="attendance_eligibility")
    @json_endpoint
    def attendance_eligibility():
        course_level_id = require_non_empty(request.args.get("course_level_id"), "course_level_id")
        day = parse_date_arg(request.args.get("date"))
        if day is None:
            return ok(service.can_take_attendance_today(course_level_id))
        return ok(service.can_take_attendance(course_level_id, day))

    @app.route("/api/attendance/roster", methods=["GET"], endpoint="attendance_roster")
    @json_endpoint
    def attendance_roster():
        course_level_id = require_non_empty(request.args.get("course_level_id"), "course_level_id")
        day = require_date_arg(request.args.get("date"))
        return ok(service.students_for_attendance(course_level_id, day))

    @app.route("/api/attendance/sessions", methods=["POST"], endpoint="attendance_record")
    @json_endpoint
    def attendance_record():
        data = json_body()
        result = service.record_attendance(
            require_non_empty(data.get("course_level_id"), "course_level_id"),
            require_date_arg(data.get("date")),
            data.get("attendances") or [],
            staff_id=data.get("staff_id"),
        )
        return ok(result, 201)

    @app.route("/api/attendance/<attendance_id>", methods=["PUT"], endpoint="attendance_update")
    @json_endpoint
    def attendance_update(attendance_id: str):
        data = json_body()
        return ok(service.update_attendance(attendance_id, data.get("status"), data.get("notes")))

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_records")
    @json_endpoint
    def attendance_records():
        args = request.args
        records = service.list_records(
            course_id=args.get("course_id"),
            course_level_id=args.get("course_level_id"),
            student_id=args.get("student_id"),
            date_from=parse_date_arg(args.get("date_from"), "date_from"),
            date_to=parse_date_arg(args.get("date_to"), "date_to"),
        )
        return ok(records)

    @app.route("/api/attendance/recent", methods=["GET"], endpoint="attendance_recent_overview")
    @json_endpoint
    def attendance_recent_overview():
        return ok(service.recent_overview(course_id=request.args.get("course_id")))

    @app.route("/api/attendance/students/<student_id>/stats", methods=["GET"], endpoint="attendance_student_stats")
    @json_endpoint
    def attendance_student_stats(student_id: str):
        return ok(service.student_stats(student_id, course_id=request.args.get("course_id")))

    @app.route("/api/attendance/students/<student_id>/recent", methods=["GET"], endpoint="attendance_student_recent")
    @json_endpoint
    def attendance_student_recent(student_id: str):
        limit = int_arg(request.args.get("limit"), "limit")
        if limit is None:
            return ok(service.recent_for_student(student_id))
        return ok(service.recent_for_student(student_id, limit=limit))

    @app.route("/api/attendance/courses/<course_id>/recent", methods=["GET"], endpoint="attendance_course_recent")
    @json_endpoint
    def attendance_course_recent(course_id: str):
        limit = int_arg(request.args.get("limit"), "limit")
        if limit is None:
            return ok(service.recent_for_course(course_id))
        return ok(service.recent_for_course(course_id, limit=limit))
