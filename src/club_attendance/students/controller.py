from __future__ import annotations

from flask import Flask, request

from ..common.http import json_body, json_endpoint, ok, require_date_arg
from ..container import Container
from .service import PARENT_FIELDS


def _student_fields(data: dict) -> dict:
    return dict(
        first_name=data.get("first_name"),
        last_name=data.get("last_name"),
        birth_date=require_date_arg(data.get("birth_date"), "birth_date"),
        gender=data.get("gender") or "male",
        parents={name: data.get(name) for name in PARENT_FIELDS},
        course_level_ids=data.get("course_level_ids") or [],
    )


def register(app: Flask, container: Container) -> None:
    @app.route("/api/students", methods=["GET"], endpoint="students_list")
    @json_endpoint
    def students_list():
        return ok(container.student_service.list_students(course_id=request.args.get("course_id")))

    @app.route("/api/students", methods=["POST"], endpoint="students_create")
    @json_endpoint
    def students_create():
        student = container.student_service.create_student(**_student_fields(json_body()))
        return ok(student, 201)

    @app.route("/api/students/<student_id>", methods=["GET"], endpoint="students_detail")
    @json_endpoint
    def students_detail(student_id: str):
        return ok(container.student_service.get_student(student_id))

    @app.route("/api/students/<student_id>", methods=["PUT"], endpoint="students_update")
    @json_endpoint
    def students_update(student_id: str):
        student = container.student_service.update_student(student_id=student_id, **_student_fields(json_body()))
        return ok(student)

    @app.route("/api/students/<student_id>", methods=["DELETE"], endpoint="students_delete")
    @json_endpoint
    def students_delete(student_id: str):
        container.student_service.delete_student(student_id)
        return ok({"student_id": student_id})

    @app.route("/api/students/<student_id>/courses", methods=["GET"], endpoint="students_courses")
    @json_endpoint
    def students_courses(student_id: str):
        return ok(container.student_service.courses_of(student_id))

    @app.route("/api/courses/<course_id>/students", methods=["GET"], endpoint="courses_students")
    @json_endpoint
    def courses_students(course_id: str):
        return ok(container.student_service.students_of_course(course_id))
