from __future__ import annotations

from flask import Flask

from ..common.http import json_body, json_endpoint, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/courses", methods=["GET"], endpoint="courses_list")
    @json_endpoint
    def courses_list():
        return ok(container.course_service.list_courses())

    @app.route("/api/courses", methods=["POST"], endpoint="courses_create")
    @json_endpoint
    def courses_create():
        data = json_body()
        course = container.course_service.create_course(
            name=data.get("name"),
            description=data.get("description"),
            levels=data.get("levels") or [],
        )
        return ok(course, 201)

    @app.route("/api/courses/<course_id>", methods=["GET"], endpoint="courses_detail")
    @json_endpoint
    def courses_detail(course_id: str):
        return ok(container.course_service.get_course(course_id))

    @app.route("/api/courses/<course_id>", methods=["PUT"], endpoint="courses_update")
    @json_endpoint
    def courses_update(course_id: str):
        data = json_body()
        course = container.course_service.update_course(
            course_id=course_id,
            name=data.get("name"),
            description=data.get("description"),
            levels=data.get("levels") or [],
        )
        return ok(course)

    @app.route("/api/courses/<course_id>/levels", methods=["GET"], endpoint="courses_levels")
    @json_endpoint
    def courses_levels(course_id: str):
        return ok(container.course_service.get_levels(course_id))
