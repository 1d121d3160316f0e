"""Example: drive the service layer directly (no Flask).

Controllers are a thin layer; the rules live in the services.
"""

import importlib
from datetime import date

from club_attendance.config import get_settings_module
from club_attendance.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)

    for course in container.course_service.list_courses():
        for level in course.levels:
            result = container.attendance_service.can_take_attendance(level.course_level_id, date.today())
            print(f"{course.name} / {level.level.label}: {result.reason}")


if __name__ == "__main__":
    main()
