"""Club Attendance package.

This package is organized by feature modules (courses, students, attendance,
payments) with a thin Flask controller layer and service/repository layers.
"""
