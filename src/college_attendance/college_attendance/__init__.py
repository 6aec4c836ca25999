"""College Attendance package.

This package is organized by feature modules (students, schedules, attendance, alerts, ...)
with a thin Flask controller layer and service/repository layers underneath.
"""
