"""Time clock package.

Organized by feature modules (attendance, timesheets, overrides, employees, reports)
with thin Flask controllers over service/repository layers.
"""
