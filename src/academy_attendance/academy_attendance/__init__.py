"""Academy Attendance package.

Organized by feature modules (academy, attendance, audit, reporting) with a thin
Flask controller layer on top of service/repository layers.
"""
