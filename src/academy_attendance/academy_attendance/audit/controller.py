from __future__ import annotations

from flask import Flask, request

from ..common.web import admin_required, json_ok, required_date, staff_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.audit_service

    @app.route("/api/attendance/audit/record/<int:attendance_id>", endpoint="api_audit_by_record")
    @staff_required
    def by_record(attendance_id: int):
        return json_ok(service.by_record(attendance_id))

    @app.route("/api/attendance/audit/student/<int:student_id>", endpoint="api_audit_by_student")
    @staff_required
    def by_student(student_id: int):
        return json_ok(service.by_student(student_id))

    @app.route("/api/attendance/audit/batch/<int:batch_id>", endpoint="api_audit_by_batch")
    @staff_required
    def by_batch(batch_id: int):
        return json_ok(service.by_batch(batch_id))

    @app.route("/api/attendance/audit/actor/<int:actor_id>", endpoint="api_audit_by_actor")
    @staff_required
    def by_actor(actor_id: int):
        return json_ok(service.by_actor(actor_id))

    @app.route("/api/attendance/audit/backdated", endpoint="api_audit_backdated")
    @admin_required
    def backdated():
        return json_ok(service.all_backdated())

    @app.route("/api/attendance/audit/range", endpoint="api_audit_range")
    @admin_required
    def changed_range():
        start = required_date(request.args.get("start"), "start")
        end = required_date(request.args.get("end"), "end")
        return json_ok(service.by_changed_range(start=start, end=end))
