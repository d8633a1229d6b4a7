from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_optional_date
from ..common.web import (
    admin_required,
    current_actor,
    json_body,
    json_ok,
    optional_enum,
    optional_text,
    required_date,
    required_int,
    staff_required,
)
from ..container import Container
from ..core.enums import AttendanceStatus, EntryType
from ..core.exceptions import ValidationError
from .model import AttendanceChanges, BulkAttendanceItem, NewAttendance


def _required_status(value, field_name: str = "status") -> AttendanceStatus:
    status = optional_enum(AttendanceStatus, value, field_name)
    if status is None:
        raise ValidationError(f"{field_name} is required")
    return status


def _date_range_args():
    start = required_date(request.args.get("start"), "start")
    end = required_date(request.args.get("end"), "end")
    return start, end


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/attendance", methods=["POST"], endpoint="api_mark_attendance")
    @staff_required
    def mark_attendance():
        data = json_body()
        new = NewAttendance(
            student_id=required_int(data.get("student_id"), "student_id"),
            batch_id=required_int(data.get("batch_id"), "batch_id"),
            attendance_date=required_date(data.get("attendance_date"), "attendance_date"),
            status=_required_status(data.get("status")),
            entry_type=optional_enum(EntryType, data.get("entry_type"), "entry_type") or EntryType.REGULAR,
            compensates_for_date=parse_optional_date(data.get("compensates_for_date"), "compensates_for_date"),
            notes=optional_text(data.get("notes"), "notes"),
        )
        reason = optional_text(data.get("reason"), "reason")
        record = service.mark_attendance(new, actor=current_actor(), reason=reason)
        return json_ok(record, 201, "Attendance marked successfully")

    @app.route("/api/attendance/bulk", methods=["POST"], endpoint="api_mark_bulk_attendance")
    @staff_required
    def mark_bulk_attendance():
        data = json_body()
        raw_items = data.get("items") or []
        if not isinstance(raw_items, list):
            raise ValidationError("items must be a list")

        items = []
        for raw in raw_items:
            if not isinstance(raw, dict):
                raise ValidationError("Each item must be a JSON object")
            items.append(
                BulkAttendanceItem(
                    student_id=required_int(raw.get("student_id"), "student_id"),
                    status=_required_status(raw.get("status")),
                    entry_type=optional_enum(EntryType, raw.get("entry_type"), "entry_type") or EntryType.REGULAR,
                    compensates_for_date=parse_optional_date(raw.get("compensates_for_date"), "compensates_for_date"),
                    notes=optional_text(raw.get("notes"), "notes"),
                )
            )

        records = service.mark_bulk_attendance(
            batch_id=required_int(data.get("batch_id"), "batch_id"),
            attendance_date=required_date(data.get("attendance_date"), "attendance_date"),
            items=items,
            actor=current_actor(),
            reason=optional_text(data.get("reason"), "reason"),
        )
        return json_ok(records, 201, f"Attendance saved for {len(records)} students")

    @app.route("/api/attendance/<int:attendance_id>", methods=["PUT"], endpoint="api_update_attendance")
    @staff_required
    def update_attendance(attendance_id: int):
        data = json_body()
        changes = AttendanceChanges(
            status=optional_enum(AttendanceStatus, data.get("status"), "status"),
            entry_type=optional_enum(EntryType, data.get("entry_type"), "entry_type"),
            compensates_for_date=parse_optional_date(data.get("compensates_for_date"), "compensates_for_date"),
            notes=optional_text(data.get("notes"), "notes"),
        )
        reason = optional_text(data.get("reason"), "reason")
        record = service.update_attendance(attendance_id, changes, actor=current_actor(), reason=reason)
        return json_ok(record, message="Attendance updated successfully")

    @app.route("/api/attendance/<int:attendance_id>", methods=["DELETE"], endpoint="api_delete_attendance")
    @admin_required
    def delete_attendance(attendance_id: int):
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        reason = optional_text(data.get("reason"), "reason")
        service.delete_attendance(attendance_id, actor=current_actor(), reason=reason)
        return json_ok(None, message="Attendance deleted successfully")

    @app.route("/api/attendance", methods=["GET"], endpoint="api_list_attendance")
    @staff_required
    def list_attendance():
        return json_ok(service.list_all())

    @app.route("/api/attendance/<int:attendance_id>", methods=["GET"], endpoint="api_get_attendance")
    @staff_required
    def get_attendance(attendance_id: int):
        return json_ok(service.get_attendance(attendance_id))

    @app.route("/api/attendance/student/<int:student_id>", endpoint="api_attendance_by_student")
    @staff_required
    def by_student(student_id: int):
        return json_ok(service.list_by_student(student_id))

    @app.route("/api/attendance/batch/<int:batch_id>", endpoint="api_attendance_by_batch")
    @staff_required
    def by_batch(batch_id: int):
        return json_ok(service.list_by_batch(batch_id))

    @app.route("/api/attendance/date/<attendance_date>", endpoint="api_attendance_by_date")
    @staff_required
    def by_date(attendance_date: str):
        return json_ok(service.list_by_date(required_date(attendance_date, "date")))

    @app.route("/api/attendance/student/<int:student_id>/range", endpoint="api_attendance_student_range")
    @staff_required
    def student_range(student_id: int):
        start, end = _date_range_args()
        return json_ok(service.list_by_student_range(student_id, start=start, end=end))

    @app.route("/api/attendance/batch/<int:batch_id>/range", endpoint="api_attendance_batch_range")
    @staff_required
    def batch_range(batch_id: int):
        start, end = _date_range_args()
        return json_ok(service.list_by_batch_range(batch_id, start=start, end=end))

    @app.route("/api/attendance/coach/<int:coach_id>/date/<attendance_date>", endpoint="api_attendance_by_coach")
    @staff_required
    def by_coach_and_date(coach_id: int, attendance_date: str):
        return json_ok(service.list_by_coach_and_date(coach_id, required_date(attendance_date, "date")))

    @app.route("/api/attendance/student/<int:student_id>/summary", endpoint="api_attendance_summary")
    @staff_required
    def student_summary(student_id: int):
        return json_ok(service.get_student_summary(student_id))

    @app.route(
        "/api/attendance/student/<int:student_id>/batch/<int:batch_id>/percentage",
        endpoint="api_attendance_percentage",
    )
    @staff_required
    def attendance_percentage(student_id: int, batch_id: int):
        return json_ok(service.get_attendance_percentage(student_id, batch_id))

    @app.route(
        "/api/attendance/student/<int:student_id>/batch/<int:batch_id>/eligible-makeup",
        endpoint="api_eligible_makeup",
    )
    @staff_required
    def eligible_makeup(student_id: int, batch_id: int):
        return json_ok(service.get_eligible_absences_for_makeup(student_id, batch_id))
