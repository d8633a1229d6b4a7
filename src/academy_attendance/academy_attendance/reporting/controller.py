from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_optional_date
from ..common.web import json_ok, optional_int, staff_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.matrix_report_service

    @app.route("/api/attendance/batch/<int:batch_id>/weekly", endpoint="api_weekly_matrix")
    @staff_required
    def weekly_matrix(batch_id: int):
        reference = parse_optional_date(request.args.get("referenceDate"), "referenceDate")
        return json_ok(service.weekly(batch_id, reference))

    @app.route("/api/attendance/batch/<int:batch_id>/monthly", endpoint="api_monthly_matrix")
    @staff_required
    def monthly_matrix(batch_id: int):
        year = optional_int(request.args.get("year"), "year")
        month = optional_int(request.args.get("month"), "month")
        reference = parse_optional_date(request.args.get("referenceDate"), "referenceDate")
        return json_ok(service.monthly(batch_id, year, month, reference))
