from __future__ import annotations

import logging
from datetime import MAXYEAR, MINYEAR, date, datetime, timedelta
from typing import Callable, Optional

from ..academy.model import Batch
from ..academy.repository import BatchRepository, StudentRepository
from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import iter_dates, month_bounds, now_local, week_start_sunday
from ..core.constants import DAY_LABELS
from ..core.enums import PeriodType
from ..core.exceptions import NotFoundError, ValidationError
from .model import AttendanceCell, AttendanceMatrix, DateColumn, StudentMatrixRow

logger = logging.getLogger(__name__)


def display_until(reference_date: date, period_start: date, period_end: date) -> date:
    """Last date of the period whose attendance may be shown.

    A reference before the period shows nothing (the day before the period),
    a reference after it shows the whole period.
    """
    if reference_date < period_start:
        return period_start - timedelta(days=1)
    if reference_date > period_end:
        return period_end
    return reference_date


class MatrixReportService:
    """Read-only calendar grid of a batch's attendance (students x dates)."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        students: StudentRepository,
        batches: BatchRepository,
        *,
        clock: Callable[[], datetime] | None = None,
    ):
        self._attendance = attendance
        self._students = students
        self._batches = batches
        self._clock = clock or now_local

    def _require_batch(self, batch_id: int) -> Batch:
        batch = self._batches.get_by_id(int(batch_id))
        if not batch:
            raise NotFoundError(f"Batch not found with id: {batch_id}")
        return batch

    def weekly(self, batch_id: int, reference_date: Optional[date] = None) -> AttendanceMatrix:
        reference = reference_date or self._clock().date()
        start = week_start_sunday(reference)
        return self.build_matrix(
            batch_id,
            period_start=start,
            period_end=start + timedelta(days=6),
            reference_date=reference,
            period_type=PeriodType.WEEKLY,
        )

    def monthly(
        self,
        batch_id: int,
        year: Optional[int],
        month: Optional[int],
        reference_date: Optional[date] = None,
    ) -> AttendanceMatrix:
        if year is None or month is None:
            raise ValidationError("Year and month are required")
        if month < 1 or month > 12:
            raise ValidationError("Month must be between 1 and 12")
        if year < MINYEAR or year > MAXYEAR:
            raise ValidationError(f"Year must be between {MINYEAR} and {MAXYEAR}")

        start, end = month_bounds(int(year), int(month))
        return self.build_matrix(
            batch_id,
            period_start=start,
            period_end=end,
            reference_date=reference_date or self._clock().date(),
            period_type=PeriodType.MONTHLY,
        )

    def build_matrix(
        self,
        batch_id: int,
        *,
        period_start: date,
        period_end: date,
        reference_date: date,
        period_type: PeriodType,
    ) -> AttendanceMatrix:
        batch = self._require_batch(batch_id)
        until = display_until(reference_date, period_start, period_end)

        columns = [
            DateColumn(date=d, day_label=DAY_LABELS[d.weekday()], future_date=d > until)
            for d in iter_dates(period_start, period_end)
        ]

        by_key: dict[tuple[int, date], AttendanceRecord] = {}
        for r in self._attendance.list_by_batch_range(batch_id=batch.batch_id, start=period_start, end=period_end):
            by_key[(r.student_id, r.attendance_date)] = r

        students = sorted(self._students.list_by_batch(batch.batch_id), key=lambda s: s.full_name.lower())

        rows: list[StudentMatrixRow] = []
        for s in students:
            cells: list[AttendanceCell] = []
            for col in columns:
                if col.future_date:
                    cells.append(AttendanceCell(date=col.date, future_date=True))
                    continue

                record = by_key.get((s.student_id, col.date))
                if record is None:
                    cells.append(AttendanceCell(date=col.date))
                else:
                    cells.append(
                        AttendanceCell(
                            date=col.date,
                            status=record.status,
                            entry_type=record.entry_type,
                            compensates_for_date=record.compensates_for_date,
                            notes=record.notes,
                            marked=True,
                        )
                    )
            rows.append(StudentMatrixRow(student_id=s.student_id, student_name=s.full_name, attendance=cells))

        logger.debug(
            "Built %s matrix for batch %s (%s..%s, display until %s): %d students",
            period_type.value,
            batch.batch_id,
            period_start,
            period_end,
            until,
            len(rows),
        )

        return AttendanceMatrix(
            batch_id=batch.batch_id,
            batch_name=batch.name,
            period_type=period_type,
            reference_date=reference_date,
            start_date=period_start,
            end_date=period_end,
            display_until=until,
            date_columns=columns,
            students=rows,
        )
