from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import AttendanceStatus, EntryType, PeriodType


@dataclass(frozen=True)
class DateColumn:
    date: date
    day_label: str
    future_date: bool


@dataclass(frozen=True)
class AttendanceCell:
    """One (student, date) slot of the grid.

    Future cells and unmarked cells carry no status; ``marked`` tells them apart
    from a stored record.
    """

    date: date
    status: Optional[AttendanceStatus] = None
    entry_type: Optional[EntryType] = None
    compensates_for_date: Optional[date] = None
    notes: Optional[str] = None
    marked: bool = False
    future_date: bool = False


@dataclass(frozen=True)
class StudentMatrixRow:
    student_id: int
    student_name: str
    attendance: list[AttendanceCell]


@dataclass(frozen=True)
class AttendanceMatrix:
    batch_id: int
    batch_name: str
    period_type: PeriodType
    reference_date: date
    start_date: date
    end_date: date
    display_until: date
    date_columns: list[DateColumn]
    students: list[StudentMatrixRow]
