from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus, EntryType


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one student's attendance for one batch on one date."""

    attendance_id: int
    student_id: int
    batch_id: int
    attendance_date: date
    status: AttendanceStatus
    entry_type: EntryType
    compensates_for_date: Optional[date]
    notes: Optional[str]
    marked_by: int
    marked_at: datetime
    was_backdated: bool = False
    backdate_reason: Optional[str] = None


@dataclass(frozen=True)
class NewAttendance:
    """Input for marking a single record."""

    student_id: int
    batch_id: int
    attendance_date: date
    status: AttendanceStatus
    entry_type: EntryType = EntryType.REGULAR
    compensates_for_date: Optional[date] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class BulkAttendanceItem:
    student_id: int
    status: AttendanceStatus
    entry_type: EntryType = EntryType.REGULAR
    compensates_for_date: Optional[date] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class AttendanceChanges:
    """Partial update; None means keep the stored value."""

    status: Optional[AttendanceStatus] = None
    entry_type: Optional[EntryType] = None
    compensates_for_date: Optional[date] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class AttendanceSummary:
    student_id: int
    student_name: str
    total_classes: int
    present_count: int
    absent_count: int
    late_count: int
    excused_count: int
    attendance_percentage: float
