from __future__ import annotations

from datetime import date, datetime
from typing import Mapping, Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus, EntryType
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_student_batch_date(
        self,
        *,
        student_id: int,
        batch_id: int,
        attendance_date: date,
        for_update: bool = False,
    ) -> Optional[AttendanceRecord]:
        """``for_update`` locks the row (or gap) until the enclosing transaction ends."""

        raise NotImplementedError

    def find_makeup_for(self, *, student_id: int, compensates_for_date: date) -> Optional[AttendanceRecord]:
        """MAKEUP record of this student that compensates the given date, if any."""

        raise NotImplementedError

    def create(
        self,
        *,
        student_id: int,
        batch_id: int,
        attendance_date: date,
        status: AttendanceStatus,
        entry_type: EntryType,
        compensates_for_date: Optional[date],
        notes: Optional[str],
        marked_by: int,
        marked_at: datetime,
        was_backdated: bool,
        backdate_reason: Optional[str],
    ) -> int:
        """Insert a record and return its id.

        Raises ConflictError when (student, batch, date) already exists and
        ValidationError(ALREADY_COMPENSATED) when another MAKEUP of the student
        targets the same compensates_for_date.
        """

        raise NotImplementedError

    def update(
        self,
        *,
        attendance_id: int,
        status: AttendanceStatus,
        entry_type: EntryType,
        compensates_for_date: Optional[date],
        notes: Optional[str],
        marked_by: int,
        marked_at: datetime,
        was_backdated: bool,
        backdate_reason: Optional[str],
    ) -> bool:
        """Overwrite a record in place; same uniqueness errors as ``create``."""

        raise NotImplementedError

    def delete(self, attendance_id: int) -> bool:
        raise NotImplementedError

    def list_all(self) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_by_student(self, student_id: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_by_batch(self, batch_id: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_by_date(self, attendance_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_by_student_range(self, *, student_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_by_batch_range(self, *, batch_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_by_coach_and_date(self, *, coach_id: int, attendance_date: date) -> Sequence[AttendanceRecord]:
        """Records of batches owned by the coach on that date."""

        raise NotImplementedError

    def count_by_status(
        self,
        *,
        student_id: int,
        batch_id: Optional[int] = None,
    ) -> Mapping[AttendanceStatus, int]:
        raise NotImplementedError
