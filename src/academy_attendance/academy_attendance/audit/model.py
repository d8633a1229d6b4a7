from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus, AuditAction, EntryType, Role


@dataclass(frozen=True)
class AuditEntryDraft:
    """Values captured by the mutation service; ``changed_at`` is set by the store."""

    attendance_id: int
    student_id: int
    batch_id: int
    attendance_date: date
    action: AuditAction
    previous_status: Optional[AttendanceStatus]
    previous_entry_type: Optional[EntryType]
    previous_notes: Optional[str]
    new_status: Optional[AttendanceStatus]
    new_entry_type: Optional[EntryType]
    new_notes: Optional[str]
    changed_by: int
    changed_by_role: Role
    reason: Optional[str]
    was_backdated: bool


@dataclass(frozen=True)
class AuditLogEntry:
    """Append-only history row for one attendance mutation."""

    audit_id: int
    attendance_id: int
    student_id: int
    batch_id: int
    attendance_date: date
    action: AuditAction
    previous_status: Optional[AttendanceStatus]
    previous_entry_type: Optional[EntryType]
    previous_notes: Optional[str]
    new_status: Optional[AttendanceStatus]
    new_entry_type: Optional[EntryType]
    new_notes: Optional[str]
    changed_by: int
    changed_by_role: Role
    reason: Optional[str]
    was_backdated: bool
    changed_at: datetime
