from __future__ import annotations

from datetime import date, datetime, time
from typing import Sequence

from ..core.exceptions import ValidationError
from .model import AuditLogEntry
from .repository import AuditLogRepository


class AuditService:
    """Read-only queries over the attendance audit trail."""

    def __init__(self, audit: AuditLogRepository):
        self._audit = audit

    def by_record(self, attendance_id: int) -> Sequence[AuditLogEntry]:
        return self._audit.list_by_record(int(attendance_id))

    def by_student(self, student_id: int) -> Sequence[AuditLogEntry]:
        return self._audit.list_by_student(int(student_id))

    def by_batch(self, batch_id: int) -> Sequence[AuditLogEntry]:
        return self._audit.list_by_batch(int(batch_id))

    def by_actor(self, actor_id: int) -> Sequence[AuditLogEntry]:
        return self._audit.list_by_actor(int(actor_id))

    def all_backdated(self) -> Sequence[AuditLogEntry]:
        return self._audit.list_backdated()

    def by_changed_range(self, *, start: date, end: date) -> Sequence[AuditLogEntry]:
        """Entries whose change time falls on any day from start to end inclusive."""
        if end < start:
            raise ValidationError("End date must be on or after start date")
        return self._audit.list_changed_between(
            start=datetime.combine(start, time.min),
            end=datetime.combine(end, time.max),
        )
