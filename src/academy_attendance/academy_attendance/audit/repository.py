from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from .model import AuditEntryDraft, AuditLogEntry


class AuditLogRepository(Protocol):
    """Append-only store: entries are never updated or deleted."""

    def append(self, entry: AuditEntryDraft, *, changed_at: datetime) -> int:
        raise NotImplementedError

    # All listings are newest first.
    def list_by_record(self, attendance_id: int) -> Sequence[AuditLogEntry]:
        raise NotImplementedError

    def list_by_student(self, student_id: int) -> Sequence[AuditLogEntry]:
        raise NotImplementedError

    def list_by_batch(self, batch_id: int) -> Sequence[AuditLogEntry]:
        raise NotImplementedError

    def list_by_actor(self, actor_id: int) -> Sequence[AuditLogEntry]:
        raise NotImplementedError

    def list_backdated(self) -> Sequence[AuditLogEntry]:
        raise NotImplementedError

    def list_changed_between(self, *, start: datetime, end: datetime) -> Sequence[AuditLogEntry]:
        raise NotImplementedError
