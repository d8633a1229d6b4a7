from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus, AuditAction, EntryType, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall
from .model import AuditEntryDraft, AuditLogEntry
from .repository import AuditLogRepository


def _opt_status(value) -> Optional[AttendanceStatus]:
    return AttendanceStatus(value) if value else None


def _opt_entry_type(value) -> Optional[EntryType]:
    return EntryType(value) if value else None


def _to_entry(r: dict) -> AuditLogEntry:
    return AuditLogEntry(
        audit_id=int(r["audit_id"]),
        attendance_id=int(r["attendance_id"]),
        student_id=int(r["student_id"]),
        batch_id=int(r["batch_id"]),
        attendance_date=r["attendance_date"],
        action=AuditAction(r["action"]),
        previous_status=_opt_status(r.get("previous_status")),
        previous_entry_type=_opt_entry_type(r.get("previous_entry_type")),
        previous_notes=r.get("previous_notes"),
        new_status=_opt_status(r.get("new_status")),
        new_entry_type=_opt_entry_type(r.get("new_entry_type")),
        new_notes=r.get("new_notes"),
        changed_by=int(r["changed_by"]),
        changed_by_role=Role(r["changed_by_role"]),
        reason=r.get("reason"),
        was_backdated=as_bool(r.get("was_backdated")),
        changed_at=r["changed_at"],
    )


class MySQLAuditLogRepository(AuditLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(self, entry: AuditEntryDraft, *, changed_at: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_audit_log(
                    attendance_id, student_id, batch_id, attendance_date, action,
                    previous_status, previous_entry_type, previous_notes,
                    new_status, new_entry_type, new_notes,
                    changed_by, changed_by_role, reason, was_backdated, changed_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(entry.attendance_id),
                    int(entry.student_id),
                    int(entry.batch_id),
                    entry.attendance_date,
                    entry.action.value,
                    entry.previous_status.value if entry.previous_status else None,
                    entry.previous_entry_type.value if entry.previous_entry_type else None,
                    entry.previous_notes,
                    entry.new_status.value if entry.new_status else None,
                    entry.new_entry_type.value if entry.new_entry_type else None,
                    entry.new_notes,
                    int(entry.changed_by),
                    entry.changed_by_role.value,
                    entry.reason,
                    int(bool(entry.was_backdated)),
                    changed_at,
                ),
            )
            return int(cur.lastrowid)

    def _select(self, where: str, params: tuple) -> Sequence[AuditLogEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT audit_id, attendance_id, student_id, batch_id, attendance_date, action,
                       previous_status, previous_entry_type, previous_notes,
                       new_status, new_entry_type, new_notes,
                       changed_by, changed_by_role, reason, was_backdated, changed_at
                FROM attendance_audit_log
                WHERE {where}
                ORDER BY changed_at DESC, audit_id DESC
                """,
                params,
            )
            return [_to_entry(r) for r in fetchall(cur)]

    def list_by_record(self, attendance_id: int) -> Sequence[AuditLogEntry]:
        return self._select("attendance_id=%s", (int(attendance_id),))

    def list_by_student(self, student_id: int) -> Sequence[AuditLogEntry]:
        return self._select("student_id=%s", (int(student_id),))

    def list_by_batch(self, batch_id: int) -> Sequence[AuditLogEntry]:
        return self._select("batch_id=%s", (int(batch_id),))

    def list_by_actor(self, actor_id: int) -> Sequence[AuditLogEntry]:
        return self._select("changed_by=%s", (int(actor_id),))

    def list_backdated(self) -> Sequence[AuditLogEntry]:
        return self._select("was_backdated=1", ())

    def list_changed_between(self, *, start: datetime, end: datetime) -> Sequence[AuditLogEntry]:
        return self._select("changed_at BETWEEN %s AND %s", (start, end))
