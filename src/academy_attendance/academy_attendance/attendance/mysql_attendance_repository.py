from __future__ import annotations

from datetime import date, datetime
from typing import Mapping, Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus, EntryType, ViolationKind
from ..core.exceptions import ConflictError, ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, is_duplicate_key, violated_key
from .model import AttendanceRecord
from .repository import AttendanceRepository

MAKEUP_KEY = "uq_attendance_makeup"


def _duplicate_error(exc: mysql.connector.Error, compensates_for_date: Optional[date]) -> Exception:
    if violated_key(exc) == MAKEUP_KEY and compensates_for_date is not None:
        return ValidationError(
            f"Absence on {compensates_for_date.isoformat()} has already been compensated with a makeup session",
            kind=ViolationKind.ALREADY_COMPENSATED,
        )
    return ConflictError("Attendance already marked for this student on this date in this batch")


_COLUMNS = """
    ar.attendance_id, ar.student_id, ar.batch_id, ar.attendance_date, ar.status, ar.entry_type,
    ar.compensates_for_date, ar.notes, ar.marked_by, ar.marked_at, ar.was_backdated, ar.backdate_reason
"""


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        student_id=int(r["student_id"]),
        batch_id=int(r["batch_id"]),
        attendance_date=r["attendance_date"],
        status=AttendanceStatus(r["status"]),
        entry_type=EntryType(r["entry_type"]),
        compensates_for_date=r.get("compensates_for_date"),
        notes=r.get("notes"),
        marked_by=int(r["marked_by"]),
        marked_at=r["marked_at"],
        was_backdated=as_bool(r.get("was_backdated")),
        backdate_reason=r.get("backdate_reason"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select(self, where: str, params: tuple, *, order_by: str = "ar.attendance_date DESC, ar.attendance_id DESC"):
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records ar
                WHERE {where}
                ORDER BY {order_by}
                """,
                params,
            )
            return [_to_record(r) for r in fetchall(cur)]

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        rows = self._select("ar.attendance_id=%s", (int(attendance_id),))
        return rows[0] if rows else None

    def get_for_student_batch_date(
        self,
        *,
        student_id: int,
        batch_id: int,
        attendance_date: date,
        for_update: bool = False,
    ) -> Optional[AttendanceRecord]:
        lock = " FOR UPDATE" if for_update else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records ar
                WHERE ar.student_id=%s AND ar.batch_id=%s AND ar.attendance_date=%s{lock}
                """,
                (int(student_id), int(batch_id), attendance_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def find_makeup_for(self, *, student_id: int, compensates_for_date: date) -> Optional[AttendanceRecord]:
        rows = self._select(
            "ar.student_id=%s AND ar.entry_type=%s AND ar.compensates_for_date=%s",
            (int(student_id), EntryType.MAKEUP.value, compensates_for_date),
        )
        return rows[0] if rows else None

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
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        student_id, batch_id, attendance_date, status, entry_type, compensates_for_date,
                        notes, marked_by, marked_at, was_backdated, backdate_reason
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(student_id),
                        int(batch_id),
                        attendance_date,
                        status.value,
                        entry_type.value,
                        compensates_for_date,
                        notes,
                        int(marked_by),
                        marked_at,
                        int(bool(was_backdated)),
                        backdate_reason,
                    ),
                )
                return int(cur.lastrowid)
        except mysql.connector.IntegrityError as e:
            if is_duplicate_key(e):
                raise _duplicate_error(e, compensates_for_date) from e
            raise

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
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    UPDATE attendance_records
                    SET status=%s, entry_type=%s, compensates_for_date=%s, notes=%s,
                        marked_by=%s, marked_at=%s, was_backdated=%s, backdate_reason=%s
                    WHERE attendance_id=%s
                    """,
                    (
                        status.value,
                        entry_type.value,
                        compensates_for_date,
                        notes,
                        int(marked_by),
                        marked_at,
                        int(bool(was_backdated)),
                        backdate_reason,
                        int(attendance_id),
                    ),
                )
                return cur.rowcount > 0
        except mysql.connector.IntegrityError as e:
            if is_duplicate_key(e):
                raise _duplicate_error(e, compensates_for_date) from e
            raise

    def delete(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0

    def list_all(self) -> Sequence[AttendanceRecord]:
        return self._select("1=1", ())

    def list_by_student(self, student_id: int) -> Sequence[AttendanceRecord]:
        return self._select("ar.student_id=%s", (int(student_id),))

    def list_by_batch(self, batch_id: int) -> Sequence[AttendanceRecord]:
        return self._select("ar.batch_id=%s", (int(batch_id),))

    def list_by_date(self, attendance_date: date) -> Sequence[AttendanceRecord]:
        return self._select("ar.attendance_date=%s", (attendance_date,), order_by="ar.batch_id, ar.student_id")

    def list_by_student_range(self, *, student_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        return self._select(
            "ar.student_id=%s AND ar.attendance_date BETWEEN %s AND %s",
            (int(student_id), start, end),
        )

    def list_by_batch_range(self, *, batch_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        return self._select(
            "ar.batch_id=%s AND ar.attendance_date BETWEEN %s AND %s",
            (int(batch_id), start, end),
            order_by="ar.attendance_date, ar.student_id",
        )

    def list_by_coach_and_date(self, *, coach_id: int, attendance_date: date) -> Sequence[AttendanceRecord]:
        return self._select(
            "ar.batch_id IN (SELECT b.batch_id FROM batches b WHERE b.coach_id=%s) AND ar.attendance_date=%s",
            (int(coach_id), attendance_date),
            order_by="ar.batch_id, ar.student_id",
        )

    def count_by_status(
        self,
        *,
        student_id: int,
        batch_id: Optional[int] = None,
    ) -> Mapping[AttendanceStatus, int]:
        clauses = ["student_id=%s"]
        params: list[object] = [int(student_id)]
        if batch_id is not None:
            clauses.append("batch_id=%s")
            params.append(int(batch_id))

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT status, COUNT(*) AS cnt
                FROM attendance_records
                WHERE {where}
                GROUP BY status
                """,
                tuple(params),
            )
            counts = {s: 0 for s in AttendanceStatus}
            for r in fetchall(cur):
                counts[AttendanceStatus(r["status"])] = int(r["cnt"])
            return counts
