from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone
from .model import Batch, Coach, Student
from .repository import BatchRepository, CoachRepository, StudentRepository


def _to_student(r: dict) -> Student:
    return Student(
        student_id=int(r["student_id"]),
        full_name=r["full_name"],
        is_active=as_bool(r.get("is_active", 1)),
    )


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, student_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT student_id, full_name, is_active FROM students WHERE student_id=%s",
                (int(student_id),),
            )
            r = fetchone(cur)
            return _to_student(r) if r else None

    def list_by_batch(self, batch_id: int) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT s.student_id, s.full_name, s.is_active
                FROM students s
                JOIN batch_students bs ON bs.student_id = s.student_id
                WHERE bs.batch_id=%s
                """,
                (int(batch_id),),
            )
            return [_to_student(r) for r in fetchall(cur)]


class MySQLBatchRepository(BatchRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, batch_id: int) -> Optional[Batch]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT batch_id, name, coach_id, is_active FROM batches WHERE batch_id=%s",
                (int(batch_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Batch(
                batch_id=int(r["batch_id"]),
                name=r["name"],
                coach_id=int(r["coach_id"]) if r.get("coach_id") is not None else None,
                is_active=as_bool(r.get("is_active", 1)),
            )


class MySQLCoachRepository(CoachRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, coach_id: int) -> Optional[Coach]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT coach_id, full_name FROM coaches WHERE coach_id=%s", (int(coach_id),))
            r = fetchone(cur)
            if not r:
                return None
            return Coach(coach_id=int(r["coach_id"]), full_name=r["full_name"])
