from __future__ import annotations

import copy
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Optional

import pytest

from academy_attendance.academy.model import Actor, Batch, Coach, Student
from academy_attendance.attendance.makeup import MakeupValidator
from academy_attendance.attendance.model import AttendanceRecord
from academy_attendance.attendance.policy import BackdatePolicy
from academy_attendance.attendance.service import AttendanceService
from academy_attendance.audit.model import AuditLogEntry
from academy_attendance.audit.service import AuditService
from academy_attendance.core.enums import AttendanceStatus, EntryType, Role, ViolationKind
from academy_attendance.core.exceptions import ConflictError, ValidationError
from academy_attendance.reporting.service import MatrixReportService

# Wednesday; its week starts on Sunday 2026-03-15.
NOW = datetime(2026, 3, 18, 18, 30, 0)
TODAY = NOW.date()

COACH = Actor(actor_id=2, role=Role.COACH)
ADMIN = Actor(actor_id=1, role=Role.ADMIN)


@dataclass
class InMemoryStudents:
    students: dict[int, Student]
    members_by_batch: dict[int, list[int]] = field(default_factory=dict)

    def get_by_id(self, student_id: int) -> Optional[Student]:
        return self.students.get(student_id)

    def list_by_batch(self, batch_id: int):
        return [self.students[sid] for sid in self.members_by_batch.get(batch_id, [])]


@dataclass
class InMemoryBatches:
    batches: dict[int, Batch]

    def get_by_id(self, batch_id: int) -> Optional[Batch]:
        return self.batches.get(batch_id)


@dataclass
class InMemoryCoaches:
    coaches: dict[int, Coach]

    def get_by_id(self, coach_id: int) -> Optional[Coach]:
        return self.coaches.get(coach_id)


class InMemoryAttendance:
    def __init__(self, batch_coaches: Optional[dict[int, int]] = None):
        self.records: dict[int, AttendanceRecord] = {}
        self.batch_coaches = batch_coaches or {}
        self._id = 0

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self.records.get(attendance_id)

    def _find_slot(self, student_id, batch_id, attendance_date) -> Optional[AttendanceRecord]:
        for r in self.records.values():
            if (r.student_id, r.batch_id, r.attendance_date) == (student_id, batch_id, attendance_date):
                return r
        return None

    def _check_makeup_key(self, fields, exclude_id=None) -> None:
        # Mirrors the UNIQUE (student_id, compensates_for_date) key; NULLs never collide.
        target = fields.get("compensates_for_date")
        if target is None:
            return
        for r in self.records.values():
            if r.attendance_id != exclude_id and (r.student_id, r.compensates_for_date) == (fields["student_id"], target):
                raise ValidationError(
                    f"Absence on {target.isoformat()} has already been compensated with a makeup session",
                    kind=ViolationKind.ALREADY_COMPENSATED,
                )

    def get_for_student_batch_date(self, *, student_id, batch_id, attendance_date, for_update=False):
        return self._find_slot(student_id, batch_id, attendance_date)

    def find_makeup_for(self, *, student_id, compensates_for_date):
        for r in self.records.values():
            if (
                r.student_id == student_id
                and r.entry_type == EntryType.MAKEUP
                and r.compensates_for_date == compensates_for_date
            ):
                return r
        return None

    def create(self, **fields) -> int:
        # Mirrors the UNIQUE (student_id, batch_id, attendance_date) key.
        if self._find_slot(fields["student_id"], fields["batch_id"], fields["attendance_date"]):
            raise ConflictError("Attendance already marked for this student on this date in this batch")
        self._check_makeup_key(fields)
        self._id += 1
        self.records[self._id] = AttendanceRecord(attendance_id=self._id, **fields)
        return self._id

    def update(self, *, attendance_id, **fields) -> bool:
        rec = self.records.get(attendance_id)
        if not rec:
            return False
        self._check_makeup_key({"student_id": rec.student_id, **fields}, exclude_id=attendance_id)
        self.records[attendance_id] = replace(rec, **fields)
        return True

    def delete(self, attendance_id: int) -> bool:
        return self.records.pop(attendance_id, None) is not None

    def _sorted(self, items):
        return sorted(items, key=lambda r: (r.attendance_date, r.attendance_id), reverse=True)

    def list_all(self):
        return self._sorted(self.records.values())

    def list_by_student(self, student_id: int):
        return self._sorted(r for r in self.records.values() if r.student_id == student_id)

    def list_by_batch(self, batch_id: int):
        return self._sorted(r for r in self.records.values() if r.batch_id == batch_id)

    def list_by_date(self, attendance_date: date):
        return self._sorted(r for r in self.records.values() if r.attendance_date == attendance_date)

    def list_by_student_range(self, *, student_id, start, end):
        return self._sorted(
            r for r in self.records.values() if r.student_id == student_id and start <= r.attendance_date <= end
        )

    def list_by_batch_range(self, *, batch_id, start, end):
        return self._sorted(
            r for r in self.records.values() if r.batch_id == batch_id and start <= r.attendance_date <= end
        )

    def list_by_coach_and_date(self, *, coach_id, attendance_date):
        return self._sorted(
            r
            for r in self.records.values()
            if self.batch_coaches.get(r.batch_id) == coach_id and r.attendance_date == attendance_date
        )

    def count_by_status(self, *, student_id, batch_id=None):
        counts = {s: 0 for s in AttendanceStatus}
        for r in self.records.values():
            if r.student_id == student_id and (batch_id is None or r.batch_id == batch_id):
                counts[r.status] += 1
        return counts


class InMemoryAuditLog:
    def __init__(self):
        self.entries: list[AuditLogEntry] = []

    def append(self, entry, *, changed_at: datetime) -> int:
        audit_id = len(self.entries) + 1
        self.entries.append(AuditLogEntry(audit_id=audit_id, changed_at=changed_at, **vars(entry)))
        return audit_id

    def _newest_first(self, items):
        return sorted(items, key=lambda e: (e.changed_at, e.audit_id), reverse=True)

    def list_by_record(self, attendance_id: int):
        return self._newest_first(e for e in self.entries if e.attendance_id == attendance_id)

    def list_by_student(self, student_id: int):
        return self._newest_first(e for e in self.entries if e.student_id == student_id)

    def list_by_batch(self, batch_id: int):
        return self._newest_first(e for e in self.entries if e.batch_id == batch_id)

    def list_by_actor(self, actor_id: int):
        return self._newest_first(e for e in self.entries if e.changed_by == actor_id)

    def list_backdated(self):
        return self._newest_first(e for e in self.entries if e.was_backdated)

    def list_changed_between(self, *, start: datetime, end: datetime):
        return self._newest_first(e for e in self.entries if start <= e.changed_at <= end)


class SnapshotUnitOfWork:
    """Restores the fake stores when the block raises, like a rolled back transaction."""

    def __init__(self, *stores):
        self._stores = stores
        self.commits = 0
        self.rollbacks = 0

    @contextmanager
    def __call__(self):
        snapshot = [copy.deepcopy(vars(s)) for s in self._stores]
        try:
            yield
        except Exception:
            for store, state in zip(self._stores, snapshot):
                store.__dict__.clear()
                store.__dict__.update(state)
            self.rollbacks += 1
            raise
        self.commits += 1


@dataclass
class Academy:
    students: InMemoryStudents
    batches: InMemoryBatches
    coaches: InMemoryCoaches
    attendance: InMemoryAttendance
    audit: InMemoryAuditLog
    unit_of_work: SnapshotUnitOfWork
    attendance_service: AttendanceService
    audit_service: AuditService
    matrix_report_service: MatrixReportService

    def seed(self, **fields) -> AttendanceRecord:
        """Insert a record directly, bypassing the policy checks and the audit trail."""
        values = dict(
            batch_id=1,
            entry_type=EntryType.REGULAR,
            compensates_for_date=None,
            notes=None,
            marked_by=COACH.actor_id,
            marked_at=NOW,
            was_backdated=False,
            backdate_reason=None,
        )
        values.update(fields)
        return self.attendance.get_by_id(self.attendance.create(**values))


@pytest.fixture
def academy() -> Academy:
    students = InMemoryStudents(
        {
            1: Student(student_id=1, full_name="Chen Wei"),
            2: Student(student_id=2, full_name="bella Thomas"),
            3: Student(student_id=3, full_name="Arjun Mehta"),
        },
        {1: [1, 2, 3], 2: [1]},
    )
    batches = InMemoryBatches(
        {
            1: Batch(batch_id=1, name="Beginners Evening", coach_id=2),
            2: Batch(batch_id=2, name="Weekend Advanced", coach_id=2),
        }
    )
    coaches = InMemoryCoaches(
        {1: Coach(coach_id=1, full_name="Academy Admin"), 2: Coach(coach_id=2, full_name="Priya Raman")}
    )
    attendance = InMemoryAttendance({b.batch_id: b.coach_id for b in batches.batches.values()})
    audit = InMemoryAuditLog()
    uow = SnapshotUnitOfWork(attendance, audit)

    def clock():
        return NOW

    return Academy(
        students=students,
        batches=batches,
        coaches=coaches,
        attendance=attendance,
        audit=audit,
        unit_of_work=uow,
        attendance_service=AttendanceService(
            attendance,
            audit,
            students,
            batches,
            coaches,
            policy=BackdatePolicy(),
            makeup=MakeupValidator(),
            unit_of_work=uow,
            clock=clock,
        ),
        audit_service=AuditService(audit),
        matrix_report_service=MatrixReportService(attendance, students, batches, clock=clock),
    )
