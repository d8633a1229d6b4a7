from __future__ import annotations

import logging
from contextlib import nullcontext
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Callable, ContextManager, Mapping, Optional, Sequence

from ..academy.model import Actor, Batch, Coach, Student
from ..academy.repository import BatchRepository, CoachRepository, StudentRepository
from ..audit.model import AuditEntryDraft
from ..audit.repository import AuditLogRepository
from ..common.datetime_utils import now_local
from ..common.validators import clean_optional, require_max_length
from ..core.constants import MAX_REASON_LENGTH
from ..core.enums import AttendanceStatus, AuditAction, EntryType, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from .makeup import MakeupValidator
from .model import AttendanceChanges, AttendanceRecord, AttendanceSummary, BulkAttendanceItem, NewAttendance
from .policy import BackdatePolicy, is_backdated
from .repository import AttendanceRepository
from .violation import raise_for_violation

logger = logging.getLogger(__name__)

UnitOfWork = Callable[[], ContextManager[None]]


def attendance_percentage(present: int, total: int) -> float:
    """PRESENT share of all classes, 0 when nothing has been recorded."""
    if total <= 0:
        return 0.0
    return present * 100.0 / total


class AttendanceService:
    """Marks, updates and deletes attendance and answers attendance queries.

    Every mutation runs inside one ``unit_of_work`` so the record and its audit
    entry are committed together, and a rejected request leaves the store unchanged.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        audit: AuditLogRepository,
        students: StudentRepository,
        batches: BatchRepository,
        coaches: CoachRepository,
        *,
        policy: BackdatePolicy | None = None,
        makeup: MakeupValidator | None = None,
        unit_of_work: UnitOfWork | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._attendance = attendance
        self._audit = audit
        self._students = students
        self._batches = batches
        self._coaches = coaches
        self._policy = policy or BackdatePolicy()
        self._makeup = makeup or MakeupValidator()
        self._unit_of_work = unit_of_work or nullcontext
        self._clock = clock or now_local

    # ---- lookups -------------------------------------------------------

    def _require_student(self, student_id: int) -> Student:
        student = self._students.get_by_id(int(student_id))
        if not student:
            raise NotFoundError(f"Student not found with id: {student_id}")
        return student

    def _require_batch(self, batch_id: int) -> Batch:
        batch = self._batches.get_by_id(int(batch_id))
        if not batch:
            raise NotFoundError(f"Batch not found with id: {batch_id}")
        return batch

    def _require_actor(self, actor: Actor) -> Coach:
        coach = self._coaches.get_by_id(int(actor.actor_id))
        if not coach:
            raise NotFoundError(f"Coach not found with id: {actor.actor_id}")
        return coach

    def _require_record(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(int(attendance_id))
        if not record:
            raise NotFoundError(f"Attendance not found with id: {attendance_id}")
        return record

    def _compensation_lookup(self, *, exclude_attendance_id: Optional[int] = None):
        def already_compensated(student_id: int, compensates_for_date: date) -> bool:
            existing = self._attendance.find_makeup_for(
                student_id=student_id, compensates_for_date=compensates_for_date
            )
            return existing is not None and existing.attendance_id != exclude_attendance_id

        return already_compensated

    @staticmethod
    def _clean_reason(reason: Optional[str]) -> Optional[str]:
        return require_max_length(clean_optional(reason), "Reason", MAX_REASON_LENGTH)

    def _write_audit(
        self,
        *,
        record: AttendanceRecord,
        action: AuditAction,
        previous: Optional[AttendanceRecord],
        actor: Actor,
        reason: Optional[str],
        was_backdated: bool,
        now: datetime,
    ) -> None:
        deleted = action == AuditAction.DELETE
        self._audit.append(
            AuditEntryDraft(
                attendance_id=record.attendance_id,
                student_id=record.student_id,
                batch_id=record.batch_id,
                attendance_date=record.attendance_date,
                action=action,
                previous_status=previous.status if previous else None,
                previous_entry_type=previous.entry_type if previous else None,
                previous_notes=previous.notes if previous else None,
                new_status=None if deleted else record.status,
                new_entry_type=None if deleted else record.entry_type,
                new_notes=None if deleted else record.notes,
                changed_by=actor.actor_id,
                changed_by_role=actor.role,
                reason=reason,
                was_backdated=was_backdated,
            ),
            changed_at=now,
        )

    # ---- mutations -----------------------------------------------------

    def mark_attendance(self, new: NewAttendance, *, actor: Actor, reason: Optional[str] = None) -> AttendanceRecord:
        now = self._clock()
        today = now.date()
        reason = self._clean_reason(reason)

        raise_for_violation(self._policy.validate(new.attendance_date, actor, reason, today=today))

        entry_type = new.entry_type or EntryType.REGULAR
        compensates_for = new.compensates_for_date if entry_type == EntryType.MAKEUP else None
        backdated = is_backdated(new.attendance_date, today)

        with self._unit_of_work():
            raise_for_violation(
                self._makeup.validate(
                    student_id=new.student_id,
                    entry_type=entry_type,
                    own_date=new.attendance_date,
                    compensates_for_date=compensates_for,
                    today=today,
                    already_compensated=self._compensation_lookup(),
                )
            )

            existing = self._attendance.get_for_student_batch_date(
                student_id=new.student_id,
                batch_id=new.batch_id,
                attendance_date=new.attendance_date,
                for_update=True,
            )
            if existing:
                raise ConflictError("Attendance already marked for this student on this date in this batch")

            self._require_student(new.student_id)
            self._require_batch(new.batch_id)
            self._require_actor(actor)

            fields = dict(
                student_id=int(new.student_id),
                batch_id=int(new.batch_id),
                attendance_date=new.attendance_date,
                status=new.status,
                entry_type=entry_type,
                compensates_for_date=compensates_for,
                notes=clean_optional(new.notes),
                marked_by=actor.actor_id,
                marked_at=now,
                was_backdated=backdated,
                backdate_reason=reason if backdated else None,
            )
            attendance_id = self._attendance.create(**fields)
            record = AttendanceRecord(attendance_id=attendance_id, **fields)

            self._write_audit(
                record=record,
                action=AuditAction.CREATE,
                previous=None,
                actor=actor,
                reason=reason,
                was_backdated=backdated,
                now=now,
            )

        logger.info(
            "Attendance marked for student %s in batch %s on %s (type: %s, backdated: %s)",
            record.student_id,
            record.batch_id,
            record.attendance_date,
            entry_type.value,
            backdated,
        )
        return record

    def mark_bulk_attendance(
        self,
        *,
        batch_id: int,
        attendance_date: date,
        items: Sequence[BulkAttendanceItem],
        actor: Actor,
        reason: Optional[str] = None,
    ) -> list[AttendanceRecord]:
        """Create or overwrite one record per item for a batch session.

        All-or-nothing: the first failing item aborts the call and nothing is written.
        """
        if not items:
            raise ValidationError("At least one student attendance entry is required")

        seen: set[int] = set()
        for item in items:
            if item.student_id in seen:
                raise ValidationError(f"Duplicate entry in request (student: {item.student_id})")
            seen.add(item.student_id)

        now = self._clock()
        today = now.date()
        reason = self._clean_reason(reason)

        raise_for_violation(self._policy.validate(attendance_date, actor, reason, today=today))
        backdated = is_backdated(attendance_date, today)

        results: list[AttendanceRecord] = []
        created = 0
        updated = 0

        with self._unit_of_work():
            self._require_batch(batch_id)
            self._require_actor(actor)

            for item in items:
                student = self._require_student(item.student_id)
                existing = self._attendance.get_for_student_batch_date(
                    student_id=student.student_id,
                    batch_id=int(batch_id),
                    attendance_date=attendance_date,
                    for_update=True,
                )

                entry_type = item.entry_type or EntryType.REGULAR
                compensates_for = item.compensates_for_date if entry_type == EntryType.MAKEUP else None
                violation = self._makeup.validate(
                    student_id=student.student_id,
                    entry_type=entry_type,
                    own_date=attendance_date,
                    compensates_for_date=compensates_for,
                    today=today,
                    already_compensated=self._compensation_lookup(
                        exclude_attendance_id=existing.attendance_id if existing else None
                    ),
                )
                if violation:
                    raise_for_violation(violation.with_context(f"student: {student.student_id}"))

                fields = dict(
                    status=item.status,
                    entry_type=entry_type,
                    compensates_for_date=compensates_for,
                    notes=clean_optional(item.notes),
                    marked_by=actor.actor_id,
                    marked_at=now,
                    was_backdated=backdated,
                    backdate_reason=reason if backdated else None,
                )

                if existing is None:
                    attendance_id = self._attendance.create(
                        student_id=student.student_id,
                        batch_id=int(batch_id),
                        attendance_date=attendance_date,
                        **fields,
                    )
                    record = AttendanceRecord(
                        attendance_id=attendance_id,
                        student_id=student.student_id,
                        batch_id=int(batch_id),
                        attendance_date=attendance_date,
                        **fields,
                    )
                    action = AuditAction.CREATE
                    created += 1
                else:
                    self._attendance.update(attendance_id=existing.attendance_id, **fields)
                    record = replace(existing, **fields)
                    action = AuditAction.UPDATE
                    updated += 1

                self._write_audit(
                    record=record,
                    action=action,
                    previous=existing,
                    actor=actor,
                    reason=reason,
                    was_backdated=backdated,
                    now=now,
                )
                results.append(record)

        logger.info(
            "Bulk attendance processed for batch %s on %s - %d created, %d updated (backdated: %s)",
            batch_id,
            attendance_date,
            created,
            updated,
            backdated,
        )
        return results

    def update_attendance(
        self,
        attendance_id: int,
        changes: AttendanceChanges,
        *,
        actor: Actor,
        reason: Optional[str] = None,
    ) -> AttendanceRecord:
        now = self._clock()
        today = now.date()
        reason = self._clean_reason(reason)

        with self._unit_of_work():
            record = self._require_record(attendance_id)

            # The window applies to the record's own date, not to today.
            raise_for_violation(self._policy.validate(record.attendance_date, actor, reason, today=today))
            self._require_actor(actor)

            entry_type = changes.entry_type or record.entry_type
            compensates_for = (
                changes.compensates_for_date
                if changes.compensates_for_date is not None
                else record.compensates_for_date
            )
            if entry_type != EntryType.MAKEUP:
                compensates_for = None

            raise_for_violation(
                self._makeup.validate(
                    student_id=record.student_id,
                    entry_type=entry_type,
                    own_date=record.attendance_date,
                    compensates_for_date=compensates_for,
                    today=today,
                    already_compensated=self._compensation_lookup(exclude_attendance_id=record.attendance_id),
                )
            )

            backdated = is_backdated(record.attendance_date, today)
            fields = dict(
                status=changes.status or record.status,
                entry_type=entry_type,
                compensates_for_date=compensates_for,
                notes=clean_optional(changes.notes) if changes.notes is not None else record.notes,
                marked_by=actor.actor_id,
                marked_at=now,
                was_backdated=backdated,
                backdate_reason=reason if backdated else None,
            )
            if not self._attendance.update(attendance_id=record.attendance_id, **fields):
                raise NotFoundError(f"Attendance not found with id: {attendance_id}")
            updated = replace(record, **fields)

            self._write_audit(
                record=updated,
                action=AuditAction.UPDATE,
                previous=record,
                actor=actor,
                reason=reason,
                was_backdated=backdated,
                now=now,
            )

        logger.info("Attendance updated for id: %s (backdated: %s)", attendance_id, backdated)
        return updated

    def delete_attendance(self, attendance_id: int, *, actor: Actor, reason: Optional[str] = None) -> None:
        """Hard delete (admin only). The removed values are kept in the audit trail."""
        if actor.role != Role.ADMIN:
            raise AuthorizationError("Only admins can delete attendance records")

        now = self._clock()
        reason = self._clean_reason(reason)

        with self._unit_of_work():
            record = self._require_record(attendance_id)
            if not self._attendance.delete(record.attendance_id):
                raise NotFoundError(f"Attendance not found with id: {attendance_id}")

            self._write_audit(
                record=record,
                action=AuditAction.DELETE,
                previous=record,
                actor=actor,
                reason=reason,
                was_backdated=is_backdated(record.attendance_date, now.date()),
                now=now,
            )

        logger.info("Attendance deleted with id: %s", attendance_id)

    # ---- queries -------------------------------------------------------

    def get_attendance(self, attendance_id: int) -> AttendanceRecord:
        return self._require_record(attendance_id)

    def list_all(self) -> Sequence[AttendanceRecord]:
        return self._attendance.list_all()

    def list_by_student(self, student_id: int) -> Sequence[AttendanceRecord]:
        return self._attendance.list_by_student(int(student_id))

    def list_by_batch(self, batch_id: int) -> Sequence[AttendanceRecord]:
        return self._attendance.list_by_batch(int(batch_id))

    def list_by_date(self, attendance_date: date) -> Sequence[AttendanceRecord]:
        return self._attendance.list_by_date(attendance_date)

    def list_by_student_range(self, student_id: int, *, start: date, end: date) -> Sequence[AttendanceRecord]:
        if end < start:
            raise ValidationError("End date must be on or after start date")
        return self._attendance.list_by_student_range(student_id=int(student_id), start=start, end=end)

    def list_by_batch_range(self, batch_id: int, *, start: date, end: date) -> Sequence[AttendanceRecord]:
        if end < start:
            raise ValidationError("End date must be on or after start date")
        return self._attendance.list_by_batch_range(batch_id=int(batch_id), start=start, end=end)

    def list_by_coach_and_date(self, coach_id: int, attendance_date: date) -> Sequence[AttendanceRecord]:
        return self._attendance.list_by_coach_and_date(coach_id=int(coach_id), attendance_date=attendance_date)

    def get_student_summary(self, student_id: int) -> AttendanceSummary:
        student = self._require_student(student_id)
        counts: Mapping[AttendanceStatus, int] = self._attendance.count_by_status(student_id=student.student_id)

        present = int(counts.get(AttendanceStatus.PRESENT, 0))
        absent = int(counts.get(AttendanceStatus.ABSENT, 0))
        late = int(counts.get(AttendanceStatus.LATE, 0))
        excused = int(counts.get(AttendanceStatus.EXCUSED, 0))
        total = present + absent + late + excused

        return AttendanceSummary(
            student_id=student.student_id,
            student_name=student.full_name,
            total_classes=total,
            present_count=present,
            absent_count=absent,
            late_count=late,
            excused_count=excused,
            attendance_percentage=attendance_percentage(present, total),
        )

    def get_attendance_percentage(self, student_id: int, batch_id: int) -> float:
        counts = self._attendance.count_by_status(student_id=int(student_id), batch_id=int(batch_id))
        total = sum(int(v) for v in counts.values())
        return attendance_percentage(int(counts.get(AttendanceStatus.PRESENT, 0)), total)

    def get_eligible_absences_for_makeup(self, student_id: int, batch_id: int) -> list[AttendanceRecord]:
        """Uncompensated REGULAR absences inside the longest backdate window."""
        today = self._clock().date()
        window_start = today - timedelta(days=self._policy.windows.admin_window_days)

        absences = [
            r
            for r in self._attendance.list_by_student_range(student_id=int(student_id), start=window_start, end=today)
            if r.batch_id == int(batch_id)
            and r.status == AttendanceStatus.ABSENT
            and r.entry_type == EntryType.REGULAR
        ]

        compensated = {
            r.compensates_for_date
            for r in self._attendance.list_by_student(int(student_id))
            if r.entry_type == EntryType.MAKEUP and r.compensates_for_date is not None
        }
        return [r for r in absences if r.attendance_date not in compensated]
