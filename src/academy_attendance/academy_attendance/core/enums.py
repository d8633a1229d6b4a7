from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role of the acting principal, supplied by the identity layer."""

    COACH = "COACH"
    ADMIN = "ADMIN"


class AttendanceStatus(str, Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"
    EXCUSED = "EXCUSED"


class EntryType(str, Enum):
    """REGULAR = scheduled session, MAKEUP = compensates a prior absence."""

    REGULAR = "REGULAR"
    MAKEUP = "MAKEUP"


class AuditAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class PeriodType(str, Enum):
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"


class ViolationKind(str, Enum):
    """Reasons a policy check can reject a mutation."""

    MISSING_DATE = "MISSING_DATE"
    FUTURE_DATE = "FUTURE_DATE"
    WINDOW_EXCEEDED = "WINDOW_EXCEEDED"
    MISSING_REASON = "MISSING_REASON"
    MISSING_COMPENSATION_TARGET = "MISSING_COMPENSATION_TARGET"
    FUTURE_COMPENSATION = "FUTURE_COMPENSATION"
    SELF_COMPENSATION = "SELF_COMPENSATION"
    COMPENSATION_AFTER_MAKEUP = "COMPENSATION_AFTER_MAKEUP"
    ALREADY_COMPENSATED = "ALREADY_COMPENSATED"
