from __future__ import annotations

from datetime import date
from typing import Callable, Optional

from ..core.enums import EntryType, ViolationKind
from .violation import Violation

# (student_id, compensates_for_date) -> True when a MAKEUP already targets that absence
AlreadyCompensatedLookup = Callable[[int, date], bool]


class MakeupValidator:
    """Keeps makeup -> absence a strict one-to-one mapping.

    A missed class can be made up once, never in the future, never by itself,
    and only by a session held after it.
    """

    def validate(
        self,
        *,
        student_id: int,
        entry_type: EntryType,
        own_date: date,
        compensates_for_date: Optional[date],
        today: date,
        already_compensated: AlreadyCompensatedLookup,
    ) -> Optional[Violation]:
        if entry_type != EntryType.MAKEUP:
            return None

        if compensates_for_date is None:
            return Violation(
                ViolationKind.MISSING_COMPENSATION_TARGET,
                "compensates_for_date is required for MAKEUP attendance entries",
            )

        if compensates_for_date > today:
            return Violation(ViolationKind.FUTURE_COMPENSATION, "Cannot compensate for a future date")

        if compensates_for_date == own_date:
            return Violation(
                ViolationKind.SELF_COMPENSATION,
                "Makeup date cannot be the same as the compensated date",
            )

        if compensates_for_date > own_date:
            return Violation(
                ViolationKind.COMPENSATION_AFTER_MAKEUP,
                "A makeup session must take place after the absence it compensates",
            )

        if already_compensated(student_id, compensates_for_date):
            return Violation(
                ViolationKind.ALREADY_COMPENSATED,
                f"Absence on {compensates_for_date.isoformat()} has already been compensated with a makeup session",
            )
        return None
