from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..academy.model import Actor
from ..common.validators import is_blank
from ..core.constants import DEFAULT_ADMIN_BACKDATE_WINDOW_DAYS, DEFAULT_COACH_BACKDATE_WINDOW_DAYS
from ..core.enums import Role, ViolationKind
from .violation import Violation


@dataclass(frozen=True)
class BackdateWindows:
    """How many days in the past each role may mark or edit attendance."""

    coach_window_days: int = DEFAULT_COACH_BACKDATE_WINDOW_DAYS
    admin_window_days: int = DEFAULT_ADMIN_BACKDATE_WINDOW_DAYS

    def __post_init__(self):
        if self.coach_window_days < 0 or self.admin_window_days < 0:
            raise ValueError("Backdate windows must be non-negative")

    def for_role(self, role: Role) -> int:
        if role == Role.ADMIN:
            return self.admin_window_days
        return self.coach_window_days

    @property
    def max_window_days(self) -> int:
        return max(self.coach_window_days, self.admin_window_days)


def is_backdated(target_date: date, today: date) -> bool:
    return target_date < today


class BackdatePolicy:
    """Decides whether an actor may touch attendance for a given date.

    Coaches get a short correction window, admins a longer one for dispute
    resolution. Any write for a past date must carry a reason so the audit
    trail records why it happened.
    """

    def __init__(self, windows: Optional[BackdateWindows] = None):
        self._windows = windows or BackdateWindows()

    @property
    def windows(self) -> BackdateWindows:
        return self._windows

    def validate(self, target_date: Optional[date], actor: Actor, reason: Optional[str], *, today: date) -> Optional[Violation]:
        if target_date is None:
            return Violation(ViolationKind.MISSING_DATE, "Attendance date is required")

        if target_date > today:
            return Violation(ViolationKind.FUTURE_DATE, "Cannot mark attendance for future dates")

        if target_date == today:
            return None

        days_ago = (today - target_date).days
        window = self._windows.for_role(actor.role)
        if days_ago > window:
            return Violation(
                ViolationKind.WINDOW_EXCEEDED,
                f"{actor.role.value.title()} can only modify attendance within the last {window} days. "
                f"This date is {days_ago} days ago.",
            )

        if is_blank(reason):
            return Violation(
                ViolationKind.MISSING_REASON,
                "A reason is required when marking or editing attendance for past dates",
            )
        return None
