from __future__ import annotations

from datetime import date, timedelta

import pytest

from academy_attendance.academy.model import Actor
from academy_attendance.attendance.policy import BackdatePolicy, BackdateWindows, is_backdated
from academy_attendance.core.enums import Role, ViolationKind

TODAY = date(2026, 3, 18)
COACH = Actor(actor_id=2, role=Role.COACH)
ADMIN = Actor(actor_id=1, role=Role.ADMIN)


def test_today_needs_no_reason():
    assert BackdatePolicy().validate(TODAY, COACH, None, today=TODAY) is None


def test_missing_date_is_rejected():
    violation = BackdatePolicy().validate(None, COACH, "x", today=TODAY)
    assert violation.kind == ViolationKind.MISSING_DATE


@pytest.mark.parametrize("actor", [COACH, ADMIN])
def test_future_date_is_rejected_for_every_role(actor):
    violation = BackdatePolicy().validate(TODAY + timedelta(days=1), actor, "planned", today=TODAY)
    assert violation.kind == ViolationKind.FUTURE_DATE


def test_coach_within_window_requires_reason():
    policy = BackdatePolicy()
    target = TODAY - timedelta(days=7)

    missing = policy.validate(target, COACH, "   ", today=TODAY)
    assert missing.kind == ViolationKind.MISSING_REASON

    assert policy.validate(target, COACH, "forgot to mark", today=TODAY) is None


def test_coach_beyond_window_names_role_and_limit():
    violation = BackdatePolicy().validate(TODAY - timedelta(days=10), COACH, "late", today=TODAY)

    assert violation.kind == ViolationKind.WINDOW_EXCEEDED
    assert violation.detail == (
        "Coach can only modify attendance within the last 7 days. This date is 10 days ago."
    )


def test_admin_has_the_longer_window():
    policy = BackdatePolicy()
    assert policy.validate(TODAY - timedelta(days=30), ADMIN, "dispute", today=TODAY) is None

    violation = policy.validate(TODAY - timedelta(days=31), ADMIN, "dispute", today=TODAY)
    assert violation.kind == ViolationKind.WINDOW_EXCEEDED
    assert violation.detail.startswith("Admin can only modify attendance within the last 30 days")


def test_window_check_runs_before_reason_check():
    violation = BackdatePolicy().validate(TODAY - timedelta(days=8), COACH, None, today=TODAY)
    assert violation.kind == ViolationKind.WINDOW_EXCEEDED


def test_windows_are_configurable():
    policy = BackdatePolicy(BackdateWindows(coach_window_days=2, admin_window_days=5))

    assert policy.validate(TODAY - timedelta(days=3), COACH, "r", today=TODAY).kind == ViolationKind.WINDOW_EXCEEDED
    assert policy.validate(TODAY - timedelta(days=5), ADMIN, "r", today=TODAY) is None
    assert policy.windows.max_window_days == 5


def test_zero_window_still_allows_today():
    policy = BackdatePolicy(BackdateWindows(coach_window_days=0, admin_window_days=0))

    assert policy.validate(TODAY, COACH, None, today=TODAY) is None
    assert policy.validate(TODAY - timedelta(days=1), COACH, "r", today=TODAY).kind == ViolationKind.WINDOW_EXCEEDED


def test_negative_window_is_a_configuration_error():
    with pytest.raises(ValueError):
        BackdateWindows(coach_window_days=-1)


def test_is_backdated():
    assert is_backdated(TODAY - timedelta(days=1), TODAY)
    assert not is_backdated(TODAY, TODAY)
