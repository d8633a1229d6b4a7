from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Student:
    """Domain entity: a student enrolled at the academy.

    Plain data object; batch membership is resolved through the repository.
    """

    student_id: int
    full_name: str
    is_active: bool = True


@dataclass(frozen=True)
class Batch:
    batch_id: int
    name: str
    coach_id: Optional[int] = None
    is_active: bool = True


@dataclass(frozen=True)
class Coach:
    """Coach or admin account that can mark attendance."""

    coach_id: int
    full_name: str


@dataclass(frozen=True)
class Actor:
    """The acting principal as supplied by the authorization layer."""

    actor_id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
