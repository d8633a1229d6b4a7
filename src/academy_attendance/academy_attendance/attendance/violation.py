from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import ViolationKind
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class Violation:
    """Typed rejection returned by the pure policy checks (None means ok)."""

    kind: ViolationKind
    detail: str

    def with_context(self, context: str) -> "Violation":
        return Violation(kind=self.kind, detail=f"{self.detail} ({context})")


def raise_for_violation(violation: Optional[Violation]) -> None:
    """Service-boundary adapter: map a violation to the caller's error convention."""
    if violation is None:
        return
    raise ValidationError(violation.detail, kind=violation.kind)
