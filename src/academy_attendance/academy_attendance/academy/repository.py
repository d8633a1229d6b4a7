from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Batch, Coach, Student


class StudentRepository(Protocol):
    """Lookup interface for students.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, student_id: int) -> Optional[Student]:
        raise NotImplementedError

    def list_by_batch(self, batch_id: int) -> Sequence[Student]:
        raise NotImplementedError


class BatchRepository(Protocol):
    def get_by_id(self, batch_id: int) -> Optional[Batch]:
        raise NotImplementedError


class CoachRepository(Protocol):
    def get_by_id(self, coach_id: int) -> Optional[Coach]:
        raise NotImplementedError
