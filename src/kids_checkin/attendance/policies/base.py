from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from ..model import AttendanceRecord


class CheckoutWindowPolicy(ABC):
    """Strategy Pattern: decide which open sessions may still be checked out."""

    @abstractmethod
    def allows(self, record: AttendanceRecord, *, now: datetime) -> bool:
        raise NotImplementedError
