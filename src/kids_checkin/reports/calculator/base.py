from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from ...attendance.model import AttendanceRecord


class DurationCalculator(ABC):
    @abstractmethod
    def session_hours(self, record: AttendanceRecord) -> Optional[float]:
        """Hours spent on site, or None while the session is open."""

        raise NotImplementedError
