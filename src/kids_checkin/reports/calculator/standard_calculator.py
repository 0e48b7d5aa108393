from __future__ import annotations

from typing import Optional

from ...attendance.model import AttendanceRecord
from .base import DurationCalculator


class StandardDurationCalculator(DurationCalculator):
    def session_hours(self, record: AttendanceRecord) -> Optional[float]:
        hours = record.duration_hours()
        if hours is None:
            return None
        return max(0.0, hours)
