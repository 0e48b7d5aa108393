from __future__ import annotations

from datetime import datetime

from ..model import AttendanceRecord
from .base import CheckoutWindowPolicy


class SameDayCheckoutPolicy(CheckoutWindowPolicy):
    """Only sessions opened on the current calendar day."""

    def allows(self, record: AttendanceRecord, *, now: datetime) -> bool:
        return record.date == now.date()
