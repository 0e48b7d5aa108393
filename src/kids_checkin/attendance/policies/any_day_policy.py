from __future__ import annotations

from datetime import datetime

from ..model import AttendanceRecord
from .base import CheckoutWindowPolicy


class AnyDayCheckoutPolicy(CheckoutWindowPolicy):
    """Any open session, whatever day it started."""

    def allows(self, record: AttendanceRecord, *, now: datetime) -> bool:
        return True
