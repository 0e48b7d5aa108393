from __future__ import annotations

from dataclasses import dataclass

from .policies.any_day_policy import AnyDayCheckoutPolicy
from .policies.base import CheckoutWindowPolicy
from .policies.same_day_policy import SameDayCheckoutPolicy


@dataclass
class CheckoutPolicyFactory:
    """Factory Pattern: choose the checkout window from configuration."""

    same_day_only: bool = True

    def create(self) -> CheckoutWindowPolicy:
        if self.same_day_only:
            return SameDayCheckoutPolicy()
        return AnyDayCheckoutPolicy()
