from __future__ import annotations

import logging
import math
from typing import Optional

from instabill.domain.errors import ValidationError
from instabill.domain.pricing import BUDGET_EPSILON

log = logging.getLogger("instabill.scan")


class BudgetGuard:
    """Spending ceiling with an optimistic running total.

    `shadow_total` is debited at decision time (`commit`) so a second
    addition decided before the cart recomputes still sees the first one.
    `reconcile` snaps it back to the cart's authoritative total after every
    mutation, so optimism never outlives a single mutation.
    """

    def __init__(self, budget: Optional[float] = None, epsilon: float = BUDGET_EPSILON):
        self.budget = budget
        self.epsilon = epsilon
        self.shadow_total = 0.0

    @property
    def is_set(self) -> bool:
        return self.budget is not None

    def projected(self, additional_cost_with_tax: float) -> float:
        return self.shadow_total + additional_cost_with_tax

    def pre_check(self, additional_cost_with_tax: float) -> bool:
        if self.budget is None:
            return True
        allowed = self.projected(additional_cost_with_tax) <= self.budget + self.epsilon
        if not allowed:
            log.info(
                "budget_rejected budget=%.2f shadow=%.2f cost=%.2f",
                self.budget, self.shadow_total, additional_cost_with_tax,
            )
        return allowed

    def commit(self, additional_cost_with_tax: float) -> None:
        self.shadow_total += additional_cost_with_tax

    def reconcile(self, authoritative_total: float) -> None:
        self.shadow_total = authoritative_total

    def set(self, amount: float) -> None:
        amount = float(amount)
        if not math.isfinite(amount) or amount <= 0:
            raise ValidationError("Budget must be > 0.")
        self.budget = amount

    def increase(self, amount: float) -> float:
        amount = float(amount)
        if self.budget is None:
            raise ValidationError("No budget is set.")
        if not math.isfinite(amount) or amount <= 0:
            raise ValidationError("Increase amount must be > 0.")
        self.budget += amount
        log.info("budget_increased by=%.2f budget=%.2f", amount, self.budget)
        return self.budget

    def clear(self) -> None:
        self.budget = None
        self.shadow_total = 0.0
