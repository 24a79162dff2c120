from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from instabill.domain.errors import InsufficientCashTenderedError, ValidationError
from instabill.domain.models import PaymentMethod, PaymentResult

log = logging.getLogger("instabill.sales")

QUICK_CASH_AMOUNTS: tuple[int, ...] = (50, 100, 200, 500, 2000)


class PaymentService:
    """Mocked payment confirmation step.

    UPI and CARD confirm after the configured delay. CASH additionally needs
    the tendered amount to cover the amount due.
    """

    def __init__(self, delay_seconds: float = 0.0, sleep: Callable[[float], None] = time.sleep):
        self.delay_seconds = delay_seconds
        self.sleep = sleep

    @staticmethod
    def amount_due(total: float) -> float:
        return round(float(total), 2)

    @staticmethod
    def change_for(amount_due: float, tendered: float) -> float:
        return max(0.0, round(float(tendered) - float(amount_due), 2))

    def validate(self, method: PaymentMethod, amount_due: float, tendered: Optional[float] = None) -> None:
        if amount_due < 0:
            raise ValidationError("Amount due must be >= 0.")
        if method is PaymentMethod.CASH:
            given = float(tendered or 0)
            if given < amount_due:
                raise InsufficientCashTenderedError(amount_due, given)

    def confirm(self, method: PaymentMethod | str, amount_due: float, tendered: Optional[float] = None) -> PaymentResult:
        try:
            method = PaymentMethod(method)
        except ValueError as e:
            raise ValidationError(f"Unknown payment method: {method!r}") from e
        due = self.amount_due(amount_due)
        self.validate(method, due, tendered)

        if self.delay_seconds > 0:
            self.sleep(self.delay_seconds)

        change = self.change_for(due, tendered) if method is PaymentMethod.CASH else 0.0
        log.info("payment_confirmed method=%s due=%.2f tendered=%s change=%.2f", method.value, due, tendered, change)
        return PaymentResult(
            method=method,
            amount_due=due,
            tendered=float(tendered) if tendered is not None else None,
            change=change,
        )
