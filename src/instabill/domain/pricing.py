from __future__ import annotations

from typing import Iterable

from .models import LineItem

TAX_RATE = 0.18
BUDGET_EPSILON = 0.05


def cost_with_tax(price: float, tax_rate: float = TAX_RATE) -> float:
    return float(price) * (1 + tax_rate)


def subtotal(items: Iterable[LineItem]) -> float:
    return sum(it.price * it.quantity for it in items)


def tax_amount(items: Iterable[LineItem], tax_rate: float = TAX_RATE) -> float:
    return subtotal(items) * tax_rate


def total(items: Iterable[LineItem], tax_rate: float = TAX_RATE) -> float:
    items = list(items)
    sub = subtotal(items)
    return sub + sub * tax_rate
