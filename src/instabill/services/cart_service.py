from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import Callable, Iterable, Optional

from instabill.domain import pricing
from instabill.domain.errors import (
    BudgetExceededError,
    ItemUnresolvedError,
    NotFoundError,
    ValidationError,
)
from instabill.domain.models import CatalogEntry, LineItem, ManualEntry, ManualEntryRequest
from instabill.services.budget_guard import BudgetGuard

log = logging.getLogger("instabill.scan")

CartListener = Callable[[tuple[LineItem, ...]], None]


def _new_line_id() -> str:
    return uuid.uuid4().hex


class CartEngine:
    """Owns the active line items.

    Totals are always derived from the items. Every mutation notifies the
    budget guard (reconcile) and then any subscribed listeners.
    """

    def __init__(
        self,
        catalog,
        guard: BudgetGuard | None = None,
        tax_rate: float = pricing.TAX_RATE,
        items: Iterable[LineItem] | None = None,
        id_factory: Callable[[], str] = _new_line_id,
    ):
        self.catalog = catalog
        self.guard = guard
        self.tax_rate = tax_rate
        self.id_factory = id_factory
        self._items: list[LineItem] = [it for it in (items or []) if it.quantity > 0]
        self._listeners: list[CartListener] = []

    def subscribe(self, listener: CartListener) -> None:
        self._listeners.append(listener)

    def _changed(self) -> None:
        if self.guard is not None:
            self.guard.reconcile(self.total)
        snap = self.snapshot()
        for listener in self._listeners:
            listener(snap)

    # ---------- reads ----------
    @property
    def items(self) -> tuple[LineItem, ...]:
        return self.snapshot()

    @property
    def is_empty(self) -> bool:
        return not self._items

    @property
    def subtotal(self) -> float:
        return pricing.subtotal(self._items)

    @property
    def tax_amount(self) -> float:
        return pricing.tax_amount(self._items, self.tax_rate)

    @property
    def total(self) -> float:
        return pricing.total(self._items, self.tax_rate)

    def find(self, line_id: str) -> Optional[LineItem]:
        return next((it for it in self._items if it.id == line_id), None)

    def find_by_barcode(self, barcode: str) -> Optional[LineItem]:
        if not barcode:
            return None
        return next((it for it in self._items if it.barcode == barcode), None)

    def unit_cost(self, item: LineItem | CatalogEntry) -> float:
        return pricing.cost_with_tax(item.price, self.tax_rate)

    def snapshot(self) -> tuple[LineItem, ...]:
        return tuple(self._items)

    # ---------- budget ----------
    def _approve(self, cost_with_tax: float) -> None:
        if self.guard is None:
            return
        if not self.guard.pre_check(cost_with_tax):
            raise BudgetExceededError(float(self.guard.budget), self.guard.projected(cost_with_tax))
        self.guard.commit(cost_with_tax)

    # ---------- writes ----------
    def add_by_barcode(self, code: str) -> LineItem:
        code = (code or "").strip()
        existing = self.find_by_barcode(code)
        if existing is not None:
            self._approve(self.unit_cost(existing))
            updated = self.update_quantity(existing.id, 1, approved=True)
            if updated is None:
                raise NotFoundError("Line item not found.")
            return updated

        entry = self.catalog.lookup(code)
        if entry is None:
            raise ItemUnresolvedError(code)
        return self.add_entry(entry)

    def add_entry(self, entry: CatalogEntry) -> LineItem:
        """Add one unit of a resolved product template as a new line."""
        self._approve(self.unit_cost(entry))
        item = LineItem(
            id=self.id_factory(),
            name=entry.name,
            price=float(entry.price),
            category=entry.category,
            quantity=1,
            barcode=entry.barcode or None,
        )
        self._items.append(item)
        self._changed()
        log.info("cart_added line=%s barcode=%s price=%.2f", item.id, item.barcode, item.price)
        return item

    def add_manual(self, entry: ManualEntry) -> LineItem:
        try:
            price = float(entry.price or 0)
        except (TypeError, ValueError) as e:
            raise ValidationError("Price must be a number.") from e
        if price < 0:
            raise ValidationError("Price must be >= 0.")

        item = LineItem(
            id=self.id_factory(),
            name=(entry.name or "").strip() or "Manual Item",
            price=price,
            category=(entry.category or "").strip() or "General",
            quantity=1,
            barcode=(entry.barcode or "").strip() or None,
            is_offline_added=True,
        )
        self._items.append(item)
        self._changed()
        log.info("cart_added_manual line=%s barcode=%s price=%.2f", item.id, item.barcode, item.price)
        return item

    def update_quantity(self, line_id: str, delta: int, approved: bool = False) -> Optional[LineItem]:
        """Apply `delta` to a line; returns the updated line, or None once it reaches zero.

        Positive deltas are charged against the budget unless `approved`.
        """
        item = self.find(line_id)
        if item is None:
            raise NotFoundError("Line item not found.")
        delta = int(delta)
        if delta > 0 and not approved:
            self._approve(self.unit_cost(item) * delta)

        new_qty = max(0, item.quantity + delta)
        if new_qty == 0:
            self._items = [it for it in self._items if it.id != line_id]
            self._changed()
            log.info("cart_line_emptied line=%s", line_id)
            return None

        updated = replace(item, quantity=new_qty)
        self._items = [updated if it.id == line_id else it for it in self._items]
        self._changed()
        return updated

    def remove(self, line_id: str) -> Optional[LineItem]:
        item = self.find(line_id)
        if item is None:
            return None
        self._items = [it for it in self._items if it.id != line_id]
        self._changed()
        log.info("cart_removed line=%s", line_id)
        return item

    def edit_existing(self, line_id: str) -> ManualEntryRequest:
        """Remove a line and return a manual-entry request prefilled with its data.

        The line is not re-added; saving the manual entry is a separate step.
        """
        item = self.find(line_id)
        if item is None:
            raise NotFoundError("Line item not found.")
        self.remove(line_id)
        return ManualEntryRequest(
            barcode=item.barcode or "",
            prefill=ManualEntry(price=item.price, name=item.name, category=item.category, barcode=item.barcode),
        )

    def clear(self) -> None:
        self._items = []
        self._changed()

    def restore(self, items: Iterable[LineItem]) -> None:
        self._items = [it for it in items if it.quantity > 0]
        self._changed()
