from __future__ import annotations

import json
import logging
import math
import sqlite3
from dataclasses import asdict
from typing import Any, Callable, Iterable, Optional

from instabill.domain.errors import PersistenceWriteError
from instabill.domain.models import (
    CatalogEntry,
    Customer,
    LineItem,
    PaymentMethod,
    StoreProfile,
    Transaction,
)
from instabill.repositories.contracts import KeyValueStore

log = logging.getLogger(__name__)

INVENTORY = "inventory"
STORE_PROFILE = "store_profile"
CART = "cart"
CUSTOMERS = "customers"
SELECTED_CUSTOMER = "selected_customer_id"
TRANSACTIONS = "transactions"
BUDGET = "budget"
ADMIN_PIN = "admin_pin"
ADMIN_GUARD = "admin_guard"


class StateRepository:
    """Typed write-through persistence for the billing state.

    Every key is stored as JSON. A missing key loads as None so callers can
    fall back to their defaults; write failures are logged and swallowed
    unless the caller asks for a strict write.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    # ---------- raw ----------
    def _read(self, key: str) -> Any:
        try:
            raw = self.store.get(key)
        except sqlite3.Error as e:
            log.warning("persistence_read_failed key=%s error=%s", key, e)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            log.warning("persistence_corrupt_value key=%s error=%s", key, e)
            return None

    def _load(self, key: str, mapper: Callable[[Any], Any]) -> Any:
        data = self._read(key)
        if data is None:
            return None
        try:
            return mapper(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            log.warning("persistence_corrupt_value key=%s error=%s", key, e)
            return None

    def _write(self, key: str, value: Any, *, strict: bool = False) -> bool:
        try:
            if value is None:
                self.store.delete(key)
            else:
                self.store.set(key, json.dumps(value, ensure_ascii=False))
            return True
        except PersistenceWriteError as e:
            if strict:
                raise
            log.warning("persistence_write_failed key=%s error=%s", key, e)
            return False

    # ---------- catalog ----------
    def load_inventory(self) -> Optional[list[CatalogEntry]]:
        return self._load(INVENTORY, lambda data: [
            CatalogEntry(
                barcode=str(r["barcode"]),
                name=str(r["name"]),
                price=float(r["price"]),
                category=str(r.get("category") or "General"),
            )
            for r in _rows(data)
        ])

    def save_inventory(self, entries: Iterable[CatalogEntry]) -> bool:
        return self._write(INVENTORY, [asdict(e) for e in entries])

    # ---------- store profile ----------
    def load_store_profile(self) -> Optional[StoreProfile]:
        defaults = asdict(StoreProfile())
        return self._load(
            STORE_PROFILE,
            lambda data: StoreProfile(**{k: str(data.get(k, v)) for k, v in defaults.items()}),
        )

    def save_store_profile(self, profile: StoreProfile) -> bool:
        return self._write(STORE_PROFILE, asdict(profile))

    # ---------- cart ----------
    def load_cart(self) -> Optional[list[LineItem]]:
        return self._load(CART, lambda data: [_line_item(r) for r in _rows(data)])

    def save_cart(self, items: Iterable[LineItem]) -> bool:
        return self._write(CART, [asdict(it) for it in items])

    # ---------- customers ----------
    def load_customers(self) -> Optional[list[Customer]]:
        return self._load(CUSTOMERS, lambda data: [
            Customer(id=str(r["id"]), name=str(r["name"]), phone=str(r["phone"]), address=str(r.get("address") or ""))
            for r in _rows(data)
        ])

    def save_customers(self, customers: Iterable[Customer]) -> bool:
        return self._write(CUSTOMERS, [asdict(c) for c in customers])

    def load_selected_customer_id(self) -> Optional[str]:
        data = self._read(SELECTED_CUSTOMER)
        return data if isinstance(data, str) and data else None

    def save_selected_customer_id(self, customer_id: Optional[str]) -> bool:
        return self._write(SELECTED_CUSTOMER, customer_id)

    # ---------- transactions ----------
    def load_transactions(self) -> Optional[list[Transaction]]:
        return self._load(TRANSACTIONS, lambda data: [
            Transaction(
                id=str(r["id"]),
                date=str(r["date"]),
                timestamp=int(r["timestamp"]),
                items=tuple(_line_item(it) for it in _rows(r["items"])),
                total_amount=float(r["total_amount"]),
                payment_method=PaymentMethod(r["payment_method"]),
                customer_id=r.get("customer_id"),
                customer_name=r.get("customer_name"),
            )
            for r in _rows(data)
        ])

    def save_transactions(self, transactions: Iterable[Transaction]) -> bool:
        rows = []
        for t in transactions:
            row = asdict(t)
            row["items"] = [asdict(it) for it in t.items]
            row["payment_method"] = t.payment_method.value
            rows.append(row)
        return self._write(TRANSACTIONS, rows)

    # ---------- budget ----------
    def load_budget(self) -> Optional[float]:
        return self._load(BUDGET, _positive_float)

    def save_budget(self, budget: Optional[float]) -> bool:
        return self._write(BUDGET, budget)

    # ---------- admin ----------
    def load_admin_pin_hash(self) -> Optional[str]:
        data = self._read(ADMIN_PIN)
        return data if isinstance(data, str) and data else None

    def save_admin_pin_hash(self, pin_hash: str) -> None:
        self._write(ADMIN_PIN, pin_hash, strict=True)

    def load_admin_guard(self) -> tuple[int, Optional[str]]:
        guard = self._load(
            ADMIN_GUARD,
            lambda data: (int(data.get("failed_attempts", 0)), _optional_str(data.get("locked_until"))),
        )
        return guard or (0, None)

    def save_admin_guard(self, failed_attempts: int, locked_until: Optional[str]) -> bool:
        return self._write(ADMIN_GUARD, {"failed_attempts": int(failed_attempts), "locked_until": locked_until})


def _rows(data: Any) -> list:
    if not isinstance(data, list):
        raise TypeError(f"expected a list, got {type(data).__name__}")
    return data


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"expected a string, got {type(value).__name__}")
    return value


def _positive_float(value: Any) -> float:
    budget = float(value)
    if not math.isfinite(budget) or budget <= 0:
        raise ValueError(f"budget must be a positive number, got {value!r}")
    return budget


def _line_item(r: dict) -> LineItem:
    return LineItem(
        id=str(r["id"]),
        name=str(r["name"]),
        price=float(r["price"]),
        category=str(r.get("category") or "General"),
        quantity=int(r["quantity"]),
        barcode=r.get("barcode"),
        is_offline_added=bool(r.get("is_offline_added", False)),
    )
