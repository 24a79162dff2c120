from __future__ import annotations

import logging
import time
from typing import Optional

from instabill.domain.errors import NotFoundError, ValidationError
from instabill.domain.models import CatalogEntry

log = logging.getLogger(__name__)

DEFAULT_INVENTORY: tuple[CatalogEntry, ...] = (
    CatalogEntry(barcode="8906010501259", name="Balaji wafers", price=10.0, category="snacks"),
    CatalogEntry(barcode="8901138512187", name="Himalya Neem Face Wash", price=85.0, category="personal care"),
    CatalogEntry(barcode="8901057510028", name="Kangaro", price=12.0, category="stationary"),
    CatalogEntry(barcode="8902979026925", name="Spinz BB Face Powder", price=10.0, category="Personal Care"),
    CatalogEntry(barcode="6980682959046", name="compass", price=150.0, category="General"),
    CatalogEntry(barcode="8904155905062", name="Pen", price=200.0, category="stationary"),
    CatalogEntry(barcode="8904035416763", name="Honey & Almonds", price=10.0, category="Personal Care"),
    CatalogEntry(barcode="8901148251120", name="ZEDEX Dry cough relief", price=191.0, category="Personal care"),
    CatalogEntry(barcode="89006245", name="IODEX body pain expert", price=42.0, category="Personal care"),
)


class Catalog:
    """Barcode -> product template mapping.

    Insertion order is kept so admin listings stay stable; lookups are dict
    hits by barcode.
    """

    def __init__(self, repo=None, entries: Optional[list[CatalogEntry]] = None):
        self.repo = repo
        self._by_barcode: dict[str, CatalogEntry] = {}
        for e in entries if entries is not None else DEFAULT_INVENTORY:
            self._by_barcode[e.barcode] = e

    @classmethod
    def load(cls, repo) -> "Catalog":
        stored = repo.load_inventory()
        if stored is None:
            catalog = cls(repo, list(DEFAULT_INVENTORY))
            catalog._persist()
            return catalog
        return cls(repo, stored)

    def _persist(self) -> None:
        if self.repo is not None:
            self.repo.save_inventory(self._by_barcode.values())

    def lookup(self, barcode: str) -> Optional[CatalogEntry]:
        return self._by_barcode.get((barcode or "").strip())

    def entries(self) -> list[CatalogEntry]:
        return list(self._by_barcode.values())

    def search(self, term: str) -> list[CatalogEntry]:
        needle = (term or "").strip().lower()
        if not needle:
            return self.entries()
        return [
            e for e in self._by_barcode.values()
            if needle in e.name.lower() or needle in e.category.lower() or needle in e.barcode
        ]

    def _validated(self, entry: CatalogEntry) -> CatalogEntry:
        name = (entry.name or "").strip()
        if not name:
            raise ValidationError("Name is required.")
        try:
            price = float(entry.price)
        except (TypeError, ValueError) as e:
            raise ValidationError("Price must be a number.") from e
        if price <= 0:
            raise ValidationError("Price must be > 0.")
        barcode = (entry.barcode or "").strip() or str(int(time.time() * 1000))
        category = (entry.category or "").strip() or "General"
        return CatalogEntry(barcode=barcode, name=name, price=price, category=category)

    def register(self, entry: CatalogEntry) -> CatalogEntry:
        entry = self._validated(entry)
        if entry.barcode in self._by_barcode:
            raise ValidationError(f"Barcode {entry.barcode} already exists.")
        self._by_barcode[entry.barcode] = entry
        self._persist()
        log.info("catalog_registered barcode=%s name=%s", entry.barcode, entry.name)
        return entry

    def update(self, barcode: str, entry: CatalogEntry) -> CatalogEntry:
        if barcode not in self._by_barcode:
            raise NotFoundError("Product not found.")
        entry = self._validated(entry)
        if entry.barcode != barcode and entry.barcode in self._by_barcode:
            raise ValidationError(f"Barcode {entry.barcode} already exists.")

        # rebuild to keep the entry in its original position when re-keyed
        self._by_barcode = {
            (entry.barcode if k == barcode else k): (entry if k == barcode else v)
            for k, v in self._by_barcode.items()
        }
        self._persist()
        log.info("catalog_updated barcode=%s new_barcode=%s", barcode, entry.barcode)
        return entry

    def remove(self, barcode: str) -> None:
        if self._by_barcode.pop(barcode, None) is None:
            raise NotFoundError("Product not found.")
        self._persist()
        log.info("catalog_removed barcode=%s", barcode)
