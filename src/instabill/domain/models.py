from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ScanKind(str, Enum):
    BARCODE = "barcode"
    IMAGE = "image"


class PaymentMethod(str, Enum):
    UPI = "UPI"
    CASH = "CASH"
    CARD = "CARD"


@dataclass(frozen=True)
class CatalogEntry:
    barcode: str
    name: str
    price: float
    category: str = "General"


@dataclass(frozen=True)
class LineItem:
    id: str
    name: str
    price: float
    category: str
    quantity: int
    barcode: Optional[str] = None
    is_offline_added: bool = False

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


@dataclass(frozen=True)
class ManualEntry:
    """Caller-supplied data for an item added by hand.

    Missing name and category fall back to "Manual Item" and "General".
    """

    price: float
    name: Optional[str] = None
    category: Optional[str] = None
    barcode: Optional[str] = None


@dataclass(frozen=True)
class ManualEntryRequest:
    barcode: str
    prefill: Optional[ManualEntry] = None


@dataclass(frozen=True)
class Customer:
    id: str
    name: str
    phone: str
    address: str = ""


@dataclass(frozen=True)
class Transaction:
    id: str
    date: str
    timestamp: int
    items: tuple[LineItem, ...]
    total_amount: float
    payment_method: PaymentMethod
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None


@dataclass(frozen=True)
class StoreProfile:
    name: str = "InstaMart India"
    address_line1: str = "Gujrat"
    address_line2: str = "Bhavnagar"
    gstin: str = "29AAAAA0000A1Z5"
    phone: str = "+91 9529989821"
    email: str = "support@instamart.in"


@dataclass(frozen=True)
class ScanEvent:
    kind: ScanKind
    value: str


@dataclass(frozen=True)
class PaymentResult:
    method: PaymentMethod
    amount_due: float
    tendered: Optional[float] = None
    change: float = 0.0
