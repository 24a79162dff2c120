from .models import (
    CatalogEntry,
    Customer,
    LineItem,
    ManualEntry,
    ManualEntryRequest,
    PaymentMethod,
    PaymentResult,
    ScanEvent,
    ScanKind,
    StoreProfile,
    Transaction,
)
from .errors import (
    AuthorizationError,
    BudgetExceededError,
    FeatureUnavailableError,
    InsufficientCashTenderedError,
    ItemUnresolvedError,
    NavigationError,
    NotFoundError,
    PersistenceWriteError,
    ValidationError,
)

__all__ = [
    "CatalogEntry",
    "Customer",
    "LineItem",
    "ManualEntry",
    "ManualEntryRequest",
    "PaymentMethod",
    "PaymentResult",
    "ScanEvent",
    "ScanKind",
    "StoreProfile",
    "Transaction",
    "AuthorizationError",
    "BudgetExceededError",
    "FeatureUnavailableError",
    "InsufficientCashTenderedError",
    "ItemUnresolvedError",
    "NavigationError",
    "NotFoundError",
    "PersistenceWriteError",
    "ValidationError",
]
