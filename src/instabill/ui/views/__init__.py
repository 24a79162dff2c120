from .billing_view import BillingView

__all__ = [
    "BillingView",
]
