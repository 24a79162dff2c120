from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from instabill.application.navigation import Navigator, View
from instabill.config import Settings
from instabill.domain import pricing
from instabill.domain.errors import (
    AppError,
    BudgetExceededError,
    ItemUnresolvedError,
    NotFoundError,
    ValidationError,
)
from instabill.domain.models import (
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
from instabill.services.customer_service import SignupRequest

log = logging.getLogger("instabill.scan")
sales_log = logging.getLogger("instabill.sales")


class ScanStatus(str, Enum):
    ADDED = "added"
    INCREMENTED = "incremented"
    SUPPRESSED = "suppressed"
    BUDGET_EXCEEDED = "budget_exceeded"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class ScanOutcome:
    status: ScanStatus
    item: Optional[LineItem] = None
    manual_entry: Optional[ManualEntryRequest] = None


@dataclass(frozen=True)
class BudgetAlert:
    budget: float
    projected_total: float


@dataclass(frozen=True)
class Receipt:
    transaction: Transaction
    store_profile: StoreProfile
    customer: Optional[Customer]
    subtotal: float
    tax_amount: float
    total: float


def _transaction_date(moment: datetime) -> str:
    return f"{moment.day}/{moment.month}/{moment.year}"


class BillingSession:
    """Single owner of the running bill: cart, budget, customer session.

    All cart, budget, and session changes go through these methods. Budget
    rejections and unresolved items are handled here and reported as
    outcomes and alerts; they never propagate to the caller.
    """

    def __init__(
        self,
        settings: Settings,
        repo,
        catalog,
        cart,
        guard,
        gate,
        session,
        ledger,
        payments,
        identifier,
        alerts,
        auth,
        navigator: Navigator | None = None,
        store_profile: StoreProfile | None = None,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.settings = settings
        self.repo = repo
        self.catalog = catalog
        self.cart = cart
        self.guard = guard
        self.gate = gate
        self.session = session
        self.ledger = ledger
        self.payments = payments
        self.identifier = identifier
        self.alerts = alerts
        self.auth = auth
        self.navigator = navigator or Navigator()
        self.store_profile = store_profile or StoreProfile()
        self.now = now

        self.budget_alert: Optional[BudgetAlert] = None
        self.pending_manual_entry: Optional[ManualEntryRequest] = None
        self.last_transaction: Optional[Transaction] = None

    # ---------- derived ----------
    @property
    def budget(self) -> Optional[float]:
        return self.guard.budget

    @property
    def subtotal(self) -> float:
        return self.cart.subtotal

    @property
    def tax_amount(self) -> float:
        return self.cart.tax_amount

    @property
    def total(self) -> float:
        return self.cart.total

    @property
    def customer(self) -> Optional[Customer]:
        return self.session.customer

    # ---------- alerts ----------
    def _budget_rejected(self, err: BudgetExceededError) -> None:
        self.budget_alert = BudgetAlert(budget=err.budget, projected_total=err.projected_total)
        self.alerts.budget_exceeded()

    def dismiss_budget_alert(self) -> None:
        self.budget_alert = None

    # ---------- scanning ----------
    def handle_scan(self, event: ScanEvent) -> ScanOutcome:
        if event.kind is ScanKind.BARCODE:
            # scanners append CR/LF inconsistently; cooldown and cart share one key
            event = replace(event, value=event.value.strip())
        if not self.gate.admit(event):
            return ScanOutcome(status=ScanStatus.SUPPRESSED)

        if self.navigator.view is View.SCANNER:
            self.navigator.go(View.HOME)

        with self.gate.hold():
            try:
                return self._process_scan(event)
            except BudgetExceededError as e:
                self._budget_rejected(e)
                return ScanOutcome(status=ScanStatus.BUDGET_EXCEEDED)

    def _process_scan(self, event: ScanEvent) -> ScanOutcome:
        code = event.value if event.kind is ScanKind.BARCODE else ""

        if event.kind is ScanKind.BARCODE:
            was_in_cart = self.cart.find_by_barcode(code) is not None
            try:
                item = self.cart.add_by_barcode(code)
            except ItemUnresolvedError:
                log.info("scan_not_in_catalog code=%s", code)
            else:
                self.alerts.beep("success")
                status = ScanStatus.INCREMENTED if was_in_cart else ScanStatus.ADDED
                log.info("scan_%s code=%s line=%s qty=%s", status.value, code, item.id, item.quantity)
                return ScanOutcome(status=status, item=item)

        entry = self._identify(event)
        if entry is None or entry.price <= 0:
            prefill = None
            if entry is not None:
                prefill = ManualEntry(price=0.0, name=entry.name, category=entry.category, barcode=code or None)
            request = ManualEntryRequest(barcode=code, prefill=prefill)
            self.pending_manual_entry = request
            return ScanOutcome(status=ScanStatus.UNRESOLVED, manual_entry=request)

        item = self.cart.add_entry(entry)
        self.alerts.beep("success")
        return ScanOutcome(status=ScanStatus.ADDED, item=item)

    def _identify(self, event: ScanEvent) -> Optional[CatalogEntry]:
        try:
            if event.kind is ScanKind.BARCODE:
                return self.identifier.identify_barcode(event.value)
            return self.identifier.identify_image(event.value)
        except AppError as e:
            log.info("identify_unavailable kind=%s error=%s", event.kind.value, e)
            return None
        except Exception as e:
            # any lookup failure counts as "not found"
            log.exception("identify_failed kind=%s error=%s", event.kind.value, e)
            return None

    # ---------- manual entry ----------
    def request_manual_entry(self, barcode: str = "") -> ManualEntryRequest:
        self.pending_manual_entry = ManualEntryRequest(barcode=(barcode or "").strip())
        return self.pending_manual_entry

    def save_manual_entry(self, entry: ManualEntry) -> Optional[LineItem]:
        """Add a hand-entered item; returns None when the budget rejects it."""
        try:
            price = float(entry.price or 0)
        except (TypeError, ValueError) as e:
            raise ValidationError("Price must be a number.") from e
        if price < 0:
            raise ValidationError("Price must be >= 0.")

        cost = pricing.cost_with_tax(price, self.settings.tax_rate)
        if not self.guard.pre_check(cost):
            self._budget_rejected(BudgetExceededError(float(self.guard.budget), self.guard.projected(cost)))
            return None
        self.guard.commit(cost)

        item = self.cart.add_manual(entry)
        self.pending_manual_entry = None
        self.alerts.beep("success")
        return item

    def cancel_manual_entry(self) -> None:
        self.pending_manual_entry = None

    def edit_existing(self, line_id: str) -> ManualEntryRequest:
        self.pending_manual_entry = self.cart.edit_existing(line_id)
        return self.pending_manual_entry

    # ---------- cart ----------
    def update_quantity(self, line_id: str, delta: int) -> bool:
        try:
            self.cart.update_quantity(line_id, delta)
        except BudgetExceededError as e:
            self._budget_rejected(e)
            return False
        return True

    def remove(self, line_id: str) -> None:
        self.cart.remove(line_id)

    # ---------- budget ----------
    def _persist_budget(self) -> None:
        self.repo.save_budget(self.guard.budget)

    def set_budget(self, amount: float) -> None:
        self.guard.set(amount)
        self.guard.reconcile(self.cart.total)
        self._persist_budget()
        log.info("budget_set budget=%.2f", self.guard.budget)

    def increase_budget(self, amount: float) -> float:
        new_budget = self.guard.increase(amount)
        self.budget_alert = None
        self._persist_budget()
        self.alerts.beep("success")
        self.alerts.toast(f"Budget increased to {self.settings.currency_symbol}{new_budget:g}", kind="success")
        return new_budget

    def clear_budget(self) -> None:
        self.guard.clear()
        self.budget_alert = None
        self._persist_budget()

    # ---------- customers ----------
    def login_by_phone(self, phone: str) -> Customer | SignupRequest:
        return self.session.login_by_phone(phone)

    def complete_signup(self, request: SignupRequest, name: str, address: str = "") -> Customer:
        return self.session.complete_signup(request, name, address)

    def logout(self, confirmed: bool) -> bool:
        """Reset to a clean guest session; does nothing unless `confirmed`."""
        if not confirmed:
            return False
        was_guest = not self.session.is_identified
        self.session.clear()
        self.cart.clear()
        self.guard.clear()
        self._persist_budget()
        self.last_transaction = None
        self.budget_alert = None
        self.pending_manual_entry = None
        self.navigator.reset()
        self.alerts.toast("Session cleared" if was_guest else "Logged out successfully", kind="success")
        log.info("session_logout guest=%s", was_guest)
        return True

    # ---------- checkout ----------
    def checkout(self, method: PaymentMethod | str, tendered: Optional[float] = None) -> Transaction:
        """Confirm payment for the current cart and record the sale.

        Raises InsufficientCashTenderedError when cash does not cover the
        amount due; the cart is left untouched in that case.
        """
        if self.cart.is_empty:
            raise ValidationError("Cart is empty.")
        with self.gate.hold():
            result = self.payments.confirm(method, self.cart.total, tendered)
        return self.finalize_payment(result)

    def finalize_payment(self, result: PaymentResult) -> Transaction:
        moment = self.now()
        customer = self.session.customer
        transaction = Transaction(
            id=uuid.uuid4().hex,
            date=_transaction_date(moment),
            timestamp=int(moment.timestamp() * 1000),
            items=self.cart.snapshot(),
            total_amount=self.cart.total,
            payment_method=result.method,
            customer_id=customer.id if customer else None,
            customer_name=customer.name if customer else None,
        )
        self.ledger.append(transaction)
        self.last_transaction = transaction

        self.cart.clear()
        self.guard.clear()
        self._persist_budget()
        self.budget_alert = None

        if self.navigator.view is View.CHECKOUT:
            self.navigator.go(View.RECEIPT)
        self.alerts.beep("success")
        sales_log.info("sale_finalized id=%s total=%.2f customer=%s", transaction.id, transaction.total_amount, transaction.customer_id)
        return transaction

    def receipt(self, transaction: Optional[Transaction] = None) -> Receipt:
        transaction = transaction or self.last_transaction
        if transaction is None:
            raise NotFoundError("No transaction to show.")

        customer = None
        if transaction.customer_id:
            customer = self.session.registry.get(transaction.customer_id) or Customer(
                id=transaction.customer_id,
                name=transaction.customer_name or "Customer",
                phone="",
            )
        sub = pricing.subtotal(transaction.items)
        tax = sub * self.settings.tax_rate
        return Receipt(
            transaction=transaction,
            store_profile=self.store_profile,
            customer=customer,
            subtotal=sub,
            tax_amount=tax,
            total=sub + tax,
        )

    def history(self) -> list[Transaction]:
        """The identified customer's transactions, most recent first."""
        return list(reversed(self.ledger.query(self.session.selected_customer_id)))

    # ---------- navigation ----------
    def open_scanner(self) -> None:
        if self.settings.require_budget_before_scan and self.guard.budget is None:
            self.alerts.toast("Please set a shopping budget first", kind="error")
            raise ValidationError("Please set a shopping budget first.")
        self.navigator.go(View.SCANNER)

    def open_checkout(self) -> None:
        if self.cart.is_empty:
            raise ValidationError("Cart is empty.")
        self.navigator.go(View.CHECKOUT)

    def open_customers(self) -> None:
        self.navigator.go(View.CUSTOMERS)

    def open_history(self) -> None:
        if not self.session.is_identified:
            raise ValidationError("Login to see your history.")
        self.navigator.go(View.HISTORY)

    def open_transaction(self, transaction_id: str) -> Transaction:
        transaction = self.ledger.get(transaction_id)
        if transaction is None:
            raise NotFoundError("Transaction not found.")
        self.navigator.go(View.RECEIPT)
        self.last_transaction = transaction
        return transaction

    def open_admin(self) -> None:
        self.navigator.go(View.ADMIN)

    def go_home(self) -> None:
        if self.navigator.view is View.RECEIPT:
            # leaving the receipt starts a fresh bill for the same customer
            self.guard.clear()
            self._persist_budget()
            self.last_transaction = None
        self.navigator.go(View.HOME)

    # ---------- admin ----------
    def admin_login(self, pin: str) -> None:
        if self.navigator.view is not View.ADMIN:
            self.navigator.go(View.ADMIN)
        self.auth.login(pin)
        self.navigator.authenticate_admin()

    def clear_history(self) -> None:
        self.navigator.require_admin()
        self.ledger.clear()

    def update_store_profile(self, profile: StoreProfile) -> StoreProfile:
        self.navigator.require_admin()
        if not profile.name.strip():
            raise ValidationError("Store name is required.")
        self.store_profile = profile
        self.repo.save_store_profile(profile)
        return profile

    def register_product(self, entry: CatalogEntry) -> CatalogEntry:
        self.navigator.require_admin()
        return self.catalog.register(entry)

    def update_product(self, barcode: str, entry: CatalogEntry) -> CatalogEntry:
        self.navigator.require_admin()
        return self.catalog.update(barcode, entry)

    def remove_product(self, barcode: str) -> None:
        self.navigator.require_admin()
        self.catalog.remove(barcode)
