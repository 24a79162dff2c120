from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable

from instabill.application.billing import BillingSession
from instabill.application.navigation import Navigator
from instabill.config import Settings
from instabill.repositories.sqlite_store import SqliteKeyValueStore
from instabill.repositories.state_repo import StateRepository
from instabill.services.alert_service import AlertService
from instabill.services.auth_service import AdminAuthService
from instabill.services.budget_guard import BudgetGuard
from instabill.services.cart_service import CartEngine
from instabill.services.catalog_service import Catalog
from instabill.services.customer_service import CustomerRegistry, Session
from instabill.services.excel_service import ExcelService
from instabill.services.identification_service import IdentificationService
from instabill.services.ledger_service import TransactionLedger
from instabill.services.payment_service import PaymentService
from instabill.services.reporting_service import ReportingService
from instabill.services.scan_gate import ScanGate


@dataclass(frozen=True)
class AppContainer:
    store: SqliteKeyValueStore
    repo: StateRepository
    settings: Settings
    catalog: Catalog
    ledger: TransactionLedger
    alerts: AlertService
    billing: BillingSession
    reporting: ReportingService
    excel: ExcelService


def build_container(
    db_path: Path | str,
    settings: Settings | None = None,
    identifier=None,
    clock: Callable[[], float] = time.monotonic,
    now: Callable[[], datetime] = datetime.now,
) -> AppContainer:
    settings = settings or Settings()

    store = SqliteKeyValueStore(db_path)
    store.init_db()
    repo = StateRepository(store)

    catalog = Catalog.load(repo)
    ledger = TransactionLedger(repo, repo.load_transactions() or [])
    registry = CustomerRegistry(repo, repo.load_customers() or [])
    session = Session(registry, repo, repo.load_selected_customer_id())

    guard = BudgetGuard(repo.load_budget(), epsilon=settings.budget_epsilon)
    cart = CartEngine(catalog, guard, tax_rate=settings.tax_rate)
    cart.restore(repo.load_cart() or [])
    cart.subscribe(repo.save_cart)

    alerts = AlertService()
    billing = BillingSession(
        settings=settings,
        repo=repo,
        catalog=catalog,
        cart=cart,
        guard=guard,
        gate=ScanGate(settings.dedup_window_seconds, clock=clock),
        session=session,
        ledger=ledger,
        payments=PaymentService(settings.payment_delay_seconds),
        identifier=identifier or IdentificationService(settings.identification_urls, settings.identification_timeout),
        alerts=alerts,
        auth=AdminAuthService(repo, default_pin=settings.default_admin_pin),
        navigator=Navigator(),
        store_profile=repo.load_store_profile(),
        now=now,
    )

    return AppContainer(
        store=store,
        repo=repo,
        settings=settings,
        catalog=catalog,
        ledger=ledger,
        alerts=alerts,
        billing=billing,
        reporting=ReportingService(ledger, tax_rate=settings.tax_rate),
        excel=ExcelService(catalog),
    )
