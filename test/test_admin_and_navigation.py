from datetime import datetime, timedelta
from pathlib import Path

import pytest

from conftest import build_app

from instabill.application.navigation import Navigator, View
from instabill.domain.errors import AuthorizationError, NavigationError, ValidationError
from instabill.domain.models import CatalogEntry, PaymentMethod, ScanEvent, ScanKind, StoreProfile
from instabill.repositories.sqlite_store import SqliteKeyValueStore
from instabill.repositories.state_repo import StateRepository
from instabill.services.auth_service import AdminAuthService, LoginPolicy


def _repo(tmp_path: Path) -> StateRepository:
    store = SqliteKeyValueStore(tmp_path / "auth.db")
    store.init_db()
    return StateRepository(store)


def test_default_pin_grants_admin_and_leaving_drops_it(tmp_path: Path):
    c = build_app(tmp_path)
    billing = c.billing

    with pytest.raises(AuthorizationError):
        billing.admin_login("0000")
    billing.admin_login("1234")

    saved = billing.register_product(CatalogEntry(barcode="777", name="Torch", price=99.0))
    assert c.catalog.lookup("777") == saved

    billing.go_home()
    with pytest.raises(AuthorizationError):
        billing.remove_product("777")


def test_admin_catalog_and_store_profile_updates(tmp_path: Path):
    c = build_app(tmp_path)
    billing = c.billing
    billing.admin_login("1234")

    billing.update_product("8906010501259", CatalogEntry(barcode="8906010501259", name="Balaji", price=12.0, category="snacks"))
    assert c.catalog.lookup("8906010501259").price == 12.0

    billing.remove_product("89006245")
    assert c.catalog.lookup("89006245") is None

    with pytest.raises(ValidationError):
        billing.update_store_profile(StoreProfile(name="  "))
    profile = billing.update_store_profile(StoreProfile(name="Corner Shop"))
    assert c.repo.load_store_profile() == profile


def test_lockout_after_repeated_failures(tmp_path: Path):
    repo = _repo(tmp_path)
    moment = [datetime(2024, 1, 1, 12, 0, 0)]
    auth = AdminAuthService(
        repo,
        default_pin="1234",
        policy=LoginPolicy(max_failed_attempts=2, lockout_seconds=60),
        now=lambda: moment[0],
    )

    with pytest.raises(AuthorizationError, match="Invalid"):
        auth.login("1111")
    with pytest.raises(AuthorizationError, match="locked"):
        auth.login("1111")
    # the right PIN is refused while locked
    with pytest.raises(AuthorizationError, match="locked"):
        auth.login("1234")

    moment[0] += timedelta(seconds=61)
    auth.login("1234")


def test_lockout_persists_between_service_instances(tmp_path: Path):
    repo = _repo(tmp_path)
    policy = LoginPolicy(max_failed_attempts=1, lockout_seconds=60)
    with pytest.raises(AuthorizationError, match="locked"):
        AdminAuthService(repo, policy=policy).login("bad")

    with pytest.raises(AuthorizationError, match="locked"):
        AdminAuthService(repo, policy=policy).login("1234")


def test_change_pin_requires_digits_and_confirmation(tmp_path: Path):
    repo = _repo(tmp_path)
    auth = AdminAuthService(repo)

    with pytest.raises(AuthorizationError):
        auth.change_pin("9999", "4321", "4321")
    with pytest.raises(AuthorizationError):
        auth.change_pin("1234", "ab12", "ab12")
    with pytest.raises(AuthorizationError):
        auth.change_pin("1234", "4321", "4322")

    auth.change_pin("1234", "4321", "4321")
    auth.login("4321")
    assert repo.load_admin_pin_hash().startswith("pbkdf2_sha256$")


def test_navigator_only_follows_declared_transitions():
    nav = Navigator()
    assert nav.view is View.HOME
    assert nav.can_go(View.RECEIPT) is False
    with pytest.raises(NavigationError):
        nav.go(View.RECEIPT)

    nav.go(View.CHECKOUT)
    nav.go(View.RECEIPT)
    with pytest.raises(NavigationError):
        nav.go(View.SCANNER)
    with pytest.raises(NavigationError):
        nav.authenticate_admin()

    nav.go(View.HOME)
    assert nav.reset().view is View.HOME


def test_scanner_requires_budget_and_scan_returns_home(tmp_path: Path):
    c = build_app(tmp_path)
    billing = c.billing

    with pytest.raises(ValidationError):
        billing.open_scanner()
    assert billing.navigator.view is View.HOME

    billing.set_budget(100.0)
    billing.open_scanner()
    assert billing.navigator.view is View.SCANNER

    billing.handle_scan(ScanEvent(kind=ScanKind.BARCODE, value="8906010501259"))
    assert billing.navigator.view is View.HOME


def test_leaving_receipt_starts_fresh_bill_for_same_customer(tmp_path: Path):
    c = build_app(tmp_path)
    billing = c.billing
    customer = billing.complete_signup(billing.login_by_phone("9000000009"), "Neha")
    billing.set_budget(100.0)
    billing.handle_scan(ScanEvent(kind=ScanKind.BARCODE, value="8906010501259"))
    billing.open_checkout()
    billing.checkout(PaymentMethod.UPI)
    assert billing.navigator.view is View.RECEIPT

    billing.go_home()

    assert billing.navigator.view is View.HOME
    assert billing.last_transaction is None
    assert billing.budget is None
    assert billing.customer == customer


def test_history_view_needs_identified_customer(tmp_path: Path):
    c = build_app(tmp_path)
    with pytest.raises(ValidationError):
        c.billing.open_history()

    c.billing.complete_signup(c.billing.login_by_phone("9000000010"), "Om")
    c.billing.open_history()
    assert c.billing.navigator.view is View.HISTORY
