import logging
from pathlib import Path

from conftest import FakeClock, build_app

from instabill.domain.errors import PersistenceWriteError
from instabill.domain.models import ManualEntry, PaymentMethod, ScanEvent, ScanKind
from instabill.repositories.sqlite_store import SqliteKeyValueStore
from instabill.repositories.state_repo import StateRepository
from instabill.services.budget_guard import BudgetGuard
from instabill.services.cart_service import CartEngine
from instabill.services.catalog_service import DEFAULT_INVENTORY, Catalog


class FailingStore:
    def get(self, key):
        return None

    def set(self, key, value):
        raise PersistenceWriteError(f"disk full writing {key}")

    def delete(self, key):
        raise PersistenceWriteError(f"disk full deleting {key}")


def test_state_is_restored_after_restart(tmp_path: Path):
    c = build_app(tmp_path, clock=FakeClock())
    billing = c.billing
    customer = billing.complete_signup(billing.login_by_phone("9876543210"), "Asha")
    billing.set_budget(500.0)
    billing.handle_scan(ScanEvent(kind=ScanKind.BARCODE, value="8906010501259"))
    billing.save_manual_entry(ManualEntry(price=20.0, name="Bag"))
    cart_before = billing.cart.items

    restarted = build_app(tmp_path, clock=FakeClock())

    assert restarted.billing.cart.items == cart_before
    assert restarted.billing.budget == 500.0
    assert restarted.billing.guard.shadow_total == restarted.billing.cart.total
    assert restarted.billing.customer == customer


def test_transactions_survive_restart(tmp_path: Path):
    c = build_app(tmp_path)
    c.billing.handle_scan(ScanEvent(kind=ScanKind.BARCODE, value="8906010501259"))
    txn = c.billing.checkout(PaymentMethod.CASH, tendered=20.0)

    restarted = build_app(tmp_path)

    assert restarted.ledger.all() == [txn]
    assert restarted.billing.cart.is_empty


def test_missing_keys_fall_back_to_defaults(tmp_path: Path):
    c = build_app(tmp_path)

    assert [e.barcode for e in c.catalog.entries()] == [e.barcode for e in DEFAULT_INVENTORY]
    assert c.billing.cart.is_empty
    assert c.billing.budget is None
    assert c.billing.session.is_identified is False
    assert len(c.ledger) == 0
    # defaults are seeded into the store on first start
    assert c.repo.load_inventory() == list(DEFAULT_INVENTORY)


def test_stale_selected_customer_starts_as_guest(tmp_path: Path):
    store = SqliteKeyValueStore(tmp_path / "instabill.db")
    store.init_db()
    StateRepository(store).save_selected_customer_id("gone")

    c = build_app(tmp_path)

    assert c.billing.session.is_identified is False


def test_corrupt_value_is_treated_as_missing(tmp_path: Path, caplog):
    store = SqliteKeyValueStore(tmp_path / "instabill.db")
    store.init_db()
    store.set("cart", "{not json")

    with caplog.at_level(logging.WARNING):
        c = build_app(tmp_path)

    assert c.billing.cart.is_empty
    assert "persistence_corrupt_value key=cart" in caplog.text


def test_well_formed_json_of_the_wrong_shape_is_treated_as_missing(tmp_path: Path, caplog):
    store = SqliteKeyValueStore(tmp_path / "instabill.db")
    store.init_db()
    store.set("cart", '{"id": "x"}')
    store.set("customers", '[{"name": "no id or phone"}]')
    store.set("transactions", '[{"id": "t1", "items": "oops"}]')
    store.set("inventory", '"not a list"')
    store.set("store_profile", "[1, 2]")
    store.set("budget", '{"amount": 100}')
    store.set("admin_guard", '["locked"]')
    store.set("selected_customer_id", '{"id": "c1"}')

    with caplog.at_level(logging.WARNING):
        c = build_app(tmp_path)

    assert c.billing.cart.is_empty
    assert c.billing.session.registry.list_customers() == []
    assert c.billing.session.is_identified is False
    assert len(c.ledger) == 0
    assert [e.barcode for e in c.catalog.entries()] == [e.barcode for e in DEFAULT_INVENTORY]
    assert c.billing.store_profile.name
    assert c.billing.budget is None
    assert c.repo.load_admin_guard() == (0, None)
    c.billing.admin_login("1234")
    for key in ("cart", "customers", "transactions", "inventory", "store_profile", "budget", "admin_guard"):
        assert f"persistence_corrupt_value key={key}" in caplog.text


def test_write_failure_does_not_abort_cart_operation(caplog):
    repo = StateRepository(FailingStore())
    catalog = Catalog(repo)
    cart = CartEngine(catalog, BudgetGuard())
    cart.subscribe(repo.save_cart)

    with caplog.at_level(logging.WARNING):
        item = cart.add_by_barcode("8906010501259")
        catalog.remove("8906010501259")

    assert cart.find(item.id) == item
    assert catalog.lookup("8906010501259") is None
    assert "persistence_write_failed key=cart" in caplog.text
    assert "persistence_write_failed key=inventory" in caplog.text


def test_store_keys_and_integrity(tmp_path: Path):
    store = SqliteKeyValueStore(tmp_path / "kv.db")
    store.init_db()
    store.set("b", "2")
    store.set("a", "1")
    store.set("a", "3")
    store.delete("b")

    assert store.keys() == ["a"]
    assert store.get("a") == "3"
    assert store.get("b") is None
    assert store.integrity_check() == "ok"


def test_migrations_are_idempotent_and_back_up_existing_db(tmp_path: Path):
    db = tmp_path / "kv.db"
    store = SqliteKeyValueStore(db)
    store.init_db()
    store.set("k", "v")

    store.init_db()

    assert store.get("k") == "v"
    assert list(tmp_path.glob("kv.pre_migration_*.bak"))
