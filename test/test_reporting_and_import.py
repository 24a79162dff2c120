import csv
from datetime import datetime
from pathlib import Path

import pytest
from openpyxl import Workbook, load_workbook

from conftest import FakeClock, build_app

from instabill.domain.errors import ValidationError
from instabill.domain.models import PaymentMethod, ScanEvent, ScanKind


def _sell(c, clock, codes, method=PaymentMethod.UPI):
    for code in codes:
        c.billing.handle_scan(ScanEvent(kind=ScanKind.BARCODE, value=code))
        clock.advance(4)
    return c.billing.checkout(method)


def test_summary_counts_revenue_orders_and_customers(tmp_path: Path):
    clock = FakeClock()
    moment = datetime(2024, 5, 10, 9, 0, 0)
    c = build_app(tmp_path, clock=clock, now=lambda: moment)
    billing = c.billing

    billing.complete_signup(billing.login_by_phone("9000000001"), "Ravi")
    _sell(c, clock, ["8906010501259"])  # 11.80
    billing.logout(confirmed=True)
    _sell(c, clock, ["8904155905062"])  # 236.00

    s = c.reporting.summary(today=moment.date())

    assert s.total_orders == 2
    assert s.unique_customers == 1
    assert s.total_revenue == pytest.approx(247.8)
    assert s.todays_revenue == pytest.approx(247.8)
    assert s.avg_order_value == pytest.approx(123.9)
    assert c.reporting.summary(today=datetime(2024, 5, 11).date()).todays_revenue == 0


def test_export_sales_csv(tmp_path: Path):
    clock = FakeClock()
    c = build_app(tmp_path, clock=clock, now=lambda: datetime(2024, 1, 2, 10, 0, 0))
    c.billing.complete_signup(c.billing.login_by_phone("9000000001"), "Ravi")
    _sell(c, clock, ["8906010501259"], PaymentMethod.CARD)

    out = c.reporting.export_sales_csv(tmp_path / "sales.csv")

    with out.open(newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows == [["Date", "Customer", "Method", "Amount"], ["2/1/2024", "Ravi", "CARD", "11.80"]]


def test_export_sales_report_excel(tmp_path: Path):
    clock = FakeClock()
    c = build_app(tmp_path, clock=clock)
    txn = _sell(c, clock, ["8906010501259", "8906010501259", "8904155905062"])

    out = c.reporting.export_sales_report_excel(tmp_path / "report.xlsx")

    wb = load_workbook(out)
    assert wb.sheetnames == ["Summary", "Transactions", "Items"]
    tx = wb["Transactions"]
    assert tx["A2"].value == txn.id
    assert tx["C2"].value == "Guest"
    assert tx["E2"].value == 3
    assert tx["H2"].value == pytest.approx(txn.total_amount)
    assert wb["Items"].max_row == 3


def test_import_catalog_upserts_and_skips_bad_rows(tmp_path: Path):
    c = build_app(tmp_path)
    path = tmp_path / "catalog.xlsx"
    wb = Workbook()
    ws = wb.active
    ws.append(["Barcode", "Name", "Price", "Category"])
    ws.append([8906010501259, "Balaji wafers large", 20, "snacks"])
    ws.append(["5000", "Soap", 35.5, None])
    ws.append(["5001", "Free sample", 0, "misc"])
    ws.append([None, "No code", 5, "misc"])
    wb.save(path)

    ok, skipped = c.excel.import_catalog_excel(str(path))

    assert (ok, skipped) == (2, 2)
    assert c.catalog.lookup("8906010501259").price == 20.0
    assert c.catalog.lookup("5000").category == "General"
    assert c.catalog.lookup("5001") is None
    # persisted write-through
    assert c.repo.load_inventory()[-1].barcode == "5000"


def test_import_catalog_requires_headers(tmp_path: Path):
    c = build_app(tmp_path)
    path = tmp_path / "bad.xlsx"
    wb = Workbook()
    wb.active.append(["code", "title"])
    wb.save(path)

    with pytest.raises(ValidationError, match="barcode"):
        c.excel.import_catalog_excel(str(path))
