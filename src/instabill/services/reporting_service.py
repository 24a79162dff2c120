from __future__ import annotations

import csv
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from instabill.domain import pricing


@dataclass(frozen=True)
class SalesSummary:
    total_revenue: float
    total_orders: int
    unique_customers: int
    todays_revenue: float
    avg_order_value: float


class ReportingService:
    """Read-only views over the ledger for the admin dashboard and exports."""

    def __init__(self, ledger, tax_rate: float = pricing.TAX_RATE):
        self.ledger = ledger
        self.tax_rate = tax_rate

    def summary(self, today: Optional[date] = None) -> SalesSummary:
        today = today or date.today()
        transactions = self.ledger.all()
        total_revenue = sum(t.total_amount for t in transactions)
        total_orders = len(transactions)
        todays = sum(
            t.total_amount for t in transactions
            if datetime.fromtimestamp(t.timestamp / 1000).date() == today
        )
        return SalesSummary(
            total_revenue=total_revenue,
            total_orders=total_orders,
            unique_customers=len({t.customer_id for t in transactions if t.customer_id}),
            todays_revenue=todays,
            avg_order_value=(total_revenue / total_orders) if total_orders else 0.0,
        )

    def export_sales_csv(self, path: str | Path) -> Path:
        out = Path(path)
        with out.open("w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(["Date", "Customer", "Method", "Amount"])
            for t in self.ledger.all():
                writer.writerow([t.date, t.customer_name or "Guest", t.payment_method.value, f"{t.total_amount:.2f}"])
        return out

    def export_sales_report_excel(self, path: str | Path) -> Path:
        wb = Workbook()

        def money(cell):
            cell.number_format = "#,##0.00"

        def bold_row(ws, r):
            for c in ws[r]:
                c.font = Font(bold=True)

        def set_widths(ws, widths: dict[str, int]):
            for col, w in widths.items():
                ws.column_dimensions[col].width = w

        def add_table(ws, name: str, end_col: int):
            ref = f"A1:{get_column_letter(end_col)}{ws.max_row}"
            tab = Table(displayName=name, ref=ref)
            tab.tableStyleInfo = TableStyleInfo(
                name="TableStyleMedium9",
                showRowStripes=True,
                showColumnStripes=False,
            )
            ws.add_table(tab)

        summary = self.summary()
        transactions = self.ledger.all()

        # -------- 1) Summary --------
        ws = wb.active
        ws.title = "Summary"
        ws["A1"] = "Summary"
        ws["A1"].font = Font(bold=True, size=14)

        rows = [
            ("Total revenue", float(summary.total_revenue), "money"),
            ("Orders", int(summary.total_orders), "int"),
            ("Unique customers", int(summary.unique_customers), "int"),
            ("Today's revenue", float(summary.todays_revenue), "money"),
            ("Average order value", float(summary.avg_order_value), "money"),
        ]
        for i, (label, val, kind) in enumerate(rows):
            r = 3 + i
            ws[f"A{r}"] = label
            ws[f"B{r}"] = val
            if kind == "money":
                money(ws[f"B{r}"])
        set_widths(ws, {"A": 24, "B": 18})

        # -------- 2) Transactions --------
        ws2 = wb.create_sheet("Transactions")
        ws2.append(["Transaction ID", "Date", "Customer", "Method", "Items", "Subtotal", "Tax", "Total"])
        bold_row(ws2, 1)
        for t in transactions:
            sub = pricing.subtotal(t.items)
            ws2.append([
                t.id, t.date, t.customer_name or "Guest", t.payment_method.value,
                sum(it.quantity for it in t.items), sub, sub * self.tax_rate, float(t.total_amount),
            ])
            for col in ("F", "G", "H"):
                money(ws2[f"{col}{ws2.max_row}"])
        ws2.freeze_panes = "A2"
        set_widths(ws2, {"A": 34, "B": 12, "C": 24, "D": 10, "E": 8, "F": 14, "G": 14, "H": 14})
        if ws2.max_row >= 2:
            add_table(ws2, "Transactions", 8)

        # -------- 3) Items --------
        ws3 = wb.create_sheet("Items")
        ws3.append(["Transaction ID", "Barcode", "Name", "Category", "Qty", "Unit Price", "Line Total"])
        bold_row(ws3, 1)
        for t in transactions:
            for it in t.items:
                ws3.append([t.id, it.barcode or "", it.name, it.category, int(it.quantity), float(it.price), float(it.line_total)])
                money(ws3[f"F{ws3.max_row}"])
                money(ws3[f"G{ws3.max_row}"])
        ws3.freeze_panes = "A2"
        set_widths(ws3, {"A": 34, "B": 16, "C": 30, "D": 16, "E": 6, "F": 14, "G": 14})
        if ws3.max_row >= 2:
            add_table(ws3, "Items", 7)

        out = Path(path)
        wb.save(out)
        return out
