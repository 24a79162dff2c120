from __future__ import annotations

import tkinter as tk
from tkinter import ttk, messagebox, simpledialog
import logging

from instabill.application.billing import ScanStatus
from instabill.application.navigation import View
from instabill.domain.models import Customer, ManualEntry, ManualEntryRequest, ScanEvent, ScanKind
from instabill.services.payment_service import QUICK_CASH_AMOUNTS

log = logging.getLogger(__name__)


class BillingView:
    """Home screen: budget, scan entry (keyboard-wedge scanners end with Enter), cart."""

    def __init__(self, parent: tk.Misc, app):
        self.app = app
        self.billing = app.billing
        self.frame = ttk.Frame(parent)
        self.frame.pack(fill="both", expand=True, padx=12, pady=10)

        self.scan_var = tk.StringVar()
        self.budget_var = tk.StringVar(value="Budget: not set")
        self.customer_var = tk.StringVar(value="Guest")
        self.total_var = tk.StringVar()

        self._build()
        self.billing.cart.subscribe(lambda _items: self.refresh())
        self.refresh()

    def _build(self):
        top = ttk.Frame(self.frame)
        top.pack(fill="x", pady=(0, 10))

        ttk.Label(top, textvariable=self.customer_var, style="Title.TLabel").pack(side="left")
        ttk.Button(top, text="Login", command=self.login).pack(side="left", padx=8)
        ttk.Button(top, text="History", command=self.show_history).pack(side="left")
        ttk.Button(top, text="Logout", command=self.logout).pack(side="left", padx=8)

        ttk.Label(top, textvariable=self.budget_var).pack(side="right")
        ttk.Button(top, text="Clear budget", command=self.clear_budget).pack(side="right", padx=8)
        ttk.Button(top, text="Set budget", command=self.set_budget).pack(side="right")

        scan = ttk.LabelFrame(self.frame, text="Scan or type barcode")
        scan.pack(fill="x")
        entry = ttk.Entry(scan, textvariable=self.scan_var, width=40)
        entry.pack(side="left", padx=10, pady=8)
        entry.bind("<Return>", lambda _e: self.scan())
        ttk.Button(scan, text="Add", command=self.scan).pack(side="left")
        ttk.Button(scan, text="Manual item", command=lambda: self.open_manual_entry(ManualEntryRequest(barcode="")))\
            .pack(side="left", padx=10)

        box = ttk.LabelFrame(self.frame, text="Cart")
        box.pack(fill="both", expand=True, pady=10)

        cols = ("name", "category", "qty", "price", "line")
        self.tree = ttk.Treeview(box, columns=cols, show="headings", height=14)
        heads = {"name": "Name", "category": "Category", "qty": "Qty", "price": "Price", "line": "Line"}
        widths = {"name": 360, "category": 160, "qty": 70, "price": 110, "line": 110}
        for c in cols:
            self.tree.heading(c, text=heads[c])
            self.tree.column(c, width=widths[c], anchor="w")
        self.tree.pack(fill="both", expand=True, padx=10, pady=10)
        self.tree.bind("<Double-1>", lambda _e: self.edit_selected())

        row = ttk.Frame(box)
        row.pack(fill="x", padx=10, pady=(0, 10))
        ttk.Button(row, text="+", width=4, command=lambda: self.change_qty(1)).pack(side="left")
        ttk.Button(row, text="-", width=4, command=lambda: self.change_qty(-1)).pack(side="left", padx=6)
        ttk.Button(row, text="Remove", command=self.remove_selected).pack(side="left", padx=6)

        bottom = ttk.Frame(self.frame)
        bottom.pack(fill="x")
        ttk.Label(bottom, textvariable=self.total_var, style="Total.TLabel").pack(side="left")
        ttk.Button(bottom, text="Pay", style="Big.TButton", command=self.pay).pack(side="right")

    def refresh(self):
        sym = self.billing.settings.currency_symbol
        for iid in self.tree.get_children():
            self.tree.delete(iid)
        for it in self.billing.cart.items:
            self.tree.insert("", "end", iid=it.id, values=(
                it.name, it.category, it.quantity, f"{sym}{it.price:.2f}", f"{sym}{it.line_total:.2f}"
            ))

        self.total_var.set(
            f"Subtotal {sym}{self.billing.subtotal:.2f} | GST {sym}{self.billing.tax_amount:.2f} | "
            f"Total {sym}{self.billing.total:.2f}"
        )
        budget = self.billing.budget
        self.budget_var.set("Budget: not set" if budget is None else f"Limit: {sym}{budget:g}")
        customer = self.billing.customer
        self.customer_var.set(customer.name if customer else "Guest")

    def _selected(self) -> str | None:
        sel = self.tree.selection()
        return sel[0] if sel else None

    # ---------- scanning ----------
    def scan(self):
        code = self.scan_var.get().strip()
        self.scan_var.set("")
        if not code:
            return
        outcome = self.billing.handle_scan(ScanEvent(kind=ScanKind.BARCODE, value=code))
        if outcome.status is ScanStatus.UNRESOLVED and outcome.manual_entry is not None:
            self.open_manual_entry(outcome.manual_entry)
        elif outcome.status is ScanStatus.BUDGET_EXCEEDED:
            self.resolve_budget_alert()

    def resolve_budget_alert(self):
        alert = self.billing.budget_alert
        if alert is None:
            return
        sym = self.billing.settings.currency_symbol
        raise_limit = messagebox.askyesno(
            "Budget Limit!",
            f"You have reached your limit of {sym}{alert.budget:g}.\nIncrease the limit?",
        )
        if not raise_limit:
            self.billing.dismiss_budget_alert()
            return
        amount = simpledialog.askfloat("Add to Budget", f"Current limit: {sym}{alert.budget:g}\nAmount to add")
        if not amount:
            self.billing.dismiss_budget_alert()
            return
        try:
            self.billing.increase_budget(amount)
        except Exception as e:
            self.app.handle_error("Budget", e, "Could not increase budget.")
        self.refresh()

    def open_manual_entry(self, request: ManualEntryRequest):
        prefill = request.prefill
        name = simpledialog.askstring("Manual entry", "Name", initialvalue=(prefill.name if prefill else "") or "")
        if name is None:
            self.billing.cancel_manual_entry()
            return
        price = simpledialog.askfloat("Manual entry", "Price", initialvalue=(prefill.price if prefill else 0.0))
        if price is None:
            self.billing.cancel_manual_entry()
            return
        category = simpledialog.askstring(
            "Manual entry", "Category", initialvalue=(prefill.category if prefill else "") or "General"
        )
        try:
            item = self.billing.save_manual_entry(
                ManualEntry(price=price, name=name, category=category, barcode=request.barcode or None)
            )
        except Exception as e:
            self.app.handle_error("Manual entry", e, "Could not add item.")
            return
        if item is None:
            self.resolve_budget_alert()

    # ---------- cart ----------
    def change_qty(self, delta: int):
        line_id = self._selected()
        if not line_id:
            return
        if not self.billing.update_quantity(line_id, delta):
            self.resolve_budget_alert()

    def remove_selected(self):
        line_id = self._selected()
        if line_id:
            self.billing.remove(line_id)

    def edit_selected(self):
        line_id = self._selected()
        if line_id:
            self.open_manual_entry(self.billing.edit_existing(line_id))

    # ---------- budget ----------
    def set_budget(self):
        amount = simpledialog.askfloat("Set Budget", "Shopping budget")
        if amount is None:
            return
        try:
            self.billing.set_budget(amount)
        except Exception as e:
            self.app.handle_error("Budget", e, "Could not set budget.")
        self.refresh()

    def clear_budget(self):
        if self.billing.budget is not None and messagebox.askyesno("Budget", "Clear budget limit?"):
            self.billing.clear_budget()
            self.refresh()

    # ---------- customers ----------
    def login(self):
        phone = simpledialog.askstring("Login", "Enter mobile number to continue")
        if not phone:
            return
        try:
            result = self.billing.login_by_phone(phone)
            if not isinstance(result, Customer):
                name = simpledialog.askstring("Create your account", "Name")
                if not name:
                    return
                address = simpledialog.askstring("Create your account", "Address (optional)") or ""
                result = self.billing.complete_signup(result, name, address)
        except Exception as e:
            self.app.handle_error("Login", e, "Login failed.")
            return
        self.app.toast(f"Welcome {result.name}", kind="success")
        self.refresh()

    def logout(self):
        guest = self.billing.customer is None
        msg = "Clear current session?" if guest else "Are you sure you want to logout?"
        if self.billing.logout(confirmed=messagebox.askyesno("Logout", msg)):
            self.refresh()

    def show_history(self):
        try:
            self.billing.open_history()
        except Exception as e:
            self.app.handle_error("History", e, "Could not open history.")
            return
        sym = self.billing.settings.currency_symbol
        lines = [f"{t.date}  {t.payment_method.value:<5} {sym}{t.total_amount:.2f}" for t in self.billing.history()]
        messagebox.showinfo("History", "\n".join(lines) or "No transactions yet.")
        self.billing.go_home()

    # ---------- payment ----------
    def pay(self):
        try:
            self.billing.open_checkout()
        except Exception as e:
            self.app.handle_error("Checkout", e, "Checkout failed.")
            return

        sym = self.billing.settings.currency_symbol
        due = self.billing.payments.amount_due(self.billing.total)
        method = simpledialog.askstring("Payment", f"Amount due {sym}{due:.2f}\nMethod (UPI / CASH / CARD)", initialvalue="UPI")
        if not method:
            self.billing.go_home()
            return

        tendered = None
        if method.strip().upper() == "CASH":
            quick = ", ".join(f"{sym}{v}" for v in QUICK_CASH_AMOUNTS)
            tendered = simpledialog.askfloat("Cash", f"Cash received (quick: {quick})")
            if tendered is None:
                self.billing.go_home()
                return

        try:
            transaction = self.billing.checkout(method.strip().upper(), tendered)
        except Exception as e:
            self.app.handle_error("Payment", e, "Payment failed.")
            self.billing.go_home()
            return

        receipt = self.billing.receipt(transaction)
        change = self.billing.payments.change_for(due, tendered) if tendered is not None else 0.0
        messagebox.showinfo(
            "Receipt",
            f"{receipt.store_profile.name}\nGSTIN: {receipt.store_profile.gstin}\n\n"
            f"Subtotal {sym}{receipt.subtotal:.2f}\nGST {sym}{receipt.tax_amount:.2f}\n"
            f"Total {sym}{receipt.total:.2f}\nChange {sym}{change:.2f}",
        )
        if self.billing.navigator.view is View.RECEIPT:
            self.billing.go_home()
        self.refresh()
