from __future__ import annotations

import tkinter as tk
from tkinter import ttk, messagebox, filedialog, simpledialog
import logging
from pathlib import Path

from instabill.application.container import AppContainer
from instabill.domain.errors import AppError
from instabill.services.alert_service import Alert
from instabill.ui.views.billing_view import BillingView

log = logging.getLogger(__name__)


class App(tk.Tk):
    def __init__(self, container: AppContainer, exports_dir: str, logs_dir: str):
        super().__init__()
        self.title("InstaBill")
        self.geometry("1100x680")
        self.minsize(900, 560)

        self.container = container
        self.billing = container.billing
        self.exports_dir = exports_dir
        self.logs_dir = logs_dir

        self.status_var = tk.StringVar(value="")
        self._toast_after_id = None

        self._build_styles()
        self._build_menu()

        self.billing_view = BillingView(self, self)
        self._build_status_bar()

        self.container.alerts.subscribe(self.on_alert)
        self.toast("Ready.", kind="info", ms=1200)

    def _build_styles(self):
        style = ttk.Style(self)
        try:
            style.configure("Big.TButton", padding=(14, 10))
            style.configure("Title.TLabel", font=("Segoe UI", 12, "bold"))
            style.configure("Total.TLabel", font=("Segoe UI", 14, "bold"))
        except tk.TclError as e:
            log.exception("UI style setup failed: %s", e)

    def _build_menu(self):
        bar = tk.Menu(self)
        admin = tk.Menu(bar, tearoff=0)
        admin.add_command(label="Login...", command=self.admin_login)
        admin.add_separator()
        admin.add_command(label="Export sales CSV", command=self.export_csv)
        admin.add_command(label="Export sales report (Excel)", command=self.export_excel)
        admin.add_command(label="Import catalog (Excel)...", command=self.import_catalog)
        admin.add_separator()
        admin.add_command(label="Clear transaction history", command=self.clear_history)
        admin.add_command(label="Leave admin", command=self.leave_admin)
        bar.add_cascade(label="Admin", menu=admin)
        self.config(menu=bar)

    def _build_status_bar(self):
        bar = ttk.Frame(self)
        bar.pack(fill="x", padx=12, pady=(0, 10))
        ttk.Label(bar, textvariable=self.status_var).pack(side="left")
        ttk.Label(bar, text=f"Logs: {self.logs_dir}").pack(side="right")

    def toast(self, msg: str, kind: str = "info", ms: int = 2500):
        prefix = {"info": "ℹ ", "success": "✅ ", "warn": "⚠ ", "error": "❌ "}.get(kind, "")
        self.status_var.set(prefix + msg)
        if self._toast_after_id is not None:
            self.after_cancel(self._toast_after_id)
        self._toast_after_id = self.after(ms, lambda: self.status_var.set(""))

    def on_alert(self, alert: Alert):
        if alert.channel == "beep":
            if alert.kind == "error":
                self.bell()
        elif alert.channel == "toast":
            self.toast(alert.message, kind=alert.kind)
        elif alert.channel == "speak":
            self.toast(alert.message, kind="warn", ms=4000)

    def handle_error(self, title: str, exc: Exception, fallback: str):
        if isinstance(exc, AppError):
            messagebox.showwarning(title, str(exc))
        else:
            log.exception("%s: %s", title, exc)
            messagebox.showerror(title, fallback)

    # ---------- admin ----------
    def admin_login(self):
        pin = simpledialog.askstring("Admin", "Enter admin PIN", show="*", parent=self)
        if pin is None:
            return
        try:
            self.billing.admin_login(pin)
        except Exception as e:
            self.handle_error("Admin login", e, "Admin login failed.")
            return
        self.toast("Admin unlocked.", kind="success")

    def leave_admin(self):
        try:
            self.billing.go_home()
        except Exception as e:
            self.handle_error("Admin", e, "Could not leave admin.")

    def _require_admin(self) -> bool:
        try:
            self.billing.navigator.require_admin()
        except AppError as e:
            messagebox.showwarning("Admin", str(e))
            return False
        return True

    def export_csv(self):
        if not self._require_admin():
            return
        path = Path(self.exports_dir) / "sales.csv"
        self.container.reporting.export_sales_csv(path)
        self.toast(f"Exported {path.name}", kind="success")

    def export_excel(self):
        if not self._require_admin():
            return
        path = Path(self.exports_dir) / "sales_report.xlsx"
        try:
            self.container.reporting.export_sales_report_excel(path)
        except OSError as e:
            self.handle_error("Export", e, "Excel export failed.")
            return
        self.toast(f"Exported {path.name}", kind="success")

    def import_catalog(self):
        if not self._require_admin():
            return
        path = filedialog.askopenfilename(filetypes=[("Excel", "*.xlsx")])
        if not path:
            return
        try:
            ok, skipped = self.container.excel.import_catalog_excel(path)
        except Exception as e:
            self.handle_error("Import", e, "Catalog import failed.")
            return
        messagebox.showinfo("Import", f"Imported: {ok}\nSkipped: {skipped}")

    def clear_history(self):
        if not self._require_admin():
            return
        if not messagebox.askyesno("Clear history", "Delete ALL transactions? This cannot be undone."):
            return
        self.billing.clear_history()
        self.toast("History cleared.", kind="success")
