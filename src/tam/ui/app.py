from __future__ import annotations

import tkinter as tk
from tkinter import ttk, messagebox
import logging

from tam.domain.errors import AppError
from tam.domain.models import Permission
from tam.ui.views.dashboard_view import DashboardView
from tam.ui.views.login_view import LoginView

log = logging.getLogger(__name__)


class App(tk.Tk):
    def __init__(self, container, exports_dir: str, logs_dir: str):
        super().__init__()
        self.title("Travel Agency Manager")
        self.geometry("1280x800")
        self.minsize(1024, 640)

        self.container = container
        self.session = container.session
        self.auth = container.auth
        self.inventory = container.inventory
        self.bookings = container.bookings
        self.reporting = container.reporting
        self.settings = container.settings
        self.excel = container.excel
        self.windows = container.windows

        self.exports_dir = exports_dir
        self.logs_dir = logs_dir

        # UI state
        self.status_var = tk.StringVar(value="")
        self._toast_after_id = None
        self.login_view: LoginView | None = None
        self.dashboard: DashboardView | None = None

        self._build_styles()
        self._build_status_bar()

        self.body = ttk.Frame(self)
        self.body.pack(fill="both", expand=True, padx=12, pady=(10, 0))

        if self.session.is_logged_in:
            self.show_dashboard()
        else:
            self.show_login()

        self.protocol("WM_DELETE_WINDOW", self.on_close)
        self.toast("Ready.", kind="info", ms=1200)

    def _build_styles(self):
        style = ttk.Style(self)
        style.configure("Big.TButton", padding=(14, 10))
        style.configure("Card.TButton", padding=(18, 14), font=("Segoe UI", 11, "bold"))
        style.configure("Title.TLabel", font=("Segoe UI", 14, "bold"))
        style.configure("KPI.TLabel", font=("Segoe UI", 10))
        style.configure("KPIValue.TLabel", font=("Segoe UI", 11, "bold"))
        style.configure("Modern.Treeview", rowheight=24)

    def _build_status_bar(self):
        bar = ttk.Frame(self)
        bar.pack(side="bottom", fill="x", padx=12, pady=(4, 10))
        ttk.Label(bar, textvariable=self.status_var).pack(side="left")
        ttk.Label(bar, text=f"Logs: {self.logs_dir}").pack(side="right")

    def toast(self, msg: str, kind: str = "info", ms: int = 2500):
        prefix = {"info": "ℹ ", "success": "✅ ", "warn": "⚠ ", "error": "❌ "}.get(kind, "")
        self.status_var.set(prefix + msg)
        if self._toast_after_id is not None:
            self.after_cancel(self._toast_after_id)
        self._toast_after_id = self.after(ms, lambda: self.status_var.set(""))

    def handle_error(self, title: str, err: Exception, toast_text: str):
        if isinstance(err, AppError):
            log.warning("%s: %s", title, err)
        else:
            log.error("%s: %s", title, err, exc_info=err)
        messagebox.showerror(title, str(err), parent=self)
        self.toast(toast_text, kind="error")

    def can(self, *permissions: Permission) -> bool:
        return any(self.session.has_permission(p) for p in permissions)

    # ---------- screens ----------
    def _clear_body(self):
        if self.dashboard is not None:
            self.dashboard.teardown()
            self.dashboard = None
        self.login_view = None
        for child in self.body.winfo_children():
            child.destroy()

    def show_login(self):
        self._clear_body()
        self.login_view = LoginView(self.body, self)

    def show_dashboard(self):
        self._clear_body()
        self.dashboard = DashboardView(self.body, self)
        self.dashboard.refresh()

    def on_logged_in(self):
        identity = self.session.identity
        self.show_dashboard()
        self.toast(f"Welcome, {identity.name}.", kind="success")

    def logout(self):
        if self.dashboard is not None:
            self.dashboard.teardown()
            self.dashboard = None
        self.auth.logout()
        self.show_login()
        self.toast("Logged out.", kind="info", ms=1500)

    # ---------- refresh ----------
    def refresh_all(self, show_toast: bool = False):
        if self.dashboard is not None:
            self.dashboard.refresh()
        if show_toast:
            self.toast("Refreshed.", kind="info", ms=1200)

    def on_close(self):
        if self.dashboard is not None:
            self.dashboard.teardown()
        self.destroy()
