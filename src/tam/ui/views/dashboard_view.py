from __future__ import annotations

from tkinter import ttk
from datetime import date
import logging

from tam.domain.models import Permission
from tam.services.reporting_service import ReportQuery
from tam.ui.desktop import Desktop, Module
from tam.ui.views.bookings_view import BookingsView
from tam.ui.views.new_booking_view import NewBookingView
from tam.ui.views.reports_view import ReportsView
from tam.ui.views.settings_view import SettingsView
from tam.ui.views.tickets_view import TicketsView
from tam.ui.views.users_view import UsersView

log = logging.getLogger(__name__)

MODULES: tuple[Module, ...] = (
    Module("bookings", "Bookings", "📋", (Permission.VIEW_ALL_BOOKINGS, Permission.VIEW_OWN_BOOKINGS), BookingsView),
    Module("new_booking", "New Booking", "✈", (Permission.CREATE_BOOKING,), NewBookingView),
    Module("tickets", "Ticket Inventory", "🎫", (Permission.PURCHASE_TICKETS,), TicketsView),
    Module("reports", "Reports", "📊", (Permission.VIEW_REPORTS,), ReportsView),
    Module("users", "Users", "👥", (Permission.MANAGE_USERS,), UsersView),
    Module("settings", "Settings", "⚙", (Permission.SYSTEM_SETTINGS,), SettingsView),
)


class DashboardView:
    def __init__(self, parent, app):
        self.app = app
        self.frame = ttk.Frame(parent)
        self.frame.pack(fill="both", expand=True)

        identity = app.session.identity

        header = ttk.Frame(self.frame)
        header.pack(fill="x", pady=(0, 8))
        ttk.Label(header, text="Dashboard", style="Title.TLabel").pack(side="left")
        ttk.Label(header, text=f"Welcome, {identity.name} ({identity.role.value})").pack(side="left", padx=16)
        ttk.Button(header, text="Logout", command=app.logout).pack(side="right")
        ttk.Button(header, text="🔄 Refresh", command=lambda: app.refresh_all(show_toast=True))\
            .pack(side="right", padx=8)

        cards = ttk.Frame(self.frame)
        cards.pack(fill="x", pady=(0, 8))
        for module in self.modules():
            ttk.Button(
                cards, text=f"{module.icon}  {module.title}", style="Card.TButton",
                command=lambda m=module: self.desktop.open(m),
            ).pack(side="left", padx=(0, 8))

        kpi = ttk.LabelFrame(self.frame, text="Today")
        kpi.pack(fill="x", pady=(0, 8))
        self.kpi_labels: dict[str, ttk.Label] = {}
        names = ["Bookings", "Revenue"]
        if app.can(Permission.VIEW_PROFIT):
            names.append("Profit")
        if app.can(Permission.PURCHASE_TICKETS):
            names += ["Tickets available", "Tickets sold", "Tickets locked", "Inventory cost"]
        for i, name in enumerate(names):
            ttk.Label(kpi, text=name, style="KPI.TLabel").grid(row=0, column=i, padx=12, pady=(6, 0), sticky="w")
            value = ttk.Label(kpi, text="-", style="KPIValue.TLabel")
            value.grid(row=1, column=i, padx=12, pady=(0, 6), sticky="w")
            self.kpi_labels[name] = value

        self.desktop = Desktop(self.frame, app, app.windows)

    def modules(self) -> list[Module]:
        return [m for m in MODULES if self.app.can(*m.permissions)]

    def refresh(self):
        self.refresh_kpis()
        self.desktop.refresh_open()

    def refresh_kpis(self):
        summary = self.app.reporting.summary(self.app.session, ReportQuery.daily(date.today()))
        self._set("Bookings", str(summary.total_bookings))
        self._set("Revenue", f"{summary.total_revenue:,.2f}")
        self._set("Profit", f"{summary.total_profit:,.2f}")

        if self.app.can(Permission.PURCHASE_TICKETS):
            inv = self.app.inventory.summary()
            self._set("Tickets available", str(inv.available))
            self._set("Tickets sold", str(inv.sold))
            self._set("Tickets locked", str(inv.locked))
            self._set("Inventory cost", f"{inv.total_cost:,.2f}")

    def _set(self, name: str, text: str):
        label = self.kpi_labels.get(name)
        if label is not None:
            label.config(text=text)

    def teardown(self):
        self.desktop.teardown()
