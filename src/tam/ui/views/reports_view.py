from __future__ import annotations

import tkinter as tk
from tkinter import ttk, filedialog
from datetime import date
from pathlib import Path

from tam.domain.errors import AuthorizationError, ValidationError
from tam.domain.models import Permission
from tam.services.reporting_service import ReportQuery, ReportType


class ReportsView:
    def __init__(self, parent, app):
        self.app = app
        self.frame = ttk.Frame(parent)
        self.frame.pack(fill="both", expand=True)

        self.report_type = tk.StringVar(value=ReportType.DAILY.value)
        self.day_var = tk.StringVar(value=date.today().isoformat())
        self.month_var = tk.StringVar(value=date.today().strftime("%Y-%m"))
        self.summary_vars: dict[str, tk.StringVar] = {}

        self._build()

    def _build(self):
        tab = self.frame

        box = ttk.LabelFrame(tab, text="Report window")
        box.pack(fill="x", padx=10, pady=10)

        row = ttk.Frame(box)
        row.pack(fill="x", padx=10, pady=8)
        for value, text in ((ReportType.DAILY, "Daily"), (ReportType.MONTHLY, "Monthly"), (ReportType.ALL, "All time")):
            ttk.Radiobutton(row, text=text, value=value.value, variable=self.report_type).pack(side="left", padx=(0, 10))
        ttk.Label(row, text="Date").pack(side="left", padx=(10, 4))
        ttk.Entry(row, textvariable=self.day_var, width=12).pack(side="left")
        ttk.Label(row, text="Month").pack(side="left", padx=(10, 4))
        ttk.Entry(row, textvariable=self.month_var, width=9).pack(side="left")
        ttk.Button(row, text="Generate", command=self.refresh).pack(side="left", padx=10)

        exports = ttk.Frame(box)
        exports.pack(fill="x", padx=10, pady=(0, 8))
        ttk.Button(exports, text="Export CSV", command=self.export_csv).pack(side="left")
        ttk.Button(exports, text="Export Excel", command=self.export_excel).pack(side="left", padx=10)

        summary = ttk.LabelFrame(tab, text="Summary")
        summary.pack(fill="x", padx=10, pady=(0, 10))
        names = ["Bookings", "Revenue", "Paid", "Partial", "Pending"]
        if self.app.can(Permission.VIEW_PROFIT):
            names += ["Profit", "Average profit", "Margin %", "Purchase cost"]
        for i, name in enumerate(names):
            var = tk.StringVar(value="-")
            self.summary_vars[name] = var
            ttk.Label(summary, text=name, style="KPI.TLabel").grid(row=(i // 5) * 2, column=i % 5, padx=12, pady=(6, 0), sticky="w")
            ttk.Label(summary, textvariable=var, style="KPIValue.TLabel")\
                .grid(row=(i // 5) * 2 + 1, column=i % 5, padx=12, pady=(0, 6), sticky="w")

        self.manager_tree = None
        self.airline_tree = None
        if self.app.can(Permission.VIEW_PROFIT):
            breakdowns = ttk.Frame(tab)
            breakdowns.pack(fill="both", expand=True, padx=10, pady=(0, 10))
            self.manager_tree = self._tree(
                breakdowns, "By manager",
                [("manager", "Manager", 120), ("count", "Bookings", 70), ("revenue", "Revenue", 100),
                 ("profit", "Profit", 100), ("avg", "Avg ticket", 100)],
            )
            self.airline_tree = self._tree(
                breakdowns, "By airline",
                [("airline", "Airline", 120), ("count", "Bookings", 70), ("revenue", "Revenue", 100),
                 ("profit", "Profit", 100), ("margin", "Margin %", 80)],
            )

    def _tree(self, parent, title: str, cols: list[tuple[str, str, int]]) -> ttk.Treeview:
        box = ttk.LabelFrame(parent, text=title)
        box.pack(side="left", fill="both", expand=True, padx=(0, 6))
        tree = ttk.Treeview(box, columns=[c for c, _, _ in cols], show="headings", height=8, style="Modern.Treeview")
        for key, head, width in cols:
            tree.heading(key, text=head)
            tree.column(key, width=width, anchor="w")
        tree.pack(fill="both", expand=True, padx=6, pady=6)
        return tree

    def current_query(self) -> ReportQuery:
        kind = self.report_type.get()
        if kind == ReportType.DAILY.value:
            try:
                day = date.fromisoformat(self.day_var.get().strip())
            except ValueError:
                raise ValidationError("Date must look like YYYY-MM-DD.") from None
            return ReportQuery.daily(day)
        if kind == ReportType.MONTHLY.value:
            return ReportQuery.monthly(self.month_var.get().strip())
        return ReportQuery.all_time()

    def refresh(self):
        try:
            report = self.app.reporting.generate(self.app.session, self.current_query())
        except Exception as e:
            self.app.handle_error("Report error", e, "Report failed.")
            return

        s = report.summary
        values = {
            "Bookings": str(s.total_bookings),
            "Revenue": f"{s.total_revenue:,.2f}",
            "Paid": str(s.paid_bookings),
            "Partial": str(s.partial_bookings),
            "Pending": str(s.pending_bookings),
            "Profit": f"{s.total_profit:,.2f}",
            "Average profit": f"{s.average_profit:,.2f}",
            "Margin %": f"{s.profit_margin:.2f}",
            "Purchase cost": f"{s.total_purchase_cost:,.2f}",
        }
        for name, var in self.summary_vars.items():
            var.set(values[name])

        if self.manager_tree is not None:
            self.manager_tree.delete(*self.manager_tree.get_children())
            for m in report.managers:
                self.manager_tree.insert("", "end", values=(
                    m.manager, m.bookings, f"{m.revenue:,.2f}", f"{m.profit:,.2f}", f"{m.average_ticket_value:,.2f}"
                ))
        if self.airline_tree is not None:
            self.airline_tree.delete(*self.airline_tree.get_children())
            for a in report.airlines:
                self.airline_tree.insert("", "end", values=(
                    a.airline, a.bookings, f"{a.revenue:,.2f}", f"{a.profit:,.2f}", f"{a.profit_margin:.2f}"
                ))

    def export_csv(self):
        try:
            if not self.app.can(Permission.EXPORT_DATA, Permission.VIEW_REPORTS):
                raise AuthorizationError("Your role can not export reports.")
            query = self.current_query()
            path = filedialog.asksaveasfilename(
                title="Save report as",
                defaultextension=".csv",
                filetypes=[("CSV files", "*.csv")],
                initialdir=self.app.exports_dir,
                initialfile=self.app.reporting.export_filename(query),
            )
            if not path:
                return
            rows = self.app.reporting.export_csv(path, self.app.session, query)
        except Exception as e:
            self.app.handle_error("Export error", e, "CSV export failed.")
            return

        self.app.toast(f"CSV exported: {Path(path).name} ({rows} rows).", kind="success")

    def export_excel(self):
        try:
            if not self.app.can(Permission.EXPORT_DATA, Permission.VIEW_REPORTS):
                raise AuthorizationError("Your role can not export reports.")
            query = self.current_query()
            path = filedialog.asksaveasfilename(
                title="Save report as",
                defaultextension=".xlsx",
                filetypes=[("Excel files", "*.xlsx")],
                initialdir=self.app.exports_dir,
                initialfile=self.app.reporting.export_filename(query, ext="xlsx"),
            )
            if not path:
                return
            self.app.reporting.export_report_excel(path, self.app.session, query)
        except Exception as e:
            self.app.handle_error("Export error", e, "Excel export failed.")
            return

        self.app.toast("Excel report exported.", kind="success")
