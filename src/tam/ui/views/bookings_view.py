from __future__ import annotations

import tkinter as tk
from tkinter import ttk, messagebox, simpledialog
import logging

from tam.domain.errors import AuthorizationError, ValidationError
from tam.domain.models import Permission

log = logging.getLogger(__name__)


class BookingsView:
    def __init__(self, parent, app):
        self.app = app
        self.frame = ttk.Frame(parent)
        self.frame.pack(fill="both", expand=True)

        self.search_var = tk.StringVar()
        self.status_var = tk.StringVar(value="all")
        self.date_var = tk.StringVar()
        self.count_var = tk.StringVar(value="")

        self._build()

    def _columns(self) -> list[tuple[str, str, int]]:
        cols = [
            ("customer", "Customer", 160),
            ("mobile", "Mobile", 110),
            ("route", "Route", 110),
            ("airline", "Airline", 110),
            ("flight", "Flight date", 95),
            ("selling", "Selling", 85),
            ("paid", "Paid", 85),
            ("due", "Due", 85),
            ("status", "Status", 70),
        ]
        if self.app.can(Permission.VIEW_PROFIT):
            cols += [("profit", "Profit", 85), ("manager", "Manager", 90)]
        return cols

    def _build(self):
        top = ttk.Frame(self.frame)
        top.pack(fill="x", padx=10, pady=8)

        ttk.Label(top, text="Search").pack(side="left")
        search = ttk.Entry(top, textvariable=self.search_var, width=24)
        search.pack(side="left", padx=(6, 12))
        search.bind("<KeyRelease>", lambda _e: self.refresh())

        ttk.Label(top, text="Status").pack(side="left")
        status = ttk.Combobox(top, textvariable=self.status_var, width=9, state="readonly",
                              values=["all", *self.app.bookings.payment_statuses()])
        status.pack(side="left", padx=(6, 12))
        status.bind("<<ComboboxSelected>>", lambda _e: self.refresh())

        ttk.Label(top, text="Flight date").pack(side="left")
        day = ttk.Entry(top, textvariable=self.date_var, width=12)
        day.pack(side="left", padx=(6, 12))
        day.bind("<Return>", lambda _e: self.refresh())

        ttk.Label(top, textvariable=self.count_var).pack(side="right")

        wrap = ttk.Frame(self.frame)
        wrap.pack(fill="both", expand=True, padx=10)

        cols = self._columns()
        self.tree = ttk.Treeview(wrap, columns=[c for c, _, _ in cols], show="headings", style="Modern.Treeview")
        for key, head, width in cols:
            self.tree.heading(key, text=head)
            self.tree.column(key, width=width, anchor="w")
        self.tree.tag_configure("pending", background="#fee2e2")
        self.tree.tag_configure("partial", background="#fef9c3")

        vsb = ttk.Scrollbar(wrap, orient="vertical", command=self.tree.yview)
        self.tree.configure(yscrollcommand=vsb.set)
        self.tree.grid(row=0, column=0, sticky="nsew")
        vsb.grid(row=0, column=1, sticky="ns")
        wrap.columnconfigure(0, weight=1)
        wrap.rowconfigure(0, weight=1)

        btns = ttk.Frame(self.frame)
        btns.pack(fill="x", padx=10, pady=8)
        ttk.Button(btns, text="Update payment", command=self.on_update_payment).pack(side="left")
        if self.app.can(Permission.DELETE_BOOKING):
            ttk.Button(btns, text="Delete", command=self.on_delete).pack(side="left", padx=10)

    def refresh(self):
        for item in self.tree.get_children():
            self.tree.delete(item)

        rows = self.app.bookings.filter(
            self.app.session,
            search_text=self.search_var.get(),
            status_filter=self.status_var.get(),
            date_filter=self.date_var.get().strip() or None,
        )
        show_profit = self.app.can(Permission.VIEW_PROFIT)
        for b in rows:
            values = [
                b.customer_name, b.mobile, b.route, b.airline, b.flight_date,
                f"{b.selling_price:,.2f}", f"{b.payment_amount:,.2f}", f"{b.due_amount:,.2f}",
                b.payment_status.value,
            ]
            if show_profit:
                values += [f"{b.profit:,.2f}", b.manager]
            tag = b.payment_status.value
            self.tree.insert("", "end", iid=b.id, values=values,
                             tags=(tag,) if tag in ("pending", "partial") else ())
        self.count_var.set(f"{len(rows)} booking(s)")

    def _selected_id(self) -> str:
        sel = self.tree.selection()
        if not sel:
            raise ValidationError("Select a booking.")
        return str(sel[0])

    def on_update_payment(self):
        try:
            if not self.app.can(Permission.UPDATE_PAYMENT_STATUS, Permission.EDIT_BOOKING):
                raise AuthorizationError("Your role can not update payments.")
            booking_id = self._selected_id()
            amount = simpledialog.askstring("Update payment", "Total amount paid so far:", parent=self.frame)
            if amount is None:
                return
            updated = self.app.bookings.update_payment(booking_id, amount, self.app.session)
        except Exception as e:
            self.app.handle_error("Update payment", e, "Payment update failed.")
            return

        self.app.toast(f"Payment updated ({updated.payment_status.value}).", kind="success")
        self.app.refresh_all()

    def on_delete(self):
        try:
            if not self.app.can(Permission.DELETE_BOOKING):
                raise AuthorizationError("Only admin can delete bookings.")
            booking_id = self._selected_id()
            customer = self.tree.item(booking_id, "values")[0]
            if not messagebox.askyesno("Confirm delete", f"Delete booking for '{customer}'?", parent=self.frame):
                return
            self.app.bookings.delete(booking_id, self.app.session)
        except Exception as e:
            self.app.handle_error("Delete booking", e, "Failed to delete booking.")
            return

        self.app.toast("Booking deleted.", kind="success")
        self.app.refresh_all()
