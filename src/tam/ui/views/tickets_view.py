from __future__ import annotations

import tkinter as tk
from tkinter import ttk, messagebox, filedialog
import logging

from tam.domain.errors import AuthorizationError, ValidationError
from tam.domain.models import Permission, TicketStatus
from tam.services.excel_service import TICKET_IMPORT_HEADERS

log = logging.getLogger(__name__)

FORM_FIELDS = (
    ("pnr", "PNR *"),
    ("airline", "Airline *"),
    ("route", "Route *"),
    ("flight_date", "Flight date *"),
    ("passengers", "Passengers"),
    ("purchase_price", "Purchase price *"),
    ("tax", "Tax"),
    ("supplier", "Supplier *"),
    ("supplier_contact", "Supplier contact"),
    ("notes", "Notes"),
)


class TicketsView:
    def __init__(self, parent, app):
        self.app = app
        self.frame = ttk.Frame(parent)
        self.frame.pack(fill="both", expand=True)

        self.search_var = tk.StringVar()
        self.status_var = tk.StringVar(value="all")
        self.summary_var = tk.StringVar(value="")
        self.entries: dict[str, ttk.Entry] = {}

        self._build()

    def _build(self):
        left = ttk.LabelFrame(self.frame, text="Purchase ticket", width=260)
        left.pack(side="left", fill="y", padx=(10, 6), pady=8)

        for row, (key, label) in enumerate(FORM_FIELDS):
            ttk.Label(left, text=label).grid(row=row, column=0, sticky="w", padx=8, pady=3)
            e = ttk.Entry(left, width=18)
            e.grid(row=row, column=1, sticky="ew", padx=8, pady=3)
            self.entries[key] = e
        left.columnconfigure(1, weight=1)

        btns = ttk.Frame(left)
        btns.grid(row=len(FORM_FIELDS), column=0, columnspan=2, sticky="ew", padx=8, pady=(8, 4))
        ttk.Button(btns, text="Purchase", command=self.on_purchase).pack(side="left", fill="x", expand=True)
        ttk.Button(btns, text="Clear", command=self.clear_form).pack(side="left", fill="x", expand=True, padx=(6, 0))

        ttk.Button(left, text="Import from Excel…", command=self.import_excel)\
            .grid(row=len(FORM_FIELDS) + 1, column=0, columnspan=2, sticky="ew", padx=8, pady=(4, 8))

        right = ttk.LabelFrame(self.frame, text="Inventory")
        right.pack(side="right", fill="both", expand=True, padx=(0, 10), pady=8)

        top = ttk.Frame(right)
        top.pack(fill="x", padx=6, pady=6)
        ttk.Label(top, text="Search").pack(side="left")
        search = ttk.Entry(top, textvariable=self.search_var, width=20)
        search.pack(side="left", padx=(6, 12))
        search.bind("<KeyRelease>", lambda _e: self.refresh())
        status = ttk.Combobox(top, textvariable=self.status_var, width=10, state="readonly",
                              values=["all", *[s.value for s in TicketStatus]])
        status.pack(side="left")
        status.bind("<<ComboboxSelected>>", lambda _e: self.refresh())
        ttk.Label(top, textvariable=self.summary_var).pack(side="right")

        cols = ("pnr", "airline", "route", "flight", "pax", "price", "total", "supplier", "status", "sold_to")
        heads = {
            "pnr": "PNR", "airline": "Airline", "route": "Route", "flight": "Flight date", "pax": "Pax",
            "price": "Price", "total": "Total cost", "supplier": "Supplier", "status": "Status", "sold_to": "Sold to",
        }
        widths = {
            "pnr": 80, "airline": 100, "route": 100, "flight": 90, "pax": 40,
            "price": 85, "total": 85, "supplier": 110, "status": 70, "sold_to": 120,
        }
        self.tree = ttk.Treeview(right, columns=cols, show="headings", style="Modern.Treeview")
        for c in cols:
            self.tree.heading(c, text=heads[c])
            self.tree.column(c, width=widths[c], anchor="w")
        self.tree.tag_configure("locked", background="#fef3c7")
        self.tree.tag_configure("sold", foreground="#64748b")
        self.tree.pack(fill="both", expand=True, padx=6)

        actions = ttk.Frame(right)
        actions.pack(fill="x", padx=6, pady=6)
        ttk.Button(actions, text="Lock / Unlock", command=self.on_toggle_lock).pack(side="left")
        ttk.Button(actions, text="Delete", command=self.on_delete).pack(side="left", padx=10)

    def refresh(self):
        for item in self.tree.get_children():
            self.tree.delete(item)

        for t in self.app.inventory.search(self.search_var.get(), self.status_var.get()):
            self.tree.insert("", "end", iid=t.id, values=(
                t.pnr, t.airline, t.route, t.flight_date, t.passengers,
                f"{t.purchase_price:,.2f}", f"{t.total_cost:,.2f}", t.supplier, t.status.value, t.sold_to or "",
            ), tags=(t.status.value,))

        s = self.app.inventory.summary()
        self.summary_var.set(
            f"{s.total} total · {s.available} available · {s.sold} sold · {s.locked} locked · cost {s.total_cost:,.2f}"
        )

    def _selected_id(self) -> str:
        sel = self.tree.selection()
        if not sel:
            raise ValidationError("Select a ticket.")
        return str(sel[0])

    def on_purchase(self):
        try:
            if not self.app.can(Permission.PURCHASE_TICKETS):
                raise AuthorizationError("Only admin can purchase tickets.")
            ticket = self.app.inventory.purchase(
                {key: e.get() for key, e in self.entries.items()},
                self.app.session,
            )
        except Exception as e:
            self.app.handle_error("Purchase failed", e, "Ticket purchase failed.")
            return

        self.app.toast(f"Ticket {ticket.pnr} purchased ({ticket.total_cost:,.2f}).", kind="success")
        self.clear_form()
        self.app.refresh_all()

    def on_toggle_lock(self):
        try:
            if not self.app.can(Permission.LOCK_TICKETS):
                raise AuthorizationError("Your role can not lock tickets.")
            ticket = self.app.inventory.toggle_lock(self._selected_id(), self.app.session)
        except Exception as e:
            self.app.handle_error("Lock ticket", e, "Lock/unlock failed.")
            return

        self.app.toast(f"Ticket {ticket.pnr} is now {ticket.status.value}.", kind="success")
        self.app.refresh_all()

    def on_delete(self):
        try:
            if not self.app.can(Permission.PURCHASE_TICKETS):
                raise AuthorizationError("Only admin can delete tickets.")
            deleted = self.app.inventory.delete(
                self._selected_id(),
                self.app.session,
                confirm=lambda t: messagebox.askyesno(
                    "Confirm delete", f"Delete ticket {t.pnr} ({t.status.value})?", parent=self.frame
                ),
            )
        except Exception as e:
            self.app.handle_error("Delete ticket", e, "Failed to delete ticket.")
            return

        if deleted:
            self.app.toast("Ticket deleted.", kind="success")
            self.app.refresh_all()

    def import_excel(self):
        try:
            if not self.app.can(Permission.PURCHASE_TICKETS):
                raise AuthorizationError("Your role can not import tickets.")
            path = filedialog.askopenfilename(
                title=f"Select Excel file ({' | '.join(TICKET_IMPORT_HEADERS)})",
                filetypes=[("Excel files", "*.xlsx")],
            )
            if not path:
                return
            ok, skipped = self.app.excel.import_tickets_excel(path, self.app.session)
        except Exception as e:
            self.app.handle_error("Import error", e, "Excel import failed.")
            return

        self.app.toast(f"Excel import: {ok} ok, {skipped} skipped.", kind="success")
        self.app.refresh_all()

    def clear_form(self):
        for e in self.entries.values():
            e.delete(0, tk.END)
        self.entries["pnr"].focus_set()
