from __future__ import annotations

import tkinter as tk
from tkinter import ttk, messagebox
import logging

from tam.domain.errors import AuthorizationError, LossNotConfirmedError, ValidationError
from tam.domain.models import Permission
from tam.services.booking_service import PAYMENT_METHODS

log = logging.getLogger(__name__)


class NewBookingView:
    def __init__(self, parent, app):
        self.app = app
        self.frame = ttk.Frame(parent)
        self.frame.pack(fill="both", expand=True)

        self.ticket_pick = tk.StringVar()
        self.ticket_filter = tk.StringVar()
        self.method_var = tk.StringVar(value="cash")
        self.info_var = tk.StringVar(value="Pick an available ticket.")

        self.ticket_choices: list[str] = []
        self.ticket_map: dict[str, str] = {}

        self._build()

    def _entry(self, parent, label, row, col=0, width=24):
        ttk.Label(parent, text=label).grid(row=row, column=col, sticky="w", padx=8, pady=4)
        e = ttk.Entry(parent, width=width)
        e.grid(row=row, column=col + 1, sticky="ew", padx=8, pady=4)
        return e

    def _build(self):
        pick = ttk.LabelFrame(self.frame, text="Ticket")
        pick.pack(fill="x", padx=10, pady=(10, 6))

        ttk.Label(pick, text="Available ticket").grid(row=0, column=0, sticky="w", padx=8, pady=6)
        self.combo = ttk.Combobox(pick, textvariable=self.ticket_pick, width=64)
        self.combo.grid(row=0, column=1, sticky="ew", padx=8, pady=6)
        self.combo.bind("<KeyRelease>", lambda _e: self._filter_combobox(self.ticket_pick.get()))
        self.combo.bind("<<ComboboxSelected>>", lambda _e: self.on_ticket_selected())
        ttk.Label(pick, textvariable=self.info_var, foreground="#475569")\
            .grid(row=1, column=0, columnspan=2, sticky="w", padx=8, pady=(0, 6))
        pick.columnconfigure(1, weight=1)

        cust = ttk.LabelFrame(self.frame, text="Customer")
        cust.pack(fill="x", padx=10, pady=6)
        self.customer_name = self._entry(cust, "Name *", 0)
        self.mobile = self._entry(cust, "Mobile *", 0, col=2)
        self.passport = self._entry(cust, "Passport", 1)
        self.email = self._entry(cust, "Email", 1, col=2)

        pay = ttk.LabelFrame(self.frame, text="Payment")
        pay.pack(fill="x", padx=10, pady=6)
        self.selling = self._entry(pay, "Selling price *", 0)
        self.paid = self._entry(pay, "Amount paid", 0, col=2)
        ttk.Label(pay, text="Method").grid(row=1, column=0, sticky="w", padx=8, pady=4)
        ttk.Combobox(pay, textvariable=self.method_var, values=list(PAYMENT_METHODS), state="readonly", width=12)\
            .grid(row=1, column=1, sticky="w", padx=8, pady=4)
        ttk.Label(pay, text="Notes").grid(row=1, column=2, sticky="w", padx=8, pady=4)
        self.notes = ttk.Entry(pay, width=24)
        self.notes.grid(row=1, column=3, sticky="ew", padx=8, pady=4)

        btns = ttk.Frame(self.frame)
        btns.pack(fill="x", padx=10, pady=(6, 10))
        ttk.Button(btns, text="Create booking", style="Big.TButton", command=self.on_create).pack(side="left")
        ttk.Button(btns, text="Clear", command=self.clear_form).pack(side="left", padx=10)

        manual = ttk.LabelFrame(self.frame, text="Manual booking (no inventory ticket)")
        manual.pack(fill="x", padx=10, pady=(0, 10))
        self.m_route = self._entry(manual, "Route", 0)
        self.m_airline = self._entry(manual, "Airline", 0, col=2)
        self.m_flight_date = self._entry(manual, "Flight date *", 1)
        self.m_purchase = self._entry(manual, "Purchase price", 1, col=2)
        ttk.Button(manual, text="Save manual booking", command=self.on_create_direct)\
            .grid(row=2, column=0, columnspan=4, sticky="w", padx=8, pady=(4, 8))

    def _filter_combobox(self, typed: str):
        typed = typed.strip().lower()
        self.combo["values"] = self.ticket_choices if not typed else [c for c in self.ticket_choices if typed in c.lower()]

    def refresh(self):
        show_cost = self.app.can(Permission.VIEW_PURCHASE_PRICE)
        choices = []
        mapping = {}
        for t in self.app.inventory.available():
            label = f"{t.pnr} · {t.airline} · {t.route} · {t.flight_date}"
            if show_cost:
                label += f" · cost {t.purchase_price:,.2f}"
            choices.append(label)
            mapping[label] = t.id
        self.ticket_choices = choices
        self.ticket_map = mapping
        self.combo["values"] = choices

    def on_ticket_selected(self):
        ticket_id = self.ticket_map.get(self.ticket_pick.get())
        if not ticket_id:
            return
        ticket = self.app.inventory.get_ticket(ticket_id)
        info = f"{ticket.airline} {ticket.route} on {ticket.flight_date}, {ticket.passengers} passenger(s)"
        if self.app.can(Permission.VIEW_PURCHASE_PRICE):
            suggested = self.app.inventory.suggested_selling_price(ticket)
            info += f" · suggested price {suggested:,.2f}"
            if not self.selling.get().strip():
                self.selling.insert(0, f"{suggested:.2f}")
        self.info_var.set(info)

    def _customer(self) -> dict:
        return {
            "customer_name": self.customer_name.get(),
            "mobile": self.mobile.get(),
            "passport": self.passport.get(),
            "email": self.email.get(),
        }

    def confirm_loss(self, loss: float) -> bool:
        return messagebox.askyesno(
            "Selling at a loss",
            f"This sale loses {loss:,.2f}. Continue anyway?",
            parent=self.frame,
        )

    def on_create(self):
        try:
            if not self.app.can(Permission.CREATE_BOOKING):
                raise AuthorizationError("Your role can not create bookings.")
            ticket_id = self.ticket_map.get(self.ticket_pick.get().strip())
            if not ticket_id:
                raise ValidationError("Pick a ticket from the dropdown list.")

            booking = self.app.bookings.create_from_ticket(
                ticket_id,
                self._customer(),
                self.selling.get(),
                self.paid.get(),
                self.app.session,
                payment_method=self.method_var.get(),
                notes=self.notes.get(),
                confirm_loss=self.confirm_loss,
            )
        except LossNotConfirmedError:
            self.app.toast("Booking cancelled.", kind="info")
            return
        except Exception as e:
            self.app.handle_error("Booking failed", e, "Booking failed.")
            return

        messagebox.showinfo("OK", f"Booking saved for {booking.customer_name} ({booking.payment_status.value}).")
        self.app.toast(f"Booking saved ({booking.pnr}).", kind="success")
        self.clear_form()
        self.app.refresh_all()

    def on_create_direct(self):
        try:
            if not self.app.can(Permission.CREATE_BOOKING):
                raise AuthorizationError("Your role can not create bookings.")
            booking = self.app.bookings.create_direct(
                {
                    **self._customer(),
                    "route": self.m_route.get(),
                    "airline": self.m_airline.get(),
                    "flight_date": self.m_flight_date.get(),
                    "purchase_price": self.m_purchase.get(),
                    "selling_price": self.selling.get(),
                    "payment_amount": self.paid.get(),
                    "payment_method": self.method_var.get(),
                    "notes": self.notes.get(),
                },
                self.app.session,
            )
        except Exception as e:
            self.app.handle_error("Booking failed", e, "Booking failed.")
            return

        self.app.toast(f"Manual booking saved for {booking.customer_name}.", kind="success")
        self.clear_form()
        self.app.refresh_all()

    def clear_form(self):
        for e in (
            self.customer_name, self.mobile, self.passport, self.email, self.selling, self.paid, self.notes,
            self.m_route, self.m_airline, self.m_flight_date, self.m_purchase,
        ):
            e.delete(0, tk.END)
        self.ticket_pick.set("")
        self.method_var.set("cash")
        self.info_var.set("Pick an available ticket.")
