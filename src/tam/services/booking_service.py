from __future__ import annotations

from dataclasses import replace
from datetime import datetime
import logging
from typing import Callable, Iterable, Optional
import uuid

from tam.domain.errors import (
    AuthorizationError,
    LossNotConfirmedError,
    NotFoundError,
    ValidationError,
)
from tam.domain.models import Booking, PaymentStatus, Permission, TicketStatus, payment_status_for
from tam.repositories.unit_of_work import RepositoryUnitOfWork, UnitOfWork
from tam.services.validation import parse_amount

log = logging.getLogger("tam.bookings")

PAYMENT_METHODS = ("cash", "bkash", "nagad", "bank", "card")


def _clean(fields: dict, key: str) -> str:
    return str(fields.get(key) or "").strip()


def filter_bookings(
    bookings: Iterable[Booking],
    search_text: str = "",
    status_filter: str | None = None,
    date_filter: str | None = None,
) -> list[Booking]:
    term = (search_text or "").strip().lower()
    out = []
    for b in bookings:
        if term and not (
            term in b.customer_name.lower()
            or term in b.mobile
            or term in (b.passport or "").lower()
        ):
            continue
        if status_filter and status_filter != "all" and b.payment_status.value != status_filter:
            continue
        if date_filter and b.flight_date != date_filter:
            continue
        out.append(b)
    return out


class BookingService:
    def __init__(
        self,
        repo,
        uow_factory: Callable[[], UnitOfWork] | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.repo = repo
        self.uow_factory = uow_factory or (lambda: RepositoryUnitOfWork(repo))
        self.clock = clock or datetime.now

    def _now_iso(self) -> str:
        return self.clock().replace(microsecond=0).isoformat()

    def create_from_ticket(
        self,
        ticket_id: str,
        customer: dict,
        selling_price,
        payment_amount,
        session,
        payment_method: str = "cash",
        notes: Optional[str] = None,
        confirm_loss: Callable[[float], bool] | None = None,
    ) -> Booking:
        """
        customer: {customer_name, mobile, passport?, email?}

        Sells an available inventory ticket. The new booking and the ticket's
        move to ``sold`` are committed together or not at all.
        """
        actor = session.require(Permission.CREATE_BOOKING)

        customer_name = _clean(customer, "customer_name")
        mobile = _clean(customer, "mobile")
        if not customer_name or not mobile:
            raise ValidationError("Customer name and mobile are required.")
        if not ticket_id:
            raise ValidationError("No ticket selected.")

        selling = parse_amount(selling_price, "Selling price")
        paid = parse_amount(payment_amount, "Payment amount", default=0.0)
        if selling <= 0:
            raise ValidationError("Selling price must be > 0.")
        if paid < 0:
            raise ValidationError("Payment amount must be >= 0.")

        tickets = self.repo.load_tickets()
        ticket = next((t for t in tickets if t.id == ticket_id), None)
        if ticket is None:
            raise ValidationError("Selected ticket no longer exists.")
        if ticket.status is not TicketStatus.AVAILABLE:
            raise ValidationError(f"Ticket {ticket.pnr} is not available ({ticket.status.value}).")

        profit = selling - ticket.purchase_price
        if profit < 0 and not (confirm_loss and confirm_loss(-profit)):
            raise LossNotConfirmedError(f"This sale loses {-profit:,.2f} and was not confirmed.")

        now = self._now_iso()
        booking = Booking(
            id=f"booking_{uuid.uuid4().hex[:12]}",
            customer_name=customer_name,
            mobile=mobile,
            passport=_clean(customer, "passport") or None,
            email=_clean(customer, "email") or None,
            route=ticket.route,
            airline=ticket.airline,
            flight_date=ticket.flight_date,
            ticket_id=ticket.id,
            pnr=ticket.pnr,
            purchase_price=ticket.purchase_price,
            selling_price=selling,
            payment_amount=paid,
            payment_method=(payment_method or "cash").strip() or "cash",
            payment_status=payment_status_for(selling, paid),
            profit=profit,
            due_amount=selling - paid,
            notes=(notes or "").strip() or None,
            created_at=now,
            created_by=actor.username,
            manager=actor.username,
            last_updated=now,
        )
        sold = replace(ticket, status=TicketStatus.SOLD, sold_to=customer_name, sold_date=now)

        with self.uow_factory() as uow:
            uow.stage_bookings([*self.repo.load_bookings(), booking])
            uow.stage_tickets([sold if t.id == ticket.id else t for t in tickets])

        log.info(
            "booking_created booking_id=%s ticket_id=%s pnr=%s selling=%.2f profit=%.2f status=%s actor=%s",
            booking.id, ticket.id, ticket.pnr, selling, profit, booking.payment_status.value, actor.username,
        )
        return booking

    def create_direct(self, fields: dict, session) -> Booking:
        """
        Manual booking without inventory linkage.

        fields: {customer_name, mobile, flight_date, passport?, email?, route?,
                 airline?, purchase_price?, selling_price?, payment_amount?}
        """
        actor = session.require(Permission.CREATE_BOOKING)

        customer_name = _clean(fields, "customer_name")
        mobile = _clean(fields, "mobile")
        flight_date = _clean(fields, "flight_date")
        if not customer_name or not mobile or not flight_date:
            raise ValidationError("Customer name, mobile and flight date are required.")

        purchase = parse_amount(fields.get("purchase_price"), "Purchase price", default=0.0)
        selling = parse_amount(fields.get("selling_price"), "Selling price", default=0.0)
        paid = parse_amount(fields.get("payment_amount"), "Payment amount", default=0.0)
        if purchase < 0 or selling < 0 or paid < 0:
            raise ValidationError("Amounts must be >= 0.")

        now = self._now_iso()
        booking = Booking(
            id=f"booking_{uuid.uuid4().hex[:12]}",
            customer_name=customer_name,
            mobile=mobile,
            passport=_clean(fields, "passport") or None,
            email=_clean(fields, "email") or None,
            route=_clean(fields, "route"),
            airline=_clean(fields, "airline"),
            flight_date=flight_date,
            ticket_id=None,
            pnr=None,
            purchase_price=purchase,
            selling_price=selling,
            payment_amount=paid,
            payment_method=_clean(fields, "payment_method") or "cash",
            payment_status=payment_status_for(selling, paid),
            profit=selling - purchase,
            due_amount=selling - paid,
            notes=_clean(fields, "notes") or None,
            created_at=now,
            created_by=actor.username,
            manager=actor.username,
            last_updated=now,
        )
        self.repo.save_bookings([*self.repo.load_bookings(), booking])
        log.info("booking_created_direct booking_id=%s selling=%.2f profit=%.2f actor=%s", booking.id, selling, booking.profit, actor.username)
        return booking

    def delete(self, booking_id: str, session) -> None:
        actor = session.require(Permission.DELETE_BOOKING)
        bookings = self.repo.load_bookings()
        if not any(b.id == booking_id for b in bookings):
            raise NotFoundError("Booking not found.")
        self.repo.save_bookings([b for b in bookings if b.id != booking_id])
        log.info("booking_deleted booking_id=%s actor=%s", booking_id, actor.username)

    def update_payment(self, booking_id: str, payment_amount, session) -> Booking:
        actor = session.require(Permission.UPDATE_PAYMENT_STATUS, Permission.EDIT_BOOKING)
        paid = parse_amount(payment_amount, "Payment amount")
        if paid < 0:
            raise ValidationError("Payment amount must be >= 0.")

        bookings = self.repo.load_bookings()
        booking = next((b for b in bookings if b.id == booking_id), None)
        if booking is None:
            raise NotFoundError("Booking not found.")
        if not session.has_permission(Permission.EDIT_BOOKING) and booking.manager != actor.username:
            raise AuthorizationError("You can only update payments on your own bookings.")

        updated = replace(
            booking,
            payment_amount=paid,
            payment_status=payment_status_for(booking.selling_price, paid),
            due_amount=booking.selling_price - paid,
            last_updated=self._now_iso(),
        )
        self.repo.save_bookings([updated if b.id == booking_id else b for b in bookings])
        log.info("booking_payment_updated booking_id=%s paid=%.2f status=%s actor=%s", booking_id, paid, updated.payment_status.value, actor.username)
        return updated

    def visible_bookings(self, session) -> list[Booking]:
        """Admins see every booking; managers only the ones they sold."""
        actor = session.require(Permission.VIEW_ALL_BOOKINGS, Permission.VIEW_OWN_BOOKINGS)
        bookings = self.repo.load_bookings()
        if session.has_permission(Permission.VIEW_ALL_BOOKINGS):
            return bookings
        return [b for b in bookings if b.manager == actor.username]

    def filter(
        self,
        session,
        search_text: str = "",
        status_filter: str | None = None,
        date_filter: str | None = None,
    ) -> list[Booking]:
        return filter_bookings(self.visible_bookings(session), search_text, status_filter, date_filter)

    @staticmethod
    def payment_statuses() -> list[str]:
        return [s.value for s in PaymentStatus]
