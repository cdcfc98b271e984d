from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
import logging
from typing import Callable
import uuid

from tam.domain.errors import NotFoundError, ValidationError
from tam.domain.models import InventoryTicket, Permission, TicketStatus
from tam.services.validation import parse_amount

log = logging.getLogger(__name__)

SUGGESTED_MARKUP = 1.15

REQUIRED_PURCHASE_FIELDS = ("pnr", "airline", "route", "flight_date", "purchase_price", "supplier")


@dataclass(frozen=True)
class InventorySummary:
    total: int
    available: int
    sold: int
    locked: int
    total_cost: float


class InventoryService:
    def __init__(self, repo):
        self.repo = repo

    def list_tickets(self) -> list[InventoryTicket]:
        return self.repo.load_tickets()

    def get_ticket(self, ticket_id: str) -> InventoryTicket:
        for t in self.repo.load_tickets():
            if t.id == ticket_id:
                return t
        raise NotFoundError("Ticket not found.")

    def purchase(self, fields: dict, session) -> InventoryTicket:
        """
        fields: {pnr, airline, route, flight_date, purchase_price, supplier,
                 tax?, passengers?, supplier_contact?, notes?}
        """
        actor = session.require(Permission.PURCHASE_TICKETS)

        missing = [f for f in REQUIRED_PURCHASE_FIELDS if str(fields.get(f) or "").strip() == ""]
        if missing:
            raise ValidationError(f"Required fields missing: {', '.join(missing)}.")

        price = parse_amount(fields.get("purchase_price"), "Purchase price")
        tax = parse_amount(fields.get("tax"), "Tax", default=0.0)
        if price <= 0:
            raise ValidationError("Purchase price must be > 0.")
        if tax < 0:
            raise ValidationError("Tax must be >= 0.")
        raw_passengers = fields.get("passengers")
        try:
            if raw_passengers is None or str(raw_passengers).strip() == "":
                passengers = 1
            else:
                passengers = int(float(raw_passengers))
        except (TypeError, ValueError):
            raise ValidationError("Passengers must be an integer.") from None
        if passengers < 1:
            raise ValidationError("Passengers must be >= 1.")

        ticket = InventoryTicket(
            id=f"ticket_{uuid.uuid4().hex[:12]}",
            pnr=str(fields["pnr"]).strip(),
            airline=str(fields["airline"]).strip(),
            route=str(fields["route"]).strip(),
            flight_date=str(fields["flight_date"]).strip(),
            passengers=passengers,
            purchase_price=price,
            tax=tax,
            total_cost=price + tax,
            supplier=str(fields["supplier"]).strip(),
            supplier_contact=str(fields.get("supplier_contact") or "").strip(),
            notes=str(fields.get("notes") or "").strip() or None,
            status=TicketStatus.AVAILABLE,
            purchase_date=datetime.now().replace(microsecond=0).isoformat(),
            purchased_by=actor.username,
        )
        self.repo.save_tickets([*self.repo.load_tickets(), ticket])
        log.info("ticket_purchased ticket_id=%s pnr=%s total=%.2f actor=%s", ticket.id, ticket.pnr, ticket.total_cost, actor.username)
        return ticket

    def toggle_lock(self, ticket_id: str, session) -> InventoryTicket:
        actor = session.require(Permission.LOCK_TICKETS)
        tickets = self.repo.load_tickets()
        ticket = next((t for t in tickets if t.id == ticket_id), None)
        if ticket is None:
            raise NotFoundError("Ticket not found.")
        if ticket.status is TicketStatus.SOLD:
            raise ValidationError(f"Ticket {ticket.pnr} is sold and cannot be locked or unlocked.")

        new_status = TicketStatus.AVAILABLE if ticket.status is TicketStatus.LOCKED else TicketStatus.LOCKED
        updated = replace(ticket, status=new_status)
        self.repo.save_tickets([updated if t.id == ticket_id else t for t in tickets])
        log.info("ticket_lock_toggled ticket_id=%s status=%s actor=%s", ticket_id, new_status.value, actor.username)
        return updated

    def delete(self, ticket_id: str, session, confirm: Callable[[InventoryTicket], bool]) -> bool:
        actor = session.require(Permission.PURCHASE_TICKETS)
        tickets = self.repo.load_tickets()
        ticket = next((t for t in tickets if t.id == ticket_id), None)
        if ticket is None:
            raise NotFoundError("Ticket not found.")
        if not confirm(ticket):
            return False

        self.repo.save_tickets([t for t in tickets if t.id != ticket_id])
        log.info("ticket_deleted ticket_id=%s pnr=%s actor=%s", ticket_id, ticket.pnr, actor.username)
        return True

    def search(self, filter_text: str = "", status_filter: str | None = None) -> list[InventoryTicket]:
        term = (filter_text or "").strip().lower()
        out = []
        for t in self.repo.load_tickets():
            if term and not any(term in v.lower() for v in (t.pnr, t.airline, t.route, t.supplier)):
                continue
            if status_filter and status_filter != "all" and t.status.value != status_filter:
                continue
            out.append(t)
        return out

    def available(self, filter_text: str = "") -> list[InventoryTicket]:
        """Tickets that can be sold right now (booking form picker)."""
        term = (filter_text or "").strip().lower()
        return [
            t for t in self.repo.load_tickets()
            if t.status is TicketStatus.AVAILABLE
            and (not term or any(term in v.lower() for v in (t.pnr, t.airline, t.route)))
        ]

    @staticmethod
    def suggested_selling_price(ticket: InventoryTicket) -> float:
        return round(ticket.purchase_price * SUGGESTED_MARKUP, 2)

    def summary(self) -> InventorySummary:
        tickets = self.repo.load_tickets()
        by_status = {s: 0 for s in TicketStatus}
        for t in tickets:
            by_status[t.status] += 1
        return InventorySummary(
            total=len(tickets),
            available=by_status[TicketStatus.AVAILABLE],
            sold=by_status[TicketStatus.SOLD],
            locked=by_status[TicketStatus.LOCKED],
            total_cost=sum(t.total_cost for t in tickets),
        )
