from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Protocol

from tam.domain.models import Booking, InventoryTicket
from tam.repositories.sqlite_repo import KEY_BOOKINGS, KEY_TICKETS


class UnitOfWork(Protocol):
    def __enter__(self) -> "UnitOfWork": ...
    def __exit__(self, exc_type, exc, tb) -> None: ...
    def stage_tickets(self, tickets: Iterable[InventoryTicket]) -> None: ...
    def stage_bookings(self, bookings: Iterable[Booking]) -> None: ...


@dataclass
class RepositoryUnitOfWork:
    """Collects collection rewrites and persists them in a single transaction.

    Writes are only staged while the block runs. On a clean exit they are
    handed to ``repo.set_many`` together; if the block raises, nothing is
    written.
    """

    repo: object
    _staged: dict[str, object] = field(default_factory=dict)

    def __enter__(self) -> "RepositoryUnitOfWork":
        self._staged = {}
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        staged, self._staged = self._staged, {}
        if exc_type is None and staged:
            self.repo.set_many(staged)
        return None

    def stage_tickets(self, tickets: Iterable[InventoryTicket]) -> None:
        self._staged[KEY_TICKETS] = [t.to_dict() for t in tickets]

    def stage_bookings(self, bookings: Iterable[Booking]) -> None:
        self._staged[KEY_BOOKINGS] = [b.to_dict() for b in bookings]
