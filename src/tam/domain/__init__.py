from .models import (
    Booking,
    Identity,
    InventoryTicket,
    PaymentStatus,
    Permission,
    Role,
    TicketStatus,
)
from .errors import AuthorizationError, LossNotConfirmedError, NotFoundError, ValidationError

__all__ = [
    "Booking",
    "Identity",
    "InventoryTicket",
    "PaymentStatus",
    "Permission",
    "Role",
    "TicketStatus",
    "AuthorizationError",
    "LossNotConfirmedError",
    "NotFoundError",
    "ValidationError",
]
