from __future__ import annotations
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Optional


class Role(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"


class Permission(str, Enum):
    VIEW_ALL_BOOKINGS = "view_all_bookings"
    VIEW_OWN_BOOKINGS = "view_own_bookings"
    CREATE_BOOKING = "create_booking"
    EDIT_BOOKING = "edit_booking"
    EDIT_OWN_BOOKING = "edit_own_booking"
    DELETE_BOOKING = "delete_booking"
    PURCHASE_TICKETS = "purchase_tickets"
    VIEW_PURCHASE_PRICE = "view_purchase_price"
    LOCK_TICKETS = "lock_tickets"
    VIEW_AVAILABLE_TICKETS = "view_available_tickets"
    UPDATE_PAYMENT_STATUS = "update_payment_status"
    VIEW_REPORTS = "view_reports"
    VIEW_PROFIT = "view_profit"
    MANAGE_USERS = "manage_users"
    EXPORT_DATA = "export_data"
    SYSTEM_SETTINGS = "system_settings"


class TicketStatus(str, Enum):
    AVAILABLE = "available"
    SOLD = "sold"
    LOCKED = "locked"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"


def payment_status_for(selling_price: float, payment_amount: float) -> PaymentStatus:
    paid = float(payment_amount or 0)
    if paid <= 0:
        return PaymentStatus.PENDING
    if paid >= float(selling_price or 0):
        return PaymentStatus.PAID
    return PaymentStatus.PARTIAL


def _opt_str(value) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _strict_bool(name: str, value) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"{_camel(name)} must be true or false.")
    return value


@dataclass(frozen=True)
class Identity:
    id: str
    username: str
    role: Role
    name: str
    email: Optional[str] = None
    created_at: str = ""
    last_login: Optional[str] = None
    is_active: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "role": self.role.value,
            "name": self.name,
            "email": self.email,
            "createdAt": self.created_at,
            "lastLogin": self.last_login,
            "isActive": self.is_active,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Identity":
        return cls(
            id=str(d["id"]),
            username=str(d["username"]),
            role=Role(d["role"]),
            name=str(d.get("name") or d["username"]),
            email=_opt_str(d.get("email")),
            created_at=str(d.get("createdAt") or ""),
            last_login=_opt_str(d.get("lastLogin")),
            is_active=bool(d.get("isActive", True)),
        )


@dataclass(frozen=True)
class InventoryTicket:
    id: str
    pnr: str
    airline: str
    route: str
    flight_date: str
    passengers: int
    purchase_price: float
    tax: float
    total_cost: float
    supplier: str
    supplier_contact: str
    notes: Optional[str]
    status: TicketStatus
    purchase_date: str
    purchased_by: str
    sold_to: Optional[str] = None
    sold_date: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "pnr": self.pnr,
            "airline": self.airline,
            "route": self.route,
            "flightDate": self.flight_date,
            "passengers": self.passengers,
            "purchasePrice": self.purchase_price,
            "tax": self.tax,
            "totalCost": self.total_cost,
            "supplier": self.supplier,
            "supplierContact": self.supplier_contact,
            "notes": self.notes,
            "status": self.status.value,
            "purchaseDate": self.purchase_date,
            "purchasedBy": self.purchased_by,
            "soldTo": self.sold_to,
            "soldDate": self.sold_date,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "InventoryTicket":
        price = float(d["purchasePrice"])
        tax = float(d.get("tax") or 0)
        return cls(
            id=str(d["id"]),
            pnr=str(d["pnr"]),
            airline=str(d["airline"]),
            route=str(d["route"]),
            flight_date=str(d["flightDate"]),
            passengers=int(d.get("passengers") or 1),
            purchase_price=price,
            tax=tax,
            total_cost=float(d.get("totalCost", price + tax)),
            supplier=str(d["supplier"]),
            supplier_contact=str(d.get("supplierContact") or ""),
            notes=_opt_str(d.get("notes")),
            status=TicketStatus(d.get("status", "available")),
            purchase_date=str(d.get("purchaseDate") or ""),
            purchased_by=str(d.get("purchasedBy") or ""),
            sold_to=_opt_str(d.get("soldTo")),
            sold_date=_opt_str(d.get("soldDate")),
        )


@dataclass(frozen=True)
class Booking:
    id: str
    customer_name: str
    mobile: str
    passport: Optional[str]
    email: Optional[str]
    route: str
    airline: str
    flight_date: str
    ticket_id: Optional[str]
    pnr: Optional[str]
    purchase_price: float
    selling_price: float
    payment_amount: float
    payment_method: str
    payment_status: PaymentStatus
    profit: float
    due_amount: float
    notes: Optional[str]
    created_at: str
    created_by: str
    manager: str
    last_updated: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customerName": self.customer_name,
            "mobile": self.mobile,
            "passport": self.passport,
            "email": self.email,
            "route": self.route,
            "airline": self.airline,
            "flightDate": self.flight_date,
            "ticketId": self.ticket_id,
            "pnr": self.pnr,
            "purchasePrice": self.purchase_price,
            "sellingPrice": self.selling_price,
            "paymentAmount": self.payment_amount,
            "paymentMethod": self.payment_method,
            "paymentStatus": self.payment_status.value,
            "profit": self.profit,
            "dueAmount": self.due_amount,
            "notes": self.notes,
            "createdAt": self.created_at,
            "createdBy": self.created_by,
            "manager": self.manager,
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Booking":
        selling = float(d.get("sellingPrice") or 0)
        purchase = float(d.get("purchasePrice") or 0)
        paid = float(d.get("paymentAmount") or 0)
        status = d.get("paymentStatus")
        return cls(
            id=str(d["id"]),
            customer_name=str(d["customerName"]),
            mobile=str(d.get("mobile") or ""),
            passport=_opt_str(d.get("passport")),
            email=_opt_str(d.get("email")),
            route=str(d.get("route") or ""),
            airline=str(d.get("airline") or ""),
            flight_date=str(d.get("flightDate") or ""),
            ticket_id=_opt_str(d.get("ticketId")),
            pnr=_opt_str(d.get("pnr")),
            purchase_price=purchase,
            selling_price=selling,
            payment_amount=paid,
            payment_method=str(d.get("paymentMethod") or "cash"),
            payment_status=PaymentStatus(status) if status else payment_status_for(selling, paid),
            profit=float(d.get("profit", selling - purchase)),
            due_amount=float(d.get("dueAmount", selling - paid)),
            notes=_opt_str(d.get("notes")),
            created_at=str(d["createdAt"]),
            created_by=str(d.get("createdBy") or ""),
            manager=str(d.get("manager") or d.get("createdBy") or ""),
            last_updated=str(d.get("lastUpdated") or d["createdAt"]),
        )


class _SettingsSection:
    """camelCase (de)serialization shared by the settings dataclasses."""

    def to_dict(self) -> dict:
        return {_camel(f.name): getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, d: dict):
        if not isinstance(d, dict):
            raise TypeError(f"{cls.__name__} expects an object, got {type(d).__name__}")
        kwargs = {}
        for f in fields(cls):
            key = _camel(f.name)
            if key in d:
                kwargs[f.name] = cls._coerce(f.name, d[key])
        return cls(**kwargs)

    @classmethod
    def _coerce(cls, name: str, value):
        return value


@dataclass(frozen=True)
class CompanySettings(_SettingsSection):
    company_name: str = ""
    company_name_local: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    website: str = ""
    trade_license: str = ""
    tax_number: str = ""
    default_currency: str = "BDT"
    currency_symbol: str = "৳"
    timezone: str = "Asia/Dhaka"
    language: str = "bn"
    date_format: str = "DD/MM/YYYY"
    logo: str = ""

    @classmethod
    def _coerce(cls, name: str, value):
        return "" if value is None else str(value)


@dataclass(frozen=True)
class NotificationSettings(_SettingsSection):
    email_notifications: bool = True
    sms_notifications: bool = True
    booking_alerts: bool = True
    payment_alerts: bool = True
    low_stock_alerts: bool = True

    @classmethod
    def _coerce(cls, name: str, value):
        return _strict_bool(name, value)


@dataclass(frozen=True)
class SecuritySettings(_SettingsSection):
    password_expiry: int = 90
    session_timeout: int = 30
    two_factor_auth: bool = False
    login_attempts: int = 5
    ip_restriction: bool = False
    allowed_ips: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["allowedIPs"] = list(self.allowed_ips)
        d.pop("allowedIps", None)
        return d

    @classmethod
    def from_dict(cls, d: dict):
        if isinstance(d, dict) and "allowedIPs" in d:
            d = {**d, "allowedIps": d["allowedIPs"]}
        return super().from_dict(d)

    @classmethod
    def _coerce(cls, name: str, value):
        if name == "allowed_ips":
            if not isinstance(value, (list, tuple)):
                raise TypeError("allowedIPs must be a list.")
            return tuple(str(v) for v in value)
        if name in ("two_factor_auth", "ip_restriction"):
            return _strict_bool(name, value)
        number = int(value)
        if number < 0:
            raise ValueError(f"{_camel(name)} must be >= 0.")
        return number


@dataclass(frozen=True)
class SystemSettings:
    company: CompanySettings = field(default_factory=CompanySettings)
    notifications: NotificationSettings = field(default_factory=NotificationSettings)
    security: SecuritySettings = field(default_factory=SecuritySettings)
