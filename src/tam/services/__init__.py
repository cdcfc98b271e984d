from .auth_service import AuthService, Session
from .inventory_service import InventoryService
from .booking_service import BookingService
from .reporting_service import ReportingService
from .settings_service import SettingsService
from .excel_service import ExcelService

__all__ = [
    "AuthService",
    "Session",
    "InventoryService",
    "BookingService",
    "ReportingService",
    "SettingsService",
    "ExcelService",
]
