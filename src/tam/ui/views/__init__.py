from .bookings_view import BookingsView
from .new_booking_view import NewBookingView
from .tickets_view import TicketsView
from .reports_view import ReportsView
from .users_view import UsersView
from .settings_view import SettingsView
from .login_view import LoginView
from .dashboard_view import DashboardView

__all__ = [
    "BookingsView",
    "NewBookingView",
    "TicketsView",
    "ReportsView",
    "UsersView",
    "SettingsView",
    "LoginView",
    "DashboardView",
]
