from pathlib import Path
from types import SimpleNamespace

import pytest

pytest.importorskip("tkinter")

from conftest import login, make_repo, purchase_ticket

from tam.domain.errors import AuthorizationError
from tam.domain.models import TicketStatus
from tam.services.booking_service import BookingService
from tam.services.inventory_service import InventoryService
from tam.ui import desktop as desktop_module
from tam.ui.views import new_booking_view, reports_view, tickets_view
from tam.windowing import Viewport, WindowManager


class FakeApp:
    def __init__(self, session=None, allow=True):
        self.session = session
        self.allow = allow
        self.errors = []
        self.toasts = []
        self.bound = []
        self.unbound = []
        self.refreshed = 0

    def can(self, *permissions):
        if self.session is not None:
            return any(self.session.has_permission(p) for p in permissions)
        return self.allow

    def handle_error(self, title, err, toast_text=None):
        self.errors.append((title, err))

    def toast(self, text, kind="info", ms=2200):
        self.toasts.append((text, kind))

    def refresh_all(self, show_toast=False):
        self.refreshed += 1

    def bind(self, sequence, func, add=None):
        funcid = f"{len(self.bound)}{sequence}"
        self.bound.append((sequence, funcid))
        return funcid

    def unbind(self, sequence, funcid=None):
        self.unbound.append((sequence, funcid))


class Var:
    def __init__(self, value=""):
        self.value = value

    def get(self):
        return self.value

    def set(self, value):
        self.value = value


def _no_dialog(*_a, **_k):
    raise AssertionError("file dialog must not open")


def _desktop(app) -> desktop_module.Desktop:
    desk = desktop_module.Desktop.__new__(desktop_module.Desktop)
    desk.app = app
    desk.windows = WindowManager(viewport=Viewport(1280, 800))
    desk._frames = {}
    desk._modules = {}
    desk._drag_funcids = None
    desk.render = lambda: None
    return desk


def _press(x=100, y=100):
    return SimpleNamespace(x_root=x, y_root=y)


def test_report_export_is_refused_before_dialog(monkeypatch):
    monkeypatch.setattr(reports_view.filedialog, "asksaveasfilename", _no_dialog)
    view = reports_view.ReportsView.__new__(reports_view.ReportsView)
    view.app = FakeApp(allow=False)

    view.export_csv()
    view.export_excel()

    assert [title for title, _ in view.app.errors] == ["Export error", "Export error"]
    assert all(isinstance(err, AuthorizationError) for _, err in view.app.errors)


def test_ticket_import_is_refused_for_managers(monkeypatch, tmp_path: Path):
    monkeypatch.setattr(tickets_view.filedialog, "askopenfilename", _no_dialog)
    repo = make_repo(tmp_path)
    view = tickets_view.TicketsView.__new__(tickets_view.TicketsView)
    view.app = FakeApp(session=login(repo, "manager1"))

    view.import_excel()

    assert view.app.errors[0][0] == "Import error"
    assert isinstance(view.app.errors[0][1], AuthorizationError)
    assert view.app.refreshed == 0


def test_drag_binds_once_and_unbinds_once():
    app = FakeApp()
    desk = _desktop(app)
    desk.windows.open("bookings")
    desk.windows.open("reports")

    desk.on_title_press("bookings", _press())
    desk.on_title_press("reports", _press())

    assert [seq for seq, _ in app.bound] == list(desktop_module.DRAG_SEQUENCES)
    assert desk.windows.active_drag.window_id == "bookings"

    desk._on_drag_motion(_press(150, 120))
    assert (desk.windows.get("bookings").x, desk.windows.get("bookings").y) == (90, 60)

    desk._on_drag_release()
    desk._on_drag_release()

    assert app.unbound == app.bound
    assert desk.windows.active_drag is None


def test_closing_dragged_window_releases_pointer_capture():
    app = FakeApp()
    desk = _desktop(app)
    desk.windows.open("bookings")
    desk.on_title_press("bookings", _press())

    desk.close("bookings")

    assert app.unbound == app.bound
    assert desk.windows.active_drag is None
    assert not desk.windows.is_open("bookings")

    desk.teardown()
    assert len(app.unbound) == 2


def test_declined_loss_cancels_booking(tmp_path: Path):
    repo = make_repo(tmp_path)
    admin = login(repo, "admin")
    inv = InventoryService(repo)
    ticket = purchase_ticket(inv, admin)

    view = new_booking_view.NewBookingView.__new__(new_booking_view.NewBookingView)
    view.app = FakeApp(session=admin)
    view.app.bookings = BookingService(repo)
    view.ticket_map = {"XYZ123": ticket.id}
    view.ticket_pick = Var("XYZ123")
    view.customer_name = Var("Karim")
    view.mobile = Var("017")
    view.passport = Var("")
    view.email = Var("")
    view.selling = Var("9000")
    view.paid = Var("0")
    view.method_var = Var("cash")
    view.notes = Var("")
    asked = []
    view.confirm_loss = lambda loss: asked.append(loss) or False

    view.on_create()

    assert asked == [1000]
    assert view.app.toasts == [("Booking cancelled.", "info")]
    assert view.app.errors == []
    assert repo.load_bookings() == []
    assert inv.get_ticket(ticket.id).status is TicketStatus.AVAILABLE
