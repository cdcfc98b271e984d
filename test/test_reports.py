import csv
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path

import pytest
from openpyxl import load_workbook

from conftest import login, make_repo, purchase_ticket

from tam.domain.errors import AuthorizationError, ValidationError
from tam.services.auth_service import Session
from tam.services.booking_service import BookingService
from tam.services.inventory_service import InventoryService
from tam.services.reporting_service import ReportQuery, ReportingService, profit_margin, select_window


class Clock:
    def __init__(self, value: datetime):
        self.value = value

    def __call__(self) -> datetime:
        return self.value


def _setup(tmp_path: Path):
    repo = make_repo(tmp_path)
    clock = Clock(datetime(2025, 5, 14, 10, 0))
    inv = InventoryService(repo)
    bookings = BookingService(repo, clock=clock)
    reporting = ReportingService(repo, bookings)
    admin = login(repo, "admin")
    manager = login(repo, "manager1")
    return repo, clock, inv, bookings, reporting, admin, manager


def _seed(inv, bookings, clock, admin, manager):
    t1 = purchase_ticket(inv, admin, pnr="P1", airline="Emirates", purchase_price=10000, tax=0)
    t2 = purchase_ticket(inv, admin, pnr="P2", airline="Qatar", purchase_price=20000, tax=0)
    t3 = purchase_ticket(inv, admin, pnr="P3", airline="Emirates", purchase_price=5000, tax=0)

    clock.value = datetime(2025, 5, 14, 11, 0)
    bookings.create_from_ticket(t1.id, {"customer_name": "A", "mobile": "1"}, 13000, 13000, manager)
    clock.value = datetime(2025, 5, 14, 15, 0)
    bookings.create_from_ticket(t2.id, {"customer_name": "B", "mobile": "2"}, 24000, 10000, admin)
    clock.value = datetime(2025, 5, 2, 9, 0)
    bookings.create_from_ticket(t3.id, {"customer_name": "C", "mobile": "3"}, 6000, 0, manager)
    clock.value = datetime(2025, 4, 30, 18, 0)
    bookings.create_direct(
        {"customer_name": "D", "mobile": "4", "flight_date": "2025-06-01", "purchase_price": 1000, "selling_price": 1500},
        admin,
    )


def test_daily_report_with_no_bookings_is_all_zero(tmp_path: Path):
    _repo, _clock, _inv, _bookings, reporting, admin, _manager = _setup(tmp_path)

    summary = reporting.summary(admin, ReportQuery.daily(date(2025, 1, 1)))

    assert summary.total_bookings == 0
    assert summary.total_revenue == 0
    assert summary.total_profit == 0
    assert summary.average_profit == 0
    assert summary.profit_margin == 0


def test_profit_margin_formula():
    assert profit_margin(0, 0) == 0
    assert profit_margin(250, 1000) == 25
    assert profit_margin(-100, 400) == -25


def test_admin_daily_summary(tmp_path: Path):
    _repo, clock, inv, bookings, reporting, admin, manager = _setup(tmp_path)
    _seed(inv, bookings, clock, admin, manager)

    s = reporting.summary(admin, ReportQuery.daily(date(2025, 5, 14)))

    assert s.total_bookings == 2
    assert s.total_revenue == 37000
    assert s.total_profit == 7000
    assert (s.paid_bookings, s.partial_bookings, s.pending_bookings) == (1, 1, 0)
    assert s.average_profit == 3500
    assert s.total_purchase_cost == 35000
    assert s.profit_margin == pytest.approx(7000 / 37000 * 100)


def test_monthly_and_all_time_windows(tmp_path: Path):
    _repo, clock, inv, bookings, reporting, admin, manager = _setup(tmp_path)
    _seed(inv, bookings, clock, admin, manager)

    assert reporting.summary(admin, ReportQuery.monthly("2025-05")).total_bookings == 3
    assert reporting.summary(admin, ReportQuery.monthly("2025-04")).total_bookings == 1
    assert reporting.summary(admin, ReportQuery.all_time()).total_bookings == 4

    with pytest.raises(ValidationError, match="YYYY-MM"):
        ReportQuery.monthly("May 2025")


def test_manager_report_is_limited_to_own_bookings_and_hides_profit(tmp_path: Path):
    _repo, clock, inv, bookings, reporting, admin, manager = _setup(tmp_path)
    _seed(inv, bookings, clock, admin, manager)

    report = reporting.generate(manager, ReportQuery.all_time())

    assert {b.manager for b in report.bookings} == {"manager1"}
    assert report.summary.total_bookings == 2
    assert report.summary.total_revenue == 19000
    assert report.summary.total_profit == 0
    assert report.summary.total_purchase_cost == 0
    assert report.summary.profit_margin == 0
    assert report.managers == ()
    assert report.airlines == ()

    admin_report = reporting.generate(admin, ReportQuery.all_time())
    assert len(admin_report.bookings) == 4


def test_breakdowns_are_sorted_by_revenue(tmp_path: Path):
    _repo, clock, inv, bookings, reporting, admin, manager = _setup(tmp_path)
    _seed(inv, bookings, clock, admin, manager)

    managers = reporting.manager_performance(admin, ReportQuery.all_time())
    assert [(m.manager, m.bookings, m.revenue) for m in managers] == [("admin", 2, 25500), ("manager1", 2, 19000)]
    assert managers[1].average_ticket_value == 9500

    airlines = reporting.airline_report(admin, ReportQuery.all_time())
    assert [a.airline for a in airlines] == ["Qatar", "Emirates", "Unknown"]
    emirates = airlines[1]
    assert (emirates.bookings, emirates.revenue, emirates.profit) == (2, 19000, 4000)
    assert emirates.profit_margin == pytest.approx(4000 / 19000 * 100)


def test_reports_require_a_session():
    reporting = ReportingService(repo=None, booking_service=None)
    with pytest.raises(AuthorizationError):
        reporting.generate(Session(), ReportQuery.all_time())


def test_select_window_ignores_unparseable_timestamps(tmp_path: Path):
    repo, clock, inv, bookings, _reporting, admin, manager = _setup(tmp_path)
    _seed(inv, bookings, clock, admin, manager)
    rows = repo.load_bookings()
    broken = replace(rows[0], created_at="yesterday")

    assert select_window([broken], ReportQuery.daily(date(2025, 5, 14))) == []
    assert select_window([broken], ReportQuery.all_time()) == [broken]


def test_export_filename():
    assert ReportingService.export_filename(ReportQuery.daily(date(2025, 5, 14))) == "travel_report_daily_2025-05-14.csv"
    assert ReportingService.export_filename(ReportQuery.monthly("2025-05")) == "travel_report_monthly_2025-05.csv"
    assert ReportingService.export_filename(ReportQuery.all_time(), ext="xlsx") == "travel_report_all_all.xlsx"


def test_csv_columns_depend_on_role(tmp_path: Path):
    _repo, clock, inv, bookings, reporting, admin, manager = _setup(tmp_path)
    _seed(inv, bookings, clock, admin, manager)

    admin_path = tmp_path / "admin.csv"
    assert reporting.export_csv(admin_path, admin, ReportQuery.daily(date(2025, 5, 14))) == 2
    with open(admin_path, newline="", encoding="utf-8-sig") as fh:
        rows = list(csv.reader(fh))
    assert rows[0] == [
        "Customer", "Phone", "Airline", "Route", "Flight date", "Selling price",
        "Profit", "Payment status", "Manager", "Booking date",
    ]
    assert rows[1][0] == "A"
    assert rows[1][-1] == "2025-05-14"

    manager_path = tmp_path / "manager.csv"
    assert reporting.export_csv(manager_path, manager, ReportQuery.all_time()) == 2
    with open(manager_path, newline="", encoding="utf-8-sig") as fh:
        header = next(csv.reader(fh))
    assert "Profit" not in header
    assert "Manager" not in header


def test_csv_export_propagates_io_errors(tmp_path: Path):
    _repo, _clock, _inv, _bookings, reporting, admin, _manager = _setup(tmp_path)

    with pytest.raises(OSError):
        reporting.export_csv(tmp_path / "missing-dir" / "r.csv", admin, ReportQuery.all_time())


def test_excel_report_sheets(tmp_path: Path):
    _repo, clock, inv, bookings, reporting, admin, manager = _setup(tmp_path)
    _seed(inv, bookings, clock, admin, manager)

    admin_path = tmp_path / "admin.xlsx"
    reporting.export_report_excel(admin_path, admin, ReportQuery.all_time())
    wb = load_workbook(admin_path)
    assert wb.sheetnames == ["Summary", "Bookings", "By Manager", "By Airline"]
    assert wb["Bookings"].max_row == 5

    manager_path = tmp_path / "manager.xlsx"
    reporting.export_report_excel(manager_path, manager, ReportQuery.all_time())
    assert load_workbook(manager_path).sheetnames == ["Summary", "Bookings"]


def test_utc_suffixed_timestamps_fall_in_their_window(tmp_path: Path):
    repo, clock, inv, bookings, _reporting, admin, manager = _setup(tmp_path)
    _seed(inv, bookings, clock, admin, manager)
    rows = repo.load_bookings()
    utc = replace(rows[0], created_at="2025-05-14T11:00:00Z")

    assert select_window([utc], ReportQuery.daily(date(2025, 5, 14))) == [utc]
    assert select_window([utc], ReportQuery.monthly("2025-05")) == [utc]
