from __future__ import annotations

import csv
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
import logging
from pathlib import Path
from typing import Iterable, Optional

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from tam.domain.errors import ValidationError
from tam.domain.models import Booking, PaymentStatus, Permission

log = logging.getLogger(__name__)


class ReportType(str, Enum):
    DAILY = "daily"
    MONTHLY = "monthly"
    ALL = "all"


@dataclass(frozen=True)
class ReportQuery:
    report_type: ReportType = ReportType.DAILY
    day: Optional[date] = None
    month: Optional[str] = None  # "YYYY-MM"

    @classmethod
    def daily(cls, day: date) -> "ReportQuery":
        return cls(ReportType.DAILY, day=day)

    @classmethod
    def monthly(cls, month: str) -> "ReportQuery":
        try:
            datetime.strptime(month, "%Y-%m")
        except (TypeError, ValueError):
            raise ValidationError("Month must look like YYYY-MM.") from None
        return cls(ReportType.MONTHLY, month=month)

    @classmethod
    def all_time(cls) -> "ReportQuery":
        return cls(ReportType.ALL)

    @property
    def label(self) -> str:
        if self.report_type is ReportType.DAILY:
            return (self.day or date.today()).isoformat()
        if self.report_type is ReportType.MONTHLY:
            return self.month or date.today().strftime("%Y-%m")
        return "all"


@dataclass(frozen=True)
class ReportSummary:
    total_bookings: int
    total_revenue: float
    total_profit: float
    paid_bookings: int
    partial_bookings: int
    pending_bookings: int
    average_profit: float
    total_purchase_cost: float
    profit_margin: float


@dataclass(frozen=True)
class ManagerPerformance:
    manager: str
    bookings: int
    revenue: float
    profit: float
    average_ticket_value: float


@dataclass(frozen=True)
class AirlineReport:
    airline: str
    bookings: int
    revenue: float
    profit: float
    profit_margin: float


@dataclass(frozen=True)
class Report:
    query: ReportQuery
    bookings: tuple[Booking, ...]
    summary: ReportSummary
    managers: tuple[ManagerPerformance, ...]
    airlines: tuple[AirlineReport, ...]


def profit_margin(profit: float, revenue: float) -> float:
    return (profit / revenue) * 100 if revenue > 0 else 0.0


def _created_on(b: Booking) -> Optional[date]:
    stamp = b.created_at
    if stamp.endswith("Z"):
        stamp = stamp[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(stamp).date()
    except ValueError:
        return None


def select_window(bookings: Iterable[Booking], query: ReportQuery) -> list[Booking]:
    if query.report_type is ReportType.ALL:
        return list(bookings)
    if query.report_type is ReportType.DAILY:
        day = query.day or date.today()
        return [b for b in bookings if _created_on(b) == day]
    month = query.month or date.today().strftime("%Y-%m")
    out = []
    for b in bookings:
        created = _created_on(b)
        if created is not None and created.strftime("%Y-%m") == month:
            out.append(b)
    return out


def _group(bookings: Iterable[Booking], key) -> dict[str, list[Booking]]:
    groups: dict[str, list[Booking]] = {}
    for b in bookings:
        groups.setdefault(key(b) or "Unknown", []).append(b)
    return groups


class ReportingService:
    def __init__(self, repo, booking_service):
        self.repo = repo
        self.bookings = booking_service

    def bookings_for(self, session, query: ReportQuery) -> list[Booking]:
        return select_window(self.bookings.visible_bookings(session), query)

    def summary(self, session, query: ReportQuery) -> ReportSummary:
        session.require(Permission.VIEW_REPORTS)
        return self._summary(session, self.bookings_for(session, query))

    def _summary(self, session, rows: list[Booking]) -> ReportSummary:
        show_profit = session.has_permission(Permission.VIEW_PROFIT)
        show_cost = session.has_permission(Permission.VIEW_PURCHASE_PRICE)

        total = len(rows)
        revenue = sum(b.selling_price for b in rows)
        profit = sum(b.profit for b in rows) if show_profit else 0.0
        by_status = {s: 0 for s in PaymentStatus}
        for b in rows:
            by_status[b.payment_status] += 1
        purchase_cost = sum(t.purchase_price for t in self.repo.load_tickets()) if show_cost else 0.0

        return ReportSummary(
            total_bookings=total,
            total_revenue=revenue,
            total_profit=profit,
            paid_bookings=by_status[PaymentStatus.PAID],
            partial_bookings=by_status[PaymentStatus.PARTIAL],
            pending_bookings=by_status[PaymentStatus.PENDING],
            average_profit=profit / total if total > 0 else 0.0,
            total_purchase_cost=purchase_cost,
            profit_margin=profit_margin(profit, revenue),
        )

    def manager_performance(self, session, query: ReportQuery) -> list[ManagerPerformance]:
        session.require(Permission.VIEW_REPORTS)
        return self._manager_performance(session, self.bookings_for(session, query))

    def _manager_performance(self, session, rows: list[Booking]) -> list[ManagerPerformance]:
        if not session.has_permission(Permission.VIEW_PROFIT):
            return []
        out = []
        for manager, group in _group(rows, lambda b: b.manager).items():
            revenue = sum(b.selling_price for b in group)
            out.append(ManagerPerformance(
                manager=manager,
                bookings=len(group),
                revenue=revenue,
                profit=sum(b.profit for b in group),
                average_ticket_value=revenue / len(group),
            ))
        return sorted(out, key=lambda m: m.revenue, reverse=True)

    def airline_report(self, session, query: ReportQuery) -> list[AirlineReport]:
        session.require(Permission.VIEW_REPORTS)
        return self._airline_report(session, self.bookings_for(session, query))

    def _airline_report(self, session, rows: list[Booking]) -> list[AirlineReport]:
        if not session.has_permission(Permission.VIEW_PROFIT):
            return []
        out = []
        for airline, group in _group(rows, lambda b: b.airline).items():
            revenue = sum(b.selling_price for b in group)
            profit = sum(b.profit for b in group)
            out.append(AirlineReport(
                airline=airline,
                bookings=len(group),
                revenue=revenue,
                profit=profit,
                profit_margin=profit_margin(profit, revenue),
            ))
        return sorted(out, key=lambda a: a.revenue, reverse=True)

    def generate(self, session, query: ReportQuery) -> Report:
        session.require(Permission.VIEW_REPORTS)
        rows = self.bookings_for(session, query)
        return Report(
            query=query,
            bookings=tuple(rows),
            summary=self._summary(session, rows),
            managers=tuple(self._manager_performance(session, rows)),
            airlines=tuple(self._airline_report(session, rows)),
        )

    # ---------- export ----------
    @staticmethod
    def export_filename(query: ReportQuery, ext: str = "csv") -> str:
        return f"travel_report_{query.report_type.value}_{query.label}.{ext}"

    @staticmethod
    def _columns(session) -> list[tuple[str, callable]]:
        cols = [
            ("Customer", lambda b: b.customer_name),
            ("Phone", lambda b: b.mobile),
            ("Airline", lambda b: b.airline),
            ("Route", lambda b: b.route),
            ("Flight date", lambda b: b.flight_date),
            ("Selling price", lambda b: b.selling_price),
        ]
        if session.has_permission(Permission.VIEW_PROFIT):
            cols.append(("Profit", lambda b: b.profit))
        cols.append(("Payment status", lambda b: b.payment_status.value))
        if session.has_permission(Permission.VIEW_PROFIT):
            cols.append(("Manager", lambda b: b.manager))
        cols.append(("Booking date", lambda b: b.created_at[:10]))
        return cols

    def export_csv(self, path: Path | str, session, query: ReportQuery) -> int:
        session.require(Permission.EXPORT_DATA, Permission.VIEW_REPORTS)
        rows = self.bookings_for(session, query)
        cols = self._columns(session)

        with open(path, "w", newline="", encoding="utf-8-sig") as fh:
            writer = csv.writer(fh)
            writer.writerow([name for name, _ in cols])
            for b in rows:
                writer.writerow([getter(b) for _, getter in cols])

        log.info("report_exported format=csv type=%s window=%s rows=%s actor=%s", query.report_type.value, query.label, len(rows), session.username)
        return len(rows)

    def export_report_excel(self, path: Path | str, session, query: ReportQuery) -> None:
        session.require(Permission.EXPORT_DATA, Permission.VIEW_REPORTS)
        report = self.generate(session, query)
        wb = Workbook()

        def money(cell):
            cell.number_format = "#,##0.00"

        def pct(cell):
            cell.number_format = "0.00"

        def bold_row(ws, r):
            for c in ws[r]:
                c.font = Font(bold=True)

        def set_widths(ws, widths: dict[str, int]):
            for col, w in widths.items():
                ws.column_dimensions[col].width = w

        def add_table(ws, name: str, start_row: int, start_col: int, end_row: int, end_col: int):
            ref = f"{get_column_letter(start_col)}{start_row}:{get_column_letter(end_col)}{end_row}"
            tab = Table(displayName=name, ref=ref)
            tab.tableStyleInfo = TableStyleInfo(
                name="TableStyleMedium9",
                showRowStripes=True,
                showColumnStripes=False,
            )
            ws.add_table(tab)

        s = report.summary

        # -------- 1) Summary --------
        ws = wb.active
        ws.title = "Summary"
        ws["A1"] = "Travel report"
        ws["A1"].font = Font(bold=True, size=14)

        ws["A3"] = "Window"
        ws["B3"] = f"{query.report_type.value}: {query.label}"

        summary_rows = [
            ("Bookings", s.total_bookings, "int"),
            ("Revenue", s.total_revenue, "money"),
            ("Paid", s.paid_bookings, "int"),
            ("Partial", s.partial_bookings, "int"),
            ("Pending", s.pending_bookings, "int"),
        ]
        if session.has_permission(Permission.VIEW_PROFIT):
            summary_rows += [
                ("Profit", s.total_profit, "money"),
                ("Average profit", s.average_profit, "money"),
                ("Profit margin %", s.profit_margin, "pct"),
                ("Inventory purchase cost", s.total_purchase_cost, "money"),
            ]

        for i, (label, val, kind) in enumerate(summary_rows):
            r = 5 + i
            ws[f"A{r}"] = label
            ws[f"B{r}"] = val
            if kind == "money":
                money(ws[f"B{r}"])
            elif kind == "pct":
                pct(ws[f"B{r}"])
        set_widths(ws, {"A": 28, "B": 28})

        # -------- 2) Bookings --------
        cols = self._columns(session)
        ws2 = wb.create_sheet("Bookings")
        ws2.append([name for name, _ in cols])
        bold_row(ws2, 1)
        for b in report.bookings:
            ws2.append([getter(b) for _, getter in cols])
        ws2.freeze_panes = "A2"
        for idx in range(1, len(cols) + 1):
            ws2.column_dimensions[get_column_letter(idx)].width = 18
        if ws2.max_row >= 2:
            add_table(ws2, "BookingsTable", 1, 1, ws2.max_row, len(cols))

        # -------- 3) Breakdowns (profit visibility only) --------
        if report.managers:
            ws3 = wb.create_sheet("By Manager")
            ws3.append(["Manager", "Bookings", "Revenue", "Profit", "Avg ticket value"])
            bold_row(ws3, 1)
            for m in report.managers:
                ws3.append([m.manager, m.bookings, m.revenue, m.profit, m.average_ticket_value])
                for col in "CDE":
                    money(ws3[f"{col}{ws3.max_row}"])
            set_widths(ws3, {"A": 22, "B": 10, "C": 16, "D": 16, "E": 18})
            add_table(ws3, "ByManager", 1, 1, ws3.max_row, 5)

        if report.airlines:
            ws4 = wb.create_sheet("By Airline")
            ws4.append(["Airline", "Bookings", "Revenue", "Profit", "Margin %"])
            bold_row(ws4, 1)
            for a in report.airlines:
                ws4.append([a.airline, a.bookings, a.revenue, a.profit, a.profit_margin])
                money(ws4[f"C{ws4.max_row}"])
                money(ws4[f"D{ws4.max_row}"])
                pct(ws4[f"E{ws4.max_row}"])
            set_widths(ws4, {"A": 28, "B": 10, "C": 16, "D": 16, "E": 12})
            add_table(ws4, "ByAirline", 1, 1, ws4.max_row, 5)

        wb.save(path)
        log.info("report_exported format=xlsx type=%s window=%s rows=%s actor=%s", query.report_type.value, query.label, len(report.bookings), session.username)
