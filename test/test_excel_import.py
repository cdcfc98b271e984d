from datetime import date
from pathlib import Path

import pytest
from openpyxl import Workbook

from conftest import login, make_repo

from tam.domain.errors import AuthorizationError, ValidationError
from tam.services.excel_service import TICKET_IMPORT_HEADERS, ExcelService
from tam.services.inventory_service import InventoryService


def _workbook(path: Path, headers, rows) -> Path:
    wb = Workbook()
    ws = wb.active
    ws.append(list(headers))
    for row in rows:
        ws.append(list(row))
    wb.save(path)
    return path


def test_import_creates_tickets_and_counts_skipped_rows(tmp_path: Path):
    repo = make_repo(tmp_path)
    inv = InventoryService(repo)
    excel = ExcelService(inv)
    path = _workbook(
        tmp_path / "tickets.xlsx",
        TICKET_IMPORT_HEADERS,
        [
            ("EK0001", "Emirates", "DAC-DXB", date(2025, 7, 1), 2, 30000, 1500, "SkyTrade", "0171"),
            ("QR0002", "Qatar", "DAC-DOH", "2025-07-02", None, 25000.0, None, "Global", None),
            (None, None, None, None, None, None, None, None, None),
            ("BAD001", "Biman", "DAC-CXB", "2025-07-03", 1, "free", 0, "SkyTrade", ""),
            ("", "Biman", "DAC-CXB", "2025-07-03", 1, 5000, 0, "SkyTrade", ""),
        ],
    )

    ok, skipped = excel.import_tickets_excel(str(path), login(repo, "admin"))

    assert (ok, skipped) == (2, 2)
    tickets = {t.pnr: t for t in inv.list_tickets()}
    assert set(tickets) == {"EK0001", "QR0002"}
    assert tickets["EK0001"].flight_date == "2025-07-01"
    assert tickets["EK0001"].total_cost == 31500
    assert tickets["EK0001"].passengers == 2
    assert tickets["QR0002"].passengers == 1
    assert tickets["QR0002"].notes == "Excel import"


def test_missing_header_is_rejected(tmp_path: Path):
    repo = make_repo(tmp_path)
    excel = ExcelService(InventoryService(repo))
    headers = [h for h in TICKET_IMPORT_HEADERS if h != "supplier"]
    path = _workbook(tmp_path / "partial.xlsx", headers, [])

    with pytest.raises(ValidationError, match="Missing column header: supplier"):
        excel.import_tickets_excel(str(path), login(repo, "admin"))


def test_headers_are_case_insensitive(tmp_path: Path):
    repo = make_repo(tmp_path)
    inv = InventoryService(repo)
    path = _workbook(
        tmp_path / "upper.xlsx",
        [h.upper() for h in TICKET_IMPORT_HEADERS],
        [("SQ0003", "Singapore", "DAC-SIN", "2025-08-01", 1, 40000, 0, "SkyTrade", "")],
    )

    assert ExcelService(inv).import_tickets_excel(str(path), login(repo, "admin")) == (1, 0)


def test_manager_cannot_import(tmp_path: Path):
    repo = make_repo(tmp_path)
    inv = InventoryService(repo)
    path = _workbook(tmp_path / "tickets.xlsx", TICKET_IMPORT_HEADERS, [])

    with pytest.raises(AuthorizationError):
        ExcelService(inv).import_tickets_excel(str(path), login(repo, "manager1"))
    assert inv.list_tickets() == []
