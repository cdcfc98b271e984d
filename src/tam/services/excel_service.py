from __future__ import annotations

from datetime import date, datetime
import logging

from openpyxl import load_workbook

from tam.domain.errors import ValidationError
from tam.domain.models import Permission

log = logging.getLogger(__name__)

TICKET_IMPORT_HEADERS = (
    "pnr",
    "airline",
    "route",
    "flight_date",
    "passengers",
    "purchase_price",
    "tax",
    "supplier",
    "supplier_contact",
)


def _cell_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


class ExcelService:
    def __init__(self, inventory_service):
        self.inventory = inventory_service

    def import_tickets_excel(self, path: str, session) -> tuple[int, int]:
        """
        Bulk purchase of inventory tickets. One row per ticket.
        Headers:
          pnr | airline | route | flight_date | passengers | purchase_price | tax | supplier | supplier_contact
        """
        session.require(Permission.PURCHASE_TICKETS)

        wb = load_workbook(path)
        ws = wb.active

        headers = {}
        for col in range(1, ws.max_column + 1):
            v = ws.cell(row=1, column=col).value
            if isinstance(v, str):
                headers[v.strip().lower()] = col

        for r in TICKET_IMPORT_HEADERS:
            if r not in headers:
                raise ValidationError(f"Missing column header: {r}")

        ok = 0
        skipped = 0

        for row in range(2, ws.max_row + 1):
            fields = {
                name: ws.cell(row=row, column=headers[name]).value
                for name in TICKET_IMPORT_HEADERS
            }
            if all(v is None or _cell_text(v) == "" for v in fields.values()):
                continue

            try:
                ticket = self.inventory.purchase(
                    {
                        "pnr": _cell_text(fields["pnr"]),
                        "airline": _cell_text(fields["airline"]),
                        "route": _cell_text(fields["route"]),
                        "flight_date": _cell_text(fields["flight_date"]),
                        "passengers": fields["passengers"],
                        "purchase_price": fields["purchase_price"],
                        "tax": fields["tax"],
                        "supplier": _cell_text(fields["supplier"]),
                        "supplier_contact": _cell_text(fields["supplier_contact"]),
                        "notes": "Excel import",
                    },
                    session,
                )
                ok += 1
                log.debug("excel_row_imported row=%s ticket_id=%s", row, ticket.id)
            except (ValidationError, TypeError, ValueError) as e:
                log.warning("Excel import skipped row %s: %s", row, e)
                skipped += 1

        log.info("excel_import_done path=%s ok=%s skipped=%s actor=%s", path, ok, skipped, session.username)
        return ok, skipped
