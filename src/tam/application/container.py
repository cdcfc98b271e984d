from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from tam.repositories.sqlite_repo import SqliteRepository
from tam.repositories.unit_of_work import RepositoryUnitOfWork
from tam.services.auth_service import AuthService, Session
from tam.services.booking_service import BookingService
from tam.services.excel_service import ExcelService
from tam.services.inventory_service import InventoryService
from tam.services.reporting_service import ReportingService
from tam.services.settings_service import SettingsService
from tam.windowing.window_manager import WindowManager


@dataclass(frozen=True)
class AppContainer:
    repo: SqliteRepository
    session: Session
    auth: AuthService
    inventory: InventoryService
    bookings: BookingService
    reporting: ReportingService
    settings: SettingsService
    excel: ExcelService
    windows: WindowManager


def build_container(db_path: Path | str) -> AppContainer:
    repo = SqliteRepository(db_path)
    repo.init_db()

    session = Session()
    auth = AuthService(repo, session)
    auth.restore()

    inventory = InventoryService(repo)
    bookings = BookingService(repo, uow_factory=lambda: RepositoryUnitOfWork(repo))
    reporting = ReportingService(repo, bookings)
    settings = SettingsService(repo)
    excel = ExcelService(inventory)

    return AppContainer(
        repo=repo,
        session=session,
        auth=auth,
        inventory=inventory,
        bookings=bookings,
        reporting=reporting,
        settings=settings,
        excel=excel,
        windows=WindowManager(),
    )
