from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os
import sys

APP_NAME = "TravelAgencyManager"
DB_FILENAME = "agency.db"


@dataclass(frozen=True)
class AppPaths:
    base_dir: Path
    db_path: Path
    logs_dir: Path
    exports_dir: Path

    @classmethod
    def under(cls, base: Path) -> "AppPaths":
        return cls(
            base_dir=base,
            db_path=base / DB_FILENAME,
            logs_dir=base / "logs",
            exports_dir=base / "exports",
        )

    def ensure(self) -> "AppPaths":
        for d in (self.base_dir, self.logs_dir, self.exports_dir):
            d.mkdir(parents=True, exist_ok=True)
        return self


def platform_data_dir(app_name: str = APP_NAME) -> Path:
    """Per-user application directory for the running OS."""
    if sys.platform.startswith("win"):
        roaming = os.environ.get("APPDATA") or str(Path.home() / "AppData" / "Roaming")
        return Path(roaming) / app_name
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / app_name
    return Path.home() / f".{app_name.lower()}"


def get_app_paths(app_name: str = APP_NAME) -> AppPaths:
    return AppPaths.under(platform_data_dir(app_name)).ensure()
