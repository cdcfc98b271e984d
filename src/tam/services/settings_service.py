from __future__ import annotations

from datetime import datetime
import json
import logging
from pathlib import Path
from typing import Callable

from tam.domain.errors import ValidationError
from tam.domain.models import (
    CompanySettings,
    NotificationSettings,
    Permission,
    SecuritySettings,
    SystemSettings,
)
from tam.repositories.sqlite_repo import (
    KEY_COMPANY_SETTINGS,
    KEY_NOTIFICATION_SETTINGS,
    KEY_SECURITY_SETTINGS,
)

log = logging.getLogger(__name__)


class SettingsService:
    def __init__(self, repo, clock: Callable[[], datetime] | None = None):
        self.repo = repo
        self.clock = clock or datetime.now

    def load(self) -> SystemSettings:
        return SystemSettings(
            company=self.repo.load_settings(KEY_COMPANY_SETTINGS, CompanySettings.from_dict, CompanySettings()),
            notifications=self.repo.load_settings(
                KEY_NOTIFICATION_SETTINGS, NotificationSettings.from_dict, NotificationSettings()
            ),
            security=self.repo.load_settings(KEY_SECURITY_SETTINGS, SecuritySettings.from_dict, SecuritySettings()),
        )

    def save(self, settings: SystemSettings, session) -> None:
        actor = session.require(Permission.SYSTEM_SETTINGS)
        self.repo.set_many({
            KEY_COMPANY_SETTINGS: settings.company.to_dict(),
            KEY_NOTIFICATION_SETTINGS: settings.notifications.to_dict(),
            KEY_SECURITY_SETTINGS: settings.security.to_dict(),
        })
        log.info("settings_saved actor=%s", actor.username)

    def export_json(self, target_dir: Path | str, session) -> Path:
        actor = session.require(Permission.SYSTEM_SETTINGS)
        settings = self.load()
        now = self.clock()
        payload = {
            "company": settings.company.to_dict(),
            "notifications": settings.notifications.to_dict(),
            "security": settings.security.to_dict(),
            "exportDate": now.replace(microsecond=0).isoformat(),
        }
        target = Path(target_dir)
        target.mkdir(parents=True, exist_ok=True)
        path = target / f"system-settings-{now.strftime('%Y-%m-%d')}.json"
        path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        log.info("settings_exported path=%s actor=%s", path, actor.username)
        return path

    def import_json(self, path: Path | str, session) -> SystemSettings:
        """Load a file written by ``export_json``; missing sections keep their defaults."""
        session.require(Permission.SYSTEM_SETTINGS)
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except ValueError as e:
            raise ValidationError(f"Settings file is not valid JSON: {e}") from None
        if not isinstance(data, dict):
            raise ValidationError("Settings file must contain a JSON object.")

        try:
            settings = SystemSettings(
                company=CompanySettings.from_dict(data.get("company", {})),
                notifications=NotificationSettings.from_dict(data.get("notifications", {})),
                security=SecuritySettings.from_dict(data.get("security", {})),
            )
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid settings file: {e}") from None

        self.save(settings, session)
        log.info("settings_imported path=%s", path)
        return settings
