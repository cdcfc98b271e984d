import json
from datetime import datetime
from pathlib import Path

import pytest

from conftest import login, make_repo

from tam.domain.errors import AuthorizationError, ValidationError
from tam.domain.models import CompanySettings, SecuritySettings, SystemSettings
from tam.services.settings_service import SettingsService


def _service(tmp_path: Path):
    repo = make_repo(tmp_path)
    return repo, SettingsService(repo, clock=lambda: datetime(2025, 6, 1, 12, 30))


def test_defaults_when_nothing_saved(tmp_path: Path):
    _repo, settings = _service(tmp_path)

    loaded = settings.load()

    assert loaded == SystemSettings()
    assert loaded.company.default_currency == "BDT"
    assert loaded.security.login_attempts == 5


def test_only_admin_can_save(tmp_path: Path):
    repo, settings = _service(tmp_path)
    updated = SystemSettings(company=CompanySettings(company_name="Sky Tours"))

    with pytest.raises(AuthorizationError):
        settings.save(updated, login(repo, "manager1"))

    settings.save(updated, login(repo, "admin"))
    assert settings.load().company.company_name == "Sky Tours"


def test_security_settings_use_allowed_ips_key():
    section = SecuritySettings(ip_restriction=True, allowed_ips=("10.0.0.1",))

    data = section.to_dict()

    assert data["allowedIPs"] == ["10.0.0.1"]
    assert "allowedIps" not in data
    assert SecuritySettings.from_dict(data) == section


def test_export_then_import(tmp_path: Path):
    repo, settings = _service(tmp_path)
    admin = login(repo, "admin")
    settings.save(SystemSettings(company=CompanySettings(company_name="Sky Tours")), admin)

    path = settings.export_json(tmp_path / "exports", admin)

    assert path.name == "system-settings-2025-06-01.json"
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["company"]["companyName"] == "Sky Tours"
    assert payload["exportDate"] == "2025-06-01T12:30:00"

    other_repo = make_repo(tmp_path, "other.db")
    imported = SettingsService(other_repo).import_json(path, login(other_repo, "admin"))
    assert imported.company.company_name == "Sky Tours"
    assert SettingsService(other_repo).load() == imported


def test_invalid_import_is_rejected(tmp_path: Path):
    repo, settings = _service(tmp_path)
    admin = login(repo, "admin")

    bad_json = tmp_path / "bad.json"
    bad_json.write_text("{oops", encoding="utf-8")
    with pytest.raises(ValidationError, match="not valid JSON"):
        settings.import_json(bad_json, admin)

    not_object = tmp_path / "list.json"
    not_object.write_text("[]", encoding="utf-8")
    with pytest.raises(ValidationError, match="JSON object"):
        settings.import_json(not_object, admin)

    bad_value = tmp_path / "value.json"
    bad_value.write_text(json.dumps({"security": {"loginAttempts": -1}}), encoding="utf-8")
    with pytest.raises(ValidationError, match="Invalid settings file"):
        settings.import_json(bad_value, admin)

    assert settings.load() == SystemSettings()


def test_export_requires_admin(tmp_path: Path):
    repo, settings = _service(tmp_path)

    with pytest.raises(AuthorizationError):
        settings.export_json(tmp_path / "exports", login(repo, "manager1"))
    assert not (tmp_path / "exports").exists()


def test_boolean_flags_must_be_real_booleans(tmp_path: Path):
    repo, settings = _service(tmp_path)
    admin = login(repo, "admin")

    for section in ({"notifications": {"smsNotifications": "false"}}, {"security": {"twoFactorAuth": 1}}):
        path = tmp_path / "flags.json"
        path.write_text(json.dumps(section), encoding="utf-8")
        with pytest.raises(ValidationError, match="true or false"):
            settings.import_json(path, admin)

    assert settings.load() == SystemSettings()
