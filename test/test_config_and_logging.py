import json
import logging
import sys
from pathlib import Path

from tam import config
from tam.config import AppPaths, get_app_paths
from tam.logging_config import JsonFormatter


def test_app_paths_layout(tmp_path: Path):
    paths = AppPaths.under(tmp_path / "tam").ensure()

    assert paths.db_path == tmp_path / "tam" / "agency.db"
    assert paths.logs_dir.is_dir()
    assert paths.exports_dir.is_dir()


def test_get_app_paths_uses_home_on_linux(monkeypatch, tmp_path: Path):
    monkeypatch.setattr(sys, "platform", "linux")
    monkeypatch.setattr(config.Path, "home", classmethod(lambda cls: tmp_path))

    paths = get_app_paths()

    assert paths.base_dir == tmp_path / ".travelagencymanager"
    assert paths.exports_dir.is_dir()


def test_json_formatter_emits_one_object_per_record():
    record = logging.LogRecord("tam.bookings", logging.INFO, __file__, 1, "booking_created id=%s", ("b1",), None)

    payload = json.loads(JsonFormatter().format(record))

    assert payload["logger"] == "tam.bookings"
    assert payload["level"] == "INFO"
    assert payload["message"] == "booking_created id=b1"
    assert "exception" not in payload
