# tat_sentinel/tests/test_config.py
# CONFIGURATION AND LOGGING TESTS

import logging

from config import configure_logging, settings
from config.settings import Settings


def test_default_settings():
    assert settings.REPORTING_TIMEZONE == "UTC"
    assert settings.STAGE_TARGET_MAP == {
        "dispatch": 20, "collection": 60, "registration": 30, "processing": 240, "delivery": 40,
    }
    assert settings.EFFICIENCY.on_time_target_minutes == 240

def test_settings_read_prefixed_environment(monkeypatch):
    monkeypatch.setenv("TAT_DEFAULT_ROUTINE_TARGET_HOURS", "6")
    monkeypatch.setenv("TAT_REPORTING_TIMEZONE", "Africa/Nairobi")
    overridden = Settings()
    assert overridden.DEFAULT_ROUTINE_TARGET_HOURS == 6.0
    assert overridden.REPORTING_TIMEZONE == "Africa/Nairobi"

def test_configure_logging_applies_settings(monkeypatch):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    configure_logging()
    configure_logging("DEBUG")
    assert calls[0]["level"] == settings.LOG_LEVEL
    assert calls[0]["format"] == settings.LOG_FORMAT
    assert calls[0]["force"] is True
    assert calls[1]["level"] == "DEBUG"
