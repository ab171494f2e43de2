"""Pytest configuration and shared fixtures."""

import pytest

from chorecycle.core.config import settings
from chorecycle.services import notification_service


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    """Pin settings that affect timing and calendar math."""
    monkeypatch.setattr(settings, "household_timezone", "UTC")
    monkeypatch.setattr(settings, "spawn_retry_base_delay_seconds", 0.0)
    monkeypatch.setattr(settings, "spawn_max_attempts", 3)
    monkeypatch.setattr(settings, "reminder_hour", 9)
    monkeypatch.setattr(settings, "list_page_size", 100)
    monkeypatch.setattr(settings, "logfire_token", None)
    return settings


@pytest.fixture(autouse=True)
def no_notification_hooks():
    """Start and finish every test without registered hooks."""
    notification_service.clear_hooks()
    yield
    notification_service.clear_hooks()
