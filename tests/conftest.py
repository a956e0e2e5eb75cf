"""Shared fixtures for cherry-hydrate tests."""

import os

os.environ.setdefault("CHERRY_API_SECRET", "test-secret")
os.environ.setdefault("CHERRY_TIMEZONE", "UTC")

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from cherry_hydrate.notify.dispatcher import DeliveryReport

UTC = ZoneInfo("UTC")


@pytest.fixture()
def data_dir(tmp_path, monkeypatch):
    """Redirect all data file paths to a temp directory."""
    import cherry_hydrate.notify.dispatcher as dispatcher_mod
    import cherry_hydrate.scheduling.store as store_mod
    import cherry_hydrate.storage as storage_mod
    import cherry_hydrate.users as users_mod

    state_dir = tmp_path / "state"
    monkeypatch.setattr(storage_mod, "DATA_DIR", tmp_path)
    monkeypatch.setattr(storage_mod, "STATE_DIR", state_dir)
    monkeypatch.setattr(store_mod, "REMINDERS_FILE", state_dir / "water_reminders.json")
    monkeypatch.setattr(users_mod, "USERS_FILE", tmp_path / "users.yaml")
    monkeypatch.setattr(dispatcher_mod, "DELIVERIES_FILE", state_dir / "deliveries.jsonl")
    return tmp_path


class FakeClock:
    """Virtual wall clock; tests move it forward by hand."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class RecordingDispatcher:
    def __init__(self) -> None:
        self.calls = []

    async def dispatch(self, user_id, event):
        self.calls.append((user_id, event))
        return DeliveryReport(
            user_id=user_id,
            timestamp=event.timestamp.isoformat(),
            reminder_count=event.reminder_count,
        )

    def counts(self, user_id=None):
        return [e.reminder_count for uid, e in self.calls if user_id in (None, uid)]


@pytest.fixture()
def clock():
    return FakeClock(datetime(2026, 3, 10, 9, 0, tzinfo=UTC))


@pytest.fixture()
def recorder():
    return RecordingDispatcher()
