"""Tests for re-arming persisted reminders on process start."""

import json
from dataclasses import replace
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

import cherry_hydrate.scheduling.store as store_mod
from cherry_hydrate.scheduling import bootstrap
from cherry_hydrate.scheduling.scheduler import ReminderScheduler
from cherry_hydrate.scheduling.state import PersistenceFailure, new_state
from cherry_hydrate.scheduling.store import find_state, upsert_state
from cherry_hydrate.scheduling.timers import TimerRegistry, job_id

UTC = ZoneInfo("UTC")
YESTERDAY = datetime(2026, 3, 9, 18, 0, tzinfo=UTC)


def _seed():
    upsert_state(new_state("a", 15, now=YESTERDAY))
    upsert_state(new_state("b", 60, now=YESTERDAY))
    upsert_state(new_state("c", 1440, now=YESTERDAY))
    upsert_state(replace(new_state("paused", 30, now=YESTERDAY), is_active=False))


@pytest.mark.asyncio
async def test_rehydrate_arms_one_timer_per_active_row(data_dir, clock, recorder):
    _seed()
    aps = AsyncIOScheduler(timezone=UTC)
    aps.start(paused=True)
    timers = TimerRegistry(aps)
    reminders = ReminderScheduler(timers, recorder, clock=clock)
    try:
        armed = await reminders.rehydrate()

        assert armed == 3
        assert timers.armed_users() == ["a", "b", "c"]
        for user_id, interval in (("a", 15), ("b", 60), ("c", 1440)):
            expected = clock.now + timedelta(minutes=interval)
            assert aps.get_job(job_id(user_id)).trigger.run_date == expected
            assert find_state(user_id).next_notification_time == expected
        assert aps.get_job(job_id("paused")) is None
        # Overdue schedules do not fire on restart
        await reminders.drain()
        assert recorder.calls == []
    finally:
        aps.shutdown(wait=False)


@pytest.mark.asyncio
async def test_rehydrate_arms_even_when_persisting_fails(data_dir, clock, recorder, monkeypatch):
    _seed()

    def failing_upsert(state):
        raise PersistenceFailure("read-only")

    monkeypatch.setattr(store_mod, "upsert_state", failing_upsert)
    aps = AsyncIOScheduler(timezone=UTC)
    aps.start(paused=True)
    timers = TimerRegistry(aps)
    reminders = ReminderScheduler(timers, recorder, clock=clock)
    try:
        assert await reminders.rehydrate() == 3
        assert timers.armed_users() == ["a", "b", "c"]
    finally:
        aps.shutdown(wait=False)


@pytest.mark.asyncio
async def test_rehydrate_with_unreadable_store_arms_nothing(data_dir, clock, recorder):
    store_mod.REMINDERS_FILE.parent.mkdir(parents=True, exist_ok=True)
    store_mod.REMINDERS_FILE.write_text("garbage")
    aps = AsyncIOScheduler(timezone=UTC)
    aps.start(paused=True)
    timers = TimerRegistry(aps)
    reminders = ReminderScheduler(timers, recorder, clock=clock)
    try:
        assert await reminders.rehydrate() == 0
        assert timers.armed_users() == []
    finally:
        aps.shutdown(wait=False)


@pytest.mark.asyncio
async def test_setup_scheduler_start_and_stop(data_dir):
    _seed()
    runtime = bootstrap.setup_scheduler()

    armed = await bootstrap.start(runtime)

    assert armed == 3
    assert runtime.aps.running
    assert runtime.timers.armed_users() == ["a", "b", "c"]
    assert {ch for ch in runtime.dispatcher.configured()} == {"socket", "push", "email", "sms"}

    await bootstrap.stop(runtime)

    assert runtime.timers.armed_users() == []
    # Stopping the process leaves persisted reminders active for the next start
    assert find_state("a").is_active is True


@pytest.mark.asyncio
async def test_rehydrate_skips_non_object_rows(data_dir, clock, recorder):
    _seed()
    data = json.loads(store_mod.REMINDERS_FILE.read_text())
    data["broken"] = ["x"]
    store_mod.REMINDERS_FILE.write_text(json.dumps(data))
    aps = AsyncIOScheduler(timezone=UTC)
    aps.start(paused=True)
    timers = TimerRegistry(aps)
    reminders = ReminderScheduler(timers, recorder, clock=clock)
    try:
        assert await reminders.rehydrate() == 3
        assert timers.armed_users() == ["a", "b", "c"]
    finally:
        aps.shutdown(wait=False)
