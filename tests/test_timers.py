"""Tests for timers.py — one APScheduler job per user, generation tracking."""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from cherry_hydrate.scheduling.timers import TimerRegistry, job_id

UTC = ZoneInfo("UTC")
NOW = datetime(2026, 3, 10, 9, 0, tzinfo=UTC)


async def _noop(user_id, generation, interval):
    return None


def _paused_scheduler():
    aps = AsyncIOScheduler(timezone=UTC)
    aps.start(paused=True)
    return aps


@pytest.mark.asyncio
async def test_arm_creates_single_job():
    aps = _paused_scheduler()
    timers = TimerRegistry(aps)
    try:
        gen = timers.arm("u1", NOW + timedelta(minutes=5), 5, _noop)

        job = aps.get_job(job_id("u1"))
        assert job is not None
        assert tuple(job.args) == ("u1", gen, 5)
        assert timers.is_armed("u1")
        assert timers.next_fire_time("u1") == NOW + timedelta(minutes=5)
    finally:
        aps.shutdown(wait=False)


@pytest.mark.asyncio
async def test_rearm_replaces_job_and_bumps_generation():
    aps = _paused_scheduler()
    timers = TimerRegistry(aps)
    try:
        first = timers.arm("u1", NOW + timedelta(minutes=5), 5, _noop)
        second = timers.arm("u1", NOW + timedelta(minutes=10), 10, _noop)

        assert second > first
        assert not timers.is_current("u1", first)
        assert timers.is_current("u1", second)
        assert len([j for j in aps.get_jobs() if j.id == job_id("u1")]) == 1
        assert timers.next_fire_time("u1") == NOW + timedelta(minutes=10)
    finally:
        aps.shutdown(wait=False)


@pytest.mark.asyncio
async def test_disarm_removes_job():
    aps = _paused_scheduler()
    timers = TimerRegistry(aps)
    try:
        timers.arm("u1", NOW + timedelta(minutes=5), 5, _noop)

        assert timers.disarm("u1") is True
        assert aps.get_job(job_id("u1")) is None
        assert not timers.is_armed("u1")
        assert timers.disarm("u1") is False
    finally:
        aps.shutdown(wait=False)


@pytest.mark.asyncio
async def test_disarm_if_current_ignores_stale_generation():
    aps = _paused_scheduler()
    timers = TimerRegistry(aps)
    try:
        stale = timers.arm("u1", NOW + timedelta(minutes=5), 5, _noop)
        current = timers.arm("u1", NOW + timedelta(minutes=7), 7, _noop)

        assert timers.disarm_if_current("u1", stale) is False
        assert timers.is_armed("u1")
        assert timers.disarm_if_current("u1", current) is True
        assert not timers.is_armed("u1")
    finally:
        aps.shutdown(wait=False)


@pytest.mark.asyncio
async def test_users_are_independent_and_clear_drops_all():
    aps = _paused_scheduler()
    timers = TimerRegistry(aps)
    try:
        timers.arm("a", NOW + timedelta(minutes=1), 1, _noop)
        timers.arm("b", NOW + timedelta(minutes=2), 2, _noop)
        timers.disarm("a")

        assert timers.armed_users() == ["b"]

        timers.clear()
        assert timers.armed_users() == []
        assert aps.get_jobs() == []
    finally:
        aps.shutdown(wait=False)
