"""Recurring water reminders: per-user timers, firing, and re-arming.

Every public operation and every firing for one user runs under that user's
asyncio.Lock, so their read-modify-persist-rearm sequences never interleave.
State is persisted before the timer registry is touched; leaving the Active
state disarms before the operation returns.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from typing import TYPE_CHECKING

from cherry_hydrate.config import TZ
from cherry_hydrate.notify.base import ReminderEvent
from cherry_hydrate.scheduling import store
from cherry_hydrate.scheduling.state import (
    NotFound,
    PersistenceFailure,
    ReminderState,
    ReminderStatus,
    minutes_after,
    new_state,
    rearmed,
    record_firing,
    reset_if_new_day,
    validate_interval,
)
from cherry_hydrate.scheduling.timers import TimerRegistry

if TYPE_CHECKING:
    from cherry_hydrate.notify.dispatcher import NotificationDispatcher

log = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _now() -> datetime:
    return datetime.now(TZ)


class ReminderScheduler:
    def __init__(
        self,
        timers: TimerRegistry,
        dispatcher: NotificationDispatcher,
        *,
        clock: Clock = _now,
    ) -> None:
        self._timers = timers
        self._dispatcher = dispatcher
        self._clock = clock
        # An entry lives only while some operation holds or awaits the lock
        self._user_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )
        self._dispatches: set[asyncio.Task[None]] = set()

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._user_locks.get(user_id)
        if lock is None:
            lock = self._user_locks[user_id] = asyncio.Lock()
        return lock

    def _arm(self, state: ReminderState) -> None:
        assert state.next_notification_time is not None
        self._timers.arm(
            state.user_id,
            state.next_notification_time,
            state.interval_minutes,
            self._fire,
        )

    # --- public operations ---

    async def set(self, user_id: str, interval_minutes: int) -> ReminderStatus:
        """Create or update the reminder, force it active and (re)arm it."""
        interval = validate_interval(interval_minutes)
        async with self._lock_for(user_id):
            now = self._clock()
            state = store.find_state(user_id)
            if state is None:
                state = new_state(user_id, interval, now=now)
            else:
                state = reset_if_new_day(state, now.date())
                state = rearmed(replace(state, interval_minutes=interval, is_active=True), now)
            store.upsert_state(state)
            self._arm(state)
        log.info("Water reminder set for %s every %d min", user_id, interval)
        return ReminderStatus.of(state, now)

    async def toggle(self, user_id: str) -> ReminderStatus:
        """Pause an active reminder or resume a paused one."""
        async with self._lock_for(user_id):
            now = self._clock()
            state = store.find_state(user_id)
            if state is None:
                raise NotFound(user_id)
            if state.is_active:
                state = replace(state, is_active=False)
                store.upsert_state(state)
                self._timers.disarm(user_id)
            else:
                state = reset_if_new_day(state, now.date())
                state = rearmed(replace(state, is_active=True), now)
                store.upsert_state(state)
                self._arm(state)
        log.info(
            "Water reminder %s for %s", "resumed" if state.is_active else "paused", user_id
        )
        return ReminderStatus.of(state, now)

    async def remove(self, user_id: str) -> None:
        """Delete the reminder and cancel its timer. Raises NotFound if absent."""
        async with self._lock_for(user_id):
            if not store.delete_state(user_id):
                raise NotFound(user_id)
            self._timers.disarm(user_id)
        log.info("Water reminder removed for %s", user_id)

    async def record_manual_drink(self, user_id: str) -> ReminderStatus | None:
        """Push the next reminder a full interval out. None if no reminder exists."""
        async with self._lock_for(user_id):
            now = self._clock()
            state = store.find_state(user_id)
            if state is None:
                return None
            state = rearmed(reset_if_new_day(state, now.date()), now)
            store.upsert_state(state)
            if state.is_active:
                self._arm(state)
        log.info("Manual drink logged for %s; timer reset", user_id)
        return ReminderStatus.of(state, now)

    async def status(self, user_id: str) -> ReminderStatus | None:
        now = self._clock()
        state = store.find_state(user_id)
        if state is None:
            return None
        # Show the counter as today's value without writing the reset back
        return ReminderStatus.of(reset_if_new_day(state, now.date()), now)

    # --- timers ---

    async def _fire(self, user_id: str, generation: int, interval_minutes: int) -> None:
        async with self._lock_for(user_id):
            if not self._timers.is_current(user_id, generation):
                log.debug("Dropping stale firing for %s (gen %d)", user_id, generation)
                return
            now = self._clock()
            try:
                state = store.find_state(user_id)
                if state is None or not state.is_active:
                    self._timers.disarm_if_current(user_id, generation)
                    return
                state = record_firing(state, now)
                store.upsert_state(state)
            except Exception:
                # The DateTrigger job is spent, so every failure path must rearm
                log.exception("Water reminder for %s: could not record firing, rearming", user_id)
                self._timers.arm(
                    user_id,
                    minutes_after(now, interval_minutes),
                    interval_minutes,
                    self._fire,
                )
                return

            self._spawn_dispatch(state)
            self._arm(state)

    def _spawn_dispatch(self, state: ReminderState) -> None:
        assert state.last_notification_sent is not None
        event = ReminderEvent(
            reminder_count=state.total_reminders_today,
            timestamp=state.last_notification_sent,
        )
        task = asyncio.create_task(self._dispatcher.dispatch(state.user_id, event))
        self._dispatches.add(task)
        task.add_done_callback(self._dispatches.discard)
        task.add_done_callback(_log_dispatch_error)

    async def drain(self) -> None:
        """Wait for in-flight dispatches. Used on shutdown and in tests."""
        while self._dispatches:
            await asyncio.gather(*list(self._dispatches), return_exceptions=True)

    # --- bootstrap ---

    async def rehydrate(self) -> int:
        """Arm a timer for every persisted active reminder, starting from now.

        No catch-up: a reminder that came due while the process was down
        fires one full interval after this call, not immediately.
        """
        try:
            active = store.list_active_states()
        except PersistenceFailure:
            log.exception("Could not load water reminders; none armed")
            return 0

        for state in active:
            async with self._lock_for(state.user_id):
                state = rearmed(state, self._clock())
                try:
                    store.upsert_state(state)
                except PersistenceFailure:
                    log.exception("Could not persist rearm for %s", state.user_id)
                self._arm(state)
        log.info("Initialized %d water reminders", len(active))
        return len(active)

    def shutdown(self) -> None:
        self._timers.clear()


def _log_dispatch_error(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        log.error("Water reminder dispatch failed", exc_info=exc)
