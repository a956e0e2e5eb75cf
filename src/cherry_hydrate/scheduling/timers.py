"""Per-user timer registry on top of APScheduler.

Each armed user owns exactly one DateTrigger job (`water_<user_id>`) and a
generation number. Arming bumps the generation and replaces the job; the
callback receives the generation it was armed with, so a firing that was
already queued when its timer got replaced or cancelled can tell it is stale.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Awaitable, Callable
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

log = logging.getLogger(__name__)

FireCallback = Callable[[str, int, int], Awaitable[None]]


def job_id(user_id: str) -> str:
    return f"water_{user_id}"


class TimerRegistry:
    def __init__(self, scheduler: AsyncIOScheduler) -> None:
        self._scheduler = scheduler
        self._lock = threading.Lock()
        self._generations: dict[str, int] = {}
        self._counter = 0

    def arm(
        self,
        user_id: str,
        run_at: datetime,
        interval_minutes: int,
        callback: FireCallback,
    ) -> int:
        """Replace any pending timer for user_id with one firing at run_at."""
        with self._lock:
            self._counter += 1
            generation = self._counter
            self._generations[user_id] = generation
            self._remove_job(user_id)
            self._scheduler.add_job(
                callback,
                DateTrigger(run_date=run_at),
                args=[user_id, generation, interval_minutes],
                id=job_id(user_id),
                replace_existing=True,
                misfire_grace_time=None,
                coalesce=True,
            )
        log.debug("armed %s for %s (gen %d)", user_id, run_at.isoformat(), generation)
        return generation

    def disarm(self, user_id: str) -> bool:
        """Cancel the user's timer. Returns False when none was armed."""
        with self._lock:
            generation = self._generations.pop(user_id, None)
            self._remove_job(user_id)
        if generation is not None:
            log.debug("disarmed %s (gen %d)", user_id, generation)
        return generation is not None

    def disarm_if_current(self, user_id: str, generation: int) -> bool:
        """Disarm only if no newer timer replaced the one with `generation`."""
        with self._lock:
            if self._generations.get(user_id) != generation:
                return False
            del self._generations[user_id]
            self._remove_job(user_id)
        return True

    def is_current(self, user_id: str, generation: int) -> bool:
        with self._lock:
            return self._generations.get(user_id) == generation

    def is_armed(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._generations

    def armed_users(self) -> list[str]:
        with self._lock:
            return sorted(self._generations)

    def next_fire_time(self, user_id: str) -> datetime | None:
        with self._lock:
            if user_id not in self._generations:
                return None
            job = self._scheduler.get_job(job_id(user_id))
        if job is None:
            return None
        # Paused or not-yet-started schedulers leave next_run_time unset
        return getattr(job, "next_run_time", None) or job.trigger.run_date

    def clear(self) -> None:
        with self._lock:
            for user_id in list(self._generations):
                self._remove_job(user_id)
            self._generations.clear()

    def _remove_job(self, user_id: str) -> None:
        job = self._scheduler.get_job(job_id(user_id))
        if job is not None:
            job.remove()
