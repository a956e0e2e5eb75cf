"""Water reminder state model, its transitions, and the scheduler error taxonomy.

A ReminderState is never mutated in place: every transition returns a new
frozen instance, so the scheduler can persist first and only then publish the
new value to its timer.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime, timedelta
from typing import Any

MIN_INTERVAL = 1
MAX_INTERVAL = 1440  # 24 hours


class ReminderError(Exception):
    """Base class for errors surfaced by the reminder scheduler."""


class InvalidInterval(ReminderError, ValueError):
    def __init__(self, value: object) -> None:
        super().__init__(
            f"Invalid interval {value!r}. Must be between {MIN_INTERVAL} and "
            f"{MAX_INTERVAL} minutes (24 hours)"
        )
        self.value = value


class NotFound(ReminderError):
    def __init__(self, user_id: str) -> None:
        super().__init__(f"No water reminder found for user {user_id}")
        self.user_id = user_id


class PersistenceFailure(ReminderError):
    """Reading or writing reminder state failed."""


def validate_interval(value: object) -> int:
    # bool is an int subclass; True would otherwise pass as 1
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInterval(value)
    if not MIN_INTERVAL <= value <= MAX_INTERVAL:
        raise InvalidInterval(value)
    return value


@dataclass(frozen=True, slots=True)
class ReminderState:
    user_id: str
    interval_minutes: int
    is_active: bool = True
    last_notification_sent: datetime | None = None
    next_notification_time: datetime | None = None
    total_reminders_today: int = 0
    last_reset_date: date | None = None

    def __post_init__(self) -> None:
        validate_interval(self.interval_minutes)
        if self.total_reminders_today < 0:
            raise ValueError("total_reminders_today must be non-negative")


def new_state(user_id: str, interval_minutes: int, *, now: datetime) -> ReminderState:
    """Fresh active reminder, armed from `now`."""
    state = ReminderState(
        user_id=user_id,
        interval_minutes=interval_minutes,
        last_reset_date=now.date(),
    )
    return rearmed(state, now)


def reset_if_new_day(state: ReminderState, today: date) -> ReminderState:
    """Zero the daily counter when the stored reset date is not today."""
    if state.last_reset_date == today:
        return state
    return replace(state, total_reminders_today=0, last_reset_date=today)


def minutes_after(now: datetime, minutes: int) -> datetime:
    """`now` plus elapsed minutes, in `now`'s timezone.

    Same-tzinfo arithmetic is wall-clock arithmetic, so the addition goes
    through UTC to stay correct across DST changes.
    """
    return (now.astimezone(UTC) + timedelta(minutes=minutes)).astimezone(now.tzinfo)


def rearmed(state: ReminderState, now: datetime) -> ReminderState:
    return replace(
        state,
        next_notification_time=minutes_after(now, state.interval_minutes),
    )


def record_firing(state: ReminderState, now: datetime) -> ReminderState:
    """Apply the daily reset, count this firing, and derive the next one."""
    state = reset_if_new_day(state, now.date())
    state = replace(
        state,
        total_reminders_today=state.total_reminders_today + 1,
        last_notification_sent=now,
    )
    return rearmed(state, now)


def minutes_until(target: datetime | None, now: datetime) -> int | None:
    if target is None:
        return None
    seconds = (target.astimezone(UTC) - now.astimezone(UTC)).total_seconds()
    return max(0, math.ceil(seconds / 60))


@dataclass(frozen=True, slots=True)
class ReminderStatus:
    """Read-only snapshot handed across the scheduler boundary. Primitives only."""

    user_id: str
    interval_minutes: int
    is_active: bool
    last_notification_sent: str | None  # ISO datetime
    next_notification_time: str | None  # ISO datetime
    total_reminders_today: int
    last_reset_date: str | None  # ISO date
    minutes_until_next: int | None

    @staticmethod
    def of(state: ReminderState, now: datetime) -> ReminderStatus:
        return ReminderStatus(
            user_id=state.user_id,
            interval_minutes=state.interval_minutes,
            is_active=state.is_active,
            last_notification_sent=_iso(state.last_notification_sent),
            next_notification_time=_iso(state.next_notification_time),
            total_reminders_today=state.total_reminders_today,
            last_reset_date=_iso(state.last_reset_date),
            minutes_until_next=minutes_until(state.next_notification_time, now),
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "intervalMinutes": self.interval_minutes,
            "isActive": self.is_active,
            "lastNotificationSent": self.last_notification_sent,
            "nextNotificationTime": self.next_notification_time,
            "totalRemindersToday": self.total_reminders_today,
            "lastResetDate": self.last_reset_date,
            "timeUntilNext": self.minutes_until_next,
        }


def _iso(value: datetime | date | None) -> str | None:
    return value.isoformat() if value is not None else None
