"""Scheduling: water reminder state, timers, and the APScheduler integration."""

from cherry_hydrate.scheduling.scheduler import ReminderScheduler
from cherry_hydrate.scheduling.state import (
    InvalidInterval,
    NotFound,
    PersistenceFailure,
    ReminderError,
    ReminderState,
    ReminderStatus,
)
from cherry_hydrate.scheduling.timers import TimerRegistry

__all__ = [
    "InvalidInterval",
    "NotFound",
    "PersistenceFailure",
    "ReminderError",
    "ReminderScheduler",
    "ReminderState",
    "ReminderStatus",
    "TimerRegistry",
]
