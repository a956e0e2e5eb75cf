"""Wire the scheduling authority, channels and dispatcher together, and re-arm
persisted reminders on process start."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from cherry_hydrate.config import TZ
from cherry_hydrate.notify.dispatcher import NotificationDispatcher
from cherry_hydrate.notify.email_channel import EmailChannel
from cherry_hydrate.notify.push_channel import PushChannel
from cherry_hydrate.notify.sms_channel import SmsChannel
from cherry_hydrate.notify.socket_channel import SocketChannel
from cherry_hydrate.realtime import RealtimeHub
from cherry_hydrate.scheduling.scheduler import ReminderScheduler
from cherry_hydrate.scheduling.timers import TimerRegistry

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Runtime:
    aps: AsyncIOScheduler
    timers: TimerRegistry
    dispatcher: NotificationDispatcher
    reminders: ReminderScheduler
    hub: RealtimeHub


def build_dispatcher(hub: RealtimeHub) -> NotificationDispatcher:
    channels = [SocketChannel(hub), PushChannel(), EmailChannel(), SmsChannel()]
    for ch in channels:
        if not ch.is_configured():
            log.info("%s channel not configured", ch.channel.value)
    return NotificationDispatcher(channels)


def setup_scheduler(hub: RealtimeHub | None = None) -> Runtime:
    """Build (but do not start) the scheduler stack."""
    hub = hub or RealtimeHub()
    aps = AsyncIOScheduler(timezone=TZ)
    timers = TimerRegistry(aps)
    dispatcher = build_dispatcher(hub)
    reminders = ReminderScheduler(timers, dispatcher)
    return Runtime(aps=aps, timers=timers, dispatcher=dispatcher, reminders=reminders, hub=hub)


async def start(runtime: Runtime) -> int:
    """Start APScheduler, then arm every active persisted reminder.

    Must run inside the event loop. Returns the number of timers armed.
    """
    runtime.aps.start()
    return await runtime.reminders.rehydrate()


async def stop(runtime: Runtime) -> None:
    runtime.reminders.shutdown()
    await runtime.reminders.drain()
    runtime.aps.shutdown(wait=False)
    await runtime.hub.close_all()
