"""Fan a reminder out to every enabled channel and report what got through."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from cherry_hydrate.config import CHANNEL_TIMEOUT
from cherry_hydrate.notify.base import Channel, ChannelAdapter, ReminderEvent
from cherry_hydrate.notify.flags import ChannelFlags, channel_flags
from cherry_hydrate.storage import STATE_DIR, append_jsonl, read_jsonl
from cherry_hydrate.users import User, lookup_user

log = logging.getLogger(__name__)

DELIVERIES_FILE = STATE_DIR / "deliveries.jsonl"


@dataclass(frozen=True, slots=True)
class DeliveryReport:
    user_id: str
    timestamp: str  # ISO datetime of the reminder
    reminder_count: int
    socket: bool = False
    push: bool = False
    email: bool = False
    sms: bool = False
    console: bool = True

    def delivered(self, channel: Channel) -> bool:
        return getattr(self, channel.value)

    def as_dict(self) -> dict[str, bool]:
        return {
            "socket": self.socket,
            "push": self.push,
            "email": self.email,
            "sms": self.sms,
            "console": self.console,
        }


def recent_deliveries(user_id: str | None = None, limit: int = 20) -> list[DeliveryReport]:
    reports = read_jsonl(DELIVERIES_FILE, DeliveryReport)
    if user_id is not None:
        reports = [r for r in reports if r.user_id == user_id]
    return reports[-limit:] if limit > 0 else reports


class NotificationDispatcher:
    """Never raises from dispatch: a failed channel is a False in the report."""

    def __init__(
        self,
        adapters: Iterable[ChannelAdapter],
        *,
        lookup: Callable[[str], User | None] = lookup_user,
        flags: Callable[[], ChannelFlags] = channel_flags,
        timeout: float = CHANNEL_TIMEOUT,
    ) -> None:
        self._adapters = {a.channel: a for a in adapters}
        self._lookup = lookup
        self._flags = flags
        self._timeout = timeout

    def adapter(self, channel: Channel) -> ChannelAdapter | None:
        return self._adapters.get(channel)

    def configured(self) -> dict[str, bool]:
        return {c.value: c in self._adapters and self._adapters[c].is_configured() for c in Channel}

    async def dispatch(self, user_id: str, event: ReminderEvent) -> DeliveryReport:
        log.info(
            "Water reminder for user %s: time to drink water! (reminder #%d today)",
            user_id,
            event.reminder_count,
        )
        results = {c: False for c in Channel}
        try:
            user = self._lookup(user_id)
        except Exception:
            log.exception("User lookup failed for %s; only console delivered", user_id)
            user = None

        if user is None:
            log.warning("User %s not found for notification", user_id)
        else:
            flags = self._flags()
            channels = [c for c in Channel if flags.enabled(c) and c in self._adapters]
            outcomes = await asyncio.gather(
                *(self._attempt(self._adapters[c], user, event) for c in channels)
            )
            results.update(zip(channels, outcomes))

        report = DeliveryReport(
            user_id=user_id,
            timestamp=event.timestamp.isoformat(),
            reminder_count=event.reminder_count,
            **{c.value: ok for c, ok in results.items()},
        )
        log.info("Notification results for %s: %s", user_id, report.as_dict())
        self._record(report)
        return report

    async def _attempt(self, adapter: ChannelAdapter, user: User, event: ReminderEvent) -> bool:
        name = adapter.channel.value
        if not adapter.is_configured():
            log.info("%s channel not configured, skipping for %s", name, user.id)
            return False
        if not adapter.eligible(user):
            log.info("%s channel skipped: no contact details for %s", name, user.id)
            return False
        try:
            async with asyncio.timeout(self._timeout):
                return bool(await adapter.send(user, event))
        except TimeoutError:
            log.warning("%s notification for %s timed out after %ss", name, user.id, self._timeout)
        except Exception as exc:
            log.warning("%s notification for %s failed: %s", name, user.id, exc, exc_info=True)
        return False

    def _record(self, report: DeliveryReport) -> None:
        try:
            append_jsonl(DELIVERIES_FILE, report)
        except OSError:
            log.exception("Could not append delivery log")
