"""Process-wide on/off switches for each notification channel.

Readers take one reference to an immutable ChannelFlags and never lock.
Writers (the admin endpoint, a config reload) build a new snapshot and swap
the module reference under a lock, so a dispatch already in progress keeps
the flags it started with.
"""

import logging
import threading
from dataclasses import asdict, dataclass, replace

from cherry_hydrate.config import env_flag
from cherry_hydrate.notify.base import Channel

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ChannelFlags:
    socket: bool = True
    push: bool = False
    email: bool = False
    sms: bool = False

    def enabled(self, channel: Channel) -> bool:
        return getattr(self, channel.value)

    def as_dict(self) -> dict[str, bool]:
        return asdict(self)


def flags_from_env() -> ChannelFlags:
    return ChannelFlags(
        socket=env_flag("CHERRY_NOTIFY_SOCKET", True),
        push=env_flag("CHERRY_NOTIFY_PUSH", False),
        email=env_flag("CHERRY_NOTIFY_EMAIL", False),
        sms=env_flag("CHERRY_NOTIFY_SMS", False),
    )


_write_lock = threading.Lock()
_flags: ChannelFlags = flags_from_env()


def channel_flags() -> ChannelFlags:
    return _flags


def set_channel_enabled(channel: Channel, enabled: bool) -> ChannelFlags:
    global _flags  # noqa: PLW0603
    with _write_lock:
        _flags = replace(_flags, **{channel.value: enabled})
        current = _flags
    log.info("Notification channel %s %s", channel.value, "enabled" if enabled else "disabled")
    return current


def reload_channel_flags() -> ChannelFlags:
    """Re-read the CHERRY_NOTIFY_* env vars, discarding runtime changes."""
    global _flags  # noqa: PLW0603
    with _write_lock:
        _flags = flags_from_env()
        current = _flags
    log.info("Notification channels reloaded: %s", current.as_dict())
    return current
