"""Notification channels and the dispatcher that fans reminders out to them."""

from cherry_hydrate.notify.base import (
    Channel,
    ChannelAdapter,
    ChannelDeliveryFailure,
    ReminderEvent,
)
from cherry_hydrate.notify.dispatcher import DeliveryReport, NotificationDispatcher
from cherry_hydrate.notify.flags import (
    ChannelFlags,
    channel_flags,
    reload_channel_flags,
    set_channel_enabled,
)

__all__ = [
    "Channel",
    "ChannelAdapter",
    "ChannelDeliveryFailure",
    "ChannelFlags",
    "DeliveryReport",
    "NotificationDispatcher",
    "ReminderEvent",
    "channel_flags",
    "reload_channel_flags",
    "set_channel_enabled",
]
