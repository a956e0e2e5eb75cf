"""Channel adapter contract shared by every delivery mechanism."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cherry_hydrate.users import User

REMINDER_TYPE = "water-reminder"
REMINDER_MESSAGE = "Time to drink water!"


class Channel(str, Enum):
    SOCKET = "socket"
    PUSH = "push"
    EMAIL = "email"
    SMS = "sms"


class ChannelDeliveryFailure(Exception):
    """A provider rejected or failed to deliver a notification."""

    def __init__(self, channel: Channel, reason: str) -> None:
        super().__init__(f"{channel.value} delivery failed: {reason}")
        self.channel = channel
        self.reason = reason


@dataclass(frozen=True, slots=True)
class ReminderEvent:
    reminder_count: int
    timestamp: datetime

    def to_payload(self) -> dict[str, Any]:
        return {
            "type": REMINDER_TYPE,
            "message": REMINDER_MESSAGE,
            "reminderCount": self.reminder_count,
            "timestamp": self.timestamp.isoformat(),
        }


class ChannelAdapter(ABC):
    """One delivery mechanism.

    `is_configured` must be cheap: the dispatcher calls it on every dispatch
    and treats False as "channel disabled", not as an error. `eligible` checks
    that the recipient has whatever contact detail the channel needs.
    """

    channel: Channel

    def is_configured(self) -> bool:
        return True

    def eligible(self, user: User) -> bool:
        return True

    @abstractmethod
    async def send(self, user: User, event: ReminderEvent) -> bool:
        """Deliver one reminder. Raise ChannelDeliveryFailure on provider errors."""
