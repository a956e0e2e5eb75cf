"""Browser push channel (Web Push with VAPID)."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import TYPE_CHECKING, Any

from pywebpush import WebPushException, webpush

from cherry_hydrate.notify.base import Channel, ChannelAdapter, ChannelDeliveryFailure, ReminderEvent
from cherry_hydrate.users import clear_push_subscription

if TYPE_CHECKING:
    from cherry_hydrate.users import User

log = logging.getLogger(__name__)

# Push services answer these for subscriptions that will never work again
_GONE = (404, 410)


class PushChannel(ChannelAdapter):
    channel = Channel.PUSH

    def __init__(
        self,
        *,
        public_key: str | None = None,
        private_key: str | None = None,
        subject: str | None = None,
    ) -> None:
        self.public_key = public_key or os.environ.get("VAPID_PUBLIC_KEY")
        self.private_key = private_key or os.environ.get("VAPID_PRIVATE_KEY")
        self.subject = subject or os.environ.get("VAPID_SUBJECT", "mailto:admin@example.com")

    def is_configured(self) -> bool:
        return bool(self.public_key and self.private_key)

    def eligible(self, user: User) -> bool:
        return bool(user.push_subscription)

    def build_payload(self, user: User, event: ReminderEvent) -> dict[str, Any]:
        return {
            "title": "Time to Drink Water!",
            "body": f"Stay hydrated! This is your reminder #{event.reminder_count} today.",
            "icon": "/favicon.ico",
            "tag": "water-reminder",
            "data": event.to_payload(),
        }

    async def send(self, user: User, event: ReminderEvent) -> bool:
        payload = json.dumps(self.build_payload(user, event))
        try:
            await asyncio.to_thread(
                webpush,
                subscription_info=user.push_subscription,
                data=payload,
                vapid_private_key=self.private_key,
                vapid_claims={"sub": self.subject},
            )
        except WebPushException as exc:
            status = exc.response.status_code if exc.response is not None else None
            if status in _GONE:
                log.warning("Dropping expired push subscription for %s (%s)", user.id, status)
                clear_push_subscription(user.id)
            raise ChannelDeliveryFailure(self.channel, str(exc)) from exc
        return True
