"""SMS channel via Twilio."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import TYPE_CHECKING

from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from cherry_hydrate.notify.base import Channel, ChannelAdapter, ChannelDeliveryFailure, ReminderEvent

if TYPE_CHECKING:
    from cherry_hydrate.users import User

log = logging.getLogger(__name__)


class SmsChannel(ChannelAdapter):
    """
    Environment Variables:
    - TWILIO_ACCOUNT_SID: Twilio account SID
    - TWILIO_AUTH_TOKEN: Twilio auth token
    - TWILIO_PHONE_NUMBER: Twilio phone number to send from
    """

    channel = Channel.SMS

    def __init__(
        self,
        *,
        account_sid: str | None = None,
        auth_token: str | None = None,
        from_number: str | None = None,
    ) -> None:
        self.account_sid = account_sid or os.environ.get("TWILIO_ACCOUNT_SID")
        self.auth_token = auth_token or os.environ.get("TWILIO_AUTH_TOKEN")
        self.from_number = from_number or os.environ.get("TWILIO_PHONE_NUMBER")
        self._client: Client | None = None

    def is_configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    def eligible(self, user: User) -> bool:
        return bool(user.phone)

    def _get_client(self) -> Client:
        """Lazy-load the Twilio client."""
        if self._client is None:
            self._client = Client(self.account_sid, self.auth_token)
        return self._client

    def build_body(self, user: User, event: ReminderEvent) -> str:
        return (
            f"Hi {user.display_name}! Time to drink water! This is reminder "
            f"#{event.reminder_count} today. Stay hydrated! - Cherry App"
        )

    async def send(self, user: User, event: ReminderEvent) -> bool:
        client = self._get_client()
        try:
            message = await asyncio.to_thread(
                client.messages.create,
                body=self.build_body(user, event),
                from_=self.from_number,
                to=user.phone,
            )
        except TwilioException as exc:
            raise ChannelDeliveryFailure(self.channel, str(exc)) from exc
        log.info("Water reminder SMS sent to %s: %s", user.phone, message.sid)
        return True
