"""Email channel over SMTP with STARTTLS."""

from __future__ import annotations

import asyncio
import logging
import os
import smtplib
from email.message import EmailMessage
from typing import TYPE_CHECKING

from cherry_hydrate.notify.base import Channel, ChannelAdapter, ChannelDeliveryFailure, ReminderEvent

if TYPE_CHECKING:
    from cherry_hydrate.users import User

log = logging.getLogger(__name__)

SUBJECT = "Cherry - Time to Drink Water!"


class EmailChannel(ChannelAdapter):
    """
    Environment Variables:
    - SMTP_HOST: SMTP server (default smtp.gmail.com)
    - SMTP_PORT: SMTP port (default 587)
    - EMAIL_USER: login and From address
    - EMAIL_PASS: password or app password
    """

    channel = Channel.EMAIL

    def __init__(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.host = host or os.environ.get("SMTP_HOST", "smtp.gmail.com")
        self.port = port or int(os.environ.get("SMTP_PORT", "587"))
        self.username = username or os.environ.get("EMAIL_USER")
        self.password = password or os.environ.get("EMAIL_PASS")
        self.timeout = timeout

    def is_configured(self) -> bool:
        return bool(self.username and self.password)

    def eligible(self, user: User) -> bool:
        return bool(user.email)

    def build_message(self, user: User, event: ReminderEvent) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = SUBJECT
        msg["From"] = self.username
        msg["To"] = user.email
        msg.set_content(
            f"Hi {user.display_name}!\n\n"
            f"It's time to take a water break. This is your reminder "
            f"#{event.reminder_count} today.\n\n"
            "Manage your water reminders in the app settings.\n"
        )
        return msg

    def _deliver(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            server.starttls()
            server.login(self.username, self.password)
            server.send_message(msg)

    async def send(self, user: User, event: ReminderEvent) -> bool:
        msg = self.build_message(user, event)
        try:
            await asyncio.to_thread(self._deliver, msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise ChannelDeliveryFailure(self.channel, str(exc)) from exc
        log.info("Water reminder email sent to %s", user.email)
        return True
