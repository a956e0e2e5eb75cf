"""Realtime socket channel: push the reminder to the user's open websocket."""

from __future__ import annotations

from typing import TYPE_CHECKING

from cherry_hydrate.notify.base import Channel, ChannelAdapter, ReminderEvent

if TYPE_CHECKING:
    from cherry_hydrate.realtime import RealtimeHub
    from cherry_hydrate.users import User


class SocketChannel(ChannelAdapter):
    channel = Channel.SOCKET

    def __init__(self, hub: RealtimeHub) -> None:
        self._hub = hub

    async def send(self, user: User, event: ReminderEvent) -> bool:
        return await self._hub.send(user.id, event.to_payload())
