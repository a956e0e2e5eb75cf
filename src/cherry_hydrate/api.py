"""HTTP surface for the water reminder scheduler.

Authentication is owned upstream: callers present the shared bearer secret and
identify the user with an `X-User-Id` header. Admin routes take a separate
secret and are disabled when none is configured.
"""

from __future__ import annotations

import hmac
import json as json_mod
import logging
from datetime import datetime
from typing import Any

from aiohttp import web
from jsonschema import Draft7Validator

from cherry_hydrate.config import TZ
from cherry_hydrate.notify.base import Channel, ReminderEvent
from cherry_hydrate.notify.dispatcher import NotificationDispatcher
from cherry_hydrate.notify.flags import channel_flags, set_channel_enabled
from cherry_hydrate.realtime import RealtimeHub
from cherry_hydrate.scheduling.scheduler import ReminderScheduler
from cherry_hydrate.scheduling.state import InvalidInterval, NotFound, PersistenceFailure
from cherry_hydrate.users import clear_push_subscription, set_push_subscription

log = logging.getLogger(__name__)

_MAX_PAYLOAD_SIZE = 10 * 1024  # 10KB
TEST_REMINDER_COUNT = 999

SET_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["intervalMinutes"],
    "properties": {"intervalMinutes": {}},
}

SUBSCRIBE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["endpoint", "keys"],
    "properties": {
        "endpoint": {"type": "string", "minLength": 1, "maxLength": 2000},
        "keys": {
            "type": "object",
            "required": ["p256dh", "auth"],
            "properties": {
                "p256dh": {"type": "string", "maxLength": 500},
                "auth": {"type": "string", "maxLength": 500},
            },
        },
    },
}

CHANNEL_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["enabled"],
    "properties": {"enabled": {"type": "boolean"}},
    "additionalProperties": False,
}


def validate_body(schema: dict[str, Any], data: Any) -> list[str]:
    """Validate data against JSON Schema. Returns list of error messages."""
    return [err.message for err in Draft7Validator(schema).iter_errors(data)]


def verify_auth(auth_header: str, secret: str) -> bool:
    """Constant-time comparison of Bearer token."""
    return hmac.compare_digest(auth_header, f"Bearer {secret}")


_KEY_SECRET = web.AppKey("secret", str)
_KEY_ADMIN_SECRET = web.AppKey("admin_secret")
_KEY_REMINDERS = web.AppKey("reminders", ReminderScheduler)
_KEY_DISPATCHER = web.AppKey("dispatcher", NotificationDispatcher)
_KEY_HUB = web.AppKey("hub", RealtimeHub)


def _user_id(request: web.Request) -> str | None:
    """The authenticated user id, or None when auth fails."""
    secret = request.app[_KEY_SECRET]
    if not verify_auth(request.headers.get("Authorization", ""), secret):
        return None
    user_id = request.headers.get("X-User-Id", "").strip()
    return user_id or None


def _is_admin(request: web.Request) -> bool:
    admin_secret: str | None = request.app[_KEY_ADMIN_SECRET]
    if not admin_secret:
        return False
    return verify_auth(request.headers.get("Authorization", ""), admin_secret)


def _unauthorized() -> web.Response:
    return web.json_response({"message": "unauthorized"}, status=401)


async def _read_body(request: web.Request, schema: dict[str, Any]) -> tuple[Any, web.Response | None]:
    try:
        data = await request.json()
    except json_mod.JSONDecodeError:
        return None, web.json_response({"message": "invalid json"}, status=400)
    errors = validate_body(schema, data)
    if errors:
        return None, web.json_response(
            {"message": "validation failed", "details": errors}, status=400
        )
    return data, None


@web.middleware
async def _error_middleware(request: web.Request, handler: Any) -> web.StreamResponse:
    try:
        return await handler(request)
    except InvalidInterval as e:
        return web.json_response({"message": str(e)}, status=400)
    except NotFound:
        return web.json_response({"message": "No water reminder found"}, status=404)
    except PersistenceFailure:
        log.exception("%s %s failed", request.method, request.path)
        return web.json_response({"message": "Server error"}, status=500)


# ---------------------------------------------------------------------------
# Water reminder routes
# ---------------------------------------------------------------------------


async def _handle_set(request: web.Request) -> web.Response:
    user_id = _user_id(request)
    if user_id is None:
        return _unauthorized()
    data, error = await _read_body(request, SET_SCHEMA)
    if error:
        return error
    status = await request.app[_KEY_REMINDERS].set(user_id, data["intervalMinutes"])
    body = status.to_json()
    return web.json_response(
        {
            "message": "Water reminder set successfully",
            "reminder": {
                "intervalMinutes": body["intervalMinutes"],
                "nextNotificationTime": body["nextNotificationTime"],
                "isActive": body["isActive"],
                "totalRemindersToday": body["totalRemindersToday"],
            },
        }
    )


async def _handle_status(request: web.Request) -> web.Response:
    user_id = _user_id(request)
    if user_id is None:
        return _unauthorized()
    status = await request.app[_KEY_REMINDERS].status(user_id)
    if status is None:
        return web.json_response({"isActive": False, "message": "No water reminder set"})
    return web.json_response(status.to_json())


async def _handle_toggle(request: web.Request) -> web.Response:
    user_id = _user_id(request)
    if user_id is None:
        return _unauthorized()
    status = await request.app[_KEY_REMINDERS].toggle(user_id)
    return web.json_response(
        {
            "message": f"Water reminder {'resumed' if status.is_active else 'paused'}",
            "isActive": status.is_active,
            "nextNotificationTime": status.next_notification_time,
        }
    )


async def _handle_remove(request: web.Request) -> web.Response:
    user_id = _user_id(request)
    if user_id is None:
        return _unauthorized()
    await request.app[_KEY_REMINDERS].remove(user_id)
    return web.json_response({"message": "Water reminder removed successfully"})


async def _handle_drink(request: web.Request) -> web.Response:
    user_id = _user_id(request)
    if user_id is None:
        return _unauthorized()
    status = await request.app[_KEY_REMINDERS].record_manual_drink(user_id)
    return web.json_response(
        {
            "message": "Water intake logged! Timer reset.",
            "nextNotificationTime": status.next_notification_time if status else None,
        }
    )


# ---------------------------------------------------------------------------
# Push subscriptions, test notifications, realtime
# ---------------------------------------------------------------------------


async def _handle_subscribe(request: web.Request) -> web.Response:
    user_id = _user_id(request)
    if user_id is None:
        return _unauthorized()
    data, error = await _read_body(request, SUBSCRIBE_SCHEMA)
    if error:
        return error
    set_push_subscription(user_id, {"endpoint": data["endpoint"], "keys": data["keys"]})
    return web.json_response({"message": "Push subscription saved"})


async def _handle_unsubscribe(request: web.Request) -> web.Response:
    user_id = _user_id(request)
    if user_id is None:
        return _unauthorized()
    clear_push_subscription(user_id)
    return web.json_response({"message": "Push subscription removed"})


async def _handle_test_notification(request: web.Request) -> web.Response:
    user_id = _user_id(request)
    if user_id is None:
        return _unauthorized()
    event = ReminderEvent(reminder_count=TEST_REMINDER_COUNT, timestamp=datetime.now(TZ))
    report = await request.app[_KEY_DISPATCHER].dispatch(user_id, event)
    return web.json_response({"results": report.as_dict()})


async def _handle_ws(request: web.Request) -> web.StreamResponse:
    user_id = _user_id(request)
    if user_id is None:
        return _unauthorized()
    return await request.app[_KEY_HUB].serve(request, user_id)


# ---------------------------------------------------------------------------
# Admin: channel switches
# ---------------------------------------------------------------------------


async def _handle_get_channels(request: web.Request) -> web.Response:
    if not _is_admin(request):
        return web.json_response({"message": "forbidden"}, status=403)
    return web.json_response(
        {
            "enabled": channel_flags().as_dict(),
            "configured": request.app[_KEY_DISPATCHER].configured(),
            "connectedUsers": request.app[_KEY_HUB].connected_count(),
        }
    )


async def _handle_put_channel(request: web.Request) -> web.Response:
    if not _is_admin(request):
        return web.json_response({"message": "forbidden"}, status=403)
    try:
        channel = Channel(request.match_info["channel"])
    except ValueError:
        return web.json_response(
            {"message": f"unknown channel: {request.match_info['channel']}"}, status=404
        )
    data, error = await _read_body(request, CHANNEL_SCHEMA)
    if error:
        return error
    flags = set_channel_enabled(channel, data["enabled"])
    return web.json_response({"enabled": flags.as_dict()})


def create_app(
    *,
    secret: str,
    reminders: ReminderScheduler,
    dispatcher: NotificationDispatcher,
    hub: RealtimeHub,
    admin_secret: str | None = None,
) -> web.Application:
    app = web.Application(client_max_size=_MAX_PAYLOAD_SIZE, middlewares=[_error_middleware])
    app[_KEY_SECRET] = secret
    app[_KEY_ADMIN_SECRET] = admin_secret
    app[_KEY_REMINDERS] = reminders
    app[_KEY_DISPATCHER] = dispatcher
    app[_KEY_HUB] = hub
    app.router.add_post("/water/set", _handle_set)
    app.router.add_get("/water/status", _handle_status)
    app.router.add_patch("/water/toggle", _handle_toggle)
    app.router.add_delete("/water/remove", _handle_remove)
    app.router.add_post("/water/drink", _handle_drink)
    app.router.add_post("/push/subscribe", _handle_subscribe)
    app.router.add_post("/push/unsubscribe", _handle_unsubscribe)
    app.router.add_post("/notifications/test", _handle_test_notification)
    app.router.add_get("/admin/channels", _handle_get_channels)
    app.router.add_put("/admin/channels/{channel}", _handle_put_channel)
    app.router.add_get("/ws", _handle_ws)
    return app
