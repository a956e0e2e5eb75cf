"""User directory: contact details the notification channels deliver to.

Accounts are owned elsewhere; this reads them from `users.yaml` in the data
dir, keyed by user id:

    alice:
      username: Alice
      email: alice@example.com
      phone: "+15555550100"
      push_subscription:
        endpoint: https://push.example/abc
        keys: {p256dh: ..., auth: ...}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from cherry_hydrate.storage import DATA_DIR, read_yaml, write_yaml

USERS_FILE = DATA_DIR / "users.yaml"

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class User:
    id: str
    username: str = ""
    email: str | None = None
    phone: str | None = None
    push_subscription: dict[str, Any] | None = None

    @property
    def display_name(self) -> str:
        return self.username or "User"


def _from_entry(user_id: str, entry: Any) -> User:
    if not isinstance(entry, dict):
        entry = {}
    return User(
        id=user_id,
        username=str(entry.get("username") or ""),
        email=entry.get("email") or None,
        phone=str(entry["phone"]) if entry.get("phone") else None,
        push_subscription=entry.get("push_subscription") or None,
    )


def _read() -> dict[str, Any]:
    # YAML turns bare numeric ids into ints
    return {str(uid): entry for uid, entry in read_yaml(USERS_FILE).items()}


def load_users() -> dict[str, User]:
    return {uid: _from_entry(uid, entry) for uid, entry in _read().items()}


def lookup_user(user_id: str) -> User | None:
    return load_users().get(user_id)


def set_push_subscription(user_id: str, subscription: dict[str, Any]) -> None:
    """Store a browser push subscription, creating the user entry if needed."""
    data = _read()
    entry = data.get(user_id)
    if not isinstance(entry, dict):
        entry = {}
    entry["push_subscription"] = subscription
    data[user_id] = entry
    write_yaml(USERS_FILE, data)
    log.info("Push subscription saved for %s", user_id)


def clear_push_subscription(user_id: str) -> bool:
    """Returns False when the user had no subscription."""
    data = _read()
    entry = data.get(user_id)
    if not isinstance(entry, dict) or entry.pop("push_subscription", None) is None:
        return False
    write_yaml(USERS_FILE, data)
    log.info("Push subscription removed for %s", user_id)
    return True
