"""ReminderState persistence: one JSON object keyed by user id.

Whole-file atomic writes; every I/O or decode problem surfaces as
PersistenceFailure so the scheduler has a single error to handle.
"""

import json
import logging
from datetime import date, datetime
from typing import Any

from cherry_hydrate.scheduling.state import PersistenceFailure, ReminderState
from cherry_hydrate.storage import STATE_DIR, read_json, write_json

REMINDERS_FILE = STATE_DIR / "water_reminders.json"

log = logging.getLogger(__name__)

_ERRORS = (ValueError, TypeError, KeyError)


def _encode(state: ReminderState) -> dict[str, Any]:
    return {
        "user_id": state.user_id,
        "interval_minutes": state.interval_minutes,
        "is_active": state.is_active,
        "last_notification_sent": _iso(state.last_notification_sent),
        "next_notification_time": _iso(state.next_notification_time),
        "total_reminders_today": state.total_reminders_today,
        "last_reset_date": _iso(state.last_reset_date),
    }


def _decode(data: Any) -> ReminderState:
    if not isinstance(data, dict):
        raise ValueError(f"expected an object, got {type(data).__name__}")
    last_sent = data.get("last_notification_sent")
    next_time = data.get("next_notification_time")
    reset = data.get("last_reset_date")
    return ReminderState(
        user_id=str(data["user_id"]),
        interval_minutes=int(data["interval_minutes"]),
        is_active=bool(data.get("is_active", True)),
        last_notification_sent=datetime.fromisoformat(last_sent) if last_sent else None,
        next_notification_time=datetime.fromisoformat(next_time) if next_time else None,
        total_reminders_today=int(data.get("total_reminders_today", 0)),
        last_reset_date=date.fromisoformat(reset) if reset else None,
    )


def _iso(value: datetime | date | None) -> str | None:
    return value.isoformat() if value is not None else None


def _load() -> dict[str, dict[str, Any]]:
    try:
        return read_json(REMINDERS_FILE)
    except (OSError, json.JSONDecodeError, ValueError) as e:
        raise PersistenceFailure(f"cannot read {REMINDERS_FILE}: {e}") from e


def _save(data: dict[str, dict[str, Any]]) -> None:
    try:
        write_json(REMINDERS_FILE, data)
    except OSError as e:
        raise PersistenceFailure(f"cannot write {REMINDERS_FILE}: {e}") from e


def find_state(user_id: str) -> ReminderState | None:
    raw = _load().get(user_id)
    if raw is None:
        return None
    try:
        return _decode(raw)
    except _ERRORS as e:
        raise PersistenceFailure(f"corrupt reminder for {user_id}: {e}") from e


def upsert_state(state: ReminderState) -> None:
    data = _load()
    data[state.user_id] = _encode(state)
    _save(data)


def delete_state(user_id: str) -> bool:
    data = _load()
    if data.pop(user_id, None) is None:
        return False
    _save(data)
    return True


def list_states() -> list[ReminderState]:
    """All readable records, sorted by user id. Corrupt rows are skipped."""
    result: list[ReminderState] = []
    for user_id, raw in sorted(_load().items()):
        try:
            result.append(_decode(raw))
        except _ERRORS:
            log.warning("Skipping corrupt reminder record for user %s", user_id)
    return result


def list_active_states() -> list[ReminderState]:
    return [s for s in list_states() if s.is_active]
