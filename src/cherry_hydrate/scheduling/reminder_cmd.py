"""CLI handler for `cherry-hydrate reminder` subcommand."""

import argparse
import sys

from cherry_hydrate.notify.dispatcher import DeliveryReport, recent_deliveries
from cherry_hydrate.scheduling.state import PersistenceFailure, ReminderState
from cherry_hydrate.scheduling.store import list_states

_CHANNELS = ("socket", "push", "email", "sms")


def _fmt_state(s: ReminderState) -> str:
    status = "active" if s.is_active else "paused"
    nxt = s.next_notification_time.isoformat()[:16] if s.next_notification_time else "-"
    return f"every {s.interval_minutes}m [{status}]  next {nxt}  today {s.total_reminders_today}"


def _fmt_report(r: DeliveryReport) -> str:
    sent = [c for c in _CHANNELS if getattr(r, c)]
    return f"#{r.reminder_count} -> {', '.join(sent) or 'console only'}"


def run_reminder_command(argv: list[str]) -> None:
    parser = argparse.ArgumentParser(prog="cherry-hydrate reminder")
    sub = parser.add_subparsers(dest="action")

    sub.add_parser("list", help="Show persisted water reminders")

    del_p = sub.add_parser("deliveries", help="Show recent delivery reports")
    del_p.add_argument("--user", default=None, help="Only this user id")
    del_p.add_argument("--limit", type=int, default=20, help="Max reports to show")

    args = parser.parse_args(argv)

    if args.action == "list":
        _handle_list()
    elif args.action == "deliveries":
        _handle_deliveries(args.user, args.limit)
    else:
        parser.print_help()
        sys.exit(1)


def _handle_list() -> None:
    try:
        states = list_states()
    except PersistenceFailure as e:
        print(f"cannot read reminders: {e}")
        sys.exit(1)
    if not states:
        print("no water reminders")
        return
    for s in states:
        print(f"  {s.user_id:16s}  {_fmt_state(s)}")


def _handle_deliveries(user_id: str | None, limit: int) -> None:
    reports = recent_deliveries(user_id, limit)
    if not reports:
        print("no deliveries recorded")
        return
    for r in reports:
        print(f"  {r.timestamp[:16]}  {r.user_id:16s}  {_fmt_report(r)}")
