"""Entry point for cherry-hydrate."""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

from dotenv import load_dotenv

HELP = """\
cherry-hydrate -- recurring water reminders with multi-channel delivery

commands:
  cherry-hydrate                       Run the reminder service (HTTP + scheduler)
  cherry-hydrate serve                 Same as above
  cherry-hydrate reminder list         Show persisted water reminders
  cherry-hydrate reminder deliveries   Show recent delivery reports
  cherry-hydrate channels              Show notification channel switches
  cherry-hydrate help                  Show this help message

examples:
  cherry-hydrate reminder deliveries --user alice --limit 5
  CHERRY_NOTIFY_EMAIL=1 cherry-hydrate serve
"""

log = logging.getLogger(__name__)


def _show_channels() -> None:
    from cherry_hydrate.notify.email_channel import EmailChannel
    from cherry_hydrate.notify.flags import channel_flags
    from cherry_hydrate.notify.push_channel import PushChannel
    from cherry_hydrate.notify.sms_channel import SmsChannel

    flags = channel_flags()
    configured = {
        "socket": True,
        "push": PushChannel().is_configured(),
        "email": EmailChannel().is_configured(),
        "sms": SmsChannel().is_configured(),
    }
    for name, enabled in flags.as_dict().items():
        state = "on " if enabled else "off"
        note = "" if configured[name] else "  (provider not configured)"
        print(f"  {name:7s} {state}{note}")


def _dispatch_subcommand() -> bool:
    """Route CLI subcommands. Returns True if handled."""
    if len(sys.argv) < 2:
        return False
    cmd = sys.argv[1]
    rest = sys.argv[2:]
    if cmd in ("help", "--help", "-h"):
        print(HELP)
        return True
    if cmd == "serve":
        return False
    if cmd == "channels":
        _show_channels()
        return True
    if cmd == "reminder":
        from cherry_hydrate.scheduling.reminder_cmd import run_reminder_command

        run_reminder_command(rest)
        return True
    print(f"unknown command: {cmd}\n")
    print(HELP)
    raise SystemExit(1)


async def _serve() -> None:
    """Run scheduler and HTTP server until SIGINT/SIGTERM."""
    from aiohttp import web

    from cherry_hydrate import api
    from cherry_hydrate.config import ADMIN_SECRET, API_SECRET, HOST, PORT
    from cherry_hydrate.scheduling import bootstrap

    runtime = bootstrap.setup_scheduler()
    armed = await bootstrap.start(runtime)

    app = api.create_app(
        secret=API_SECRET,
        admin_secret=ADMIN_SECRET,
        reminders=runtime.reminders,
        dispatcher=runtime.dispatcher,
        hub=runtime.hub,
    )
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, HOST, PORT)
    await site.start()
    log.info("Listening on %s:%d with %d water reminders armed", HOST, PORT, armed)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal.SIGTERM, stop.set)
    loop.add_signal_handler(signal.SIGINT, stop.set)
    try:
        await stop.wait()
    finally:
        log.info("Shutting down")
        await bootstrap.stop(runtime)
        await runner.cleanup()


def main() -> None:
    load_dotenv()
    if _dispatch_subcommand():
        return

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # APScheduler logs every job run at INFO
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
    asyncio.run(_serve())


if __name__ == "__main__":
    main()
