"""Deployment values loaded from environment variables."""

import os
import sys
from pathlib import Path
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()

_REQUIRED = ("CHERRY_API_SECRET",)
_missing = [var for var in _REQUIRED if not os.environ.get(var)]
if _missing:
    print(f"Missing required env vars: {', '.join(_missing)}", file=sys.stderr)
    print("Set them in .env or your environment.", file=sys.stderr)
    raise SystemExit(1)

API_SECRET: str = os.environ["CHERRY_API_SECRET"]
ADMIN_SECRET: str | None = os.environ.get("CHERRY_ADMIN_SECRET") or None

HOST: str = os.environ.get("CHERRY_HOST", "127.0.0.1")
PORT: int = int(os.environ.get("CHERRY_PORT", "8787"))

DATA_DIR: Path = Path(
    os.environ.get("CHERRY_DATA_DIR") or Path.home() / ".cherry-hydrate"
).expanduser()

# Upper bound on a single channel send, in seconds
CHANNEL_TIMEOUT: float = float(os.environ.get("CHERRY_CHANNEL_TIMEOUT", "10"))


def env_flag(name: str, default: bool) -> bool:
    """Read a boolean env var. Accepts 1/0, true/false, yes/no, on/off."""
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _detect_local_tz() -> str:
    """Detect the system's IANA timezone name. Falls back to UTC."""
    # Debian/Ubuntu: plain text file with IANA name
    etc_tz = Path("/etc/timezone")
    if etc_tz.exists():
        name = etc_tz.read_text().strip()
        if name:
            return name

    # Most other Linux: /etc/localtime is a symlink into zoneinfo
    localtime = Path("/etc/localtime")
    if localtime.is_symlink():
        target = str(localtime.resolve())
        marker = "/zoneinfo/"
        idx = target.find(marker)
        if idx != -1:
            return target[idx + len(marker) :]

    return "UTC"


TZ: ZoneInfo = ZoneInfo(os.environ.get("CHERRY_TIMEZONE") or _detect_local_tz())
