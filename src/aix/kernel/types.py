"""Small shared primitives: clocks and timestamp formats."""

from __future__ import annotations

import time
from datetime import datetime, timezone


def now_ms() -> int:
    return int(time.time() * 1000)


def utc_now_iso() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a `Z` suffix."""
    stamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


def backup_timestamp() -> str:
    return utc_now_iso().replace(":", "-").replace(".", "-")
