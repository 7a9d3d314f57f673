"""Time helpers: snapshot timestamps, human-readable run times and durations."""
from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

SNAPSHOT_FMT = "%Y%m%dT%H%M%S"
HUMAN_FMT = "%Y-%m-%dT%H:%M:%S %Z"
SNAPSHOT_RE = re.compile(r"^\d{8}T\d{6}$")

SECONDS_PER_DAY = 86400


def local_now() -> datetime:
    # Aware local time so %Z renders the zone name.
    return datetime.now().astimezone()


def snapshot_stamp(when: Optional[datetime] = None) -> str:
    return (when or local_now()).strftime(SNAPSHOT_FMT)


def is_snapshot_stamp(name: str) -> bool:
    return bool(SNAPSHOT_RE.match(name))


def human_time(when: datetime) -> str:
    return when.strftime(HUMAN_FMT).rstrip()


def format_duration(seconds: int) -> str:
    """Render seconds as ``HHhMMmSSs``."""
    s = max(0, int(seconds))
    h, rem = divmod(s, 3600)
    m, s = divmod(rem, 60)
    return f"{h:02d}h{m:02d}m{s:02d}s"


def days_between(earlier_epoch: int, later_epoch: int) -> int:
    return (later_epoch - earlier_epoch) // SECONDS_PER_DAY


def format_days(days: Optional[int]) -> str:
    return "unknown" if days is None else str(days)


__all__ = [
    "SNAPSHOT_FMT",
    "HUMAN_FMT",
    "SNAPSHOT_RE",
    "local_now",
    "snapshot_stamp",
    "is_snapshot_stamp",
    "human_time",
    "format_duration",
    "days_between",
    "format_days",
]
