#
# outcome.py
# Nextcloud WebDAV Backup
#
# Defines the closed set of terminal run outcomes and decides which one a finished run ends in.
#
# Thales Matheus Mendonça Santos - October 2026
#
"""Terminal run outcomes.

Every run ends in exactly one of these variants. The notifier and the
console summary dispatch on the variant instead of re-deriving the state
from counters.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple, Union

from .summary import RunSummary


@dataclass(frozen=True)
class Aborted:
    stage: str  # "preflight" | "mount"
    reason: str
    days_since_success: Optional[int]


@dataclass(frozen=True)
class FullSuccess:
    start: datetime
    end: datetime
    duration: int
    free_space: str
    summary: RunSummary


@dataclass(frozen=True)
class NoUsers:
    days_since_success: Optional[int]


@dataclass(frozen=True)
class PartialOrTotalFailure:
    start: datetime
    end: datetime
    failed_users: Tuple[str, ...]
    days_since_success: Optional[int]
    summary: RunSummary


RunOutcome = Union[Aborted, FullSuccess, NoUsers, PartialOrTotalFailure]


def decide_outcome(
    summary: RunSummary,
    start: datetime,
    end: datetime,
    free_space: str,
    days_since_success: Optional[int],
) -> RunOutcome:
    if summary.fail_count > 0:
        return PartialOrTotalFailure(start, end, summary.failed_users, days_since_success, summary)
    if summary.ok_count > 0:
        duration = int(end.timestamp()) - int(start.timestamp())
        return FullSuccess(start, end, duration, free_space, summary)
    return NoUsers(days_since_success)


__all__ = ["Aborted", "FullSuccess", "NoUsers", "PartialOrTotalFailure", "RunOutcome", "decide_outcome"]
