"""Per-user results and their fold into an immutable run summary."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple


class UserStatus(str, Enum):
    OK = "OK"
    FAIL = "FAIL"


class FailureReason(str, Enum):
    EMPTY_CREDENTIALS = "empty-credentials"
    TRANSFER_ERROR = "transfer-error"
    ARCHIVE_ERROR = "archive-error"


@dataclass(frozen=True)
class UserResult:
    username: str
    size: str
    status: UserStatus
    reason: Optional[FailureReason] = None

    @classmethod
    def ok(cls, username: str, size: str) -> "UserResult":
        return cls(username, size, UserStatus.OK)

    @classmethod
    def fail(cls, username: str, reason: FailureReason, size: str = "-") -> "UserResult":
        return cls(username, size, UserStatus.FAIL, reason)

    @property
    def status_label(self) -> str:
        if self.status is UserStatus.OK:
            return "OK"
        return f"FAIL({self.reason.value})" if self.reason else "FAIL"


@dataclass(frozen=True)
class RunSummary:
    results: Tuple[UserResult, ...] = ()
    ok_count: int = 0
    fail_count: int = 0
    failed_users: Tuple[str, ...] = ()

    def add(self, result: UserResult) -> "RunSummary":
        failed = result.status is UserStatus.FAIL
        return RunSummary(
            results=self.results + (result,),
            ok_count=self.ok_count + (0 if failed else 1),
            fail_count=self.fail_count + (1 if failed else 0),
            failed_users=self.failed_users + ((result.username,) if failed else ()),
        )


def summarize(results: Iterable[UserResult]) -> RunSummary:
    summary = RunSummary()
    for r in results:
        summary = summary.add(r)
    return summary


def format_table(summary: RunSummary, prefix: str = " - ") -> str:
    """Aligned ``User Size Status`` table, one prefixed line per row."""
    rows: List[Tuple[str, str, str]] = [("User", "Size", "Status")]
    rows += [(r.username, r.size, r.status_label) for r in summary.results]
    w_user = max(len(r[0]) for r in rows)
    w_size = max(len(r[1]) for r in rows)
    lines = [f"{prefix}{u.ljust(w_user)}  {s.ljust(w_size)}  {st}" for u, s, st in rows]
    return "\n".join(lines)


__all__ = ["UserStatus", "FailureReason", "UserResult", "RunSummary", "summarize", "format_table"]
