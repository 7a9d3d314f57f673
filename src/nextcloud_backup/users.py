"""Users list parsing (``username,app_password[,ignored...]`` per line)."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List


@dataclass(frozen=True)
class UserCredential:
    username: str
    secret: str

    def __repr__(self) -> str:
        # Keep app passwords out of logs and tracebacks.
        return f"UserCredential(username={self.username!r}, secret=***)"


def parse_users(lines: Iterable[str]) -> List[UserCredential]:
    """
    Parse users list lines.

    Blank lines, ``#`` comments and records with an empty username are
    skipped. A username with an empty password is kept so it can be reported
    as a failure instead of silently disappearing.
    """
    users = []
    for raw in lines:
        fields = raw.rstrip("\r\n").split(",", 2)
        username = fields[0].strip()
        secret = fields[1].strip() if len(fields) > 1 else ""
        if not username or username.startswith("#"):
            continue
        users.append(UserCredential(username, secret))
    return users


def load_users(path: Path) -> List[UserCredential]:
    # splitlines() keeps the last record even without a trailing newline.
    text = Path(path).read_text(encoding="utf-8-sig")
    return parse_users(text.splitlines())


__all__ = ["UserCredential", "parse_users", "load_users"]
