#
# locks.py
# Nextcloud WebDAV Backup
#
# File-based run lock in the state directory so a slow backup is never overlapped by the next scheduled run.
#
# Thales Matheus Mendonça Santos - October 2026
#
"""Run lock to avoid two backups writing to the USB disk at once."""
from __future__ import annotations

import fcntl
import os
import time
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator, Optional


def acquire_lock(lock_path: Path) -> Optional[IO[str]]:
    """Return the open lock file, or None when another run holds it."""
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    fh = open(lock_path, "a+")
    try:
        fcntl.flock(fh.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
    except BlockingIOError:
        fh.close()
        return None
    # Owner info helps when someone inspects a stuck lock by hand.
    fh.seek(0)
    fh.truncate()
    fh.write(f"pid={os.getpid()} started={int(time.time())}\n")
    fh.flush()
    return fh


def release_lock(fh: IO[str]):
    try:
        fcntl.flock(fh.fileno(), fcntl.LOCK_UN)
    finally:
        fh.close()


@contextmanager
def run_lock(lock_path: Path) -> Iterator[bool]:
    """Yield True while holding the lock, False if another run holds it."""
    fh = acquire_lock(lock_path)
    try:
        yield fh is not None
    finally:
        if fh is not None:
            release_lock(fh)


__all__ = ["acquire_lock", "release_lock", "run_lock"]
