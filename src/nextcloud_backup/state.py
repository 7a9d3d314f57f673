#
# state.py
# Nextcloud WebDAV Backup
#
# Persists the epoch of the last fully successful run and reports how many days have passed since then.
#
# Thales Matheus Mendonça Santos - October 2026
#
"""Run state helpers.

The only persisted state is a single decimal Unix epoch. It is written only
after a full success and lives in the state directory, independent of the
destination mount.
"""
from __future__ import annotations

import logging
import time
from typing import Optional

from .config import BackupConfig
from .dates import days_between


def read_last_success(config: BackupConfig) -> Optional[int]:
    path = config.paths.last_success
    try:
        raw = path.read_text(encoding="utf-8").strip()
    except OSError:
        return None
    # Garbage or a zero epoch means "never succeeded" as far as reporting goes.
    if not raw.isdigit() or int(raw) <= 0:
        return None
    return int(raw)


def days_since_last_success(config: BackupConfig, now: Optional[float] = None) -> Optional[int]:
    last = read_last_success(config)
    if last is None:
        return None
    return days_between(last, int(now if now is not None else time.time()))


def record_success(config: BackupConfig, epoch: int, logger: Optional[logging.Logger] = None) -> bool:
    log = logger or logging.getLogger("nextcloud_backup")
    path = config.paths.last_success
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(f"{int(epoch)}\n", encoding="utf-8")
        tmp.replace(path)
    except OSError as e:
        log.warning("Failed to record last success in %s: %s", path, e)
        return False
    return True


__all__ = ["read_last_success", "days_since_last_success", "record_success"]
