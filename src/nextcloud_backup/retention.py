#
# retention.py
# Nextcloud WebDAV Backup
#
# Enumerates snapshots, archives or version folders of one user newest-first and deletes everything beyond the retention count.
#
# Thales Matheus Mendonça Santos - October 2026
#
"""Retention (rotation) of per-user backup artifacts."""
from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import List, Optional

from .archive import sidecar_path_for
from .dates import is_snapshot_stamp

VERSIONS_DIR = "_versions"
ARCHIVE_SUFFIX = ".tar.gz"


def _newest_first(items: List[Path]) -> List[Path]:
    def key(p: Path):
        try:
            mtime = p.stat().st_mtime
        except OSError:
            mtime = 0.0
        return (mtime, p.name)

    return sorted(items, key=key, reverse=True)


def rotation_candidates(user_root: Path, mode: str, compress: bool = False) -> List[Path]:
    """Return rotation candidates for one user, newest first."""
    if mode == "incremental":
        versions = user_root / VERSIONS_DIR
        if not versions.is_dir():
            return []
        items = [p for p in versions.iterdir() if p.is_dir() and is_snapshot_stamp(p.name)]
    elif compress:
        items = [
            p
            for p in user_root.glob("*" + ARCHIVE_SUFFIX)
            if p.is_file() and is_snapshot_stamp(p.name[: -len(ARCHIVE_SUFFIX)])
        ]
    else:
        items = [p for p in user_root.iterdir() if p.is_dir() and is_snapshot_stamp(p.name)] if user_root.is_dir() else []
    return _newest_first(items)


def _remove(path: Path, log: logging.Logger) -> bool:
    is_archive = not (path.is_dir() and not path.is_symlink())
    try:
        if not is_archive:
            shutil.rmtree(path)
        else:
            path.unlink()
    except OSError as e:
        # Cleanup is best effort; a stuck folder must not fail the backup.
        log.warning("Could not remove %s: %s", path, e)
        return False
    if is_archive:
        sidecar = sidecar_path_for(path)
        try:
            if sidecar.exists() or sidecar.is_symlink():
                sidecar.unlink()
        except OSError as e:
            # The archive itself is gone at this point, so it still counts as removed.
            log.warning("Could not remove checksum %s: %s", sidecar, e)
    return True


def rotate(user_root: Path, mode: str, keep: int, compress: bool = False, logger: Optional[logging.Logger] = None) -> List[Path]:
    """Delete every candidate beyond the newest ``keep``; return what was removed."""
    log = logger or logging.getLogger("nextcloud_backup")
    keep = max(1, int(keep))
    if not user_root.is_dir():
        return []
    removed = []
    for item in rotation_candidates(user_root, mode, compress)[keep:]:
        log.info("Retention: removing %s", item)
        if _remove(item, log):
            removed.append(item)
    return removed


__all__ = ["VERSIONS_DIR", "ARCHIVE_SUFFIX", "rotation_candidates", "rotate"]
