"""Filesystem helpers: mount guard, du-style sizes and free space."""
from __future__ import annotations

import math
import os
import shutil
from pathlib import Path
from typing import Union

from .config import BackupConfig
from .errors import MountError

_UNITS = ("K", "M", "G", "T", "P")


def ensure_destination_mounted(config: BackupConfig):
    mp = config.paths.mount_point
    if mp is None:
        raise MountError("USB_MOUNT_POINT not set")
    # A plain directory is not enough: without the disk we would fill the boot drive.
    if not os.path.ismount(str(mp)):
        raise MountError(f"target disk not mounted at {mp}")


def is_within(child: Union[str, Path], parent: Union[str, Path]) -> bool:
    """Lexical check that ``child`` is a strict descendant of ``parent``."""
    if not str(child) or not str(parent):
        return False
    c = os.path.normpath(str(child))
    p = os.path.normpath(str(parent))
    if c == p:
        return False
    return c.startswith(p.rstrip(os.sep) + os.sep)


def ensure_base_within_mount(config: BackupConfig):
    paths = config.paths
    if paths.backup_base is None:
        raise MountError("BACKUP_BASE not set")
    if not is_within(paths.backup_base, paths.mount_point):
        raise MountError(f"BACKUP_BASE ({paths.backup_base}) must be inside {paths.mount_point}")


def human_size(num_bytes: int) -> str:
    """Format like ``du -h``: ``512B``, ``4.0K``, ``1.6M``, ``12G``."""
    n = max(0, int(num_bytes))
    if n < 1024:
        return f"{n}B"
    value = float(n)
    for unit in _UNITS:
        value /= 1024.0
        if value < 1024.0 or unit == _UNITS[-1]:
            break
    # du rounds up, never down.
    if value < 10:
        rounded = math.ceil(value * 10) / 10
        if rounded < 10:
            return f"{rounded:.1f}{unit}"
    return f"{math.ceil(value)}{unit}"


def tree_size(root: Path) -> int:
    """Apparent size in bytes of a file or directory tree; symlinks are not followed."""
    root = Path(root)
    if root.is_file():
        return root.stat().st_size
    total = 0
    stack = [root]
    while stack:
        d = stack.pop()
        try:
            with os.scandir(d) as it:
                for entry in it:
                    try:
                        if entry.is_file(follow_symlinks=False):
                            total += entry.stat(follow_symlinks=False).st_size
                        elif entry.is_dir(follow_symlinks=False):
                            stack.append(Path(entry.path))
                    except FileNotFoundError:
                        pass
        except FileNotFoundError:
            pass
    return total


def size_string(path: Path) -> str:
    if not Path(path).exists():
        return "unknown"
    return human_size(tree_size(path))


def free_space(mount_point: Path) -> str:
    try:
        return human_size(shutil.disk_usage(str(mount_point)).free)
    except OSError:
        return "unknown"


__all__ = [
    "ensure_destination_mounted",
    "is_within",
    "ensure_base_within_mount",
    "human_size",
    "tree_size",
    "size_string",
    "free_space",
]
