"""Pre-flight checks run before any remote or local resource is touched."""
from __future__ import annotations

import os
import shutil
from typing import List

from .config import BackupConfig


def preflight_check(config: BackupConfig) -> List[str]:
    """
    Return the reasons the run cannot start (empty when everything is fine).

    Nothing is raised here: the caller still has to send the final
    notification, so problems are collected instead of aborting the process.
    """
    reasons = []
    if not shutil.which(config.remote.rclone_bin):
        reasons.append(f"rclone not found ({config.remote.rclone_bin})")
    users_file = config.paths.users_file
    if users_file is None:
        reasons.append("USERS_FILE not set")
    elif not users_file.is_file():
        reasons.append(f"USERS_FILE not found: {users_file}")
    elif not os.access(str(users_file), os.R_OK):
        reasons.append(f"USERS_FILE not readable: {users_file}")
    if not config.remote.nc_url:
        reasons.append("NC_URL not set")
    return reasons


__all__ = ["preflight_check"]
