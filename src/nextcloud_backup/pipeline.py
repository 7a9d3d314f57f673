#
# pipeline.py
# Nextcloud WebDAV Backup
#
# Backs up one user end to end: credential check, rclone transfer, optional compression, sizing and retention.
#
# Thales Matheus Mendonça Santos - October 2026
#
"""Per-user backup pipeline."""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from .archive import compress_snapshot
from .config import BackupConfig
from .dates import snapshot_stamp
from .errors import ArchiveError, CredentialError, TransferError
from .fs_utils import size_string
from .retention import VERSIONS_DIR, rotate
from .summary import FailureReason, UserResult
from .transfer import credential_profile
from .users import UserCredential

CURRENT_DIR = "current"


def user_root(config: BackupConfig, username: str) -> Path:
    return config.paths.backup_base / username


def run_transfer(config: BackupConfig, transfer, cred: UserCredential, mode: str, dest: Path, versions_dir: Optional[Path] = None):
    """Run one transfer inside a credential-scoped rclone profile."""
    obscured = transfer.obscure(cred.secret)
    with credential_profile(config.remote.user_url(cred.username), cred.username, obscured) as profile:
        rc = transfer.transfer(profile, mode, dest, versions_dir)
    if rc != 0:
        verb = "sync" if mode == "incremental" else "copy"
        raise TransferError(f"rclone {verb} exited with {rc}")


def _backup_snapshot(config: BackupConfig, transfer, cred: UserCredential, parent: Path, stamp: str, log: logging.Logger) -> str:
    snap_dir = parent / stamp
    snap_dir.mkdir(parents=True, exist_ok=True)
    log.info("-> [%s] copying via WebDAV -> %s", cred.username, snap_dir)
    run_transfer(config, transfer, cred, "snapshot", snap_dir)

    if config.settings.compress:
        archive = compress_snapshot(snap_dir, config.settings.generate_sha256, logger=log)
        return size_string(archive)
    return size_string(snap_dir)


def _backup_incremental(config: BackupConfig, transfer, cred: UserCredential, parent: Path, stamp: str, log: logging.Logger) -> str:
    target_dir = parent / CURRENT_DIR
    versions_dir = parent / VERSIONS_DIR / stamp
    target_dir.mkdir(parents=True, exist_ok=True)
    versions_dir.mkdir(parents=True, exist_ok=True)
    log.info("-> [%s] incremental sync via WebDAV -> %s (versions: %s)", cred.username, target_dir, versions_dir)
    if config.settings.compress:
        log.warning("COMPRESS=true is ignored in incremental mode")
    run_transfer(config, transfer, cred, "incremental", target_dir, versions_dir)
    return size_string(target_dir)


def backup_user(
    config: BackupConfig,
    cred: UserCredential,
    transfer,
    logger: Optional[logging.Logger] = None,
    now: Optional[datetime] = None,
) -> UserResult:
    """Back up one user; every expected failure becomes a FAIL result."""
    log = logger or logging.getLogger("nextcloud_backup")
    settings = config.settings
    try:
        if not cred.username or not cred.secret:
            raise CredentialError(f"empty credentials for user {cred.username!r}")

        parent = user_root(config, cred.username)
        parent.mkdir(parents=True, exist_ok=True)
        stamp = snapshot_stamp(now)
        if settings.mode == "incremental":
            size = _backup_incremental(config, transfer, cred, parent, stamp, log)
        else:
            size = _backup_snapshot(config, transfer, cred, parent, stamp, log)
    except CredentialError as e:
        log.error("[%s] %s", cred.username, e)
        return UserResult.fail(cred.username, FailureReason.EMPTY_CREDENTIALS)
    except TransferError as e:
        log.error("[%s] transfer failed: %s", cred.username, e)
        return UserResult.fail(cred.username, FailureReason.TRANSFER_ERROR)
    except ArchiveError as e:
        log.error("[%s] compression failed: %s", cred.username, e)
        return UserResult.fail(cred.username, FailureReason.ARCHIVE_ERROR)
    except OSError as e:
        # Destination trouble (permissions, full disk) is this user's failure, not the run's.
        log.error("[%s] cannot prepare destination: %s", cred.username, e)
        return UserResult.fail(cred.username, FailureReason.TRANSFER_ERROR)

    removed = rotate(parent, settings.mode, settings.retention, compress=settings.compress, logger=log)
    if removed:
        log.info("[%s] retention removed %d item(s)", cred.username, len(removed))
    log.info("[%s] OK (%s)", cred.username, size)
    return UserResult.ok(cred.username, size)


__all__ = ["CURRENT_DIR", "user_root", "run_transfer", "backup_user"]
