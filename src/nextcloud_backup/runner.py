#
# runner.py
# Nextcloud WebDAV Backup
#
# Coordinates one full backup run: pre-flight checks, mount guard, sequential per-user backups, outcome, state update and the single notification.
#
# Thales Matheus Mendonça Santos - October 2026
#
"""Run a single backup cycle."""
from __future__ import annotations

import logging
from typing import Optional

from .config import BackupConfig
from .dates import local_now
from .errors import MountError
from .fs_utils import ensure_base_within_mount, ensure_destination_mounted, free_space
from .locks import run_lock
from .logging_setup import setup_logging
from .notify import CallMeBotNotifier, compose_message, console_line
from .outcome import Aborted, FullSuccess, RunOutcome, decide_outcome
from .pipeline import backup_user
from .preflight import preflight_check
from .state import days_since_last_success, record_success
from .summary import RunSummary
from .transfer import RcloneTransfer
from .users import load_users


def finish(outcome: RunOutcome, config: BackupConfig, notifier, log: logging.Logger) -> RunOutcome:
    # Exactly one notification and one stdout line per run, whatever happened.
    notifier.send(compose_message(outcome, config))
    line = console_line(outcome)
    log.debug("Run finished: %s", type(outcome).__name__)
    print(line, flush=True)
    return outcome


def execute(config: BackupConfig, transfer, notifier, log: logging.Logger) -> RunOutcome:
    reasons = preflight_check(config)
    if reasons:
        reason = "; ".join(reasons)
        log.error("Pre-check failed: %s", reason)
        return finish(Aborted("preflight", reason, days_since_last_success(config)), config, notifier, log)

    start = local_now()

    try:
        ensure_destination_mounted(config)
        ensure_base_within_mount(config)
    except MountError as e:
        log.error("Backup not executed: %s", e)
        return finish(Aborted("mount", str(e), days_since_last_success(config)), config, notifier, log)

    try:
        config.paths.backup_base.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        reason = f"cannot create BACKUP_BASE ({config.paths.backup_base}): {e}"
        log.error("Backup not executed: %s", reason)
        return finish(Aborted("mount", reason, days_since_last_success(config)), config, notifier, log)

    try:
        users = load_users(config.paths.users_file)
    except (OSError, UnicodeDecodeError) as e:
        reason = f"USERS_FILE unreadable: {e}"
        log.error("Pre-check failed: %s", reason)
        return finish(Aborted("preflight", reason, days_since_last_success(config)), config, notifier, log)

    if config.settings.tls_skip_verify:
        log.warning("TLS certificate verification is disabled (TLS_SKIP_VERIFY=true); not recommended")
    log.info("Users to back up: %d (mode=%s, retention=%d)", len(users), config.settings.mode, config.settings.retention)

    # Strictly sequential: one user's transfer, archive and rotation finish before the next starts.
    summary = RunSummary()
    for cred in users:
        summary = summary.add(backup_user(config, cred, transfer, logger=log))

    end = local_now()
    outcome = decide_outcome(
        summary,
        start,
        end,
        free_space(config.paths.mount_point),
        days_since_last_success(config),
    )
    if isinstance(outcome, FullSuccess):
        record_success(config, int(end.timestamp()), logger=log)
    return finish(outcome, config, notifier, log)


def run_once(
    config: BackupConfig,
    logger: Optional[logging.Logger] = None,
    transfer=None,
    notifier=None,
) -> Optional[RunOutcome]:
    """
    Execute one backup run and return its outcome.

    Returns None when another run still holds the lock; that run will send
    its own notification.
    """
    log = logger or setup_logging(config)
    transfer = transfer or RcloneTransfer(config, logger=log)
    notifier = notifier or CallMeBotNotifier(config.notify, logger=log)

    with run_lock(config.paths.lockfile_path) as acquired:
        if not acquired:
            log.info("Previous run still in progress; this round will be skipped.")
            print("SKIP: previous run still in progress.", flush=True)
            return None
        return execute(config, transfer, notifier, log)


__all__ = ["finish", "execute", "run_once"]
