#
# notify.py
# Nextcloud WebDAV Backup
#
# Composes the single end-of-run message and delivers it best-effort through the CallMeBot WhatsApp gateway.
#
# Thales Matheus Mendonça Santos - October 2026
#
"""Run notifications and console summary lines."""
from __future__ import annotations

import logging
from typing import Optional

import requests

from .config import BackupConfig, NotifySettings
from .dates import format_days, format_duration, human_time
from .errors import NotifyError
from .outcome import Aborted, FullSuccess, NoUsers, PartialOrTotalFailure, RunOutcome
from .summary import format_table


def _last_success(days: Optional[int]) -> str:
    return f"Last success: {format_days(days)} day(s) ago"


def compose_message(outcome: RunOutcome, config: BackupConfig) -> str:
    """Message body for the notification, without the admin prefix."""
    if isinstance(outcome, Aborted):
        if outcome.stage == "preflight":
            return f"Backup NOT EXECUTED due to pre-check error: {outcome.reason}. {_last_success(outcome.days_since_success)}."
        return f"Backup NOT EXECUTED: {outcome.reason}. {_last_success(outcome.days_since_success)}."
    if isinstance(outcome, FullSuccess):
        return "\n".join(
            [
                "Backup COMPLETED SUCCESSFULLY.",
                f"Start: {human_time(outcome.start)}",
                f"End:   {human_time(outcome.end)}",
                f"Duration: {format_duration(outcome.duration)}",
                f"Free space at {config.paths.mount_point}: {outcome.free_space}",
                f"Users processed: {outcome.summary.ok_count}",
                "Details:",
                format_table(outcome.summary),
            ]
        )
    if isinstance(outcome, NoUsers):
        return f"Backup NOT EXECUTED: no valid user in CSV. {_last_success(outcome.days_since_success)}."
    if isinstance(outcome, PartialOrTotalFailure):
        failed = " ".join(outcome.failed_users) or "unknown"
        return "\n".join(
            [
                "Backup NOT SUCCESSFUL for all users.",
                f"Start: {human_time(outcome.start)}",
                f"End:   {human_time(outcome.end)}",
                f"Users failed: {failed}",
                _last_success(outcome.days_since_success),
                "Details:",
                format_table(outcome.summary),
            ]
        )
    raise TypeError(f"unknown run outcome: {outcome!r}")


def console_line(outcome: RunOutcome) -> str:
    """One-line summary printed to stdout at the end of every run."""
    if isinstance(outcome, Aborted):
        tag = "NOK" if outcome.stage == "preflight" else "ABORT"
        return f"{tag}: {outcome.reason}. {_last_success(outcome.days_since_success)}."
    if isinstance(outcome, FullSuccess):
        return f"OK: total success. Duration {format_duration(outcome.duration)}. Free {outcome.free_space}."
    if isinstance(outcome, NoUsers):
        return f"NOK: no valid user. {_last_success(outcome.days_since_success)}."
    if isinstance(outcome, PartialOrTotalFailure):
        return f"NOK: failures detected. {_last_success(outcome.days_since_success)}."
    raise TypeError(f"unknown run outcome: {outcome!r}")


class CallMeBotNotifier:
    """Sends one WhatsApp message per call; never retries."""

    def __init__(self, settings: NotifySettings, logger: Optional[logging.Logger] = None, session=None):
        self.settings = settings
        self.log = logger or logging.getLogger("nextcloud_backup")
        self.session = session or requests

    def deliver(self, text: str):
        s = self.settings
        if not s.configured:
            raise NotifyError("CALLMEBOT_PHONE/CALLMEBOT_APIKEY not configured")
        try:
            resp = self.session.get(
                s.url,
                params={"phone": s.phone, "apikey": s.apikey, "text": f"[{s.admin_name}] {text}"},
                timeout=s.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            raise NotifyError(f"notification request failed: {e}") from e

    def send(self, text: str) -> bool:
        try:
            self.deliver(text)
        except NotifyError as e:
            self.log.warning("Notification not delivered: %s", e)
            return False
        self.log.debug("Notification delivered")
        return True


__all__ = ["compose_message", "console_line", "CallMeBotNotifier"]
