#
# errors.py
# Nextcloud WebDAV Backup
#
# Exception hierarchy separating run-aborting problems from per-user failures and best-effort notification errors.
#
# Thales Matheus Mendonça Santos - October 2026
#
"""Exceptions raised by the backup pipeline.

Only PreflightError and MountError stop a whole run. Credential, transfer
and archive errors are caught per user and end up in the run summary;
NotifyError is logged and discarded.
"""


class BackupError(Exception):
    """Base class for every error the pipeline knows how to report."""


class ConfigError(BackupError):
    pass


class PreflightError(BackupError):
    pass


class MountError(BackupError):
    pass


class CredentialError(BackupError):
    pass


class TransferError(BackupError):
    pass


class ArchiveError(BackupError):
    pass


class NotifyError(BackupError):
    pass


__all__ = [
    "BackupError",
    "ConfigError",
    "PreflightError",
    "MountError",
    "CredentialError",
    "TransferError",
    "ArchiveError",
    "NotifyError",
]
