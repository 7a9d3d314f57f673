#
# config.py
# Nextcloud WebDAV Backup
#
# Defines immutable dataclasses for paths, runtime settings and notification credentials, and loads them from the env file plus process environment.
#
# Thales Matheus Mendonça Santos - October 2026
#
"""Configuration objects for the Nextcloud WebDAV backup pipeline.

A BackupConfig is resolved once per run and never mutated afterwards. The
variable names match the historical ``backup_nextcloud_user_webdav.env``
file so existing deployments keep working unchanged.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Tuple

from dotenv import dotenv_values

from .errors import ConfigError

DEFAULT_ENV_FILE = "backup_nextcloud_user_webdav.env"
MODES = ("snapshot", "incremental")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Paths:
    users_file: Optional[Path] = Path("users.csv")
    mount_point: Optional[Path] = Path("/mnt/usb")
    backup_base: Optional[Path] = Path("/mnt/usb/nextcloud")
    # State lives outside the USB disk so "last success" survives an unplugged drive.
    state_dir: Path = Path(".state")
    last_success_file: Optional[Path] = None

    @property
    def last_success(self) -> Path:
        return self.last_success_file or (self.state_dir / "last_success_epoch.txt")

    @property
    def logs_dir(self) -> Path:
        return self.state_dir / "logs"

    @property
    def log_file(self) -> Path:
        return self.logs_dir / "nextcloud_backup.log"

    @property
    def lockfile_path(self) -> Path:
        return self.state_dir / ".run.lock"


@dataclass(frozen=True)
class Settings:
    mode: str = "snapshot"  # accepted values: "snapshot" | "incremental"
    retention: int = 1
    compress: bool = False
    generate_sha256: bool = True
    tls_skip_verify: bool = True
    excludes: Tuple[str, ...] = ()
    # rclone tuning, applied to every user transfer.
    transfers: int = 8
    checkers: int = 16
    tpslimit: int = 8
    retries: int = 3
    low_level_retries: int = 5
    timeout: str = "1h"
    stats: str = "30s"
    log_max_bytes: int = 10 * 1024 * 1024  # 10 MB
    log_backup_count: int = 5

    def __post_init__(self):
        if self.mode not in MODES:
            raise ConfigError(f"MODE must be one of {', '.join(MODES)}, got {self.mode!r}")
        if self.retention < 1:
            raise ConfigError(f"RETENTION must be >= 1, got {self.retention}")


@dataclass(frozen=True)
class Remote:
    nc_url: str = ""
    rclone_bin: str = "rclone"

    def user_url(self, username: str) -> str:
        return f"{self.nc_url.rstrip('/')}/remote.php/dav/files/{username}/"


@dataclass(frozen=True)
class NotifySettings:
    phone: str = ""
    apikey: str = ""
    admin_name: str = ""
    url: str = "https://api.callmebot.com/whatsapp.php"
    timeout: float = 30.0

    @property
    def configured(self) -> bool:
        return bool(self.phone and self.apikey)


@dataclass(frozen=True)
class BackupConfig:
    paths: Paths = field(default_factory=Paths)
    settings: Settings = field(default_factory=Settings)
    remote: Remote = field(default_factory=Remote)
    notify: NotifySettings = field(default_factory=NotifySettings)


def parse_bool(value: Optional[str], default: bool, name: str = "") -> bool:
    if value is None or not value.strip():
        return default
    v = value.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ConfigError(f"{name or 'value'} must be true or false, got {value!r}")


def parse_excludes(value: Optional[str]) -> Tuple[str, ...]:
    # One rclone pattern per line; blank lines are ignored.
    return tuple(line.strip() for line in (value or "").splitlines() if line.strip())


def _opt_path(value: str) -> Optional[Path]:
    # Path("") would silently become the current directory.
    return Path(value) if value.strip() else None


def config_from_mapping(env: Mapping[str, Optional[str]], base_dir: Optional[Path] = None) -> BackupConfig:
    """Build a BackupConfig from flat key/value variables."""

    def gv(key: str, default: str = "") -> str:
        v = env.get(key)
        return default if v is None else v

    base_dir = base_dir or Path.cwd()
    state_dir = Path(gv("STATE_DIR") or (base_dir / ".state"))
    last_success = gv("LAST_SUCCESS_FILE")

    try:
        retention = int(gv("RETENTION", "1") or "1")
    except ValueError:
        raise ConfigError(f"RETENTION must be an integer, got {gv('RETENTION')!r}")

    paths = Paths(
        users_file=_opt_path(gv("USERS_FILE")),
        mount_point=_opt_path(gv("USB_MOUNT_POINT")),
        backup_base=_opt_path(gv("BACKUP_BASE")),
        state_dir=state_dir,
        last_success_file=Path(last_success) if last_success else None,
    )
    settings = Settings(
        mode=(gv("MODE", "snapshot") or "snapshot").strip().lower(),
        retention=retention,
        compress=parse_bool(env.get("COMPRESS"), False, "COMPRESS"),
        generate_sha256=parse_bool(env.get("GENERATE_SHA256"), True, "GENERATE_SHA256"),
        tls_skip_verify=parse_bool(env.get("TLS_SKIP_VERIFY"), True, "TLS_SKIP_VERIFY"),
        excludes=parse_excludes(env.get("EXCLUDES")),
    )
    remote = Remote(nc_url=gv("NC_URL").strip(), rclone_bin=gv("RCLONE_BIN", "rclone") or "rclone")
    notify = NotifySettings(
        phone=gv("CALLMEBOT_PHONE"),
        apikey=gv("CALLMEBOT_APIKEY"),
        admin_name=gv("CALLMEBOT_ADMIN_NAME"),
    )
    return BackupConfig(paths=paths, settings=settings, remote=remote, notify=notify)


def load_config(env_file: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> BackupConfig:
    """
    Resolve the run configuration.

    Values from the env file override the process environment, mirroring how
    the file used to be sourced with ``set -a``. A missing default env file is
    fine; an explicitly requested one must exist.
    """
    env = dict(os.environ if environ is None else environ)
    if env_file is None:
        candidate = Path.cwd() / DEFAULT_ENV_FILE
        env_file = candidate if candidate.is_file() else None
    elif not Path(env_file).is_file():
        raise ConfigError(f"env file not found: {env_file}")

    base_dir = None
    if env_file is not None:
        env_file = Path(env_file)
        env.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
        base_dir = env_file.resolve().parent
    return config_from_mapping(env, base_dir=base_dir)


__all__ = [
    "DEFAULT_ENV_FILE",
    "MODES",
    "Paths",
    "Settings",
    "Remote",
    "NotifySettings",
    "BackupConfig",
    "parse_bool",
    "parse_excludes",
    "config_from_mapping",
    "load_config",
]
