#
# transfer.py
# Nextcloud WebDAV Backup
#
# Runs rclone copy/sync against one user's WebDAV namespace using a throwaway, credential-scoped rclone config.
#
# Thales Matheus Mendonça Santos - October 2026
#
"""WebDAV transfer via rclone.

RcloneTransfer is the production transfer capability. Anything with the
same ``obscure`` / ``transfer`` methods can replace it, which is how the
tests avoid spawning real processes.
"""
from __future__ import annotations

import logging
import os
import subprocess
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from .config import BackupConfig
from .errors import TransferError

REMOTE_NAME = "nextcloud"


def render_profile(remote_url: str, username: str, obscured: str) -> str:
    return (
        f"[{REMOTE_NAME}]\n"
        "type = webdav\n"
        f"url = {remote_url}\n"
        "vendor = nextcloud\n"
        f"user = {username}\n"
        f"pass = {obscured}\n"
    )


@contextmanager
def credential_profile(remote_url: str, username: str, obscured: str, tmp_dir: Optional[Path] = None) -> Iterator[Path]:
    """Write a temporary rclone config (mode 0600) and always remove it afterwards."""
    fd, name = tempfile.mkstemp(prefix="rclone-nextcloud_", suffix=".conf", dir=str(tmp_dir) if tmp_dir else None)
    path = Path(name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(render_profile(remote_url, username, obscured))
        yield path
    finally:
        path.unlink(missing_ok=True)


def build_rclone_cmd(
    config: BackupConfig,
    profile: Path,
    mode: str,
    dest: Path,
    versions_dir: Optional[Path] = None,
) -> List[str]:
    """Argument list for ``rclone copy`` (snapshot) or ``rclone sync`` (incremental)."""
    s = config.settings
    verb = "sync" if mode == "incremental" else "copy"
    cmd = [config.remote.rclone_bin, verb, f"{REMOTE_NAME}:", str(dest), "--config", str(profile), "--create-empty-src-dirs"]
    if verb == "sync":
        if versions_dir is None:
            raise ValueError("incremental sync needs a versions directory")
        cmd += ["--backup-dir", str(versions_dir)]
    cmd += [
        "--transfers", str(s.transfers),
        "--checkers", str(s.checkers),
        "--tpslimit", str(s.tpslimit),
        "--retries", str(s.retries),
        "--low-level-retries", str(s.low_level_retries),
        "--timeout", s.timeout,
        "--stats", s.stats,
    ]
    for pattern in s.excludes:
        cmd += ["--exclude", pattern]
    if s.tls_skip_verify:
        cmd.append("--no-check-certificate")
    return cmd


class RcloneTransfer:
    def __init__(self, config: BackupConfig, logger: Optional[logging.Logger] = None):
        self.config = config
        self.log = logger or logging.getLogger("nextcloud_backup")

    def obscure(self, secret: str) -> str:
        # "-" makes rclone read the secret from stdin, keeping it out of the process list.
        try:
            proc = subprocess.run(
                [self.config.remote.rclone_bin, "obscure", "-"],
                input=secret,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            raise TransferError(f"rclone obscure could not start: {e}") from e
        if proc.returncode != 0 or not proc.stdout.strip():
            raise TransferError(f"rclone obscure failed (rc={proc.returncode}): {proc.stderr.strip()}")
        return proc.stdout.strip()

    def transfer(self, profile: Path, mode: str, dest: Path, versions_dir: Optional[Path] = None) -> int:
        cmd = build_rclone_cmd(self.config, profile, mode, dest, versions_dir)
        self.log.debug("Running: %s", " ".join(cmd))
        try:
            return subprocess.call(cmd)
        except OSError as e:
            self.log.error("rclone could not start: %s", e)
            return 127


__all__ = ["REMOTE_NAME", "render_profile", "credential_profile", "build_rclone_cmd", "RcloneTransfer"]
