#
# archive.py
# Nextcloud WebDAV Backup
#
# Compresses a finished snapshot into a tar.gz atomically, writes its sha256 sidecar and verifies archives against it.
#
# Thales Matheus Mendonça Santos - October 2026
#
"""Archive helpers used after a snapshot transfer."""
from __future__ import annotations

import hashlib
import logging
import shutil
import tarfile
import tempfile
from pathlib import Path
from typing import Optional

from .errors import ArchiveError

CHECKSUM_SUFFIX = ".sha256"
_CHUNK = 1024 * 1024


def archive_path_for(snapshot_dir: Path) -> Path:
    return snapshot_dir.with_name(snapshot_dir.name + ".tar.gz")


def sidecar_path_for(archive: Path) -> Path:
    return archive.with_name(archive.name + CHECKSUM_SUFFIX)


def archive_snapshot_atomic(snapshot_dir: Path, out_archive: Optional[Path] = None) -> Path:
    """Pack ``snapshot_dir`` as ``<name>/...`` into ``<name>.tar.gz`` next to it."""
    out_archive = out_archive or archive_path_for(snapshot_dir)
    if not snapshot_dir.is_dir():
        raise ArchiveError(f"snapshot directory missing: {snapshot_dir}")
    # Build the archive in a temp dir and rename atomically to avoid partial files.
    tmp_dir = tempfile.mkdtemp(prefix=".archive_tmp_", dir=str(out_archive.parent))
    tmp_archive = Path(tmp_dir) / (out_archive.name + ".part")
    try:
        with tarfile.open(tmp_archive, "w:gz") as tf:
            tf.add(str(snapshot_dir), arcname=snapshot_dir.name)
        tmp_archive.replace(out_archive)
    except (OSError, tarfile.TarError) as e:
        raise ArchiveError(f"failed to archive {snapshot_dir}: {e}") from e
    finally:
        shutil.rmtree(tmp_dir, ignore_errors=True)
    return out_archive


def sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK), b""):
            h.update(chunk)
    return h.hexdigest()


def write_checksum(archive: Path) -> Path:
    # sha256sum format with a relative name, so `sha256sum -c` works from the user folder.
    sidecar = sidecar_path_for(archive)
    try:
        sidecar.write_text(f"{sha256_file(archive)}  {archive.name}\n", encoding="utf-8")
    except OSError as e:
        raise ArchiveError(f"failed to write checksum for {archive}: {e}") from e
    return sidecar


def verify_checksum(archive: Path, logger: Optional[logging.Logger] = None) -> bool:
    log = logger or logging.getLogger("nextcloud_backup")
    sidecar = sidecar_path_for(archive)
    try:
        expected = sidecar.read_text(encoding="utf-8").split()[0].lower()
        actual = sha256_file(archive)
    except (OSError, IndexError) as e:
        log.error("Could not verify %s: %s", archive, e)
        return False
    if expected != actual:
        log.error("Checksum mismatch for %s: expected %s, got %s", archive, expected, actual)
        return False
    return True


def compress_snapshot(snapshot_dir: Path, generate_sha256: bool, logger: Optional[logging.Logger] = None) -> Path:
    """Archive, optionally checksum, then drop the now redundant directory."""
    log = logger or logging.getLogger("nextcloud_backup")
    archive = archive_snapshot_atomic(snapshot_dir)
    if generate_sha256:
        write_checksum(archive)
    shutil.rmtree(snapshot_dir, ignore_errors=True)
    log.debug("Compressed %s -> %s", snapshot_dir, archive)
    return archive


__all__ = [
    "CHECKSUM_SUFFIX",
    "archive_path_for",
    "sidecar_path_for",
    "archive_snapshot_atomic",
    "sha256_file",
    "write_checksum",
    "verify_checksum",
    "compress_snapshot",
]
