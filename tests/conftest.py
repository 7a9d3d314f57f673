#
# conftest.py
# Nextcloud WebDAV Backup
#
# Creates reusable pytest fixtures: a temporary configuration, a faked USB mount, a fake rclone transfer and a recording notifier.
#
# Thales Matheus Mendonça Santos - October 2026
#
import logging
import os
import re
import shutil
import sys
from dataclasses import replace
from pathlib import Path

import pytest

from nextcloud_backup.config import BackupConfig, NotifySettings, Paths, Remote, Settings


class FakeTransfer:
    """Stands in for rclone: writes a file per user instead of talking WebDAV."""

    def __init__(self, fail_users=()):
        self.fail_users = set(fail_users)
        self.calls = []
        self.profiles = []

    def obscure(self, secret):
        return "obscured-" + secret[::-1]

    def transfer(self, profile, mode, dest, versions_dir=None):
        profile = Path(profile)
        text = profile.read_text()
        user = re.search(r"^user = (.*)$", text, re.M).group(1)
        self.profiles.append(profile)
        self.calls.append((user, mode, Path(dest), versions_dir, text))
        if user in self.fail_users:
            return 1
        dest = Path(dest)
        if mode == "incremental":
            # Like --backup-dir: overwritten files are moved aside, not deleted.
            for existing in dest.iterdir():
                if existing.is_file():
                    shutil.move(str(existing), str(Path(versions_dir) / existing.name))
        (dest / "notes.txt").write_text(f"data for {user}")
        return 0


class RecordingNotifier:
    def __init__(self):
        self.messages = []

    def send(self, text):
        self.messages.append(text)
        return True


@pytest.fixture
def make_config(tmp_path):
    def _make(**settings):
        mount = tmp_path / "usb"
        paths = Paths(
            users_file=tmp_path / "users.csv",
            mount_point=mount,
            backup_base=mount / "nextcloud",
            state_dir=tmp_path / "state",
        )
        remote = Remote(nc_url="https://cloud.example.com/", rclone_bin=sys.executable)
        notify = NotifySettings(phone="+100", apikey="k", admin_name="admin")
        return BackupConfig(paths=paths, settings=replace(Settings(), **settings), remote=remote, notify=notify)

    return _make


@pytest.fixture
def temp_config(make_config):
    config = make_config(tls_skip_verify=False)
    # Create the minimal folder structure expected by the code under test.
    config.paths.mount_point.mkdir(parents=True, exist_ok=True)
    config.paths.users_file.write_text("")
    return config


@pytest.fixture
def mounted(monkeypatch):
    """Treat every path as a mount point; tmp_path is never a real one."""
    monkeypatch.setattr(os.path, "ismount", lambda p: True)


@pytest.fixture
def transfer_cls():
    return FakeTransfer


@pytest.fixture
def fake_transfer():
    return FakeTransfer()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def log():
    return logging.getLogger("nextcloud_backup.tests")
