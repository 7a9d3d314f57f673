#
# test_runner.py
# Nextcloud WebDAV Backup
#
# Drives whole runs against a temporary USB layout: success, empty credentials, unmounted disk, misplaced base, incremental mode and retention.
#
# Thales Matheus Mendonça Santos - October 2026
#
import os
import tarfile
from dataclasses import replace

from nextcloud_backup.dates import is_snapshot_stamp
from nextcloud_backup.locks import run_lock
from nextcloud_backup.outcome import Aborted, FullSuccess, NoUsers, PartialOrTotalFailure
from nextcloud_backup.runner import run_once
from nextcloud_backup.state import read_last_success, record_success
from nextcloud_backup.summary import FailureReason, UserStatus


def _run(config, transfer, notifier, log):
    return run_once(config, logger=log, transfer=transfer, notifier=notifier)


def test_snapshot_success(temp_config, mounted, fake_transfer, notifier, log, capsys):
    temp_config.paths.users_file.write_text("alice,secret1")

    outcome = _run(temp_config, fake_transfer, notifier, log)

    assert isinstance(outcome, FullSuccess)
    user_dir = temp_config.paths.backup_base / "alice"
    snaps = [p for p in user_dir.iterdir()]
    assert len(snaps) == 1 and snaps[0].is_dir() and is_snapshot_stamp(snaps[0].name)
    assert (snaps[0] / "notes.txt").read_text() == "data for alice"

    recorded = read_last_success(temp_config)
    assert int(outcome.start.timestamp()) <= recorded <= int(outcome.end.timestamp())
    assert len(notifier.messages) == 1
    assert notifier.messages[0].startswith("Backup COMPLETED SUCCESSFULLY.")
    assert capsys.readouterr().out.strip().splitlines()[-1].startswith("OK: total success.")


def test_empty_secret_is_a_failure(temp_config, mounted, fake_transfer, notifier, log):
    record_success(temp_config, 1_000)
    temp_config.paths.users_file.write_text("bob,\n")

    outcome = _run(temp_config, fake_transfer, notifier, log)

    assert isinstance(outcome, PartialOrTotalFailure)
    assert outcome.failed_users == ("bob",)
    result = outcome.summary.results[0]
    assert (result.username, result.status, result.reason) == ("bob", UserStatus.FAIL, FailureReason.EMPTY_CREDENTIALS)
    assert fake_transfer.calls == []
    assert read_last_success(temp_config) == 1_000
    assert "Users failed: bob" in notifier.messages[0]


def test_failed_user_does_not_stop_the_next(temp_config, mounted, transfer_cls, notifier, log):
    transfer = transfer_cls(fail_users={"bob"})
    temp_config.paths.users_file.write_text("bob,pw\nalice,pw\n")

    outcome = _run(temp_config, transfer, notifier, log)

    assert isinstance(outcome, PartialOrTotalFailure)
    assert [r.status for r in outcome.summary.results] == [UserStatus.FAIL, UserStatus.OK]
    assert outcome.summary.results[0].reason is FailureReason.TRANSFER_ERROR
    assert read_last_success(temp_config) is None
    # Every credential profile is gone once its user is done.
    assert all(not p.exists() for p in transfer.profiles)


def test_only_comments_means_no_users(temp_config, mounted, fake_transfer, notifier, log, capsys):
    record_success(temp_config, 1_000)
    temp_config.paths.users_file.write_text("# user,password\n\n   \n")

    outcome = _run(temp_config, fake_transfer, notifier, log)

    assert isinstance(outcome, NoUsers)
    assert read_last_success(temp_config) == 1_000
    assert notifier.messages[0].startswith("Backup NOT EXECUTED: no valid user in CSV.")
    assert "NOK: no valid user." in capsys.readouterr().out


def test_unmounted_disk_aborts(temp_config, fake_transfer, notifier, log, capsys):
    temp_config.paths.users_file.write_text("alice,secret1\n")

    outcome = _run(temp_config, fake_transfer, notifier, log)

    assert isinstance(outcome, Aborted) and outcome.stage == "mount"
    assert "not mounted" in outcome.reason
    assert list(temp_config.paths.mount_point.iterdir()) == []
    assert fake_transfer.calls == []
    assert read_last_success(temp_config) is None
    assert len(notifier.messages) == 1
    assert "ABORT:" in capsys.readouterr().out


def test_base_outside_mount_aborts(temp_config, mounted, fake_transfer, notifier, log, tmp_path):
    outside = tmp_path / "boot-disk" / "nextcloud"
    config = replace(temp_config, paths=replace(temp_config.paths, backup_base=outside))
    config.paths.users_file.write_text("alice,secret1\n")
    record_success(config, 1_000)

    outcome = _run(config, fake_transfer, notifier, log)

    assert isinstance(outcome, Aborted) and outcome.stage == "mount"
    assert "must be inside" in outcome.reason
    assert not outside.exists()
    assert fake_transfer.calls == []
    assert read_last_success(config) == 1_000


def test_preflight_failure_still_notifies(temp_config, mounted, fake_transfer, notifier, log):
    temp_config.paths.users_file.unlink()
    config = replace(temp_config, remote=replace(temp_config.remote, rclone_bin="definitely-not-rclone-xyz"))

    outcome = _run(config, fake_transfer, notifier, log)

    assert isinstance(outcome, Aborted) and outcome.stage == "preflight"
    assert "rclone not found" in outcome.reason
    assert "USERS_FILE not found" in outcome.reason
    assert notifier.messages[0].startswith("Backup NOT EXECUTED due to pre-check error:")
    assert not config.paths.backup_base.exists()


def test_incremental_ignores_compression(make_config, mounted, fake_transfer, notifier, log, caplog):
    config = make_config(mode="incremental", compress=True, retention=5)
    config.paths.mount_point.mkdir(parents=True)
    config.paths.users_file.write_text("alice,pw\n")

    first = _run(config, fake_transfer, notifier, log)
    user_dir = config.paths.backup_base / "alice"
    old_version = next((user_dir / "_versions").iterdir())
    # Make the next run's version folder name differ from this one.
    os.rename(old_version, old_version.with_name("20000101T000000"))
    second = _run(config, fake_transfer, notifier, log)

    assert isinstance(first, FullSuccess) and isinstance(second, FullSuccess)
    assert "COMPRESS=true is ignored in incremental mode" in caplog.text
    assert (user_dir / "current" / "notes.txt").read_text() == "data for alice"
    assert not list(user_dir.glob("*.tar.gz"))
    versions = sorted(p.name for p in (user_dir / "_versions").iterdir())
    assert len(versions) == 2
    # The file overwritten by the second sync was kept, not discarded.
    assert (user_dir / "_versions" / versions[-1] / "notes.txt").exists()


def test_retention_keeps_only_newest_snapshot(temp_config, mounted, fake_transfer, notifier, log):
    user_dir = temp_config.paths.backup_base / "alice"
    for i, stamp in enumerate(["20200101T000000", "20200102T000000"]):
        old = user_dir / stamp
        old.mkdir(parents=True)
        os.utime(old, (1_000_000 + i, 1_000_000 + i))
    temp_config.paths.users_file.write_text("alice,secret1\n")

    outcome = _run(temp_config, fake_transfer, notifier, log)

    assert isinstance(outcome, FullSuccess)
    remaining = [p.name for p in user_dir.iterdir()]
    assert len(remaining) == 1
    assert remaining[0] > "20200102T000000"


def test_compressed_snapshot_with_checksum(make_config, mounted, fake_transfer, notifier, log):
    config = make_config(compress=True, generate_sha256=True)
    config.paths.mount_point.mkdir(parents=True)
    config.paths.users_file.write_text("alice,secret1\n")

    outcome = _run(config, fake_transfer, notifier, log)

    assert isinstance(outcome, FullSuccess)
    names = sorted(p.name for p in (config.paths.backup_base / "alice").iterdir())
    assert len(names) == 2
    assert names[0].endswith(".tar.gz") and names[1].endswith(".tar.gz.sha256")
    assert outcome.summary.results[0].size != "unknown"


def test_overlapping_run_is_skipped(temp_config, mounted, fake_transfer, notifier, log, capsys):
    temp_config.paths.users_file.write_text("alice,secret1\n")
    with run_lock(temp_config.paths.lockfile_path) as acquired:
        assert acquired
        assert _run(temp_config, fake_transfer, notifier, log) is None
    assert notifier.messages == []
    assert fake_transfer.calls == []
    assert "SKIP:" in capsys.readouterr().out


def test_undecodable_users_file_aborts_with_notification(temp_config, mounted, fake_transfer, notifier, log):
    temp_config.paths.users_file.write_bytes(b"jos\xe9,secret1\n")

    outcome = _run(temp_config, fake_transfer, notifier, log)

    assert isinstance(outcome, Aborted) and outcome.stage == "preflight"
    assert "USERS_FILE unreadable" in outcome.reason
    assert len(notifier.messages) == 1
    assert fake_transfer.calls == []


def test_base_that_cannot_be_created_aborts(temp_config, mounted, fake_transfer, notifier, log):
    # A plain file where the base folder should be.
    temp_config.paths.backup_base.write_text("not a folder")
    temp_config.paths.users_file.write_text("alice,secret1\n")

    outcome = _run(temp_config, fake_transfer, notifier, log)

    assert isinstance(outcome, Aborted) and outcome.stage == "mount"
    assert "cannot create BACKUP_BASE" in outcome.reason
    assert len(notifier.messages) == 1
    assert fake_transfer.calls == []


def test_compression_failure_is_reported_per_user(make_config, mounted, fake_transfer, notifier, log, monkeypatch):
    def broken_open(*args, **kwargs):
        raise tarfile.TarError("disk full")

    config = make_config(compress=True)
    config.paths.mount_point.mkdir(parents=True)
    config.paths.users_file.write_text("alice,pw\nbob,pw\n")
    old = config.paths.backup_base / "alice" / "20200101T000000.tar.gz"
    old.parent.mkdir(parents=True)
    old.write_text("old archive")
    monkeypatch.setattr(tarfile, "open", broken_open)

    outcome = _run(config, fake_transfer, notifier, log)

    assert isinstance(outcome, PartialOrTotalFailure)
    assert outcome.failed_users == ("alice", "bob")
    assert [r.reason for r in outcome.summary.results] == [FailureReason.ARCHIVE_ERROR] * 2
    assert [c[0] for c in fake_transfer.calls] == ["alice", "bob"]
    # Rotation only runs after a successful backup.
    assert old.exists()
    assert "archive-error" in notifier.messages[0]


def test_unusable_user_folder_is_a_transfer_error(temp_config, mounted, fake_transfer, notifier, log):
    temp_config.paths.backup_base.mkdir(parents=True)
    (temp_config.paths.backup_base / "carol").write_text("in the way")
    temp_config.paths.users_file.write_text("carol,pw\n")

    outcome = _run(temp_config, fake_transfer, notifier, log)

    assert isinstance(outcome, PartialOrTotalFailure)
    result = outcome.summary.results[0]
    assert (result.status, result.reason) == (UserStatus.FAIL, FailureReason.TRANSFER_ERROR)
    assert fake_transfer.calls == []


def test_unset_paths_abort_instead_of_using_cwd(temp_config, mounted, fake_transfer, notifier, log):
    no_users = replace(temp_config, paths=replace(temp_config.paths, users_file=None))
    outcome = _run(no_users, fake_transfer, notifier, log)
    assert isinstance(outcome, Aborted) and outcome.stage == "preflight"
    assert "USERS_FILE not set" in outcome.reason

    temp_config.paths.users_file.write_text("alice,secret1\n")
    no_mount = replace(temp_config, paths=replace(temp_config.paths, mount_point=None))
    outcome = _run(no_mount, fake_transfer, notifier, log)
    assert isinstance(outcome, Aborted) and outcome.stage == "mount"
    assert "USB_MOUNT_POINT not set" in outcome.reason
    assert len(notifier.messages) == 2
    assert fake_transfer.calls == []
