#
# test_dates.py
# Nextcloud WebDAV Backup
#
# Exercises snapshot timestamp naming, duration formatting and day counting.
#
# Thales Matheus Mendonça Santos - October 2026
#
from datetime import datetime

from nextcloud_backup.dates import days_between, format_days, format_duration, is_snapshot_stamp, snapshot_stamp


def test_snapshot_stamp_is_sortable_and_recognised():
    stamp = snapshot_stamp(datetime(2024, 3, 5, 7, 8, 9))
    assert stamp == "20240305T070809"
    assert is_snapshot_stamp(stamp)
    assert not is_snapshot_stamp("current")
    assert not is_snapshot_stamp("20240305T070809.tar.gz")


def test_format_duration():
    assert format_duration(0) == "00h00m00s"
    assert format_duration(3725) == "01h02m05s"
    assert format_duration(-4) == "00h00m00s"


def test_days():
    assert days_between(0, 86399) == 0
    assert days_between(0, 2 * 86400) == 2
    assert format_days(None) == "unknown"
    assert format_days(4) == "4"
