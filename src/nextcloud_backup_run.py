#!/usr/bin/env python3
#
# nextcloud_backup_run.py
# Nextcloud WebDAV Backup
#
# Entry-point wrapper for cron/systemd timers that runs a single backup cycle and always exits 0 on reported outcomes.
#
# Thales Matheus Mendonça Santos - October 2026
#
"""
Thin wrapper that keeps a plain-script entry point while delegating to the
packaged pipeline.
"""
from __future__ import annotations

import sys

from nextcloud_backup.cli import main

if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
