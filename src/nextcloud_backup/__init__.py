#
# __init__.py
# Nextcloud WebDAV Backup
#
# Package initializer exporting the config dataclass, the config loader and the single-run entry point.
#
# Thales Matheus Mendonça Santos - October 2026
#
"""Nextcloud WebDAV backup automation package."""
from .config import BackupConfig, load_config
from .runner import run_once

__all__ = ["BackupConfig", "load_config", "run_once"]
__version__ = "0.1.0"
