#
# logging_setup.py
# Nextcloud WebDAV Backup
#
# Sets up the pipeline logger: full detail in a rotating file under the state directory, progress on stdout.
#
# Thales Matheus Mendonça Santos - October 2026
#
"""Logging configuration helpers."""
import logging
import sys
from logging.handlers import RotatingFileHandler

from .config import BackupConfig

LOGGER_NAME = "nextcloud_backup"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def setup_logging(config: BackupConfig, logger_name: str = LOGGER_NAME, console_level: int = logging.INFO) -> logging.Logger:
    """
    Attach a rotating file handler (DEBUG) and a stdout handler (``console_level``).
    Calling it again returns the already configured logger.
    """
    logger = logging.getLogger(logger_name)
    if logger.handlers:
        return logger
    logger.setLevel(logging.DEBUG)
    formatter = logging.Formatter(LOG_FORMAT)

    # The state directory is on the local disk, so logs survive an unplugged USB drive.
    log_file = config.paths.log_file
    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        str(log_file),
        maxBytes=config.settings.log_max_bytes,
        backupCount=config.settings.log_backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    # Cron mails stdout, so keep it to progress and problems.
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(console_level)
    console.setFormatter(formatter)
    logger.addHandler(console)
    return logger


__all__ = ["LOGGER_NAME", "LOG_FORMAT", "setup_logging"]
