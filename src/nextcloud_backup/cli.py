"""Command-line interface: load the env file, set up logging and run once."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import DEFAULT_ENV_FILE, load_config
from .errors import ConfigError
from .logging_setup import setup_logging
from .runner import run_once


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(
        description="Back up Nextcloud users over WebDAV onto a mounted USB disk (one run per invocation).",
    )
    ap.add_argument(
        "--env-file",
        default=None,
        help=f"configuration file (default: ./{DEFAULT_ENV_FILE} if present, else the environment only)",
    )
    args = ap.parse_args(argv)

    try:
        config = load_config(Path(args.env_file) if args.env_file else None)
    except ConfigError as e:
        print(f"ERROR: invalid configuration: {e}", file=sys.stderr)
        return 1

    logger = setup_logging(config)
    try:
        run_once(config=config, logger=logger)
    except Exception as e:
        logger.exception("[FATAL] %s", e)
        return 1
    # Aborts and failed users are reported conditions, not crashes.
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
