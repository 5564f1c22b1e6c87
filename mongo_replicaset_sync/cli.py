"""Argument parsing, configuration loading, and exit-code mapping for schedulers."""

from __future__ import annotations

import argparse
import logging
import sys

from .config import load_config
from .exceptions import ConfigError, ReplicaSyncError
from .logging_config import configure_logging
from .report import Reporter, Severity
from .runner import Runner

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mongo-replicaset-sync",
        description="Tag and admit EC2 instances into their MongoDB replica set",
    )
    parser.add_argument(
        "-c", "--config",
        required=True,
        help="Path to the YAML configuration file",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Plan the next configuration change without applying it",
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate the configuration file and exit",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run once and return 0 (consistent), 1 (warnings) or 2 (disaster)."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Load config (minimal logging until config is loaded)
    try:
        config = load_config(args.config)
    except ConfigError as exc:
        print(f"DISASTER: Configuration error: {exc}", file=sys.stderr)
        return int(Severity.DISASTER)

    configure_logging(config.logging)

    if args.validate:
        logger.info("Configuration is valid")
        return int(Severity.OK)

    reporter = Reporter()
    runner = None
    try:
        runner = Runner(config, reporter=reporter, dry_run=args.dry_run)
        runner.run()
    except ReplicaSyncError as exc:
        reporter.disaster(str(exc))
        return int(Severity.DISASTER)
    except Exception:
        logger.exception("DISASTER: Unexpected error")
        return int(Severity.DISASTER)
    finally:
        if runner is not None:
            runner.close()

    return reporter.exit_code


def main_entry() -> None:
    sys.exit(main())
