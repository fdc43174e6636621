#!/usr/bin/env python3
"""
CLI entrypoint for loading appsinstalled logs into the device caches.
"""

from __future__ import annotations
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from appsload_exceptions import ConfigError
from config import DEVICE_TYPES, LoadConfig
from ingest import LoadContext, load_files_with_progress, setup_logging
from dotenv import load_dotenv
import argparse
import logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Load gzipped appsinstalled logs into per-device caches"
    )
    parser.add_argument("--pattern", help="Glob pattern for the log files")
    for dev_type in DEVICE_TYPES:
        parser.add_argument(
            f"--{dev_type}",
            metavar="HOST:PORT",
            help=f"Cache address for {dev_type} devices",
        )
    parser.add_argument(
        "--workers",
        type=int,
        help="Number of files loaded in parallel",
    )
    parser.add_argument(
        "--queue-size",
        type=int,
        help="Maximum number of files waiting for a worker",
    )
    parser.add_argument(
        "--error-rate",
        type=float,
        help="Maximum failed/processed ratio before a file is left unmarked",
    )
    parser.add_argument(
        "--attempts",
        type=int,
        help="Cache write attempts per record",
    )
    parser.add_argument(
        "--attempt-delay",
        type=float,
        help="Seconds to wait between cache write attempts",
    )
    parser.add_argument(
        "--dry",
        action="store_true",
        help="Parse and log records only. Do NOT write to the caches.",
    )
    parser.add_argument("--log", help="Write logs to this file")
    parser.add_argument("--log-level", help="Logging level (default INFO)")
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable progress bar display",
    )
    parser.add_argument(
        "--export-events",
        action="store_true",
        help="Write per-file outcome events to a JSONL file",
    )
    parser.add_argument(
        "--events-file",
        help="Path to JSONL export file for outcome events",
    )
    parser.add_argument(
        "--metrics-file",
        help="Write Prometheus text metrics to this path",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> LoadConfig:
    """Environment defaults overridden by command-line flags."""
    config = LoadConfig.from_env()

    if args.pattern:
        config.pattern = args.pattern
    for dev_type in DEVICE_TYPES:
        address = getattr(args, dev_type, None)
        if address:
            config.device_addresses[dev_type] = address
    if args.workers is not None:
        config.workers = args.workers
    if args.queue_size is not None:
        config.queue_size = args.queue_size
    if args.error_rate is not None:
        config.error_rate_threshold = args.error_rate
    if args.attempts is not None:
        config.max_attempts = args.attempts
    if args.attempt_delay is not None:
        config.attempt_delay_s = args.attempt_delay
    if args.dry:
        config.dry_run = True
    if args.log:
        config.log_file = args.log
    if args.log_level:
        config.log_level = args.log_level.upper()
    if args.export_events:
        config.export_events = True
    if args.events_file:
        config.export_events_file = args.events_file
    if args.metrics_file:
        config.prometheus_metrics_file = args.metrics_file

    config.validate()
    return config


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = parse_args(argv)

    try:
        config = build_config(args)
    except ConfigError as error:
        logging.basicConfig(level=logging.INFO)
        logging.error("Configuration error: %s", error)
        return 1

    setup_logging(config)
    ctx = LoadContext(config)
    ctx.logger.info("Memc loader started with options: %s", vars(args))

    try:
        report = load_files_with_progress(
            ctx, use_progress_bar=not args.no_progress)
    except KeyboardInterrupt:
        ctx.logger.warning("Load interrupted by user")
        return 1
    except Exception as error:  # pylint: disable=broad-except
        ctx.logger.error("Unexpected error: %s", error, exc_info=True)
        return 1
    finally:
        ctx.close()

    return 0 if report.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
