# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""
CLI wrapper for ci_log_timings.

We keep CLI glue in its own module so the extractor (`engine.py`) stays free of
process-level concerns (exit codes, stderr diagnostics) and easy to test.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

import argparse
import logging
import os
import sys

from . import appveyor
from . import engine
from . import render
from .exceptions import AppVeyorAPIError, TimingExtractionError

logger = logging.getLogger(__name__)


def _default_raw_log_dir() -> Path:
    """Default raw-log directory.

    Resolution order:
    - $CI_LOG_TIMINGS_CACHE_DIR/raw-log-text
    - ~/.cache/ci-log-timings/raw-log-text
    """
    override = os.environ.get("CI_LOG_TIMINGS_CACHE_DIR", "").strip()
    if override:
        return Path(override).expanduser() / "raw-log-text"
    return Path.home() / ".cache" / "ci-log-timings" / "raw-log-text"


def _resolve_log_path(log_input: str, logs_root: Path) -> Optional[Path]:
    """File path, or a numeric job ID looked up as `<logs_root>/<job_id>.log`."""
    log_path = Path(log_input).expanduser()
    if log_input.isdigit() and not log_path.exists():
        log_path = Path(logs_root).expanduser() / f"{log_input}.log"
    if not log_path.exists():
        logger.error(f"ERROR: file not found: {log_path}")
        return None
    if not log_path.is_file():
        logger.error(f"ERROR: not a file: {log_path}")
        return None
    return log_path


def _run_log(args: argparse.Namespace) -> int:
    if args.log_path == "-":
        records = engine.extract_timings_from_numbered_lines(engine.iter_binary_stream_lines(sys.stdin.buffer))
    else:
        log_path = _resolve_log_path(str(args.log_path), Path(str(args.logs_root)))
        if log_path is None:
            return 2
        records = engine.extract_timings_from_log_file(log_path)

    try:
        n = render.write_timing_rows(records, sys.stdout)
    except TimingExtractionError as e:
        # Rows printed so far are an incomplete breakdown.
        logger.error(render.format_extraction_diagnostic(e))
        return 1
    logger.debug(f"{n} timing records")
    return 0


def _run_jobs(args: argparse.Namespace) -> int:
    client = appveyor.AppVeyorAPIClient(token=args.token, project=str(args.project))
    if not client.has_token():
        logger.error("ERROR: no AppVeyor token (use --token, APPVEYOR_TOKEN, or ~/.config/appveyor-token)")
        return 1

    sys.stdout.write(render.format_tsv_row(appveyor.report_header()) + "\n")
    try:
        for row in appveyor.iter_job_duration_rows(
            client,
            start_build_id=args.start_build_id,
            delay_s=float(args.delay),
        ):
            sys.stdout.write(render.format_tsv_row(row) + "\n")
            sys.stdout.flush()
    except AppVeyorAPIError as e:
        logger.error(f"ERROR: {e}")
        return 1
    logger.debug(f"{client.get_rest_call_count()} AppVeyor API calls")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Timing breakdown for CI build jobs.",
        epilog="Examples:\n"
               "  %(prog)s log build.log             # per-step timings from a log file\n"
               "  %(prog)s log 59975400792           # by job ID (looked up under --logs-root)\n"
               "  %(prog)s jobs --token $TOKEN 12345 # job durations for builds older than 12345",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging to stderr.")
    # Also accepted after the subcommand; SUPPRESS keeps a top-level -v from being reset to False.
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-v", "--verbose", action="store_true", default=argparse.SUPPRESS, help="Debug logging to stderr.")
    sub = parser.add_subparsers(dest="command", required=True)

    p_log = sub.add_parser("log", parents=[common], help="Extract per-step timings from a build log.")
    p_log.add_argument(
        "log_path",
        help="Path to a local raw log file, '-' for stdin, OR a job ID number (e.g., 59975400792).",
    )
    p_log.add_argument(
        "--logs-root",
        default=str(_default_raw_log_dir()),
        help="Directory containing <job_id>.log files (default: ~/.cache/ci-log-timings/raw-log-text).",
    )

    p_jobs = sub.add_parser("jobs", parents=[common], help="Per-job durations for recent successful AppVeyor builds.")
    p_jobs.add_argument("start_build_id", nargs="?", type=int, default=None, help="Only builds older than this build ID.")
    p_jobs.add_argument("--token", default=None, help="AppVeyor API token (default: APPVEYOR_TOKEN or ~/.config/appveyor-token).")
    p_jobs.add_argument("--project", default=appveyor.DEFAULT_PROJECT, help=f"AppVeyor account/project (default: {appveyor.DEFAULT_PROJECT}).")
    p_jobs.add_argument(
        "--delay",
        type=float,
        default=appveyor.DEFAULT_REQUEST_DELAY_S,
        help=f"Seconds to sleep between builds (default: {appveyor.DEFAULT_REQUEST_DELAY_S}).",
    )
    return parser


def _cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(message)s")

    if args.command == "log":
        return _run_log(args)
    return _run_jobs(args)
