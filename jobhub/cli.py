#!/usr/bin/env python3
"""
jobhub Command-Line Interface.

Read-only inspection of a hub database:
- jobhub status: Show one job
- jobhub list: List jobs created in a time window
- jobhub log: Print or save a job's execution log
"""

import argparse
import json
import logging
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

from decologr import setup_logging

from jobhub.config import HubConfig
from jobhub.core.gate import PersistenceGate
from jobhub.core.store import JobStore
from jobhub.errors import LogNotReadyError, PersistenceError


def _open_store(args) -> JobStore:
    config = HubConfig.from_env().with_overrides(db_path=args.db_path)
    # Inspection only: never create a database that is not there
    if str(config.db_path) != ":memory:" and not config.db_path.exists():
        raise PersistenceError(f"jobhub: database {config.db_path} does not exist")
    store = JobStore(PersistenceGate(config.db_path))
    store.init_schema()
    return store


def _parse_time(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def show_status(args):
    """Show job status."""
    store = _open_store(args)
    try:
        job = store.detail(args.job_id)
    finally:
        store.gate.close()

    if args.json:
        print(json.dumps(job.to_dict(), indent=2))
    else:
        print(f"Job ID: {job.id}")
        print(f"Worker: {job.worker_name}")
        print(f"Status: {job.status}")
        print(f"Created: {job.created_at.isoformat()}")
        if job.error:
            print(f"Error: {job.error}")
        if job.log_file:
            print(f"Log file: {job.log_file}")


def list_jobs(args):
    """List jobs."""
    before = _parse_time(args.before) if args.before else datetime.now(timezone.utc)
    after = _parse_time(args.after) if args.after else before - timedelta(days=1)

    store = _open_store(args)
    try:
        jobs = store.query(after, before, args.limit)
    finally:
        store.gate.close()

    if args.json:
        print(json.dumps([job.to_dict() for job in jobs], indent=2))
        return

    if not jobs:
        print("No jobs found")
        return

    print(f"{'Job ID':<38} {'Worker':<20} {'Status':<8} {'Created':<27}")
    print("-" * 96)
    for job in jobs:
        name = job.worker_name[:18] + ".." if len(job.worker_name) > 20 else job.worker_name
        print(f"{job.id:<38} {name:<20} {job.status:<8} {job.created_at.isoformat():<27}")


def show_log(args):
    """Print or save a job's log."""
    store = _open_store(args)
    try:
        path = store.log_path(args.job_id)
    finally:
        store.gate.close()
    if not path:
        raise LogNotReadyError(args.job_id)

    with open(path, "rb") as src:
        content = src.read()
    if args.output:
        args.output.write_bytes(content)
        print(f"Wrote {len(content)} bytes to {args.output}")
    else:
        sys.stdout.buffer.write(content)
        sys.stdout.flush()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jobhub",
        description="jobhub - inspect jobs recorded by a job hub",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Global options
    parser.add_argument(
        "--db-path",
        type=Path,
        help="Path to SQLite database (default: $JOBHUB_DB_PATH or ~/.jobhub/jobhub.db)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output in JSON format",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable decorated logging to console and log file",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # status command
    status_parser = subparsers.add_parser("status", help="Show job status")
    status_parser.add_argument("job_id", help="Job ID")
    status_parser.set_defaults(func=show_status)

    # list command
    list_parser = subparsers.add_parser("list", help="List jobs in a time window")
    list_parser.add_argument("--after", "-a", help="ISO timestamp lower bound (default: 24h before --before)")
    list_parser.add_argument("--before", "-b", help="ISO timestamp upper bound (default: now)")
    list_parser.add_argument("--limit", "-n", type=int, default=50, help="Limit number of jobs")
    list_parser.set_defaults(func=list_jobs)

    # log command
    log_parser = subparsers.add_parser("log", help="Print a job's execution log")
    log_parser.add_argument("job_id", help="Job ID")
    log_parser.add_argument("--output", "-o", type=Path, help="Write log to file instead of stdout")
    log_parser.set_defaults(func=show_log)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.verbose:
        setup_logging(verbose=True, project_name="jobhub")
    else:
        # Keep stdout clean for piping
        logging.getLogger().setLevel(logging.ERROR)

    try:
        args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(130)
    except Exception as ex:
        if args.json:
            print(json.dumps({"error": str(ex)}, indent=2))
        else:
            print(f"Error: {ex}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
