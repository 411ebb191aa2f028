#!/usr/bin/env python3
"""
Example: a JSON-payload worker queued through a hub.

    python -m jobhub.examples.basic --db-path /tmp/jobs.db --url https://example.com
"""

import argparse
import json
import time
from pathlib import Path

from jobhub import STATUS_OK, Hub

SAMPLE_NAME = "sample_worker"

# Worker-defined failure codes
STATUS_BAD_PAYLOAD = 2
STATUS_MISSING_URL = 3


class SampleWorker:
    """Validates a ``{"url": ...}`` payload and logs what it would fetch."""

    def name(self) -> str:
        return SAMPLE_NAME

    def run(self, data: bytes, log):
        log.writeline("Run : doing something")
        try:
            job = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as ex:
            log.writeline(f"Run : unmarshal : err [{ex}]")
            return STATUS_BAD_PAYLOAD, "payload is not valid JSON"

        url = job.get("url") if isinstance(job, dict) else None
        if not url:
            return STATUS_MISSING_URL, "payload has no url"

        log.writeline(f"Run : fetching {url}")
        return STATUS_OK, None


def main(argv=None):
    parser = argparse.ArgumentParser(description="Queue one sample job and wait for it")
    parser.add_argument("--db-path", type=Path, help="Path to SQLite database")
    parser.add_argument("--log-dir", type=Path, help="Directory for job logs")
    parser.add_argument("--url", default="https://example.com", help="URL placed in the payload")
    parser.add_argument("--wait", type=float, default=10.0, help="Seconds to wait for completion")
    args = parser.parse_args(argv)

    with Hub.connect(db_path=args.db_path, log_dir=args.log_dir) as hub:
        hub.must_register(SAMPLE_NAME, SampleWorker())
        job_id = hub.queue_now(SAMPLE_NAME, json.dumps({"url": args.url}))
        print(f"job id: {job_id}")

        deadline = time.monotonic() + args.wait
        job = hub.detail(job_id)
        while job.pending and time.monotonic() < deadline:
            time.sleep(0.2)
            job = hub.detail(job_id)
        print(f"status: {job.status} error: {job.error!r} log: {job.log_file}")
        return job.status


if __name__ == "__main__":
    raise SystemExit(main())
