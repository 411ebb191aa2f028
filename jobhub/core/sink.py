#!/usr/bin/env python3
"""
Per-execution log sinks.

Each trigger fire gets its own transcript file under
``<log_dir>/<worker_name>/``. The file is created once and only appended to.
"""

import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Union


class LogSink:
    """Line-oriented, append-only text sink handed to a worker."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._handle = open(self.path, "a", encoding="utf-8")

    def write(self, text: str) -> int:
        with self._lock:
            if self._handle is None:
                raise ValueError(f"write to closed log sink {self.path}")
            written = self._handle.write(text)
            self._handle.flush()
            return written

    def writeline(self, text: str = "") -> int:
        if not text.endswith("\n"):
            text += "\n"
        return self.write(text)

    @property
    def closed(self) -> bool:
        return self._handle is None

    def close(self) -> None:
        with self._lock:
            if self._handle is not None:
                self._handle.close()
                self._handle = None

    def __enter__(self) -> "LogSink":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def __repr__(self):
        return f"LogSink({str(self.path)!r})"


class LogSinkFactory:
    """
    Creates sinks under a root directory.

    :param log_dir: Root directory for transcripts
    """

    def __init__(self, log_dir: Union[str, Path]):
        self.log_dir = Path(log_dir)

    def open(self, worker_name: str, job_id: str) -> LogSink:
        # Unique per fire so recurring runs of one job never share a file
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
        directory = self.log_dir / worker_name
        directory.mkdir(parents=True, exist_ok=True)
        return LogSink(directory / f"{job_id}-{stamp}-{uuid.uuid4().hex[:8]}.log")
