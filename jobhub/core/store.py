#!/usr/bin/env python3
"""
SQLite-backed job store.

Holds one row per submitted job. Rows are created pending, completed once by
the execution pipeline, and never deleted here.

Provides:
- Job creation (pending row, fresh id)
- Completion (status, error, log file)
- Lookup by id and by creation-time window
"""

import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from decologr import Logger as log, log_exception

from jobhub.core.gate import PersistenceGate
from jobhub.errors import JobNotFoundError, PersistenceError
from jobhub.worker import STATUS_OK, STATUS_PENDING

# Fixed-width so string order matches time order
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"

SCHEMA = """
CREATE TABLE IF NOT EXISTS jobs (
    id TEXT PRIMARY KEY,
    worker_name TEXT NOT NULL,
    status INTEGER NOT NULL DEFAULT 1,
    error TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL,
    data BLOB,
    log_file TEXT NOT NULL DEFAULT ''
)
"""


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Render a datetime in the store's UTC format. Naive values are UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class Job:
    """A persisted job row."""

    id: str
    worker_name: str
    status: int
    error: str
    data: bytes
    log_file: str
    created_at: datetime

    @property
    def pending(self) -> bool:
        return self.status == STATUS_PENDING

    @property
    def succeeded(self) -> bool:
        return self.status == STATUS_OK

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Job":
        data = row["data"]
        return cls(
            id=row["id"],
            worker_name=row["worker_name"],
            status=row["status"],
            error=row["error"] or "",
            data=bytes(data) if data is not None else b"",
            log_file=row["log_file"] or "",
            created_at=parse_timestamp(row["created_at"]),
        )

    def to_dict(self) -> dict:
        """JSON-friendly view; the payload is decoded leniently as UTF-8."""
        return {
            "id": self.id,
            "worker_name": self.worker_name,
            "status": self.status,
            "error": self.error,
            "data": self.data.decode("utf-8", errors="replace"),
            "log_file": self.log_file,
            "created_at": self.created_at.isoformat(),
        }


class JobStore:
    """
    Job CRUD on top of a :class:`PersistenceGate`.

    Every method runs inside the gate; ``sqlite3.Error`` surfaces as
    :class:`PersistenceError`.
    """

    def __init__(self, gate: PersistenceGate):
        self.gate = gate

    def init_schema(self) -> None:
        """Create the jobs table and its indexes"""
        def _init(conn: sqlite3.Connection):
            try:
                conn.execute(SCHEMA)
                conn.execute(
                    "CREATE INDEX IF NOT EXISTS idx_jobs_created_at ON jobs(created_at)"
                )
                conn.commit()
            except sqlite3.Error as ex:
                conn.rollback()
                raise PersistenceError(f"Error initializing job store: {ex}") from ex

        self.gate.exclusive(_init)

    def create(self, worker_name: str, data: bytes) -> str:
        """
        Insert a pending job row.

        :param worker_name: Registered worker name
        :param data: Payload bytes
        :return: Job ID, only once the insert has committed
        """
        job_id = str(uuid.uuid4())
        created_at = format_timestamp(utcnow())

        def _insert(conn: sqlite3.Connection) -> str:
            try:
                conn.execute(
                    """
                    INSERT INTO jobs (id, worker_name, status, error, created_at, data, log_file)
                    VALUES (?, ?, ?, '', ?, ?, '')
                    """,
                    (job_id, worker_name, STATUS_PENDING, created_at, sqlite3.Binary(data)),
                )
                conn.commit()
            except sqlite3.Error as ex:
                conn.rollback()
                raise PersistenceError(f"Error creating job for {worker_name}: {ex}") from ex
            return job_id

        self.gate.exclusive(_insert)
        log.debug(f"Created job {job_id} ({worker_name})")
        return job_id

    def complete(self, job_id: str, status: int, error: str, log_path: str) -> None:
        """
        Record the outcome of an execution.

        :param job_id: Job ID
        :param status: Worker status code (0 = success)
        :param error: Error text, empty on success
        :param log_path: Path of the execution transcript
        """
        def _update(conn: sqlite3.Connection):
            try:
                cursor = conn.execute(
                    "UPDATE jobs SET status = ?, error = ?, log_file = ? WHERE id = ?",
                    (status, error or "", str(log_path or ""), job_id),
                )
                conn.commit()
            except sqlite3.Error as ex:
                conn.rollback()
                raise PersistenceError(f"Error completing job {job_id}: {ex}") from ex
            if cursor.rowcount == 0:
                raise JobNotFoundError(job_id)

        self.gate.exclusive(_update)
        log.debug(f"Completed job {job_id} with status {status}")

    def detail(self, job_id: str) -> Job:
        """
        Fetch one job.

        :raises JobNotFoundError: no row with this id
        """
        row = self.gate.exclusive(
            lambda conn: self._fetch_one(conn, "SELECT * FROM jobs WHERE id = ?", (job_id,))
        )
        if row is None:
            raise JobNotFoundError(job_id)
        return Job.from_row(row)

    def query(
        self,
        created_after: datetime,
        created_before: datetime,
        limit: int,
    ) -> List[Job]:
        """
        Jobs created inside ``[created_after, created_before]``.

        :param created_after: Inclusive lower bound
        :param created_before: Inclusive upper bound
        :param limit: Maximum number of jobs to return
        :return: Jobs in insertion order
        """
        if limit < 0:
            raise ValueError(f"limit must be >= 0, got {limit}")
        if limit == 0:
            return []
        params = (format_timestamp(created_after), format_timestamp(created_before), limit)

        def _select(conn: sqlite3.Connection):
            try:
                return conn.execute(
                    """
                    SELECT * FROM jobs
                    WHERE created_at >= ? AND created_at <= ?
                    ORDER BY rowid ASC
                    LIMIT ?
                    """,
                    params,
                ).fetchall()
            except sqlite3.Error as ex:
                raise PersistenceError(f"Error querying jobs: {ex}") from ex

        rows = self.gate.exclusive(_select)
        return [Job.from_row(row) for row in rows]

    def log_path(self, job_id: str) -> str:
        """
        Path of the job's transcript; empty while the job is pending.

        :raises JobNotFoundError: no row with this id
        """
        row = self.gate.exclusive(
            lambda conn: self._fetch_one(
                conn, "SELECT log_file FROM jobs WHERE id = ?", (job_id,)
            )
        )
        if row is None:
            raise JobNotFoundError(job_id)
        return row["log_file"] or ""

    @staticmethod
    def _fetch_one(conn: sqlite3.Connection, sql: str, params: tuple) -> Optional[sqlite3.Row]:
        try:
            return conn.execute(sql, params).fetchone()
        except sqlite3.Error as ex:
            log_exception(ex, "Error reading job store")
            raise PersistenceError(str(ex)) from ex
