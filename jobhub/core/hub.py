#!/usr/bin/env python3
"""
The job hub: registry, store, triggers and execution pipeline behind one
explicit handle.

Usage:
    hub = Hub.connect("jobs.db", log_dir="logs")
    hub.register("sample_worker", SampleWorker())
    job_id = hub.queue_now("sample_worker", b'{"url": "..."}')
    ...
    hub.detail(job_id).status
    hub.close()
"""

import shutil
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, List, Optional, Union

from decologr import Logger as log

from jobhub.config import HubConfig
from jobhub.core.gate import PersistenceGate
from jobhub.core.pipeline import ExecutionPipeline
from jobhub.core.registry import WorkerRegistry
from jobhub.core.sink import LogSinkFactory
from jobhub.core.store import Job, JobStore
from jobhub.core.trigger import TriggerScheduler
from jobhub.errors import InvalidCronExpressionError, LogNotReadyError
from jobhub.worker import Worker

Payload = Union[bytes, bytearray, memoryview, str]


def _payload_bytes(data: Payload) -> bytes:
    if data is None:
        return b""
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


class Hub:
    """
    Job-execution hub.

    - register(): add named workers
    - queue_now(): run a payload once, about ``queue_delay`` seconds from now
    - schedule(): run a payload on a cron expression
    - detail(), query(), copy_log(): read back outcomes
    """

    def __init__(self, config: Optional[HubConfig] = None):
        """
        Open the store and start the trigger scheduler.

        :param config: Hub settings (default: ``HubConfig.from_env()``)
        """
        self.config = config or HubConfig.from_env()
        self.registry = WorkerRegistry()
        self.gate = PersistenceGate(self.config.db_path)
        self.store = JobStore(self.gate)
        try:
            self.store.init_schema()
        except Exception:
            self.gate.close()
            raise
        self.sinks = LogSinkFactory(self.config.log_dir)
        self.pipeline = ExecutionPipeline(self.store, self.sinks)
        self.triggers = TriggerScheduler()
        self._closed = False
        log.info(f"Hub connected to {self.config.db_path}")

    @classmethod
    def connect(
        cls,
        db_path: Optional[Union[str, Path]] = None,
        log_dir: Optional[Union[str, Path]] = None,
        **overrides,
    ) -> "Hub":
        """
        Build a hub from the environment config plus explicit overrides.

        :param db_path: SQLite database path
        :param log_dir: Directory for execution transcripts
        :param overrides: Other HubConfig fields (queue_delay, shutdown_timeout)
        """
        config = HubConfig.from_env().with_overrides(
            db_path=db_path, log_dir=log_dir, **overrides
        )
        return cls(config)

    def close(self, wait: bool = True) -> None:
        """
        Cancel armed triggers, wait for running jobs, close the store.

        :param wait: Wait up to ``shutdown_timeout`` for running executions
        """
        if self._closed:
            return
        self._closed = True
        self.triggers.stop(wait=wait, timeout=self.config.shutdown_timeout)
        self.gate.close()
        log.info("Hub closed")

    def __enter__(self) -> "Hub":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # Registration

    def register(self, name: str, worker: Worker) -> None:
        self.registry.register(name, worker)

    def must_register(self, name: str, worker: Worker) -> None:
        self.registry.must_register(name, worker)

    def workers(self) -> List[str]:
        return self.registry.names()

    # Submission

    def queue_now(self, worker_name: str, data: Payload) -> str:
        """
        Run a payload once, as soon as the one-shot timer allows.

        :param worker_name: Registered worker name
        :param data: Payload (str is UTF-8 encoded)
        :return: Job ID, queryable immediately
        :raises WorkerNotFoundError: worker not registered
        :raises PersistenceError: row could not be inserted
        """
        # Unknown workers are rejected before a row exists
        worker = self.registry.get(worker_name)
        payload = _payload_bytes(data)
        job_id = self.store.create(worker_name, payload)
        self.triggers.once(
            lambda: self.pipeline.execute(job_id, worker_name, worker, payload),
            delay=self.config.queue_delay,
            name=job_id,
        )
        log.info(f"Queued job {job_id} ({worker_name})")
        return job_id

    def schedule(self, worker_name: str, data: Payload, cron_expression: str) -> str:
        """
        Run a payload at every occurrence of a cron expression.

        Every fire re-runs the worker under the same job ID; the row holds the
        latest outcome. An invalid expression leaves the already-inserted row
        pending forever with no trigger attached.

        :param worker_name: Registered worker name
        :param data: Payload (str is UTF-8 encoded)
        :param cron_expression: 5-field, or 6-field with trailing seconds
        :return: Job ID
        :raises InvalidCronExpressionError: expression cannot be parsed
        """
        # Unknown workers are rejected before a row exists; a bad expression is not
        worker = self.registry.get(worker_name)
        payload = _payload_bytes(data)
        job_id = self.store.create(worker_name, payload)
        try:
            self.triggers.recurring(
                lambda: self.pipeline.execute(job_id, worker_name, worker, payload),
                cron_expression,
                name=job_id,
            )
        except InvalidCronExpressionError as ex:
            ex.job_id = job_id
            log.warning(f"Job {job_id} ({worker_name}) left pending: {ex}")
            raise
        log.info(f"Scheduled job {job_id} ({worker_name}) on '{cron_expression}'")
        return job_id

    # Queries

    def detail(self, job_id: str) -> Job:
        return self.store.detail(job_id)

    def query(self, created_after: datetime, created_before: datetime, limit: int) -> List[Job]:
        return self.store.query(created_after, created_before, limit)

    def copy_log(self, job_id: str, destination: Union[BinaryIO, str, Path]) -> int:
        """
        Copy a job's transcript.

        :param job_id: Job ID
        :param destination: Binary file-like object, or a path to write
        :return: Number of bytes copied
        :raises JobNotFoundError: unknown job
        :raises LogNotReadyError: job has not finished executing
        """
        path = self.store.log_path(job_id)
        if not path:
            raise LogNotReadyError(job_id)
        if isinstance(destination, (str, Path)):
            with open(destination, "wb") as out:
                return self._copy(path, out)
        return self._copy(path, destination)

    @staticmethod
    def _copy(path: str, out: BinaryIO) -> int:
        with open(path, "rb") as src:
            size = src.seek(0, 2)
            src.seek(0)
            shutil.copyfileobj(src, out)
        return size
