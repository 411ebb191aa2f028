#!/usr/bin/env python3
"""
Execution pipeline: what happens when a trigger fires.

Opens a log sink, runs the worker outside the persistence gate, appends any
error to the transcript, and writes the outcome back to the job store.
Nothing here raises to the trigger thread and nothing is retried.
"""

import traceback
from typing import Any, Optional, Tuple

from decologr import Logger as log, log_exception

from jobhub.core.sink import LogSink, LogSinkFactory
from jobhub.core.store import JobStore
from jobhub.worker import STATUS_CRASHED, STATUS_OK, Worker


def error_text(error: Any) -> str:
    """Render a worker-reported error as free text."""
    if error is None:
        return ""
    if isinstance(error, BaseException):
        return str(error) or error.__class__.__name__
    return str(error)


class ExecutionPipeline:
    """
    Runs one job execution per trigger fire.

    :param store: Job store receiving the outcome
    :param sinks: Factory for per-execution log sinks
    """

    def __init__(self, store: JobStore, sinks: LogSinkFactory):
        self.store = store
        self.sinks = sinks

    def execute(self, job_id: str, worker_name: str, worker: Worker, data: bytes) -> Optional[Tuple[int, str]]:
        """
        Execute a job and record its outcome.

        :param job_id: Job ID
        :param worker_name: Registered worker name
        :param worker: Worker instance
        :param data: Payload captured at submission
        :return: (status, error) recorded, or None if no sink could be opened
        """
        try:
            sink = self.sinks.open(worker_name, job_id)
        except Exception as ex:
            # Job stays pending: there is nowhere to put the transcript
            log_exception(ex, f"Cannot open log sink for job {job_id} ({worker_name})")
            return None

        log.info(f"Running job {job_id} ({worker_name})")
        try:
            status, error = self._invoke(worker, data, sink)
            if error:
                try:
                    sink.writeline(f"error: {error}")
                except Exception as ex:
                    log_exception(ex, f"Cannot append error to log for job {job_id}")
        finally:
            sink.close()

        try:
            self.store.complete(job_id, status, error, str(sink.path))
        except Exception as ex:
            # Outcome survives only in the transcript
            log_exception(ex, f"Cannot record outcome of job {job_id} (status {status})")
            return status, error

        if status == STATUS_OK:
            log.info(f"Job {job_id} ({worker_name}) done")
        else:
            log.warning(f"Job {job_id} ({worker_name}) failed with status {status}: {error}")
        return status, error

    @staticmethod
    def _invoke(worker: Worker, data: bytes, sink: LogSink) -> Tuple[int, str]:
        try:
            status, error = worker.run(data, sink)
        except Exception as ex:
            log_exception(ex, "Worker raised instead of returning a status")
            if not sink.closed:
                sink.write(traceback.format_exc())
            return STATUS_CRASHED, error_text(ex)
        try:
            status = int(status)
        except (TypeError, ValueError):
            return STATUS_CRASHED, f"worker returned invalid status {status!r}"
        return status, error_text(error)
