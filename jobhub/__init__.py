"""
jobhub - Job-execution hub using SQLite.

Register named workers, run payloads once or on a cron expression, and query
job status, errors and captured execution logs afterwards.
"""

from jobhub.config import HubConfig
from jobhub.core.hub import Hub
from jobhub.core.sink import LogSink
from jobhub.core.store import Job
from jobhub.errors import (
    DuplicateWorkerError,
    InvalidCronExpressionError,
    JobHubError,
    JobNotFoundError,
    LogNotReadyError,
    NilWorkerError,
    PersistenceError,
    RegistrationError,
    SchedulingError,
    WorkerNotFoundError,
)
from jobhub.worker import STATUS_CRASHED, STATUS_OK, STATUS_PENDING, Worker, worker

__all__ = [
    "Hub",
    "HubConfig",
    "Job",
    "LogSink",
    "Worker",
    "worker",
    "STATUS_OK",
    "STATUS_PENDING",
    "STATUS_CRASHED",
    "JobHubError",
    "RegistrationError",
    "NilWorkerError",
    "DuplicateWorkerError",
    "SchedulingError",
    "WorkerNotFoundError",
    "InvalidCronExpressionError",
    "PersistenceError",
    "JobNotFoundError",
    "LogNotReadyError",
]
