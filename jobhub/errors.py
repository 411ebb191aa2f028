#!/usr/bin/env python3
"""
Exceptions raised by the job hub.

Worker failures are not exceptions: they are recorded on the job row as a
non-zero status plus error text.
"""

from typing import Optional


class JobHubError(Exception):
    """Base class for all hub errors"""
    pass


class RegistrationError(JobHubError):
    """Worker registration rejected"""
    pass


class NilWorkerError(RegistrationError):
    """Register called with no worker"""
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"jobhub: worker for {name!r} is None")


class DuplicateWorkerError(RegistrationError):
    """A worker with this name is already registered"""
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"jobhub: worker {name!r} already exists")


class SchedulingError(JobHubError):
    """A submission could not be turned into a trigger"""
    pass


class WorkerNotFoundError(SchedulingError):
    """Submission references an unregistered worker"""
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"jobhub: worker {name!r} not found")


class InvalidCronExpressionError(SchedulingError):
    """Cron expression could not be parsed"""
    def __init__(self, expression: str, job_id: Optional[str] = None):
        self.expression = expression
        self.job_id = job_id
        super().__init__(f"jobhub: invalid cron expression {expression!r}")


class SchedulerStopped(SchedulingError):
    """Trigger registered after the scheduler was stopped"""
    pass


class PersistenceError(JobHubError):
    """Backing store failure"""
    pass


class JobNotFoundError(PersistenceError):
    """No job row with the given id"""
    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"jobhub: job {job_id!r} not found")


class LogNotReadyError(JobHubError):
    """The job has not produced a log file yet"""
    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"jobhub: job {job_id!r} has no log file yet")
