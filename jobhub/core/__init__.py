"""Core hub components."""

from jobhub.core.gate import PersistenceGate
from jobhub.core.hub import Hub
from jobhub.core.pipeline import ExecutionPipeline
from jobhub.core.registry import WorkerRegistry
from jobhub.core.sink import LogSink, LogSinkFactory
from jobhub.core.store import Job, JobStore
from jobhub.core.trigger import CronTrigger, OneShotTrigger, TriggerScheduler

__all__ = [
    "Hub",
    "Job",
    "JobStore",
    "PersistenceGate",
    "WorkerRegistry",
    "TriggerScheduler",
    "OneShotTrigger",
    "CronTrigger",
    "ExecutionPipeline",
    "LogSink",
    "LogSinkFactory",
]
