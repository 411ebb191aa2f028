"""
Shared fixtures: hubs and stores rooted in pytest's tmp_path.
"""

import logging
import time

import pytest

from jobhub.config import HubConfig
from jobhub.core.gate import PersistenceGate
from jobhub.core.hub import Hub
from jobhub.core.sink import LogSinkFactory
from jobhub.core.store import JobStore

logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


def wait_for(predicate, timeout: float = 5.0, interval: float = 0.02):
    """Poll ``predicate`` until it returns truthy or ``timeout`` expires."""
    deadline = time.monotonic() + timeout
    while True:
        result = predicate()
        if result or time.monotonic() >= deadline:
            return result
        time.sleep(interval)


def wait_until_done(hub: Hub, job_id: str, timeout: float = 5.0):
    """Wait for a job to leave the pending state and return its row."""
    wait_for(lambda: not hub.detail(job_id).pending, timeout=timeout)
    return hub.detail(job_id)


@pytest.fixture
def config(tmp_path):
    return HubConfig(
        db_path=tmp_path / "jobs.db",
        log_dir=tmp_path / "logs",
        queue_delay=0.05,
        shutdown_timeout=2.0,
    )


@pytest.fixture
def hub(config):
    h = Hub(config)
    yield h
    h.close()


@pytest.fixture
def slow_hub(config):
    """Hub whose one-shot triggers never fire during a test."""
    h = Hub(config.with_overrides(queue_delay=600.0))
    yield h
    h.close(wait=False)


@pytest.fixture
def store(tmp_path):
    gate = PersistenceGate(tmp_path / "store.db")
    s = JobStore(gate)
    s.init_schema()
    yield s
    gate.close()


@pytest.fixture
def sinks(tmp_path):
    return LogSinkFactory(tmp_path / "logs")
