#!/usr/bin/env python3
"""
Worker registry: maps worker names to workers.

Written once per worker type at startup and read on every submission, so
lookups take a shared lock and registration an exclusive one.
"""

import threading
from contextlib import contextmanager
from typing import Dict, List

from decologr import Logger as log

from jobhub.errors import (
    DuplicateWorkerError,
    NilWorkerError,
    RegistrationError,
    WorkerNotFoundError,
)
from jobhub.worker import Worker


class ReadWriteLock:
    """Many concurrent readers or a single writer."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False

    @contextmanager
    def read(self):
        with self._cond:
            while self._writer:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self):
        with self._cond:
            while self._writer or self._readers:
                self._cond.wait()
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class WorkerRegistry:
    """Name -> worker table. Entries are never replaced or removed."""

    def __init__(self):
        self._workers: Dict[str, Worker] = {}
        self._lock = ReadWriteLock()

    def register(self, name: str, worker: Worker) -> None:
        """
        Register a worker under ``name``.

        :param name: Unique worker name
        :param worker: Object implementing ``name()`` and ``run(data, log)``
        :raises NilWorkerError: worker is None
        :raises DuplicateWorkerError: name already registered
        :raises RegistrationError: name is empty or not usable as a directory name
        """
        if worker is None:
            raise NilWorkerError(name)
        if not name:
            raise RegistrationError("jobhub: worker name must not be empty")
        # The name becomes a directory under the log root
        if name in (".", "..") or "/" in name or "\\" in name or "\0" in name:
            raise RegistrationError(f"jobhub: worker name {name!r} is not a valid directory name")
        with self._lock.write():
            if name in self._workers:
                raise DuplicateWorkerError(name)
            self._workers[name] = worker
        log.info(f"Registered worker {name}")

    def must_register(self, name: str, worker: Worker) -> None:
        """Register at startup; failures are logged as critical and re-raised."""
        try:
            self.register(name, worker)
        except RegistrationError as ex:
            log.critical(f"Cannot register worker {name}", exception=ex)
            raise

    def get(self, name: str) -> Worker:
        """
        Look up a worker.

        :raises WorkerNotFoundError: name was never registered
        """
        with self._lock.read():
            worker = self._workers.get(name)
        if worker is None:
            raise WorkerNotFoundError(name)
        return worker

    def names(self) -> List[str]:
        with self._lock.read():
            return sorted(self._workers)

    def __contains__(self, name: str) -> bool:
        with self._lock.read():
            return name in self._workers

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._workers)
