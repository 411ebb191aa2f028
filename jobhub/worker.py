#!/usr/bin/env python3
"""
Worker contract and the @jobhub.worker decorator.

A worker is anything with ``name()`` and ``run(data, log)``. ``run`` gets the
payload bytes and a log sink, and returns ``(status, error)`` where status 0
means success and any other value is a worker-defined failure code.
"""

import functools
from typing import Any, Callable, Optional, Protocol, Tuple, runtime_checkable

STATUS_OK = 0
STATUS_PENDING = 1
STATUS_CRASHED = -1

RunResult = Tuple[int, Optional[Any]]


@runtime_checkable
class Worker(Protocol):
    """Named capability executing job payloads."""

    def name(self) -> str:
        ...

    def run(self, data: bytes, log) -> RunResult:
        ...


class FunctionWorker:
    """Adapts a plain ``fn(data, log)`` callable into a :class:`Worker`."""

    def __init__(self, name: str, func: Callable[..., Any]):
        self._name = name
        self.func = func
        functools.update_wrapper(self, func)

    def name(self) -> str:
        return self._name

    def run(self, data: bytes, log) -> RunResult:
        result = self.func(data, log)
        # Bare None / int returns are accepted for convenience
        if result is None:
            return STATUS_OK, None
        if isinstance(result, int):
            return result, None
        status, error = result
        return status, error

    def __call__(self, data: bytes, log):
        return self.func(data, log)

    def __repr__(self):
        return f"FunctionWorker({self._name!r})"


def worker(name: Optional[str] = None):
    """
    Decorator that turns a function into a registrable worker.

    :param name: Worker name (defaults to the function name)

    Usage:
        @jobhub.worker("resize_image")
        def resize(data, log):
            log.writeline("resizing")
            return 0, None

        hub.register(resize.name(), resize)
    """

    def decorator(func: Callable) -> FunctionWorker:
        return FunctionWorker(name or func.__name__, func)

    # Allow bare @worker
    if callable(name):
        func, name = name, None
        return decorator(func)
    return decorator
