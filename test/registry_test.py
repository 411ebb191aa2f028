"""
WorkerRegistry tests

Test items:
1. Distinct names register
2. Duplicate name is rejected without overwriting
3. None worker is rejected with its own error
4. Names that are not plain directory names are rejected
5. Lookup of unknown names
6. Concurrent readers do not block each other

Run: python -m pytest test/registry_test.py -v
"""

import threading

import pytest

from jobhub.core.registry import ReadWriteLock, WorkerRegistry
from jobhub.errors import (
    DuplicateWorkerError,
    NilWorkerError,
    RegistrationError,
    WorkerNotFoundError,
)


class EchoWorker:
    def __init__(self, name="echo"):
        self._name = name

    def name(self):
        return self._name

    def run(self, data, log):
        log.write(data.decode())
        return 0, None


class TestRegister:
    """Registration invariants"""

    def test_distinct_names_both_succeed(self):
        registry = WorkerRegistry()
        registry.register("a", EchoWorker("a"))
        registry.register("b", EchoWorker("b"))
        assert registry.names() == ["a", "b"]
        assert len(registry) == 2
        assert "a" in registry

    def test_duplicate_name_fails(self):
        registry = WorkerRegistry()
        first = EchoWorker()
        registry.register("echo", first)
        with pytest.raises(DuplicateWorkerError) as exc_info:
            registry.register("echo", EchoWorker())
        assert exc_info.value.name == "echo"
        assert registry.get("echo") is first

    def test_none_worker_fails_with_distinct_error(self):
        registry = WorkerRegistry()
        with pytest.raises(NilWorkerError):
            registry.register("echo", None)
        assert "echo" not in registry
        assert not issubclass(NilWorkerError, DuplicateWorkerError)

    def test_empty_name_fails(self):
        registry = WorkerRegistry()
        with pytest.raises(RegistrationError):
            registry.register("", EchoWorker())

    @pytest.mark.parametrize("name", ["..", ".", "../escape", "a/b", "/abs", "a\\b"])
    def test_name_that_would_leave_log_dir_fails(self, name):
        registry = WorkerRegistry()
        with pytest.raises(RegistrationError):
            registry.register(name, EchoWorker(name))
        assert name not in registry

    def test_dotted_name_allowed(self):
        registry = WorkerRegistry()
        registry.register("reports.daily", EchoWorker("reports.daily"))
        assert "reports.daily" in registry

    def test_must_register_reraises(self):
        registry = WorkerRegistry()
        registry.must_register("echo", EchoWorker())
        with pytest.raises(DuplicateWorkerError):
            registry.must_register("echo", EchoWorker())


class TestLookup:
    """Lookup"""

    def test_unknown_name(self):
        registry = WorkerRegistry()
        with pytest.raises(WorkerNotFoundError):
            registry.get("missing")

    def test_readers_share_the_lock(self):
        lock = ReadWriteLock()
        inside = threading.Barrier(3, timeout=2)

        def reader():
            with lock.read():
                inside.wait()

        threads = [threading.Thread(target=reader) for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)
        assert not any(t.is_alive() for t in threads)
        assert not inside.broken

    def test_writer_waits_for_reader(self):
        lock = ReadWriteLock()
        events = []
        reader_in = threading.Event()
        release_reader = threading.Event()

        def reader():
            with lock.read():
                reader_in.set()
                release_reader.wait(2)
                events.append("reader-out")

        def writer():
            reader_in.wait(2)
            with lock.write():
                events.append("writer-in")

        threads = [threading.Thread(target=reader), threading.Thread(target=writer)]
        for t in threads:
            t.start()
        reader_in.wait(2)
        release_reader.set()
        for t in threads:
            t.join(timeout=5)
        assert events == ["reader-out", "writer-in"]
