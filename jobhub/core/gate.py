#!/usr/bin/env python3
"""
Persistence gate: single-slot access to the SQLite store.

SQLite tolerates one writer at a time, so every store operation, reads
included, runs inside the gate. This is the only lock around the store.
"""

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional, TypeVar, Union

from decologr import Logger as log

from jobhub.errors import PersistenceError

T = TypeVar("T")


class PersistenceGate:
    """
    Owns the store connection and hands it out to one caller at a time.

    :param db_path: SQLite database file, or ":memory:"
    """

    def __init__(self, db_path: Union[str, Path]):
        if str(db_path) != ":memory:":
            db_path = Path(db_path)
            db_path.parent.mkdir(parents=True, exist_ok=True)
        self.db_path = db_path
        self._slot = threading.BoundedSemaphore(1)
        try:
            self._conn: Optional[sqlite3.Connection] = self._connect()
        except sqlite3.Error as ex:
            raise PersistenceError(f"Cannot open store {db_path}: {ex}") from ex

    def _connect(self) -> sqlite3.Connection:
        """Open the shared connection with proper settings"""
        conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        conn.row_factory = sqlite3.Row  # Enable column access by name
        return conn

    @contextmanager
    def access(self) -> Iterator[sqlite3.Connection]:
        """Hold the slot for the duration of the block."""
        self._slot.acquire()
        try:
            if self._conn is None:
                raise PersistenceError("jobhub: store is closed")
            yield self._conn
        finally:
            self._slot.release()

    def exclusive(self, fn: Callable[[sqlite3.Connection], T]) -> T:
        """
        Run ``fn(connection)`` while holding the slot.

        The slot is released on every exit path; ``fn``'s result is returned
        and its exception propagates unchanged.
        """
        with self.access() as conn:
            return fn(conn)

    @property
    def closed(self) -> bool:
        return self._conn is None

    def close(self) -> None:
        """Close the connection once no caller holds the slot."""
        with self._slot:
            if self._conn is None:
                return
            self._conn.close()
            self._conn = None
        log.debug(f"Closed store {self.db_path}")
