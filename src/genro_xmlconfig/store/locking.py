# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Synchronization primitives for the configuration store.

Two scopes, never mixed:
    - ReaderWriterLock: one per ConfigStore, guards the in-memory snapshot.
    - file_lock(path): one per backing file for the whole process, guards
      reads and writes of the file itself across provider instances.
"""

from __future__ import annotations

import os
import threading
from contextlib import contextmanager
from typing import Iterator


class ReaderWriterLock:
    """Multiple-readers / single-writer lock with writer preference.

    Readers share the lock; a writer excludes readers and other writers.
    Once a writer is waiting, new readers queue behind it. The lock is not
    reentrant.

    Example:
        >>> lock = ReaderWriterLock()
        >>> with lock.read():
        ...     pass
        >>> with lock.write():
        ...     pass
    """

    __slots__ = ('_cond', '_readers', '_writer', '_writers_waiting')

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            if self._readers <= 0:
                raise RuntimeError("release_read() called without a held read lock")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            except BaseException:
                # readers may be queued only behind this writer
                self._writers_waiting -= 1
                if not self._writers_waiting and not self._writer:
                    self._cond.notify_all()
                raise
            self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            if not self._writer:
                raise RuntimeError("release_write() called without a held write lock")
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read(self) -> Iterator[None]:
        """Hold the lock in shared mode for the duration of the block."""
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write(self) -> Iterator[None]:
        """Hold the lock in exclusive mode for the duration of the block."""
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


_registry_lock = threading.Lock()
_file_locks: dict[str, threading.Lock] = {}


def _lock_key(path: str | os.PathLike[str]) -> str:
    return os.path.normcase(os.path.abspath(os.fspath(path)))


def file_lock(path: str | os.PathLike[str]) -> threading.Lock:
    """Return the process-wide lock for path.

    Every caller naming the same file, through any relative or absolute
    spelling, gets the same lock object.
    """
    key = _lock_key(path)
    with _registry_lock:
        lock = _file_locks.get(key)
        if lock is None:
            lock = _file_locks[key] = threading.Lock()
        return lock
