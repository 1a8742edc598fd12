# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""File-change sources for reload-on-change providers.

A watcher reports that a file may have changed; it does not read it. The
provider passes the notification to its ReloadCoordinator, which coalesces
bursts into one reload.

PollingFileWatcher compares the file's stat signature every `interval`
seconds. It works on every platform and filesystem (including network and
container mounts), at the cost of up to one interval of latency.
"""

from __future__ import annotations

import logging
import os
import threading
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

POLL_INTERVAL = 1.0

ChangeCallback = Callable[[], None]
_Signature = tuple[int, int, int] | None


class WatchHandle(Protocol):
    """Subscription returned by FileWatcher.watch()."""

    def close(self) -> None:
        """Stop delivering notifications; safe to call more than once."""
        ...


class FileWatcher(Protocol):
    """Anything that can report changes of a single file."""

    def watch(self, path: str | os.PathLike[str], callback: ChangeCallback) -> WatchHandle:
        ...


def _signature(path: str) -> _Signature:
    try:
        st = os.stat(path)
    except FileNotFoundError:
        return None
    return (st.st_mtime_ns, st.st_size, st.st_ino)


class _PollingWatch:
    """One polling thread for one file."""

    def __init__(self, path: str, callback: ChangeCallback, interval: float) -> None:
        self._path = path
        self._callback = callback
        self._interval = interval
        self._stopped = threading.Event()
        self._last = _signature(path)
        self._thread = threading.Thread(
            target=self._run,
            name=f"xmlconfig-watch:{os.path.basename(path)}",
            daemon=True,
        )
        self._thread.start()

    def _run(self) -> None:
        logger.debug("polling %s every %.2fs", self._path, self._interval)
        while not self._stopped.wait(self._interval):
            current = _signature(self._path)
            if current == self._last:
                continue
            self._last = current
            try:
                self._callback()
            except Exception:
                logger.exception("change callback failed for %s", self._path)

    def close(self) -> None:
        self._stopped.set()
        if self._thread is not threading.current_thread():
            self._thread.join()


class PollingFileWatcher:
    """FileWatcher that polls the file signature on a daemon thread.

    A change is any difference in (mtime_ns, size, inode), including the
    file appearing or disappearing.

    Example:
        >>> watcher = PollingFileWatcher(interval=0.2)
        >>> handle = watcher.watch('settings.xml', lambda: print('changed'))
        >>> handle.close()
    """

    def __init__(self, interval: float = POLL_INTERVAL) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, not {interval}")
        self.interval = interval

    def watch(self, path: str | os.PathLike[str], callback: ChangeCallback) -> _PollingWatch:
        return _PollingWatch(os.fspath(path), callback, self.interval)
