# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""ReloadCoordinator - debounced reload on external file changes.

Editors often touch a file several times for one logical save (write then
rename, truncate then write). Each notify() restarts a fixed delay; only
when the delay elapses without a newer notification does the reload run.

State machine::

    idle --notify()--> pending(timer, generation)
    pending --notify()--> pending(new timer, generation + 1)
    pending --timer fires, generation current--> reload(); on_reloaded(); idle
    any --close()--> closed (pending timer cancelled, late timers ignored,
                             running reload awaited, its callback skipped)

Timers run on background threads. A timer that fires after being superseded
compares its captured generation with the current one and does nothing.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)

RELOAD_DELAY = 0.5


class ReloadCoordinator:
    """Coalesce bursts of change notifications into a single reload.

    Args:
        reload: Called on a background thread once the delay elapses.
            Exceptions are logged and swallowed.
        on_reloaded: Called after a successful reload that is still current.
            Exceptions are logged and swallowed.
        delay: Quiet period in seconds before reloading.

    Example:
        >>> coordinator = ReloadCoordinator(provider.load, notify_listeners)
        >>> coordinator.notify()   # reload runs 0.5s later
        >>> coordinator.close()
    """

    def __init__(
        self,
        reload: Callable[[], None],
        on_reloaded: Callable[[], None] | None = None,
        delay: float = RELOAD_DELAY,
    ) -> None:
        if delay < 0:
            raise ValueError(f"delay must not be negative, not {delay}")
        self._reload = reload
        self._on_reloaded = on_reloaded
        self._delay = delay
        self._lock = threading.Lock()
        self._generation = 0
        self._timer: threading.Timer | None = None
        self._closed = False
        self._firing: set[threading.Thread] = set()
        self._done = threading.Condition(self._lock)

    def __enter__(self) -> ReloadCoordinator:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        """True while a reload is scheduled and not yet started."""
        with self._lock:
            return self._timer is not None

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def notify(self) -> None:
        """Restart the delay; the previous pending reload, if any, is dropped."""
        with self._lock:
            if self._closed:
                return
            self._generation += 1
            generation = self._generation
            if self._timer is not None:
                self._timer.cancel()
            timer = threading.Timer(self._delay, self._fire, args=(generation,))
            timer.daemon = True
            self._timer = timer
            timer.start()
        logger.debug("reload scheduled in %.3fs (generation %d)", self._delay, generation)

    def _fire(self, generation: int) -> None:
        with self._lock:
            if self._closed or generation != self._generation:
                return
            self._timer = None
            self._firing.add(threading.current_thread())

        try:
            try:
                self._reload()
            except Exception:
                logger.exception("background configuration reload failed")
                return

            with self._lock:
                if self._closed or generation != self._generation:
                    return
            logger.info("configuration reloaded")
            if self._on_reloaded is not None:
                try:
                    self._on_reloaded()
                except Exception:
                    logger.exception("reload notification failed")
        finally:
            with self._lock:
                self._firing.discard(threading.current_thread())
                self._done.notify_all()

    def close(self) -> None:
        """Cancel any pending reload and refuse further notifications.

        A reload already running is allowed to finish, and close() waits for
        it; a reload that finishes after close() skips on_reloaded. Once
        close() returns, no reload or callback is running or will start.
        Called from inside reload or on_reloaded, it does not wait for itself.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._generation += 1
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            current = threading.current_thread()
            while self._firing - {current}:
                self._done.wait()
