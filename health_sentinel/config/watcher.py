"""Poll-based file watcher that reloads content and reports real changes.

The watcher polls the file's mtime on an asyncio task.  Once an mtime change
has stayed put for the debounce period it calls ``load`` and compares the
result with the last accepted value; ``on_change`` only runs when the parsed
content actually differs.  Polling keeps the behaviour the same on every
platform and on network filesystems.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from typing import Callable, Generic, Optional, TypeVar

from health_sentinel.constants import DEFAULT_WATCH_DEBOUNCE, DEFAULT_WATCH_INTERVAL

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FileWatcher(Generic[T]):
    """Keep a value parsed from *path* in sync with the file.

    Parameters
    ----------
    path:
        File to watch.  A missing file is treated as unchanged.
    load:
        Parses the file.  Errors are logged and the previous value is kept.
    on_change:
        Called with the new value after a reload produced different content.
    initial:
        Value already loaded by the caller.
    poll_interval:
        Seconds between ``os.stat`` polls.
    debounce:
        Seconds an mtime change must settle before the file is reloaded, so
        a burst of writes from an editor produces one reload.
    """

    def __init__(
        self,
        path: str,
        load: Callable[[], T],
        on_change: Callable[[T], None],
        *,
        initial: Optional[T] = None,
        poll_interval: float = DEFAULT_WATCH_INTERVAL,
        debounce: float = DEFAULT_WATCH_DEBOUNCE,
    ) -> None:
        self._path = path
        self._load = load
        self._on_change = on_change
        self._value: Optional[T] = initial
        self._poll_interval = poll_interval
        self._debounce = debounce

        self._seen_mtime = self._mtime()
        self._changed_at: Optional[float] = None
        self._task: Optional[asyncio.Task[None]] = None
        self._stop_event = asyncio.Event()

    @property
    def value(self) -> Optional[T]:
        """Last successfully loaded value."""
        return self._value

    @property
    def watching(self) -> bool:
        return self._task is not None and not self._task.done()

    # ── Reload ───────────────────────────────────────────────────────

    def refresh(self) -> bool:
        """Reload the file now.  Returns ``True`` if ``on_change`` ran."""
        try:
            fresh = self._load()
        except Exception as exc:
            logger.warning("Keeping previous content; cannot reload %s: %s", self._path, exc)
            return False

        if fresh == self._value:
            logger.debug("Reloaded %s; content unchanged", self._path)
            return False

        self._value = fresh
        try:
            self._on_change(fresh)
        except Exception:
            logger.exception("Error applying new content of %s", self._path)
        return True

    def poll(self, now: Optional[float] = None) -> bool:
        """Run one watch step.  Returns ``True`` if the file was reloaded with changes.

        An mtime change starts the debounce clock; the reload happens on the
        first step at which the mtime has not moved for ``debounce`` seconds.
        """
        if now is None:
            now = time.monotonic()

        mtime = self._mtime()
        if mtime != self._seen_mtime:
            if mtime != 0.0:
                logger.debug("Change detected in %s, debouncing", self._path)
                self._changed_at = now
            self._seen_mtime = mtime
            return False

        if self._changed_at is None or now - self._changed_at < self._debounce:
            return False

        self._changed_at = None
        return self.refresh()

    # ── Lifecycle ────────────────────────────────────────────────────

    def start(self) -> None:
        """Begin watching.  Safe to call multiple times."""
        if self.watching:
            return
        self._stop_event.clear()
        self._seen_mtime = self._mtime()
        self._changed_at = None
        self._task = asyncio.create_task(self._run(), name=f"file-watcher:{self._path}")
        logger.info("Watching %s for changes", self._path)

    async def stop(self) -> None:
        """Stop watching and wait for the poll task to exit."""
        self._stop_event.set()
        if self._task is None:
            return
        await asyncio.wait({self._task})
        self._task = None
        logger.info("Stopped watching %s", self._path)

    async def _run(self) -> None:
        while True:
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._poll_interval)
                return
            except asyncio.TimeoutError:
                pass
            self.poll()

    def _mtime(self) -> float:
        try:
            return os.stat(self._path).st_mtime
        except OSError:
            return 0.0
