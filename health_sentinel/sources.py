"""Target providers: a fixed list, or a YAML file that is watched for edits."""

from __future__ import annotations

import functools
import logging
from typing import Any, Iterable, List, Sequence, Tuple

import yaml

from health_sentinel.config.watcher import FileWatcher
from health_sentinel.constants import DEFAULT_WATCH_DEBOUNCE, DEFAULT_WATCH_INTERVAL
from health_sentinel.errors import ConfigurationError
from health_sentinel.monitor.types import Listener, TargetProvider

logger = logging.getLogger(__name__)


def _normalise(targets: Iterable[Any]) -> Tuple[str, ...]:
    seen = set()
    out: List[str] = []
    for item in targets:
        if not isinstance(item, str):
            raise ValueError(f"target entries must be strings, got {type(item).__name__}")
        target = item.strip()
        if target and target not in seen:
            seen.add(target)
            out.append(target)
    return tuple(out)


class StaticTargetProvider(TargetProvider):
    """A fixed target list that never changes."""

    def __init__(self, targets: Iterable[str]) -> None:
        self._targets = _normalise(targets)

    def current_targets(self) -> Sequence[str]:
        return self._targets


def read_target_file(path: str) -> Tuple[str, ...]:
    """Parse a target file.

    The file holds either a YAML list of targets or a mapping with a
    ``targets`` list.  Blank and duplicate entries are dropped.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return ()
    if isinstance(data, dict):
        data = data.get("targets") or []
    if not isinstance(data, list):
        raise ValueError("target file must contain a list or a mapping with a 'targets' list")
    return _normalise(data)


class FileTargetProvider(TargetProvider):
    """Targets read from a YAML file, re-read whenever the file changes.

    Registered listeners are notified after a reload that changed the list.
    The first read happens in the constructor and is fatal on error; later
    reload errors are logged and the previous list is kept.

    Parameters
    ----------
    path:
        Target file path.
    poll_interval:
        Seconds between mtime polls once :meth:`start` is called.
    debounce:
        Seconds a change must settle before the file is re-read.
    """

    def __init__(
        self,
        path: str,
        *,
        poll_interval: float = DEFAULT_WATCH_INTERVAL,
        debounce: float = DEFAULT_WATCH_DEBOUNCE,
    ) -> None:
        self._path = path
        try:
            targets = read_target_file(path)
        except (OSError, ValueError, yaml.YAMLError) as exc:
            raise ConfigurationError(f"Cannot read target file {path}: {exc}") from exc

        self._targets = targets
        self._listeners: List[Listener] = []
        self._watcher: FileWatcher[Tuple[str, ...]] = FileWatcher(
            path,
            functools.partial(read_target_file, path),
            self._apply,
            initial=targets,
            poll_interval=poll_interval,
            debounce=debounce,
        )
        logger.info("Loaded %d target(s) from %s", len(targets), path)

    @property
    def path(self) -> str:
        return self._path

    def current_targets(self) -> Sequence[str]:
        return self._targets

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def reload(self) -> bool:
        """Re-read the file now.  Returns ``True`` if the target list changed."""
        return self._watcher.refresh()

    def _apply(self, targets: Tuple[str, ...]) -> None:
        logger.info(
            "Target file %s changed: %d -> %d target(s)",
            self._path,
            len(self._targets),
            len(targets),
        )
        self._targets = targets
        for listener in self._listeners:
            listener.notify()

    # ── Lifecycle ────────────────────────────────────────────────────

    def start(self) -> None:
        """Start watching the file.  Requires a running event loop."""
        self._watcher.start()

    async def stop(self) -> None:
        await self._watcher.stop()
