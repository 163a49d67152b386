"""Hot-reload watcher for skill bundles."""

import logging
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class HotReloader:
    """File-change watcher that re-indexes skills when markdown changes."""

    def __init__(
        self,
        watch_paths: list,
        on_change: Optional[Callable] = None,
        auto_reload: bool = True,
        check_interval: float = 2.0,
    ):
        self.watch_paths = [Path(p).expanduser() for p in watch_paths]
        self.on_change = on_change  # callback e.g. registry.refresh
        self.auto_reload = auto_reload
        self.check_interval = check_interval
        self._last_check = 0.0
        self._watch_mtimes: Dict[str, float] = {}
        self.refresh_snapshot()

    def _iter_watch_files(self):
        """Yield markdown files under every watched path."""
        for root in self.watch_paths:
            if root.is_dir():
                yield from root.glob("**/*.md")

    def _snapshot(self) -> Dict[str, float]:
        snapshot: Dict[str, float] = {}
        for path in self._iter_watch_files():
            try:
                if path.is_file():
                    snapshot[str(path)] = path.stat().st_mtime
            except OSError:
                continue
        return snapshot

    def refresh_snapshot(self):
        """Capture latest file mtimes for watched files."""
        self._watch_mtimes = self._snapshot()

    def _detect_changed_files(self) -> List[Path]:
        """Return files added, modified or removed since the last snapshot."""
        current = self._snapshot()
        changed = [
            Path(key) for key, mtime in current.items()
            if self._watch_mtimes.get(key) is None or mtime > self._watch_mtimes[key]
        ]
        changed.extend(Path(key) for key in self._watch_mtimes if key not in current)
        self._watch_mtimes = current
        return sorted(changed)

    def check_and_apply(self) -> List[Path]:
        """Re-index skills if watched files changed; return the changed paths."""
        if not self.auto_reload:
            return []
        now = time.monotonic()
        if self._last_check and now - self._last_check < self.check_interval:
            return []
        self._last_check = now

        changed = self._detect_changed_files()
        if not changed:
            return []

        if self.on_change is not None:
            self.on_change()
        logger.info("Skill hot-reload applied: %s", [str(p) for p in changed])
        return changed

    def run_forever(self, stop: Optional[Callable[[], bool]] = None):
        """Poll until *stop* returns True (or forever)."""
        while stop is None or not stop():
            self.check_and_apply()
            time.sleep(self.check_interval)
