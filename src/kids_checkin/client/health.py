from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from ..core.constants import DEFAULT_HEALTH_POLL_SECONDS

logger = logging.getLogger(__name__)


class HealthMonitor:
    """Polls the liveness probe on a fixed interval in a daemon thread.

    ``is_backend_up`` is None until the first probe completes.
    """

    def __init__(
        self,
        probe: Callable[[], bool],
        *,
        interval: float = DEFAULT_HEALTH_POLL_SECONDS,
        on_change: Optional[Callable[[bool], None]] = None,
    ):
        self._probe = probe
        self._interval = float(interval)
        self._on_change = on_change
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.is_backend_up: Optional[bool] = None

    def check_once(self) -> bool:
        try:
            up = bool(self._probe())
        except Exception:
            logger.exception("health probe raised")
            up = False

        changed = up != self.is_backend_up
        self.is_backend_up = up
        if changed:
            logger.info("backend is %s", "up" if up else "down")
            if self._on_change:
                self._on_change(up)
        return up

    def _run(self) -> None:
        while not self._stop.is_set():
            self.check_once()
            self._stop.wait(self._interval)

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="health-monitor", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout)
            self._thread = None
