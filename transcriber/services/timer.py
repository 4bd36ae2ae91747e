"""Periodic timer used to drive annotation passes."""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RepeatingTimer:
    """Calls ``callback`` immediately, then every ``interval`` seconds until cancelled."""

    def __init__(self, interval: float, callback: Callable[[], None],
                 name: str = "AnnotationTimerThread"):
        if interval <= 0:
            raise ValueError("Timer interval must be positive")
        self.interval = interval
        self.callback = callback
        self.name = name
        self._cancelled = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_active(self) -> bool:
        return self._thread is not None and not self._cancelled.is_set()

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("Timer already started")
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.name = self.name
        self._thread.start()

    def cancel(self) -> None:
        """Disarm the timer; no callback starts after this returns."""
        self._cancelled.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=max(1.0, self.interval))
            if self._thread.is_alive():
                logger.warning(f"{self.name} did not stop cleanly")

    def _run(self) -> None:
        while not self._cancelled.is_set():
            self.callback()
            if self._cancelled.wait(self.interval):
                break
