# backend/utils/scheduler.py
import logging
import threading
from contextlib import contextmanager
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Runs ``callback`` every ``interval`` seconds on a daemon thread.

    A run that is still in flight makes the next trigger a no-op, and an
    exception from ``callback`` is logged without stopping the schedule.
    """

    def __init__(self, name: str, interval: float, callback: Callable[[], object], run_on_start: bool = False):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.name = name
        self.interval = interval
        self.callback = callback
        self.run_on_start = run_on_start
        self._running = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @contextmanager
    def exclusive(self):
        """Hold the run guard for work done outside the schedule.

        Yields False without waiting when a run is already in flight.
        """
        acquired = self._running.acquire(blocking=False)
        try:
            yield acquired
        finally:
            if acquired:
                self._running.release()

    def run_once(self) -> bool:
        """Run the callback now unless a run is already in progress.

        Returns True when the callback was invoked (even if it raised).
        """
        with self.exclusive() as acquired:
            if not acquired:
                logger.warning("Task %s still running, skipping this trigger", self.name)
                return False
            try:
                result = self.callback()
                logger.info("Task %s finished: %s", self.name, result)
            except Exception:
                logger.exception("Task %s failed", self.name)
        return True

    def _loop(self):
        if self.run_on_start:
            self.run_once()
        while not self._stop.wait(self.interval):
            self.run_once()

    def start(self):
        if self.is_alive:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name=f"periodic-{self.name}", daemon=True)
        self._thread.start()
        logger.info("Task %s scheduled every %ss", self.name, self.interval)

    def stop(self, timeout: Optional[float] = 5.0):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
