import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class TickHandle:
    """Cancellation handle for a repeating tick."""

    def __init__(self):
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()


class TickScheduler(ABC):
    """Clock abstraction the orchestrator uses for its round timer."""

    @abstractmethod
    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> TickHandle:
        raise NotImplementedError


class ManualTickScheduler(TickScheduler):
    """Virtual clock. Ticks fire only when `advance()` is called."""

    def __init__(self):
        self.now = 0.0
        self._jobs: List[dict] = []

    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> TickHandle:
        if interval <= 0:
            raise ValueError("interval must be > 0")
        handle = TickHandle()
        self._jobs.append({'interval': interval, 'callback': callback, 'handle': handle, 'due': self.now + interval})
        return handle

    @property
    def active_jobs(self) -> int:
        return sum(1 for job in self._jobs if not job['handle'].cancelled)

    def advance(self, seconds: float) -> None:
        """Move virtual time forward, firing due ticks in time order."""
        target = self.now + seconds
        while True:
            self._jobs = [job for job in self._jobs if not job['handle'].cancelled]
            due = [job for job in self._jobs if job['due'] <= target]
            if not due:
                break
            job = min(due, key=lambda j: j['due'])
            self.now = job['due']
            job['due'] += job['interval']
            job['callback']()
        self.now = target


class ThreadingTickScheduler(TickScheduler):
    """Wall-clock ticks on a daemon thread per job."""

    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> TickHandle:
        if interval <= 0:
            raise ValueError("interval must be > 0")
        handle = TickHandle()

        def run():
            # Event.wait returns True once cancelled
            while not handle._cancelled.wait(interval):
                try:
                    callback()
                except Exception:
                    logger.exception("Tick callback failed")

        thread = threading.Thread(target=run, name="tsr-round-timer", daemon=True)
        thread.start()
        return handle


def cancel_quietly(handle: Optional[TickHandle]) -> None:
    if handle is not None:
        handle.cancel()
