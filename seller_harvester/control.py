"""
START / STOP control channel.

START runs the engine in a background thread unless a run is already active;
STOP only raises the cancellation flag, the engine stops at its next check.
"""

import logging
import threading
from typing import Optional

from .engine import RunSummary, SellerIterationEngine

logger = logging.getLogger(__name__)

START = "START"
STOP = "STOP"


class ControlChannel:

    def __init__(self, engine: SellerIterationEngine):
        self.engine = engine
        self.last_summary: Optional[RunSummary] = None
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self.engine.is_active or (self._thread is not None and self._thread.is_alive())

    def send(self, action: str) -> bool:
        """Deliver a command; returns False when START is rejected"""
        if action == START:
            with self._lock:
                if self.running:
                    logger.warning("⚠️ Automation already running")
                    return False
                self.engine.cancel_token.reset()
                self._thread = threading.Thread(target=self._run, name="seller-harvester", daemon=True)
                self._thread.start()
            return True

        if action == STOP:
            self.engine.stop()
            return True

        raise ValueError(f"Unknown control action: {action}")

    def _run(self):
        self.last_summary = self.engine.start()

    def wait(self, poll_interval: float = 0.5) -> Optional[RunSummary]:
        """Block until the current run ends.

        Joins in short slices so signal handlers still run in the main thread.
        """
        while self._thread is not None and self._thread.is_alive():
            self._thread.join(poll_interval)
        return self.last_summary
