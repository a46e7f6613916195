"""
Polling oracle used for every "wait until X is visible" check.

A timeout is a normal negative answer, not an error: wait() returns False and
the caller decides what a missing modal, panel or tab means.
"""

import logging
import time
from typing import Callable

from selenium.common.exceptions import WebDriverException

from .config import POLL_INTERVAL

logger = logging.getLogger(__name__)


class PollingOracle:
    """Samples predicates against live page state.

    clock and sleep are injectable so tests can run every wait instantly.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        self.clock = clock
        self.sleep = sleep

    def wait(self, predicate: Callable[[], bool], timeout: float,
             poll_interval: float = POLL_INTERVAL, description: str = None) -> bool:
        """Return True as soon as predicate() is true, False once timeout has elapsed"""
        if description:
            logger.info(f"🔍 Waiting for {description} (up to {timeout}s)...")

        start = self.clock()
        while True:
            if self._sample(predicate):
                if description:
                    logger.info(f"✅ {description} confirmed")
                return True
            if self.clock() - start >= timeout:
                if description:
                    logger.warning(f"❌ {description} not detected after {timeout}s")
                return False
            self.sleep(poll_interval)

    def pause(self, seconds: float):
        """Fixed delay between UI actions"""
        if seconds > 0:
            self.sleep(seconds)

    def _sample(self, predicate: Callable[[], bool]) -> bool:
        try:
            return bool(predicate())
        except WebDriverException as e:
            # Elements going stale while the page re-renders count as "not yet"
            logger.debug(f"Predicate raised during polling: {e.__class__.__name__}")
            return False
