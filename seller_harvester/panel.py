import logging

from selenium.common.exceptions import WebDriverException

from .config import (
    FILTERS_MENU_DELAY,
    MODAL_TIMEOUT,
    PANEL_MAX_RETRIES,
    PANEL_RETRY_DELAY,
    SELLER_PANEL_TIMEOUT,
    SOLD_BY_DELAY,
)
from .polling import PollingOracle
from .probe import PageProbe

logger = logging.getLogger(__name__)


class PanelOpener:
    """Brings the filter modal and its "Sold by" panel into the open state"""

    def __init__(self, probe: PageProbe, oracle: PollingOracle = None, cancel_token=None,
                 max_retries: int = PANEL_MAX_RETRIES, retry_delay: float = PANEL_RETRY_DELAY):
        self.probe = probe
        self.oracle = oracle or PollingOracle()
        self.cancel_token = cancel_token
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    def open(self, max_retries: int = None) -> bool:
        """Open filters and the seller panel; True once both are open.

        Safe to call when the panel is already open.
        """
        if max_retries is None:
            max_retries = self.max_retries
        for attempt in range(1, max_retries + 1):
            if self.cancel_token is not None and self.cancel_token.cancelled:
                logger.info("🛑 Stop requested - not opening seller panel")
                return False

            if self.probe.is_seller_panel_open():
                return True

            logger.info(f"🔄 Opening filters and seller panel (attempt {attempt}/{max_retries})")
            if not self.probe.is_modal_open():
                self.probe.open_filters()
                self.oracle.pause(FILTERS_MENU_DELAY)

            if not self.oracle.wait(self.probe.is_modal_open, MODAL_TIMEOUT, description="filters modal"):
                self.oracle.pause(self.retry_delay)
                continue

            self.probe.open_seller_panel()
            self.oracle.pause(SOLD_BY_DELAY)
            if self.oracle.wait(self.probe.is_seller_panel_open, SELLER_PANEL_TIMEOUT,
                                description="seller panel"):
                return True

            self._close_modal()
            self.oracle.pause(self.retry_delay)

        logger.error(f"❌ Could not open seller panel after {max_retries} attempts")
        return False

    def _close_modal(self):
        try:
            self.probe.close_modal()
        except WebDriverException as e:
            logger.debug(f"Closing filters modal failed: {e}")
