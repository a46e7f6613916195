"""
Seller iteration engine.

Walks the seller facets of the "Sold by" filter one at a time:

    apply filter -> first product -> new tab -> contact details -> record -> cursor

Every seller produces exactly one record, even when it fails, and the cursor is
persisted right after the record so a restarted run continues with the next
seller. One seller's failure never stops the batch; only a stop request, a
missing seller panel at start or an unwritable store end the run early.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .config import (
    APPLY_CLICKS,
    APPLY_DELAY,
    CLICK_DELAY,
    LISTING_CHECK_TIMEOUT,
    LISTING_TIMEOUT,
    MAX_REOPEN_ATTEMPTS,
    NEXT_SELLER_DELAY,
    RECOVERY_TIMEOUT,
    SELLER_PANEL_TIMEOUT,
    TAB_OPEN_DELAY,
    TAB_READY_TIMEOUT,
    UNCHECK_DELAY,
)
from .extractor import ContactExtractor
from .models import (
    CHECKBOX_MISSING,
    NAVIGATION_FAILED,
    NOT_FOUND,
    POPUP_BLOCKED,
    TAB_LOAD_TIMEOUT,
    UNEXPECTED_ERROR,
    SellerFacet,
    SellerRecord,
)
from .panel import PanelOpener
from .polling import PollingOracle
from .probe import PageProbe
from .progress import ProgressTracker
from .store import TOTAL_SELLERS, ResumeStore, StoreError

logger = logging.getLogger(__name__)

DIVIDER = "━" * 40


class RunState(Enum):
    IDLE = "idle"
    OPENING = "opening"
    PER_SELLER_ACTIVE = "per_seller_active"
    ADVANCING = "advancing"
    COMPLETED = "completed"
    ABORTED = "aborted"
    FATAL = "fatal"


class CancellationToken:
    """Cooperative stop flag shared between the engine and whoever controls it"""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    def reset(self):
        self._event.clear()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class RunSummary:
    state: RunState
    start_index: int = 0
    cursor: int = 0
    total_sellers: int = 0
    processed: int = 0
    found: int = 0
    recovery_failures: int = 0


class SellerIterationEngine:

    def __init__(self, probe: PageProbe, store: ResumeStore,
                 oracle: PollingOracle = None,
                 cancel_token: CancellationToken = None,
                 panel_opener: PanelOpener = None,
                 extractor: ContactExtractor = None,
                 max_reopen_attempts: int = MAX_REOPEN_ATTEMPTS):
        self.probe = probe
        self.store = store
        self.oracle = oracle or PollingOracle()
        self.cancel_token = cancel_token or CancellationToken()
        self.panel = panel_opener or PanelOpener(probe, self.oracle, self.cancel_token)
        self.extractor = extractor or ContactExtractor(self.oracle)
        self.max_reopen_attempts = max_reopen_attempts
        self.progress = ProgressTracker()
        self.state = RunState.IDLE
        self.records: List[SellerRecord] = []
        self._lock = threading.Lock()
        self._active = False

    @property
    def is_active(self) -> bool:
        with self._lock:
            return self._active

    def start(self) -> Optional[RunSummary]:
        """Run until every seller is done or a stop is requested.

        Returns None without doing anything when a run is already in progress.
        """
        with self._lock:
            if self._active:
                logger.warning("⚠️ Automation already running - start request ignored")
                return None
            self._active = True

        try:
            return self._run()
        finally:
            with self._lock:
                # A stop only applies to the run it interrupted
                self.cancel_token.reset()
                self._active = False

    def stop(self):
        """Request a stop at the next seller boundary; in-flight work finishes first"""
        logger.info("🛑 STOP requested")
        self.cancel_token.cancel()

    def _set_state(self, state: RunState):
        if state != self.state:
            logger.debug(f"Engine state: {self.state.value} -> {state.value}")
            self.state = state

    def _run(self) -> RunSummary:
        logger.info("🚀 Automation started")
        summary = RunSummary(state=RunState.OPENING)
        self._set_state(RunState.OPENING)

        try:
            self._capture_context()

            if not self.panel.open():
                if self.cancel_token.cancelled:
                    return self._finish(summary, RunState.ABORTED)
                logger.error("❌ Failed to open filters and seller panel. Stopping.")
                return self._finish(summary, RunState.FATAL)

            facets = self._collect_facets()
            if not facets:
                logger.error("❌ No valid seller checkboxes found. Stopping.")
                return self._finish(summary, RunState.FATAL)

            total = len(facets)
            self.store.set(**{TOTAL_SELLERS: total})
            self.records = self.store.load_records()

            start_index = self.store.get_cursor()
            if start_index < 0 or start_index >= total:
                start_index = 0
            summary.start_index = start_index
            summary.cursor = start_index
            summary.total_sellers = total

            logger.info(f"🔄 Resuming from seller {start_index + 1} of {total}")
            self.progress.start(total - start_index)

            for index in range(start_index, total):
                if self.cancel_token.cancelled:
                    return self._abort(summary, index)

                self._process_and_commit(index, facets[index], summary)

                if self.cancel_token.cancelled:
                    return self._abort(summary, index + 1)

                if index + 1 < total:
                    self._prepare_next_seller(summary)

            return self._complete(summary)

        except StoreError as e:
            logger.error(f"❌ Could not persist progress: {e}")
            return self._finish(summary, RunState.FATAL)

    def _capture_context(self):
        try:
            category = self.probe.category_name()
            breadcrumb = self.probe.breadcrumb()
        except Exception as e:
            logger.warning(f"Could not read category context: {e}")
            return

        self.store.set_run_metadata(category, breadcrumb)
        if category:
            logger.info(f"📂 Category: {category}")
        if breadcrumb:
            logger.info(f"🧭 Breadcrumb: {' > '.join(step.name for step in breadcrumb)}")

    def _collect_facets(self) -> List[SellerFacet]:
        """Seller facets in page order, without out-of-stock and disabled options"""
        self.oracle.wait(self.probe.is_seller_panel_open, SELLER_PANEL_TIMEOUT)
        all_facets = self.probe.list_facets()
        facets = [facet for facet in all_facets if facet.is_selectable]

        logger.info(f"✅ Valid sellers found: {len(facets)}")
        logger.info(f"   - Skipped (out of stock toggle or disabled): {len(all_facets) - len(facets)}")
        return facets

    def _process_and_commit(self, index: int, facet: SellerFacet, summary: RunSummary):
        position = index + 1
        logger.info(DIVIDER)
        logger.info(f"🔄 [{position}/{summary.total_sellers}] Processing seller: {facet.id}")
        logger.info(DIVIDER)
        self._set_state(RunState.PER_SELLER_ACTIVE)

        try:
            record = self._process_seller(position, facet)
        except Exception as e:
            logger.exception(f"❌ Unexpected error while processing seller {facet.id}: {e}")
            record = SellerRecord(id=position, unique_id=facet.id,
                                  email=UNEXPECTED_ERROR, store_link=NOT_FOUND)

        self._set_state(RunState.ADVANCING)
        self._commit(index, record, summary)

    def _process_seller(self, position: int, facet: SellerFacet) -> SellerRecord:
        self._deselect_other_facets(facet.id)

        if not self.probe.has_facet(facet.id):
            logger.error(f"❌ Checkbox for {facet.id} not found in page")
            return SellerRecord(id=position, unique_id=facet.id, email=CHECKBOX_MISSING)

        self.probe.set_facet_checked(facet.id, True)
        self.oracle.pause(CLICK_DELAY)

        for _ in range(APPLY_CLICKS):
            self.probe.apply_filters()
            self.oracle.pause(APPLY_DELAY)

        if not self.oracle.wait(self.probe.is_listing_page, LISTING_TIMEOUT,
                                description="product listing"):
            logger.error(f"❌ Failed to return to product listing for seller {position}")
            return SellerRecord(id=position, unique_id=facet.id, email=NAVIGATION_FAILED)

        product_url = self.probe.first_product_url()
        if not product_url:
            logger.warning(f"⚠️ No product link for seller {position}")
            return SellerRecord(id=position, unique_id=facet.id, email=NOT_FOUND, store_link=NOT_FOUND)

        return self._extract_from_product(position, facet.id, product_url)

    def _deselect_other_facets(self, current_id: str):
        for facet in self.probe.checked_facets():
            if facet.id == current_id or not facet.is_selectable:
                continue
            logger.info(f"🔄 Unchecking previous seller: {facet.id}")
            self.probe.set_facet_checked(facet.id, False)
            self.oracle.pause(UNCHECK_DELAY)

    def _extract_from_product(self, position: int, seller_id: str, product_url: str) -> SellerRecord:
        """Open the product in a new tab and extract; reopen once if the extractor asks for it"""
        outcome = None
        reopens = 0
        while True:
            logger.info(f"🔗 Opening product in new tab: {product_url}")
            context = self.probe.open_auxiliary(product_url)
            if context is None:
                logger.error("❌ Failed to open new tab (popup blocked?)")
                if outcome is not None:
                    return outcome.seller_data
                return SellerRecord(id=position, unique_id=seller_id,
                                    email=POPUP_BLOCKED, store_link=NOT_FOUND)

            try:
                self.oracle.pause(TAB_OPEN_DELAY)
                if not self.oracle.wait(context.is_ready, TAB_READY_TIMEOUT, poll_interval=0.5,
                                        description="new tab load"):
                    if outcome is not None:
                        return outcome.seller_data
                    return SellerRecord(id=position, unique_id=seller_id,
                                        email=TAB_LOAD_TIMEOUT, store_link=NOT_FOUND)

                outcome = self.extractor.extract(context, seller_id, position)
            finally:
                context.close()

            if not outcome.retry_requested:
                return outcome.seller_data
            if reopens >= self.max_reopen_attempts or self.cancel_token.cancelled:
                return outcome.seller_data

            reopens += 1
            logger.info(f"🔁 Extraction incomplete - reopening product (retry {reopens}/{self.max_reopen_attempts})")

    def _commit(self, index: int, record: SellerRecord, summary: RunSummary):
        records = self.records + [record]
        self.store.commit(records, index + 1)
        self.records = records

        summary.cursor = index + 1
        summary.processed += 1
        if record.found:
            summary.found += 1

        self.progress.record(record.found)
        logger.info(f"✅ [{index + 1}/{summary.total_sellers}] Seller {record.unique_id} saved: {record.email}")
        logger.info(f"   {self.progress.status_line()}")

    def _prepare_next_seller(self, summary: RunSummary) -> bool:
        """Get back to an open seller panel on the listing page.

        Failures are logged and counted but never stop the loop; if the panel
        stays closed the next seller is recorded as missing and skipped.
        """
        try:
            self.oracle.pause(NEXT_SELLER_DELAY)
            if self.probe.is_seller_panel_open():
                return True

            if not self.oracle.wait(self.probe.is_listing_page, LISTING_CHECK_TIMEOUT,
                                    description="product listing"):
                logger.error("❌ Lost product listing page")
                if not self._recover_listing_page():
                    summary.recovery_failures += 1
                    logger.error("❌ Recovery failed - continuing with next seller")

            if self.panel.open():
                return True

            if self.cancel_token.cancelled:
                return False

            logger.warning("⚠️ Seller panel did not reopen - reloading page and retrying")
            self.probe.reload()
            self.oracle.wait(self.probe.is_listing_page, RECOVERY_TIMEOUT)
            if self.panel.open():
                return True

            logger.error("❌ Seller panel unavailable - skipping forward")
            return False
        except Exception as e:
            logger.exception(f"❌ Error while preparing next seller: {e}")
            return False

    def _recover_listing_page(self) -> bool:
        self.probe.go_back()
        if self.oracle.wait(self.probe.is_listing_page, LISTING_TIMEOUT):
            logger.info("✅ Listing page recovered via back navigation")
            return True

        self.probe.reload()
        if self.oracle.wait(self.probe.is_listing_page, RECOVERY_TIMEOUT):
            logger.info("✅ Listing page recovered via reload")
            return True
        return False

    def _abort(self, summary: RunSummary, index: int) -> RunSummary:
        logger.info("🛑 ========================================")
        logger.info("🛑 AUTOMATION STOPPED BY USER")
        logger.info("🛑 ========================================")
        logger.info(f"📊 Processed {index} of {summary.total_sellers} sellers before stopping")
        self.store.commit(self.records, index)
        return self._finish(summary, RunState.ABORTED)

    def _complete(self, summary: RunSummary) -> RunSummary:
        logger.info("🎉 ========================================")
        logger.info("🎉 ALL SELLERS COMPLETED!")
        logger.info("🎉 ========================================")
        logger.info(f"📊 Total sellers processed: {summary.total_sellers} ({summary.found} with email)")
        logger.info(f"💾 Data saved in {self.store.path}")

        # Next run starts from the first seller again
        self.store.set_cursor(0)
        return self._finish(summary, RunState.COMPLETED)

    def _finish(self, summary: RunSummary, state: RunState) -> RunSummary:
        self._set_state(state)
        summary.state = state
        return summary
