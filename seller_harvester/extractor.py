"""
Contact extraction inside an auxiliary tab.

Starting from a product page: find the "Sold & shipped by" link, follow it to
the seller page, open the Contact tab and parse it. Contact panels render late
and inconsistently, so the tab is read up to CONTACT_ROUNDS times before the
best partial result is accepted.
"""

import logging
from typing import Optional

from .config import (
    CONTACT_RETRY_DELAY,
    CONTACT_ROUNDS,
    CONTACT_SETTLE_DELAY,
    CONTACT_TAB_TIMEOUT,
    LINK_SEARCH_ATTEMPTS,
    LINK_SEARCH_DELAY,
    PRODUCT_PAGE_TIMEOUT,
    SELLER_PAGE_TIMEOUT,
)
from .contact_parser import ContactDetails, is_valid_email, parse_contact_text
from .models import (
    NO_CONTACT_TAB,
    NOT_FOUND,
    SOLD_BY_NOT_FOUND,
    ExtractionOutcome,
    SellerRecord,
)
from .polling import PollingOracle
from .probe import AuxiliaryContext

logger = logging.getLogger(__name__)

# (text, tags) pairs tried in order, from strict to loose
SOLD_BY_STRATEGIES = (
    ("Sold & shipped by", "a"),
    ("Sold & shipped by", "button"),
    ("Sold & shipped by", None),
    ("Sold and shipped by", None),
)


class ContactExtractor:

    def __init__(self, oracle: PollingOracle = None,
                 link_attempts: int = LINK_SEARCH_ATTEMPTS,
                 link_delay: float = LINK_SEARCH_DELAY,
                 contact_rounds: int = CONTACT_ROUNDS,
                 contact_tab_timeout: float = CONTACT_TAB_TIMEOUT,
                 settle_delay: float = CONTACT_SETTLE_DELAY,
                 retry_delay: float = CONTACT_RETRY_DELAY):
        self.oracle = oracle or PollingOracle()
        self.link_attempts = link_attempts
        self.link_delay = link_delay
        self.contact_rounds = contact_rounds
        self.contact_tab_timeout = contact_tab_timeout
        self.settle_delay = settle_delay
        self.retry_delay = retry_delay

    def extract(self, context: AuxiliaryContext, seller_id: str, display_index: int) -> ExtractionOutcome:
        """Collect contact details for one seller from a freshly opened product tab.

        retry_requested is set when the result is not a confirmed email, telling
        the caller that reopening the product may help.
        """
        logger.info(f"🔍 [{display_index}] Extracting contact details for seller {seller_id}")
        self.oracle.wait(context.is_product_page, PRODUCT_PAGE_TIMEOUT, description="product detail page")

        sold_by_link = self._find_sold_by_link(context)
        if sold_by_link is None:
            logger.warning("⚠️ 'Sold & shipped by' link not found in new tab")
            return ExtractionOutcome(
                retry_requested=True,
                seller_data=SellerRecord(id=display_index, unique_id=seller_id,
                                         email=SOLD_BY_NOT_FOUND, store_link=NOT_FOUND),
            )

        context.follow(sold_by_link)
        self.oracle.wait(context.is_seller_page, SELLER_PAGE_TIMEOUT, description="seller page")
        store_link = context.current_url()
        logger.info(f"🔗 Store Link: {store_link}")

        best = self._read_contact(context)
        if best is None:
            logger.warning("⚠️ Contact tab never produced any content")
            return ExtractionOutcome(
                retry_requested=True,
                seller_data=SellerRecord(id=display_index, unique_id=seller_id,
                                         email=NO_CONTACT_TAB, store_link=store_link),
            )

        confirmed = is_valid_email(best.email)
        logger.info(f"📧 Extracted - Business: {best.business_name}, Email: {best.email}")
        return ExtractionOutcome(
            retry_requested=not confirmed,
            seller_data=SellerRecord(
                id=display_index,
                unique_id=seller_id,
                business_name=best.business_name,
                email=best.email,
                headquarters=best.headquarters,
                store_link=store_link,
            ),
        )

    def _find_sold_by_link(self, context: AuxiliaryContext):
        for attempt in range(1, self.link_attempts + 1):
            for text, tags in SOLD_BY_STRATEGIES:
                element = context.find_by_text(text, tags)
                if element is not None:
                    logger.info(f"✅ Found '{text}' link (attempt {attempt}/{self.link_attempts})")
                    return element

            logger.info(f"⏳ Seller link not rendered yet (attempt {attempt}/{self.link_attempts})")
            if attempt < self.link_attempts:
                self.oracle.pause(self.link_delay)
        return None

    def _read_contact(self, context: AuxiliaryContext) -> Optional[ContactDetails]:
        """Read the contact tab until it yields a valid email; return the best parse seen"""
        best = None
        for round_number in range(1, self.contact_rounds + 1):
            if self.oracle.wait(context.has_contact_tab, self.contact_tab_timeout,
                                description="Contact tab"):
                context.open_contact_tab()
                self.oracle.pause(self.settle_delay)
                text = context.contact_text()
                if text and text.strip():
                    parsed = parse_contact_text(text)
                    if best is None or parsed.fields_found > best.fields_found:
                        best = parsed
                    if is_valid_email(parsed.email):
                        return parsed

            if round_number < self.contact_rounds:
                logger.info(f"⏳ No email yet (round {round_number}/{self.contact_rounds}), "
                            f"retrying in {self.retry_delay}s")
                self.oracle.pause(self.retry_delay)
        return best
