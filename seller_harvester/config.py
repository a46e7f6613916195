"""Constants and selector configuration for the seller harvester"""

import json
import os
from dataclasses import dataclass, fields, replace


HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
}

# Storage
DATA_DIR = "seller_data"
STORE_FILE = os.path.join(DATA_DIR, "seller_store.json")

# Polling
POLL_INTERVAL = 0.2
MODAL_TIMEOUT = 5
SELLER_PANEL_TIMEOUT = 5
LISTING_TIMEOUT = 8  # After applying a seller filter
LISTING_CHECK_TIMEOUT = 5  # Before reopening the panel for the next seller
RECOVERY_TIMEOUT = 10
PRODUCT_PAGE_TIMEOUT = 5
SELLER_PAGE_TIMEOUT = 10
CONTACT_TAB_TIMEOUT = 5
TAB_READY_TIMEOUT = 10

# Delays between UI actions
CLICK_DELAY = 0.6
UNCHECK_DELAY = 0.4
FILTERS_MENU_DELAY = 0.8
SOLD_BY_DELAY = 1.2
APPLY_DELAY = 1.2
TAB_OPEN_DELAY = 4
NEXT_SELLER_DELAY = 1

# Retry settings
PANEL_MAX_RETRIES = 5
PANEL_RETRY_DELAY = 1.5
APPLY_CLICKS = 2  # The apply button needs a second click to commit the filter
LINK_SEARCH_ATTEMPTS = 5
LINK_SEARCH_DELAY = 2
CONTACT_ROUNDS = 3
CONTACT_SETTLE_DELAY = 1.5
CONTACT_RETRY_DELAY = 8
MAX_REOPEN_ATTEMPTS = 1


@dataclass(frozen=True)
class Selectors:
    """CSS selectors for the target site's markup.

    These are the most likely thing to break when the site changes, so every
    one of them can be overridden from a JSON file (see load_selectors).
    """
    filters_menu: str = '[data-test="filters-menu"]'
    sold_by_group: str = '[data-test="facet-group-d_sellers_all"]'
    modal: str = 'div[role="dialog"][aria-modal="true"]'
    modal_close: str = 'div[role="dialog"][aria-modal="true"] button[aria-label*="close" i]'
    facet_checkbox: str = 'input[data-test^="facet-checkbox-"]'
    facet_attribute: str = "data-test"
    facet_prefix: str = "facet-checkbox-"
    out_of_stock_marker: str = "out_of_stock"
    apply_button: str = '[data-test="@web/FacetModalButtons/ApplyButton"]'
    product_card: str = '[data-test="@web/site-top-of-funnel/ProductCardWrapper"]'
    product_link: str = 'a[data-test="@web/ProductCard/title"]'
    add_to_cart: str = '[data-test="shippingAddToCartButton"]'
    product_title: str = "h1"
    contact_tab: str = '[data-test="tabContact"]'
    contact_content: str = '[data-test="tab-tabContent-tab-Contact"]'
    category_title: str = "h1"
    breadcrumb_link: str = 'nav[aria-label="Breadcrumbs"] a'


def load_selectors(path: str = None) -> Selectors:
    """Load selector overrides from a JSON object on top of the defaults"""
    selectors = Selectors()
    if not path:
        return selectors

    with open(path, 'r', encoding='utf-8') as f:
        overrides = json.load(f)

    if not isinstance(overrides, dict):
        raise ValueError(f"Selector file {path} must contain a JSON object")

    known = {f.name for f in fields(Selectors)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ValueError(f"Unknown selector keys in {path}: {', '.join(unknown)}")

    return replace(selectors, **overrides)
