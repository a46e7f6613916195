from dataclasses import dataclass, field
from typing import Callable, List, Optional

import pytest

from seller_harvester.engine import CancellationToken, SellerIterationEngine
from seller_harvester.models import BreadcrumbStep, SellerFacet
from seller_harvester.polling import PollingOracle
from seller_harvester.probe import AuxiliaryContext, PageProbe
from seller_harvester.store import ResumeStore

OUT_OF_STOCK = "include_out_of_stock"

CONTACT_WITH_EMAIL = (
    "Legal Business Name: Acme Inc\n"
    "Headquarters:\n 1 Main St\n\n Anytown, CA 90210\n"
    "Contact\nEmail: sales@acme.com\n"
)
CONTACT_WITHOUT_EMAIL = (
    "Legal Business Name: Acme Inc\n"
    "Headquarters:\n 1 Main St\n"
    "Partner Information\n"
)


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def time(self) -> float:
        return self.now

    def sleep(self, seconds: float):
        self.now += seconds


@dataclass
class SellerSite:
    """How the fake site behaves for one seller"""
    product_url: Optional[str] = "https://shop.example/p/widget"
    listing_after_apply: bool = True
    popup_blocked: bool = False
    tab_ready: bool = True
    has_link: bool = True
    link_hidden_passes: int = 0  # strategy passes before the link renders
    store_link: str = "https://shop.example/sellers/acme"
    has_contact_tab: bool = True
    contact_texts: List[str] = field(default_factory=lambda: [CONTACT_WITH_EMAIL])
    lose_listing: bool = False  # listing page gone after the tab closes
    explode: bool = False


class FakeContext(AuxiliaryContext):

    def __init__(self, probe: "FakeProbe", seller_id: str, site: SellerSite, url: str):
        self.probe = probe
        self.seller_id = seller_id
        self.site = site
        self.location = url
        self.closed = False
        self.close_calls = 0
        self.find_calls = 0
        self.strategy_passes = 0
        self.contact_opened = False
        self.contact_reads = 0

    def is_ready(self):
        return self.site.tab_ready

    def is_product_page(self):
        return True

    def is_seller_page(self):
        return self.location == self.site.store_link

    def find_by_text(self, text, tags=None):
        self.find_calls += 1
        if tags == "a":
            self.strategy_passes += 1
            if self.site.has_link and self.strategy_passes > self.site.link_hidden_passes:
                return "sold-by-link"
        return None

    def follow(self, element):
        assert element == "sold-by-link"
        self.location = self.site.store_link

    def current_url(self):
        return self.location

    def has_contact_tab(self):
        return self.site.has_contact_tab and self.location == self.site.store_link

    def open_contact_tab(self):
        self.contact_opened = True
        return True

    def contact_text(self):
        if not self.contact_opened or not self.site.contact_texts:
            return ""
        self.contact_reads += 1
        texts = self.site.contact_texts
        return texts.pop(0) if len(texts) > 1 else texts[0]

    def close(self):
        self.close_calls += 1
        if self.closed:
            return
        self.closed = True
        self.probe.events.append(("close", self.seller_id))
        if self.site.lose_listing:
            self.probe.on_listing = False


class FakeProbe(PageProbe):
    """In-memory listing page with a filter modal and one checkbox per seller"""

    def __init__(self, sites: dict, disabled=()):
        self.sites = sites
        self.facets = [SellerFacet(OUT_OF_STOCK, is_selectable=False)] + [
            SellerFacet(seller_id, is_selectable=seller_id not in disabled) for seller_id in sites
        ]
        self.checked = set()
        self.modal_open = False
        self.panel_open = False
        self.on_listing = True
        self.filters_work = True
        self.panel_failures_left = 0
        self.missing_facets = set()
        self.applied: Optional[str] = None
        self.applied_sets = []
        self.events = []
        self.contexts: List[FakeContext] = []
        self.back_restores = True
        self.reload_restores = True
        self.back_calls = 0
        self.reload_calls = 0
        self.on_open_auxiliary: Optional[Callable[[str], None]] = None

    # State checks

    def is_modal_open(self):
        return self.modal_open

    def is_seller_panel_open(self):
        return self.modal_open and self.panel_open and len(self.facets) > 1

    def is_listing_page(self):
        return self.on_listing

    # Filter modal

    def open_filters(self):
        self.events.append(("open_filters",))
        if self.filters_work and self.on_listing:
            self.modal_open = True
        return True

    def open_seller_panel(self):
        self.events.append(("open_seller_panel",))
        if not self.modal_open:
            return False
        if self.panel_failures_left > 0:
            self.panel_failures_left -= 1
            return True
        self.panel_open = True
        return True

    def close_modal(self):
        self.events.append(("close_modal",))
        self.modal_open = False
        self.panel_open = False
        return True

    def list_facets(self):
        return list(self.facets) if self.is_seller_panel_open() else []

    def checked_facets(self):
        return [facet for facet in self.facets if facet.id in self.checked]

    def has_facet(self, facet_id):
        return (self.is_seller_panel_open() and facet_id not in self.missing_facets
                and any(facet.id == facet_id for facet in self.facets))

    def set_facet_checked(self, facet_id, checked):
        if not self.has_facet(facet_id):
            return False
        if checked and facet_id not in self.checked:
            self.checked.add(facet_id)
            self.events.append(("check", facet_id))
        elif not checked and facet_id in self.checked:
            self.checked.discard(facet_id)
            self.events.append(("uncheck", facet_id))
        return True

    def apply_filters(self):
        if not self.modal_open:
            # Second confirmation click lands after the modal closed
            return False
        sellers = sorted(fid for fid in self.checked if fid != OUT_OF_STOCK)
        self.applied_sets.append(sellers)
        self.applied = sellers[0] if len(sellers) == 1 else None
        self.events.append(("apply", self.applied))
        self.modal_open = False
        self.panel_open = False
        site = self.sites.get(self.applied)
        self.on_listing = site.listing_after_apply if site else True
        return True

    # Listing

    def first_product_url(self):
        site = self.sites.get(self.applied)
        if site is None or not self.on_listing:
            return None
        if site.explode:
            raise RuntimeError("product grid blew up")
        return site.product_url

    def open_auxiliary(self, url):
        seller_id = self.applied
        self.events.append(("open", seller_id))
        if self.on_open_auxiliary is not None:
            self.on_open_auxiliary(seller_id)
        site = self.sites[seller_id]
        if site.popup_blocked:
            return None
        context = FakeContext(self, seller_id, site, url)
        self.contexts.append(context)
        return context

    def go_back(self):
        self.back_calls += 1
        if self.back_restores:
            self.on_listing = True

    def reload(self):
        self.reload_calls += 1
        self.modal_open = False
        self.panel_open = False
        if self.reload_restores:
            self.on_listing = True

    # Metadata

    def category_name(self):
        return "Office Chairs"

    def breadcrumb(self):
        return [
            BreadcrumbStep("Home", "https://shop.example/"),
            BreadcrumbStep("Furniture", "https://shop.example/c/furniture"),
        ]

    def opened_for(self, seller_id):
        return [context for context in self.contexts if context.seller_id == seller_id]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def oracle(clock):
    return PollingOracle(clock=clock.time, sleep=clock.sleep)


@pytest.fixture
def store(tmp_path):
    return ResumeStore(str(tmp_path / "seller_store.json"))


@pytest.fixture
def make_engine(store, oracle):
    def factory(probe, **kwargs):
        kwargs.setdefault("cancel_token", CancellationToken())
        return SellerIterationEngine(probe, store, oracle=oracle, **kwargs)
    return factory
