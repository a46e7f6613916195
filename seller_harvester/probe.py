"""
Contracts between the harvester and the live browser.

PageProbe answers questions about the main category listing (is the modal open,
which seller facets exist, ...) and performs the clicks the engine needs.
AuxiliaryContext is a secondary tab opened on a product page. The engine and its
helpers only depend on these two interfaces; browser.py implements them with
Selenium and the tests implement them with in-memory fakes.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from .models import BreadcrumbStep, SellerFacet


class AuxiliaryContext(ABC):
    """A secondary browsing tab used for one seller at a time"""

    @abstractmethod
    def is_ready(self) -> bool:
        """Document finished loading"""

    @abstractmethod
    def is_product_page(self) -> bool:
        ...

    @abstractmethod
    def is_seller_page(self) -> bool:
        ...

    @abstractmethod
    def find_by_text(self, text: str, tags: Optional[str] = None) -> Optional[Any]:
        """Return an element whose text contains `text` (case-insensitive), or None"""

    @abstractmethod
    def follow(self, element: Any):
        """Click an element returned by find_by_text"""

    @abstractmethod
    def current_url(self) -> str:
        ...

    @abstractmethod
    def has_contact_tab(self) -> bool:
        ...

    @abstractmethod
    def open_contact_tab(self) -> bool:
        ...

    @abstractmethod
    def contact_text(self) -> str:
        """Text of the contact panel with one line per block element, "" if absent"""

    @abstractmethod
    def close(self):
        """Close the tab. Must be safe to call more than once."""


class PageProbe(ABC):
    """The main listing page the seller filter is applied to"""

    # State checks, sampled by the polling oracle

    @abstractmethod
    def is_modal_open(self) -> bool:
        ...

    @abstractmethod
    def is_seller_panel_open(self) -> bool:
        """More than one facet checkbox visible (the out-of-stock toggle alone does not count)"""

    @abstractmethod
    def is_listing_page(self) -> bool:
        ...

    # Filter modal

    @abstractmethod
    def open_filters(self) -> bool:
        ...

    @abstractmethod
    def open_seller_panel(self) -> bool:
        ...

    @abstractmethod
    def close_modal(self) -> bool:
        ...

    @abstractmethod
    def list_facets(self) -> List[SellerFacet]:
        """All facet checkboxes currently rendered, including non-selectable ones"""

    @abstractmethod
    def checked_facets(self) -> List[SellerFacet]:
        ...

    @abstractmethod
    def has_facet(self, facet_id: str) -> bool:
        ...

    @abstractmethod
    def set_facet_checked(self, facet_id: str, checked: bool) -> bool:
        """Bring a facet checkbox into the given state. False if the control is missing."""

    @abstractmethod
    def apply_filters(self) -> bool:
        ...

    # Listing

    @abstractmethod
    def first_product_url(self) -> Optional[str]:
        ...

    @abstractmethod
    def open_auxiliary(self, url: str) -> Optional[AuxiliaryContext]:
        """Open url in a new tab. None when the tab could not be opened."""

    @abstractmethod
    def go_back(self):
        ...

    @abstractmethod
    def reload(self):
        ...

    # Run metadata

    @abstractmethod
    def category_name(self) -> Optional[str]:
        ...

    @abstractmethod
    def breadcrumb(self) -> List[BreadcrumbStep]:
        ...
