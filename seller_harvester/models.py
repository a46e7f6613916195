"""Data model for seller facets, per-seller records and extraction results"""

from dataclasses import dataclass
from typing import Optional


# Sentinel values written into SellerRecord.email when no address was obtained
NOT_FOUND = "Not found"
NAVIGATION_FAILED = "Not found - Navigation failed"
CHECKBOX_MISSING = "Not found - Checkbox missing"
POPUP_BLOCKED = "Not found - Popup blocked"
TAB_LOAD_TIMEOUT = "Not found - Tab load timeout"
NO_CONTACT_TAB = "Not found - No contact tab"
UNEXPECTED_ERROR = "Not found - Unexpected error"
SOLD_BY_NOT_FOUND = "Sold & shipped by not found"

SENTINELS = (
    NOT_FOUND,
    NAVIGATION_FAILED,
    CHECKBOX_MISSING,
    POPUP_BLOCKED,
    TAB_LOAD_TIMEOUT,
    NO_CONTACT_TAB,
    UNEXPECTED_ERROR,
    SOLD_BY_NOT_FOUND,
)


def is_found(email: Optional[str]) -> bool:
    """True when an email field holds a real address rather than a sentinel"""
    if not email:
        return False
    return email not in SENTINELS and "not found" not in email.lower()


@dataclass
class SellerFacet:
    """One option of the "Sold by" filter"""
    id: str
    is_selectable: bool = True


@dataclass
class BreadcrumbStep:
    name: str
    href: str

    def to_dict(self) -> dict:
        return {"name": self.name, "href": self.href}


@dataclass
class SellerRecord:
    """Result stored for one processed seller.

    id is the 1-based position of the seller in the facet list and unique_id the
    facet id. email is never empty: it holds either an address or a sentinel.
    """
    id: int
    unique_id: str
    email: str = NOT_FOUND
    business_name: Optional[str] = None
    headquarters: Optional[str] = None
    store_link: Optional[str] = None

    def __post_init__(self):
        if not self.email:
            self.email = NOT_FOUND

    @property
    def found(self) -> bool:
        return is_found(self.email)

    def to_dict(self) -> dict:
        data = {"id": self.id, "unique_id": self.unique_id}
        if self.business_name is not None:
            data["business_name"] = self.business_name
        data["email"] = self.email
        if self.headquarters is not None:
            data["headquarters"] = self.headquarters
        if self.store_link is not None:
            data["store_link"] = self.store_link
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "SellerRecord":
        return cls(
            id=data.get("id", 0),
            unique_id=data.get("unique_id", ""),
            email=data.get("email", NOT_FOUND),
            business_name=data.get("business_name"),
            headquarters=data.get("headquarters"),
            store_link=data.get("store_link"),
        )


@dataclass
class ExtractionOutcome:
    """What the contact extractor got out of one auxiliary tab"""
    retry_requested: bool
    seller_data: SellerRecord
