"""Parse the text of a seller's Contact tab into business name, email and headquarters"""

import re
from dataclasses import dataclass

from .models import NOT_FOUND

EMAIL_PATTERN = re.compile(r'[a-zA-Z0-9._-]+@[a-zA-Z0-9._-]+\.[a-zA-Z0-9_-]+')
BUSINESS_NAME_PATTERN = re.compile(r'Legal Business Name:\s*(.*?)\s*(?=Headquarters:|$)', re.S)
HEADQUARTERS_PATTERN = re.compile(r'Headquarters:(.+?)(?:Contact|Partner Information|$)', re.S)


@dataclass
class ContactDetails:
    business_name: str = NOT_FOUND
    email: str = NOT_FOUND
    headquarters: str = NOT_FOUND

    @property
    def fields_found(self) -> int:
        return sum(1 for value in (self.business_name, self.email, self.headquarters)
                   if value != NOT_FOUND)


def is_valid_email(value: str) -> bool:
    return bool(value) and value != NOT_FOUND and EMAIL_PATTERN.fullmatch(value) is not None


def parse_contact_text(text: str) -> ContactDetails:
    """Extract contact fields from raw contact-tab text.

    Each field is matched independently and falls back to "Not found", so the
    result always carries all three fields.
    """
    details = ContactDetails()
    if not text:
        return details

    email_match = EMAIL_PATTERN.search(text)
    if email_match:
        details.email = email_match.group(0)

    name_match = BUSINESS_NAME_PATTERN.search(text)
    if name_match:
        name = ' '.join(name_match.group(1).split())
        if name:
            details.business_name = name

    hq_match = HEADQUARTERS_PATTERN.search(text)
    if hq_match:
        lines = [line.strip() for line in hq_match.group(1).split('\n')]
        headquarters = ', '.join(line for line in lines if line)
        if headquarters:
            details.headquarters = headquarters

    return details
