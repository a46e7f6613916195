"""
Resume store: a JSON file holding the collected seller records, the resume
cursor and run metadata. It survives process restarts so a run can continue
from the last completed seller.
"""

import json
import logging
import os
from datetime import datetime
from typing import Any, List

from .config import STORE_FILE
from .models import BreadcrumbStep, SellerRecord

logger = logging.getLogger(__name__)

SELLER_DATA = "sellerData"
CURRENT_SELLER_INDEX = "currentSellerIndex"
TOTAL_SELLERS = "totalSellers"
CATEGORY_NAME = "categoryName"
BREADCRUMB_STEPS = "breadcrumbSteps"

RUN_KEYS = (SELLER_DATA, CURRENT_SELLER_INDEX, TOTAL_SELLERS, CATEGORY_NAME, BREADCRUMB_STEPS)


class StoreError(Exception):
    """The store file could not be read or written"""


class ResumeStore:
    """Key-value store persisted as a single JSON document"""

    def __init__(self, path: str = STORE_FILE):
        self.path = path
        self._data = self._load()

    def _load(self) -> dict:
        if not os.path.exists(self.path):
            return {}

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StoreError(f"Failed to load store {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise StoreError(f"Store {self.path} does not contain a JSON object")
        logger.info(f"Loaded store from {self.path} (saved {data.get('timestamp', 'unknown')})")
        return data

    def _save(self):
        self._data["timestamp"] = datetime.now().isoformat()
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        tmp_path = f"{self.path}.tmp"
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(self._data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            raise StoreError(f"Failed to save store {self.path}: {e}") from e

    def get(self, key: str, default: Any = None) -> Any:
        value = self._data.get(key)
        return default if value is None else value

    def set(self, **values):
        """Update several keys in one file rewrite; nothing changes if the write fails"""
        previous = dict(self._data)
        self._data.update(values)
        try:
            self._save()
        except StoreError:
            self._data = previous
            raise

    def append(self, key: str, item: Any):
        items = list(self._data.get(key) or [])
        items.append(item)
        self._data[key] = items
        self._save()

    def remove(self, *keys: str):
        for key in keys:
            self._data.pop(key, None)
        self._save()

    # Seller-run helpers

    def load_records(self) -> List[SellerRecord]:
        return [SellerRecord.from_dict(item) for item in self.get(SELLER_DATA, [])]

    def save_records(self, records: List[SellerRecord]):
        self.set(**{SELLER_DATA: [record.to_dict() for record in records]})

    def get_cursor(self) -> int:
        try:
            return int(self.get(CURRENT_SELLER_INDEX, 0))
        except (TypeError, ValueError):
            logger.warning(f"Ignoring malformed cursor value: {self.get(CURRENT_SELLER_INDEX)!r}")
            return 0

    def set_cursor(self, index: int):
        self.set(**{CURRENT_SELLER_INDEX: index})

    def commit(self, records: List[SellerRecord], cursor: int):
        """Persist the record list and the cursor together"""
        self.set(**{
            SELLER_DATA: [record.to_dict() for record in records],
            CURRENT_SELLER_INDEX: cursor,
        })

    def set_run_metadata(self, category_name: str = None, breadcrumb: List[BreadcrumbStep] = None):
        self.set(**{
            CATEGORY_NAME: category_name,
            BREADCRUMB_STEPS: [step.to_dict() for step in breadcrumb or []],
        })

    def clear(self):
        """Delete all run data (records, cursor and metadata)"""
        self.remove(*RUN_KEYS)
        logger.info(f"Cleared seller data from {self.path}")
