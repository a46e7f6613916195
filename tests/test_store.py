import json

import pytest

from seller_harvester.models import BreadcrumbStep, SellerRecord
from seller_harvester.store import (
    BREADCRUMB_STEPS,
    CATEGORY_NAME,
    CURRENT_SELLER_INDEX,
    SELLER_DATA,
    ResumeStore,
    StoreError,
)


def test_values_survive_a_restart(tmp_path):
    path = str(tmp_path / "nested" / "store.json")
    store = ResumeStore(path)
    store.set_cursor(4)
    store.append(SELLER_DATA, {"id": 1, "unique_id": "acme", "email": "a@acme.com"})

    reopened = ResumeStore(path)
    assert reopened.get_cursor() == 4
    assert reopened.get(SELLER_DATA) == [{"id": 1, "unique_id": "acme", "email": "a@acme.com"}]


def test_records_are_written_with_export_field_names(store):
    store.save_records([
        SellerRecord(id=1, unique_id="acme", email="a@acme.com", business_name="Acme Inc",
                     headquarters="1 Main St", store_link="https://shop.example/sellers/acme"),
        SellerRecord(id=2, unique_id="globex", email="Not found - Popup blocked", store_link="Not found"),
    ])

    with open(store.path, encoding="utf-8") as f:
        raw = json.load(f)
    assert raw[SELLER_DATA][1] == {
        "id": 2, "unique_id": "globex", "email": "Not found - Popup blocked", "store_link": "Not found",
    }
    assert [r.unique_id for r in ResumeStore(store.path).load_records()] == ["acme", "globex"]


def test_missing_values_fall_back_to_defaults(store):
    assert store.get_cursor() == 0
    assert store.load_records() == []
    assert store.get(CATEGORY_NAME, "none") == "none"


def test_malformed_cursor_reads_as_zero(store):
    store.set(**{CURRENT_SELLER_INDEX: "seven"})
    assert store.get_cursor() == 0


def test_run_metadata(store):
    store.set_run_metadata("Office Chairs", [BreadcrumbStep("Home", "https://shop.example/")])
    assert store.get(CATEGORY_NAME) == "Office Chairs"
    assert store.get(BREADCRUMB_STEPS) == [{"name": "Home", "href": "https://shop.example/"}]


def test_clear_removes_run_data(store):
    store.set_cursor(3)
    store.save_records([SellerRecord(id=1, unique_id="acme", email="a@acme.com")])
    store.set_run_metadata("Office Chairs", [])
    store.clear()

    reopened = ResumeStore(store.path)
    assert reopened.get_cursor() == 0
    assert reopened.load_records() == []
    assert reopened.get(CATEGORY_NAME) is None


def test_corrupt_file_raises_store_error(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(StoreError):
        ResumeStore(str(path))


def test_unwritable_target_raises_store_error(tmp_path):
    target = tmp_path / "store.json"
    store = ResumeStore(str(target))
    target.mkdir()
    with pytest.raises(StoreError):
        store.set_cursor(1)


def test_commit_writes_records_and_cursor_together(store):
    store.commit([SellerRecord(id=1, unique_id="acme", email="a@acme.com")], 1)

    with open(store.path, encoding="utf-8") as f:
        raw = json.load(f)
    assert raw[CURRENT_SELLER_INDEX] == 1
    assert [item["unique_id"] for item in raw[SELLER_DATA]] == ["acme"]


def test_failed_commit_keeps_previous_state(tmp_path):
    target = tmp_path / "store.json"
    store = ResumeStore(str(target))
    store.commit([SellerRecord(id=1, unique_id="acme", email="a@acme.com")], 1)

    target.unlink()
    target.mkdir()
    with pytest.raises(StoreError):
        store.commit([SellerRecord(id=1, unique_id="acme", email="a@acme.com"),
                      SellerRecord(id=2, unique_id="globex", email="b@globex.com")], 2)

    assert store.get_cursor() == 1
    assert [r.unique_id for r in store.load_records()] == ["acme"]
