from conftest import CONTACT_WITH_EMAIL, CONTACT_WITHOUT_EMAIL, FakeContext, FakeProbe, SellerSite

from seller_harvester.extractor import SOLD_BY_STRATEGIES, ContactExtractor
from seller_harvester.models import NO_CONTACT_TAB, NOT_FOUND, SOLD_BY_NOT_FOUND


def open_context(site):
    probe = FakeProbe({"acme": site})
    return FakeContext(probe, "acme", site, "https://shop.example/p/widget")


def test_confirmed_email_needs_no_retry(oracle):
    site = SellerSite()
    outcome = ContactExtractor(oracle).extract(open_context(site), "acme", 3)

    assert outcome.retry_requested is False
    record = outcome.seller_data
    assert (record.id, record.unique_id) == (3, "acme")
    assert record.business_name == "Acme Inc"
    assert record.email == "sales@acme.com"
    assert record.headquarters == "1 Main St, Anytown, CA 90210"
    assert record.store_link == site.store_link


def test_missing_seller_link_requests_retry(oracle):
    context = open_context(SellerSite(has_link=False))
    outcome = ContactExtractor(oracle).extract(context, "acme", 1)

    assert outcome.retry_requested is True
    assert outcome.seller_data.email == SOLD_BY_NOT_FOUND
    assert outcome.seller_data.store_link == NOT_FOUND
    assert context.find_calls == 5 * len(SOLD_BY_STRATEGIES)


def test_late_rendering_link_is_found_on_a_later_attempt(clock, oracle):
    context = open_context(SellerSite(link_hidden_passes=2))
    outcome = ContactExtractor(oracle, link_delay=2).extract(context, "acme", 1)

    assert outcome.retry_requested is False
    assert context.strategy_passes == 3
    assert clock.now >= 4


def test_email_on_second_round(clock, oracle):
    site = SellerSite(contact_texts=[CONTACT_WITHOUT_EMAIL, CONTACT_WITH_EMAIL])
    context = open_context(site)
    outcome = ContactExtractor(oracle).extract(context, "acme", 1)

    assert outcome.retry_requested is False
    assert outcome.seller_data.email == "sales@acme.com"
    assert context.contact_reads == 2
    assert clock.now >= 8


def test_partial_result_is_kept_after_all_rounds(oracle):
    context = open_context(SellerSite(contact_texts=[CONTACT_WITHOUT_EMAIL]))
    outcome = ContactExtractor(oracle).extract(context, "acme", 1)

    assert outcome.retry_requested is True
    assert context.contact_reads == 3
    record = outcome.seller_data
    assert record.email == NOT_FOUND
    assert record.business_name == "Acme Inc"
    assert record.headquarters == "1 Main St"


def test_richer_partial_parse_wins(oracle):
    site = SellerSite(contact_texts=[
        "Legal Business Name: Acme Inc\nHeadquarters:\n1 Main St\nContact\n",
        "Loading...",
        "Loading...",
    ])
    outcome = ContactExtractor(oracle).extract(open_context(site), "acme", 1)
    assert outcome.seller_data.business_name == "Acme Inc"
    assert outcome.seller_data.headquarters == "1 Main St"


def test_no_contact_tab_sentinel(oracle):
    site = SellerSite(has_contact_tab=False)
    outcome = ContactExtractor(oracle).extract(open_context(site), "acme", 1)

    assert outcome.retry_requested is True
    assert outcome.seller_data.email == NO_CONTACT_TAB
    assert outcome.seller_data.store_link == site.store_link
