import asyncio

import pytest

from core.aggregator import DealAggregator
from core.errors import ApplicationError, KeywordValidationError, TransportError
from core.pagination import PageState
from fakes import make_deal
from models.api import SearchResponse


def asins(deals):
    return [d.asin for d in deals]


async def test_fresh_search_prepends_unique_deals(aggregator, api):
    api.pages[("tv", 1)] = [make_deal("T1"), make_deal("T2")]
    api.pages[("phone", 1)] = [make_deal("P1"), make_deal("T1")]

    await aggregator.search("tv")
    result = await aggregator.search("phone")

    assert asins(aggregator.deals) == ["P1", "T1", "T2"]
    assert asins(result.added) == ["P1"]
    assert result.received == 2
    assert aggregator.session.keyword == "phone"
    assert aggregator.session.page == 1


async def test_search_sends_cursor_and_filters(aggregator, api):
    aggregator.set_filters(min_discount=25)
    aggregator.debug_promotions = True

    await aggregator.search("  home kitchen ")

    request = api.requests[0]
    assert request.keyword == "home kitchen"
    assert request.page == 1
    assert request.page_size == 30
    assert request.min_discount == 25
    assert request.debug_promotions is True


async def test_every_arrival_gets_a_fresh_local_id(aggregator, api):
    incoming = [make_deal("A1"), make_deal("A2")]
    api.pages[("tv", 1)] = incoming

    await aggregator.search("tv")

    ids = [d.local_id for d in aggregator.deals]
    assert len(set(ids)) == 2
    assert not set(ids) & {d.local_id for d in incoming}


async def test_empty_keyword_is_rejected_before_any_request(aggregator, api):
    with pytest.raises(KeywordValidationError):
        await aggregator.search("   ")

    assert api.requests == []
    assert aggregator.error == "❌ Keyword cannot be empty"


async def test_fetch_page_appends_and_advances(aggregator, api):
    api.pages[("tv", 1)] = [make_deal("T1")]
    api.pages[("tv", 2)] = [make_deal("T1"), make_deal("T2"), make_deal("T3")]

    await aggregator.search("tv")
    result = await aggregator.fetch_page()

    assert asins(aggregator.deals) == ["T1", "T2", "T3"]
    assert asins(result.added) == ["T2", "T3"]
    assert result.page == 2
    assert aggregator.session.page == 2
    assert api.requests[-1].page == 2
    assert aggregator.session.state is PageState.IDLE


async def test_page_of_duplicates_exhausts_and_stops_requests(aggregator, api):
    api.pages[("tv", 1)] = [make_deal("T1"), make_deal("T2")]
    api.pages[("tv", 2)] = [make_deal("T2"), make_deal("T1")]

    await aggregator.search("tv")
    result = await aggregator.fetch_page()

    assert result.exhausted
    assert aggregator.session.exhausted
    assert aggregator.session.page == 1
    assert len(aggregator.deals) == 2

    sent = len(api.requests)
    assert await aggregator.fetch_page() is None
    assert len(api.requests) == sent


async def test_new_search_clears_exhaustion(aggregator, api):
    api.pages[("tv", 1)] = [make_deal("T1")]
    await aggregator.search("tv")
    await aggregator.fetch_page()
    assert aggregator.session.exhausted

    await aggregator.search("tv")

    assert not aggregator.session.exhausted
    assert aggregator.session.page == 1


async def test_fetch_page_without_search_is_a_no_op(aggregator, api):
    assert await aggregator.fetch_page() is None
    assert api.requests == []


async def test_transport_failure_keeps_cursor(aggregator, api):
    api.pages[("tv", 1)] = [make_deal("T1")]
    api.pages[("tv", 2)] = TransportError("connection reset")

    await aggregator.search("tv")
    assert await aggregator.fetch_page() is None

    assert aggregator.error == "Cannot connect to server: connection reset"
    assert aggregator.session.page == 1
    assert not aggregator.session.exhausted
    assert not aggregator.session.in_flight
    assert asins(aggregator.deals) == ["T1"]

    # Next trigger retries the same page and clears the error
    api.pages[("tv", 2)] = [make_deal("T2")]
    result = await aggregator.fetch_page()

    assert result.page == 2
    assert aggregator.error == ""
    assert asins(aggregator.deals) == ["T1", "T2"]


async def test_unsuccessful_response_is_not_merged(aggregator, api):
    api.pages[("tv", 1)] = SearchResponse(success=False, error="Daily quota reached", deals=[make_deal("X")])

    assert await aggregator.search("tv") is None

    assert aggregator.deals == ()
    assert aggregator.error == "❌ Daily quota reached"
    assert not aggregator.session.in_flight
    assert not aggregator.loading


async def test_malformed_response_is_an_application_error(aggregator, api):
    api.pages[("tv", 1)] = ApplicationError("Malformed search response (1 invalid fields)")

    await aggregator.search("tv")

    assert aggregator.error.startswith("❌ Malformed")


async def test_only_one_page_request_in_flight(aggregator, api):
    api.pages[("tv", 1)] = [make_deal("T1")]
    api.pages[("tv", 2)] = [make_deal("T2")]
    await aggregator.search("tv")

    gate = api.hold("tv", 2)
    first = asyncio.create_task(aggregator.fetch_page())
    await asyncio.sleep(0)

    assert aggregator.session.state is PageState.FETCHING
    assert await aggregator.fetch_page() is None

    gate.set()
    await first
    assert [r.page for r in api.requests] == [1, 2]


async def test_fetch_page_waits_for_fresh_search(aggregator, api):
    gate = api.hold("tv", 1)
    search = asyncio.create_task(aggregator.search("tv"))
    await asyncio.sleep(0)

    assert aggregator.loading
    assert await aggregator.fetch_page() is None

    gate.set()
    await search
    assert not aggregator.loading
    assert [r.page for r in api.requests] == [1]


async def test_stale_page_is_discarded_after_new_search(aggregator, api):
    api.pages[("tv", 1)] = [make_deal("T1")]
    api.pages[("tv", 2)] = [make_deal("T2")]
    api.pages[("phone", 1)] = [make_deal("P1")]
    await aggregator.search("tv")

    gate = api.hold("tv", 2)
    stale = asyncio.create_task(aggregator.fetch_page())
    await asyncio.sleep(0)

    await aggregator.search("phone")
    gate.set()

    assert await stale is None
    assert asins(aggregator.deals) == ["P1", "T1"]
    assert aggregator.session.keyword == "phone"
    assert aggregator.session.page == 1
    assert not aggregator.session.in_flight


async def test_interleaved_fresh_searches_both_merge(aggregator, api):
    api.pages[("tv", 1)] = [make_deal("T1"), make_deal("S1")]
    api.pages[("phone", 1)] = [make_deal("P1"), make_deal("S1")]

    gate = api.hold("tv", 1)
    slow = asyncio.create_task(aggregator.search("tv"))
    await asyncio.sleep(0)
    await aggregator.search("phone")
    gate.set()
    await slow

    assert sorted(asins(aggregator.deals)) == ["P1", "S1", "T1"]
    assert aggregator.session.keyword == "phone"
    assert not aggregator.session.in_flight


async def test_latest_batch_is_highlighted_until_dwell(aggregator, api):
    api.pages[("tv", 1)] = [make_deal("T1")]
    api.pages[("tv", 2)] = [make_deal("T2")]

    await aggregator.search("tv")
    first = aggregator.deals[0].local_id
    assert aggregator.is_highlighted(first)

    await aggregator.fetch_page()
    second = aggregator.deals[1].local_id
    assert aggregator.is_highlighted(second)
    assert not aggregator.is_highlighted(first)

    await asyncio.sleep(0.1)
    assert not aggregator.is_highlighted(second)


async def test_batch_of_duplicates_keeps_previous_highlight(aggregator, api):
    api.pages[("tv", 1)] = [make_deal("T1")]
    api.pages[("tv", 2)] = [make_deal("T1")]

    await aggregator.search("tv")
    await aggregator.fetch_page()

    assert aggregator.is_highlighted(aggregator.deals[0].local_id)


async def test_changing_dedupe_key_only_affects_future_merges(aggregator, api):
    api.pages[("tv", 1)] = [make_deal("A1", url="https://a/1")]
    api.pages[("tv2", 1)] = [make_deal("A1", url="https://a/2"), make_deal("A7", url="https://a/1")]

    await aggregator.search("tv")
    aggregator.set_dedupe_key("url")
    await aggregator.search("tv2")

    assert [d.url for d in aggregator.deals] == ["https://a/2", "https://a/1"]
    assert asins(aggregator.deals) == ["A1", "A1"]


async def test_locally_assigned_fields_are_rejected_as_dedupe_key(aggregator, api):
    api.pages[("tv", 1)] = [make_deal("T1")]
    await aggregator.search("tv")

    for key in ("local_id", "rewritten", "  "):
        with pytest.raises(ValueError):
            aggregator.set_dedupe_key(key)

    assert aggregator.dedupe_key == "asin"
    await aggregator.search("tv")
    assert asins(aggregator.deals) == ["T1"]


def test_constructor_rejects_local_id_dedupe_key(api):
    with pytest.raises(ValueError):
        DealAggregator(api, dedupe_key="local_id")


async def test_late_failure_of_superseded_search_keeps_error_clear(aggregator, api):
    gate = api.hold("tv", 1)
    slow = asyncio.create_task(aggregator.search("tv"))
    await asyncio.sleep(0)

    api.pages[("phone", 1)] = [make_deal("P1")]
    await aggregator.search("phone")
    api.pages[("tv", 1)] = TransportError("connection reset")
    gate.set()

    assert await slow is None
    assert aggregator.error == ""
    assert asins(aggregator.deals) == ["P1"]


async def test_set_filters_clamps_max_results(aggregator):
    criteria = aggregator.set_filters(max_results=0, require_code=True)

    assert criteria.max_results == 1
    assert criteria.require_code
    assert criteria.min_discount == 0


async def test_patch_remove_and_find(aggregator, api):
    api.pages[("tv", 1)] = [make_deal("T1"), make_deal("T2")]
    await aggregator.search("tv")
    target = aggregator.deals[1].local_id

    patched = aggregator.patch_rewritten(target, "Fresh copy")

    assert patched.rewritten == "Fresh copy"
    assert aggregator.find(target).rewritten == "Fresh copy"
    assert aggregator.patch_rewritten(-1, "x") is None

    assert aggregator.remove(target)
    assert not aggregator.remove(target)
    assert asins(aggregator.deals) == ["T1"]


async def test_dispose_cancels_timer_and_goes_inert(aggregator, api):
    api.pages[("tv", 1)] = [make_deal("T1")]
    await aggregator.search("tv")
    assert aggregator.highlights.pending

    new_id = aggregator.deals[0].local_id

    aggregator.dispose()

    assert not aggregator.highlights.pending
    assert not aggregator.is_highlighted(new_id)
    assert await aggregator.search("phone") is None
    assert await aggregator.fetch_page() is None
    assert len(api.requests) == 1


async def test_response_after_dispose_is_dropped(aggregator, api):
    api.pages[("tv", 1)] = [make_deal("T1")]
    gate = api.hold("tv", 1)
    pending = asyncio.create_task(aggregator.search("tv"))
    await asyncio.sleep(0)

    aggregator.dispose()
    gate.set()

    assert await pending is None
    assert aggregator.deals == ()
