"""Cached list view behaviour: load, filter/page policy, in-place patches."""

import pytest

from portal.core.exceptions import BackendUnavailable
from portal.services.request_list import ALL_REQUESTS, FilterCriteria, RequestListView
from tests.fake_backend import SEED_REQUESTS


def _fetcher(payload, counter):
    async def fetch():
        counter.append(1)
        return payload

    return fetch


async def _failing_fetch():
    raise BackendUnavailable("timeout")


@pytest.fixture
async def view() -> RequestListView:
    v = RequestListView(screen=ALL_REQUESTS)
    await v.load(_fetcher(SEED_REQUESTS, []))
    return v


@pytest.mark.asyncio
async def test_load_fetches_once_until_refresh():
    calls: list[int] = []
    v = RequestListView(screen=ALL_REQUESTS)
    await v.load(_fetcher(SEED_REQUESTS, calls))
    await v.load(_fetcher(SEED_REQUESTS, calls))
    assert len(calls) == 1
    await v.load(_fetcher(SEED_REQUESTS, calls), refresh=True)
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_failed_first_load_is_empty_and_stale():
    v = RequestListView(screen=ALL_REQUESTS)
    await v.load(_failing_fetch)
    assert v.items == []
    assert v.stale is True
    assert v.loaded is False


@pytest.mark.asyncio
async def test_failed_refresh_keeps_previous_items(view):
    await view.load(_failing_fetch, refresh=True)
    assert len(view.items) == 7
    assert view.snapshot().stale is True


@pytest.mark.asyncio
async def test_criteria_change_resets_page(view):
    view.apply(FilterCriteria(), page=2)
    assert view.page == 2
    view.apply(FilterCriteria(status="pending"), page=2)
    assert view.page == 1


@pytest.mark.asyncio
async def test_out_of_range_page_is_clamped(view):
    view.apply(FilterCriteria(), page=40)
    snap = view.snapshot()
    assert snap.page == 2
    assert len(snap.items) == 1


@pytest.mark.asyncio
async def test_patch_updates_record_in_place(view):
    assert view.patch("r1", {"status": "done"}) is True
    assert view.find("r1").status == "done"
    assert view.snapshot().status_counts["done"] == 2
    assert view.patch("missing", {"status": "done"}) is False


@pytest.mark.asyncio
async def test_patch_reclamps_filtered_page(view):
    view.apply(FilterCriteria(status="pending"), page=1)
    for rid in ("r1", "r2", "r3"):
        view.patch(rid, {"status": "canceled"})
    snap = view.snapshot()
    assert snap.total == 0
    assert snap.page == 1
    assert snap.page_count == 0


@pytest.mark.asyncio
async def test_remove_drops_record_and_clamps(view):
    view.apply(FilterCriteria(), page=2)
    assert view.remove("r7") is True
    assert view.page == 1
    assert view.remove("r7") is False


@pytest.mark.asyncio
async def test_invalidate_forces_next_load(view):
    calls: list[int] = []
    view.invalidate()
    await view.load(_fetcher(SEED_REQUESTS[:2], calls))
    assert len(calls) == 1
    assert len(view.items) == 2
