"""List view state for donation request screens: fetch, filter, paginate.

The full collection is fetched once per screen load (or explicit refresh)
and every filter/page change is derived from it in memory. Mutations patch
the cached collection in place instead of refetching it.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

from portal.core.exceptions import BackendError, BackendUnavailable
from portal.schemas.donation_request import REQUEST_STATUSES, DonationRequest, RequestPage
from portal.services.listing import ALL, clamp_page, count_by, filter_items, page_of

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_FIELDS = ("recipient_name", "requester_name", "blood_group")

SortField = Literal["donationDate", "donationTime", "recipientName", "hospitalName", "bloodGroup"]

SORT_FIELDS: dict[str, str] = {
    "donationDate": "donation_date",
    "donationTime": "donation_time",
    "recipientName": "recipient_name",
    "hospitalName": "hospital_name",
    "bloodGroup": "blood_group",
}


@dataclass(frozen=True)
class FilterCriteria:
    status: str = ALL
    search: str = ""
    blood_group: str | None = None
    district: str | None = None


@dataclass(frozen=True)
class ListScreen:
    name: str
    page_size: int
    search_fields: tuple[str, ...] = DEFAULT_SEARCH_FIELDS


ALL_REQUESTS = ListScreen("all", page_size=6)
MY_REQUESTS = ListScreen("mine", page_size=5)
PUBLIC_REQUESTS = ListScreen(
    "public",
    page_size=8,
    search_fields=("recipient_name", "hospital_name", "recipient_district"),
)


def filter_requests(
    items: Sequence[DonationRequest],
    criteria: FilterCriteria,
    search_fields: Iterable[str] = DEFAULT_SEARCH_FIELDS,
) -> list[DonationRequest]:
    return filter_items(
        items,
        status=criteria.status,
        search=criteria.search,
        search_fields=search_fields,
        equals={"blood_group": criteria.blood_group, "recipient_district": criteria.district},
    )


def status_counts(items: Iterable[DonationRequest]) -> dict[str, int]:
    return count_by(items, "status", REQUEST_STATUSES)


def build_page(
    filtered: Sequence[DonationRequest],
    page: int,
    size: int,
    *,
    counted: Iterable[DonationRequest] = (),
    stale: bool = False,
) -> RequestPage:
    return RequestPage(
        **page_of(filtered, page, size),
        status_counts=status_counts(counted),
        stale=stale,
    )


Fetcher = Callable[[], Awaitable[list[dict]]]


async def fetch_collection(fetch: Fetcher, label: str) -> list[DonationRequest] | None:
    """Fetch and parse a full collection; ``None`` (logged) when the backend fails."""
    try:
        raw = await fetch()
    except (BackendError, BackendUnavailable) as exc:
        logger.warning("Fetching %s requests failed: %s", label, exc)
        return None
    return [DonationRequest.model_validate(r) for r in raw]


@dataclass
class RequestListView:
    """Cached collection plus the current filter/page of one screen."""

    screen: ListScreen
    items: list[DonationRequest] = field(default_factory=list)
    criteria: FilterCriteria = field(default_factory=FilterCriteria)
    page: int = 1
    loaded: bool = False
    stale: bool = False

    async def load(self, fetch: Fetcher, *, refresh: bool = False) -> None:
        """Fetch the full collection unless already loaded.

        Failures keep the previous collection (empty on first load) and mark
        the view stale.
        """
        if self.loaded and not refresh:
            return
        items = await fetch_collection(fetch, self.screen.name)
        if items is None:
            self.stale = True
            return
        self.items = items
        self.loaded = True
        self.stale = False

    def invalidate(self) -> None:
        self.loaded = False

    def apply(self, criteria: FilterCriteria, page: int = 1) -> None:
        """Select criteria and page. Changed criteria always restart at page 1."""
        if criteria != self.criteria:
            self.criteria = criteria
            page = 1
        self.page = clamp_page(page, len(self.filtered()), self.screen.page_size)

    def filtered(self) -> list[DonationRequest]:
        return filter_requests(self.items, self.criteria, self.screen.search_fields)

    def find(self, request_id: str) -> DonationRequest | None:
        return next((r for r in self.items if r.id == request_id), None)

    def patch(self, request_id: str, changes: dict[str, Any]) -> bool:
        for i, record in enumerate(self.items):
            if record.id == request_id:
                self.items[i] = record.model_copy(update=changes)
                self._reclamp()
                return True
        return False

    def remove(self, request_id: str) -> bool:
        before = len(self.items)
        self.items = [r for r in self.items if r.id != request_id]
        if len(self.items) == before:
            return False
        self._reclamp()
        return True

    def _reclamp(self) -> None:
        self.page = clamp_page(self.page, len(self.filtered()), self.screen.page_size)

    def snapshot(self) -> RequestPage:
        return build_page(
            self.filtered(),
            self.page,
            self.screen.page_size,
            counted=self.items,
            stale=self.stale,
        )
