"""Pure in-memory list helpers: filter, sort, count and paginate.

Items are any objects exposing the named attributes (pydantic models here).
"""

import math
from collections.abc import Iterable, Sequence
from typing import Any, TypeVar

T = TypeVar("T")

ALL = "all"


def matches_search(item: Any, term: str, fields: Iterable[str]) -> bool:
    """Case-insensitive substring test; any field may match, empty term matches all."""
    if not term:
        return True
    needle = term.lower()
    for name in fields:
        value = getattr(item, name, None)
        if value and needle in str(value).lower():
            return True
    return False


def filter_items(
    items: Sequence[T],
    *,
    status: str = ALL,
    search: str = "",
    search_fields: Iterable[str] = (),
    equals: dict[str, str | None] | None = None,
) -> list[T]:
    """AND of status equality, search containment and extra equality predicates.

    ``"all"`` (or an empty value) disables a predicate. Order of ``items`` is
    preserved.
    """
    fields = tuple(search_fields)
    term = search.strip()
    checks = {k: v for k, v in (equals or {}).items() if v and v != ALL}
    result = []
    for item in items:
        if status and status != ALL and getattr(item, "status", None) != status:
            continue
        if any(getattr(item, k, None) != v for k, v in checks.items()):
            continue
        if not matches_search(item, term, fields):
            continue
        result.append(item)
    return result


def sort_items(items: Sequence[T], field: str, *, descending: bool = False) -> list[T]:
    """Stable sort on one attribute; missing values sort as empty strings."""
    return sorted(items, key=lambda item: getattr(item, field, None) or "", reverse=descending)


def count_by(items: Iterable[Any], field: str, keys: Iterable[str]) -> dict[str, int]:
    counts = dict.fromkeys(keys, 0)
    for item in items:
        value = getattr(item, field, None)
        if value in counts:
            counts[value] += 1
    return counts


def page_count(total: int, size: int) -> int:
    if size < 1:
        raise ValueError("page size must be positive")
    return math.ceil(total / size)


def clamp_page(page: int, total: int, size: int) -> int:
    return min(max(page, 1), max(page_count(total, size), 1))


def paginate(items: Sequence[T], page: int, size: int) -> list[T]:
    """Return the 1-based ``page`` slice ``[(page-1)*size, page*size)``."""
    if size < 1:
        raise ValueError("page size must be positive")
    start = (max(page, 1) - 1) * size
    return list(items[start : start + size])


def page_of(items: Sequence[T], page: int, size: int) -> dict[str, Any]:
    """Clamp ``page`` and return the fields of a ``Page`` response."""
    page = clamp_page(page, len(items), size)
    return {
        "items": paginate(items, page, size),
        "page": page,
        "page_size": size,
        "page_count": page_count(len(items), size),
        "total": len(items),
    }
