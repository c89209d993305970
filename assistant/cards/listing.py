"""
Client-side style search + pagination for list cards.

One implementation shared by the AWS, GitHub and Atlassian renderers.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Callable

SearchFn = Callable[[Any, str], bool]


def default_search(item: Any, term: str) -> bool:
    """Match `term` against every scalar value of a dict item (or the item itself)."""
    if isinstance(item, dict):
        text = " ".join(str(v) for v in item.values() if isinstance(v, (str, int, float)))
    else:
        text = str(item)
    return term in text.lower()


def fields_search(*getters: Callable[[Any], Any]) -> SearchFn:
    """Build a search function over selected fields; missing values are skipped."""
    def search(item: Any, term: str) -> bool:
        parts = []
        for getter in getters:
            try:
                value = getter(item)
            except (AttributeError, KeyError, TypeError):
                value = None
            if value:
                parts.append(str(value))
        return term in " ".join(parts).lower()
    return search


@dataclass
class ListPage:
    items: list
    page: int
    total_pages: int
    filtered_count: int
    total_count: int
    search: str = ""
    per_page: int = 3
    start_index: int = field(default=0)

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


class ResourceList:
    def __init__(
        self,
        items: list | None,
        search_fn: SearchFn | None = None,
        items_per_page: int = 3,
        count: int | None = None,
    ) -> None:
        if items_per_page < 1:
            raise ValueError("items_per_page must be >= 1")
        self.items = list(items or [])
        self.search_fn = search_fn or default_search
        self.items_per_page = items_per_page
        # upstream totals can exceed the returned items
        self.count = count if count is not None else len(self.items)

    def filter(self, search: str = "") -> list:
        term = (search or "").strip().lower()
        if not term:
            return self.items
        return [item for item in self.items if self.search_fn(item, term)]

    def page(self, search: str = "", page: int = 1) -> ListPage:
        """Filter by `search`, then return page `page` (clamped to the valid range)."""
        filtered = self.filter(search)
        total_pages = math.ceil(len(filtered) / self.items_per_page)
        page = max(1, min(int(page or 1), max(total_pages, 1)))
        start = (page - 1) * self.items_per_page
        return ListPage(
            items=filtered[start:start + self.items_per_page],
            page=page,
            total_pages=total_pages,
            filtered_count=len(filtered),
            total_count=self.count,
            search=(search or "").strip(),
            per_page=self.items_per_page,
            start_index=start,
        )
