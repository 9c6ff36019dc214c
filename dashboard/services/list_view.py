"""Per-list view state: filter, stable sort, pagination and refresh bookkeeping.

One ``ListViewController`` backs one rendered list. Transitions run to
completion synchronously; the only asynchronous input is a record batch,
which is applied through ``begin_refresh`` / ``apply_refresh`` so that a slow
earlier fetch can never overwrite a newer one.

Local lists hold the whole batch and filter/sort/paginate it in memory.
Hybrid lists hold one server page: the remote API filters and paginates, the
controller sorts the page and reports the server's filtered total.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from dashboard.core.config import settings
from dashboard.schemas.listing import Direction, FilterCriteria, ListView, LoadState, SortState
from dashboard.services.comparator import UnknownSortKey, sort_records
from dashboard.services.list_registry import ListConfig
from dashboard.services.page_window import clamp_page, page_window, total_pages_for
from dashboard.services.predicates import build_predicate, filter_records

_LOG = logging.getLogger("dashboard.views")


class UnknownFilterField(ValueError):
    def __init__(self, name: str):
        super().__init__(f'Filtro no disponible para el campo "{name}"')
        self.name = name


def _clamp_page_size(size: int) -> int:
    return min(max(1, int(size)), max(1, int(settings.MAX_PAGE_SIZE)))


class ListViewController:
    def __init__(
        self,
        config: ListConfig,
        *,
        page_size: int | None = None,
        sort: SortState | None = None,
        criteria: FilterCriteria | None = None,
    ):
        self.config = config
        self._records: list[Any] = []
        self._ordered: list[Any] = []
        self._server_total: int | None = None
        self._criteria = FilterCriteria(equality_filters=dict(config.default_filters))
        self._sort = config.default_sort
        self._page_size = _clamp_page_size(page_size or settings.DEFAULT_PAGE_SIZE)
        self._current_page = 1
        self._ticket = 0
        self._load_state: LoadState = "idle"
        self._last_error: str | None = None
        self._stale = True
        self._header: dict[str, Any] | None = None
        if sort is not None:
            self._ensure_sortable(sort.key)
            self._sort = sort
        if criteria is not None:
            self._ensure_filterable(criteria)
            self._criteria = criteria

    # Read-only state -------------------------------------------------

    @property
    def is_hybrid(self) -> bool:
        return self.config.mode == "hybrid"

    @property
    def criteria(self) -> FilterCriteria:
        return self._criteria

    @property
    def sort(self) -> SortState:
        return self._sort

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def current_page(self) -> int:
        return self._current_page

    @property
    def total_items(self) -> int:
        if self.is_hybrid and self._server_total is not None:
            return max(0, int(self._server_total))
        return len(self._ordered)

    @property
    def total_pages(self) -> int:
        return total_pages_for(self.total_items, self._page_size)

    @property
    def can_go_previous(self) -> bool:
        return self._current_page > 1

    @property
    def can_go_next(self) -> bool:
        return self._current_page < self.total_pages

    @property
    def load_state(self) -> LoadState:
        return self._load_state

    @property
    def is_stale(self) -> bool:
        """True when the held batch no longer matches what the remote source should return."""
        return self._stale

    @property
    def header(self) -> dict[str, Any] | None:
        return self._header

    @header.setter
    def header(self, value: dict[str, Any] | None) -> None:
        self._header = value

    # Transitions -----------------------------------------------------

    def set_filters(self, criteria: FilterCriteria) -> None:
        self._ensure_filterable(criteria)
        self._criteria = criteria
        self._current_page = 1
        if self.is_hybrid:
            self._stale = True
        self._recompute()

    def set_sort(self, key: str, direction: Direction | None = None) -> None:
        self._ensure_sortable(key)
        if direction is None:
            self._sort = self._sort.toggled(key)
        else:
            self._sort = SortState(key=key, direction=direction)
        # Sorting never moves the user to another page.
        self._ordered = self._sorted(self._ordered)

    def set_page_size(self, size: int) -> None:
        self._page_size = _clamp_page_size(size)
        self._current_page = 1
        if self.is_hybrid:
            self._stale = True

    def go_to(self, page: int) -> None:
        target = clamp_page(page, self.total_pages)
        if target == self._current_page:
            return
        self._current_page = target
        if self.is_hybrid:
            self._stale = True

    def first(self) -> None:
        self.go_to(1)

    def previous(self) -> None:
        self.go_to(self._current_page - 1)

    def next(self) -> None:
        self.go_to(self._current_page + 1)

    def last(self) -> None:
        self.go_to(self.total_pages)

    def begin_refresh(self) -> int:
        self._ticket += 1
        self._load_state = "loading"
        return self._ticket

    def apply_refresh(self, ticket: int, records: Sequence[Any], total: int | None = None) -> bool:
        if ticket != self._ticket:
            _LOG.debug(
                "discarding stale refresh list=%s ticket=%s latest=%s",
                self.config.name,
                ticket,
                self._ticket,
            )
            return False
        self._records = list(records or [])
        self._server_total = total if self.is_hybrid else None
        self._load_state = "ready"
        self._last_error = None
        self._stale = False
        previous_page = self._current_page
        self._recompute()
        if self.is_hybrid and self._current_page != previous_page:
            # The server shrank below the requested page; the held batch belongs to a page that no longer exists.
            self._stale = True
        return True

    def refresh(self, records: Sequence[Any], total: int | None = None) -> bool:
        return self.apply_refresh(self.begin_refresh(), records, total)

    def mark_load_failed(self, ticket: int, error: Any) -> bool:
        if ticket != self._ticket:
            return False
        self._load_state = "failed"
        self._last_error = str(error) if error is not None else None
        return True

    # Output ----------------------------------------------------------

    def visible_rows(self) -> list[Any]:
        if self.is_hybrid and len(self._ordered) <= self._page_size:
            return list(self._ordered)
        # Local lists, and hybrid batches the server did not page, are sliced here.
        start = (self._current_page - 1) * self._page_size
        return self._ordered[start:start + self._page_size]

    def export_rows(self) -> list[Any]:
        return list(self._ordered)

    def server_params(self, scope_params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Query parameters for the remote source; local lists only send coarse parameters."""
        params: dict[str, Any] = dict(scope_params or {})
        if not self.is_hybrid:
            return params
        params["page"] = self._current_page
        params["limit"] = self._page_size
        search = self._criteria.search_text.strip()
        if search:
            params["search"] = search
        date_range = self._criteria.date_range
        if date_range.date_from is not None:
            params["from"] = date_range.date_from.isoformat()
        if date_range.date_to is not None:
            params["to"] = date_range.date_to.isoformat()
        for name, value in self._criteria.active_equality_filters().items():
            params[name] = str(value).lower() if isinstance(value, bool) else value
        return params

    def view(self) -> ListView:
        total_items = self.total_items
        rows = self.visible_rows()
        first_item = 0
        last_item = 0
        if total_items and rows:
            first_item = (self._current_page - 1) * self._page_size + 1
            last_item = min(self._current_page * self._page_size, total_items)
        return ListView(
            list_name=self.config.name,
            mode=self.config.mode,
            rows=rows,
            current_page=self._current_page,
            total_pages=self.total_pages,
            total_items=total_items,
            page_size=self._page_size,
            page_size_options=settings.page_size_options_list,
            first_item=first_item,
            last_item=last_item,
            can_go_previous=self.can_go_previous,
            can_go_next=self.can_go_next,
            window=page_window(self.total_pages, self._current_page),
            sort=self._sort,
            criteria=self._criteria,
            load_state=self._load_state,
            last_error=self._last_error,
            header=self._header,
        )

    # Internal --------------------------------------------------------

    def _ensure_sortable(self, key: str) -> None:
        if key not in self.config.sortable:
            raise UnknownSortKey(key)

    def _ensure_filterable(self, criteria: FilterCriteria) -> None:
        for name in criteria.equality_filters:
            if name not in self.config.equality_fields:
                raise UnknownFilterField(name)

    def _sorted(self, records: Sequence[Any]) -> list[Any]:
        return sort_records(
            records,
            self._sort,
            fields=self.config.sortable,
            tie_breakers=self.config.tie_breakers,
        )

    def _recompute(self) -> None:
        if self.is_hybrid:
            # The server already applied every filter to this page.
            filtered = list(self._records)
        else:
            predicate = build_predicate(
                self._criteria,
                searchable_fields=self.config.searchable_fields,
                date_field=self.config.date_field,
                field_paths=self.config.equality_fields,
            )
            filtered = filter_records(self._records, predicate)
        self._ordered = self._sorted(filtered)
        self._current_page = clamp_page(self._current_page, self.total_pages)
