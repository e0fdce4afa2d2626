# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Infinite-scroll pagination for listing screens.

One PaginationController belongs to one scrolling screen. It keeps the
screen's filters and cursor and decides how the next fetch is issued:

- A filter change resets the cursor and replaces the collection.
- A load-more trigger (button or viewport intersection) appends the next
  page at ``offset = len(collection)``, but only when more items exist and
  nothing is in flight for the collection. A second trigger while a page is
  pending is a no-op.
- Once the server reports no more items, load-more stays disabled until
  the filters change.

Example:
    pager = PaginationController(store, ResourceKey.DOCUMENTS)
    await pager.apply_filters(subject="Physics", exclude_tag="past-exam")
    while pager.has_more:
        await pager.load_more()
"""

import logging
from typing import Any

from src.domains.resources.models import (
    FetchMode,
    FetchResult,
    ListParams,
    PaginationState,
    ResourceKey,
)
from src.domains.resources.store import ResourceStore

logger = logging.getLogger(__name__)


class PaginationController:
    """Cursor and single-flight guard of one scrolling screen.

    Attributes:
        key: Collection the screen lists.
        initial_limit: Page size of the first page after a filter change.
        page_size: Page size of each load-more page.
    """

    def __init__(
        self,
        store: ResourceStore,
        key: ResourceKey | str,
        initial_limit: int = 16,
        page_size: int = 12,
    ):
        """Initialize the controller.

        Args:
            store: Store owning the collection.
            key: Collection the screen lists.
            initial_limit: Page size of the first page.
            page_size: Page size of each subsequent page.

        Raises:
            ValueError: If a page size is not positive.
        """
        if initial_limit <= 0 or page_size <= 0:
            raise ValueError("Page sizes must be positive")

        self._store = store
        self.key = ResourceKey(key)
        self.initial_limit = initial_limit
        self.page_size = page_size

        self._filters = ListParams()
        self._cursor = PaginationState(limit=initial_limit, offset=0, has_more=True)
        self._loading_more = False

    @property
    def filters(self) -> ListParams:
        return self._filters

    @property
    def cursor(self) -> PaginationState:
        return self._cursor

    @property
    def has_more(self) -> bool:
        return self._cursor.has_more

    @property
    def loading_more(self) -> bool:
        return self._loading_more

    @property
    def can_load_more(self) -> bool:
        """Whether a load-more trigger would issue a request right now."""
        return (
            self._cursor.has_more
            and not self._loading_more
            and not self._store.is_loading(self.key)
        )

    async def apply_filters(self, params: ListParams | None = None, **filters: Any) -> FetchResult:
        """Start a new query: reset the cursor and replace the collection.

        Args:
            params: Complete filter set. Keyword filters are merged over it.
            **filters: Individual filters (subject, grade, search, tag,
                exclude_tag, sort, ...).

        Returns:
            Result of the replace fetch.
        """
        merged = {**(params.model_dump(exclude_none=True) if params else {}), **filters}
        merged.pop("limit", None)
        merged.pop("offset", None)

        self._filters = ListParams(**merged)
        self._cursor = PaginationState(limit=self.initial_limit, offset=0, has_more=True)
        self._loading_more = False

        result = await self._store.fetch(
            self.key,
            self._filters.with_page(self.initial_limit, 0),
            FetchMode.REPLACE,
        )

        # A newer filter change owns the cursor now
        if result.applied:
            self._cursor = self._cursor.model_copy(update={"has_more": result.has_more})
        return result

    async def load_more(self) -> bool:
        """Append the next page if allowed.

        Returns:
            True if a request was issued, False if the trigger was ignored.
        """
        if not self.can_load_more:
            logger.debug(
                "Ignoring load-more for %s: has_more=%s loading_more=%s in_flight=%s",
                self.key.value,
                self._cursor.has_more,
                self._loading_more,
                self._store.is_loading(self.key),
            )
            return False

        self._loading_more = True
        offset = len(self._store.collection(self.key))
        try:
            result = await self._store.fetch(
                self.key,
                self._filters.with_page(self.page_size, offset),
                FetchMode.APPEND,
            )
        finally:
            self._loading_more = False

        if result.applied:
            self._cursor = PaginationState(
                limit=self.page_size,
                offset=offset,
                has_more=result.has_more,
            )
        return True
