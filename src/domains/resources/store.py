# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Resource store: the single owner of all synchronized client state.

The store holds one ordered, id-unique collection per resource, a loading
flag and an error message per resource key, and the cached dashboard
aggregate. Screens read immutable snapshots; only the store's own methods
write, and every write completes synchronously between two awaits.

Fetch semantics:
- REPLACE discards the previous contents for a new query. Each replace
  takes a sequence number and only the newest one may commit, so a slow
  response for an abandoned filter can never overwrite a fresher one.
- APPEND adds the unseen items of the next page in arrival order. A page
  that was requested before the latest replace is dropped.
- Failures are recorded in the error state and never raised.

Example:
    store = ResourceStore(api)
    result = await store.fetch(ResourceKey.DOCUMENTS, ListParams(subject="Physics", limit=16, offset=0))
    if store.error(ResourceKey.DOCUMENTS) is None:
        render(store.documents, has_more=result.has_more)
"""

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

from src.domains.resources.api import ResourceAPI
from src.domains.resources.filters import apply_tag_filters
from src.domains.resources.models import (
    COLLECTION_KEYS,
    DashboardAggregate,
    Document,
    FetchMode,
    FetchResult,
    ForumPost,
    ListPage,
    ListParams,
    MutationKind,
    ResourceKey,
    StudyEvent,
    User,
    VideoLesson,
)
from src.infrastructure.http.exceptions import APIError

logger = logging.getLogger(__name__)


def _unique_by_id(items: Iterable[Any], seen: set[str] | None = None) -> list[Any]:
    """Drop items whose id was already seen, keeping first-seen order."""
    seen = set() if seen is None else seen
    unique = []
    for item in items:
        if item.id in seen:
            continue
        seen.add(item.id)
        unique.append(item)
    return unique


class ResourceStore:
    """Owner of resource collections, loading/error state and the dashboard.

    Attributes:
        clear_before_fetch: Resource keys emptied as soon as a replace fetch
            starts; the others keep their items until the response arrives.
    """

    def __init__(
        self,
        api: ResourceAPI,
        clear_before_fetch: Iterable[ResourceKey | str] = (ResourceKey.DOCUMENTS,),
    ):
        """Initialize an empty store.

        Args:
            api: Endpoint access used by fetch.
            clear_before_fetch: Resource keys emptied when a replace starts.
        """
        self._api = api
        self.clear_before_fetch = frozenset(ResourceKey(key) for key in clear_before_fetch)

        self._collections: dict[ResourceKey, tuple[Any, ...]] = {key: () for key in COLLECTION_KEYS}
        self._in_flight: dict[ResourceKey, int] = {key: 0 for key in ResourceKey}
        self._errors: dict[ResourceKey, str | None] = {key: None for key in ResourceKey}
        self._sequence: dict[ResourceKey, int] = {key: 0 for key in ResourceKey}
        self._dashboard: DashboardAggregate | None = None

    # ------------------------------------------------------------------
    # Snapshot reads
    # ------------------------------------------------------------------

    def collection(self, key: ResourceKey | str) -> tuple[Any, ...]:
        """Return the current items of a collection."""
        return self._collections[_collection_key(key)]

    def get(self, key: ResourceKey | str, entity_id: str) -> Any | None:
        """Return the cached entity with the given id, if any."""
        for item in self.collection(key):
            if item.id == str(entity_id):
                return item
        return None

    @property
    def documents(self) -> tuple[Document, ...]:
        return self._collections[ResourceKey.DOCUMENTS]

    @property
    def videos(self) -> tuple[VideoLesson, ...]:
        return self._collections[ResourceKey.VIDEOS]

    @property
    def forum_posts(self) -> tuple[ForumPost, ...]:
        return self._collections[ResourceKey.FORUM_POSTS]

    @property
    def study_events(self) -> tuple[StudyEvent, ...]:
        return self._collections[ResourceKey.STUDY_EVENTS]

    @property
    def users(self) -> tuple[User, ...]:
        return self._collections[ResourceKey.USERS]

    @property
    def dashboard(self) -> DashboardAggregate | None:
        return self._dashboard

    def is_loading(self, key: ResourceKey | str) -> bool:
        return self._in_flight[ResourceKey(key)] > 0

    def error(self, key: ResourceKey | str) -> str | None:
        return self._errors[ResourceKey(key)]

    @property
    def loading(self) -> Mapping[str, bool]:
        """Loading flag per resource key, keyed by its string value."""
        return MappingProxyType({key.value: count > 0 for key, count in self._in_flight.items()})

    @property
    def errors(self) -> Mapping[str, str | None]:
        """Error message per resource key, keyed by its string value."""
        return MappingProxyType({key.value: error for key, error in self._errors.items()})

    # ------------------------------------------------------------------
    # Request bookkeeping
    # ------------------------------------------------------------------

    def next_sequence(self, key: ResourceKey) -> int:
        """Issue a new sequence number, superseding all earlier ones for key."""
        self._sequence[key] += 1
        return self._sequence[key]

    def current_sequence(self, key: ResourceKey) -> int:
        return self._sequence[key]

    def is_current(self, key: ResourceKey, sequence: int) -> bool:
        return self._sequence[key] == sequence

    def start_request(self, key: ResourceKey) -> None:
        """Mark a request for key as in flight and clear its error."""
        self._in_flight[key] += 1
        self._errors[key] = None

    def finish_request(self, key: ResourceKey) -> None:
        self._in_flight[key] = max(0, self._in_flight[key] - 1)

    def record_error(self, key: ResourceKey, message: str) -> None:
        self._errors[key] = message

    # ------------------------------------------------------------------
    # Fetch
    # ------------------------------------------------------------------

    async def fetch(
        self,
        key: ResourceKey | str,
        params: ListParams | None = None,
        mode: FetchMode | str = FetchMode.REPLACE,
    ) -> FetchResult:
        """Fetch a page of a collection and merge it.

        Only the loading and error state of ``key`` change; no other
        resource is touched.

        Args:
            key: Collection to fetch.
            params: Filters and page window.
            mode: REPLACE for a new query, APPEND for the next page.

        Returns:
            FetchResult with the server's has_more. ``applied`` is False when
            the response was discarded as superseded.
        """
        key = _collection_key(key)
        mode = FetchMode(mode)
        params = params or ListParams()

        if mode is FetchMode.REPLACE:
            sequence = self.next_sequence(key)
            if key in self.clear_before_fetch:
                self._collections[key] = ()
        else:
            sequence = self.current_sequence(key)

        self.start_request(key)
        try:
            page = await self._api.list_page(key, params)
        except APIError as e:
            result = self._record_fetch_failure(key, mode, sequence, e)
        else:
            result = self._commit_page(key, mode, sequence, params, page)
        finally:
            self.finish_request(key)

        return result

    def _commit_page(
        self,
        key: ResourceKey,
        mode: FetchMode,
        sequence: int,
        params: ListParams,
        page: ListPage,
    ) -> FetchResult:
        if not self.is_current(key, sequence):
            logger.debug("Discarding superseded %s page for %s", mode.value, key.value)
            return FetchResult(has_more=page.has_more, total=page.total, applied=False)

        # Filter before merging so no over-inclusive state is ever visible
        items = apply_tag_filters(page.items, tag=params.tag, exclude_tag=params.exclude_tag)

        if mode is FetchMode.REPLACE:
            self._collections[key] = tuple(_unique_by_id(items))
        else:
            existing = self._collections[key]
            seen = {item.id for item in existing}
            self._collections[key] = existing + tuple(_unique_by_id(items, seen))

        logger.debug(
            "Committed %s page for %s: received=%d kept=%d total=%d has_more=%s",
            mode.value,
            key.value,
            len(page.items),
            len(items),
            len(self._collections[key]),
            page.has_more,
        )
        return FetchResult(has_more=page.has_more, total=page.total)

    def _record_fetch_failure(
        self,
        key: ResourceKey,
        mode: FetchMode,
        sequence: int,
        error: APIError,
    ) -> FetchResult:
        if not self.is_current(key, sequence):
            logger.debug("Ignoring failure of superseded %s fetch for %s", mode.value, key.value)
            return FetchResult(has_more=False, applied=False)

        logger.error("Fetch %s (%s) failed: %s", key.value, mode.value, error)
        self._errors[key] = error.message or f"Failed to fetch {key.value}"

        # Never leave items of an abandoned filter on screen; a failed
        # append keeps what is already shown
        if mode is FetchMode.REPLACE:
            self._collections[key] = ()

        return FetchResult(has_more=False)

    # ------------------------------------------------------------------
    # Local patches
    # ------------------------------------------------------------------

    def apply_local_mutation(
        self,
        key: ResourceKey | str,
        kind: MutationKind | str,
        entity_or_id: Any,
    ) -> None:
        """Apply a server-confirmed change to a collection. No I/O.

        Args:
            key: Collection to patch.
            kind: CREATE prepends the entity, UPDATE replaces the entity with
                the same id in place, DELETE removes the entity by id.
            entity_or_id: The entity (CREATE, UPDATE) or its id (DELETE; an
                entity is accepted too).
        """
        key = _collection_key(key)
        kind = MutationKind(kind)
        items = self._collections[key]

        if kind is MutationKind.CREATE:
            entity = entity_or_id
            self._collections[key] = (entity, *(item for item in items if item.id != entity.id))

        elif kind is MutationKind.UPDATE:
            entity = entity_or_id
            if not any(item.id == entity.id for item in items):
                logger.debug("Update for uncached %s id=%s", key.value, entity.id)
                return
            self._collections[key] = tuple(
                entity if item.id == entity.id else item for item in items
            )

        else:
            entity_id = str(getattr(entity_or_id, "id", entity_or_id))
            self._collections[key] = tuple(item for item in items if item.id != entity_id)

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    def commit_dashboard(self, aggregate: DashboardAggregate) -> None:
        """Cache a dashboard aggregate and reconcile its events.

        ``todays_events`` are merged into the study events by id: cached
        entries are replaced in place, unknown ones are appended. Events the
        planner loaded for other days stay untouched.
        """
        self._dashboard = aggregate
        self.merge_study_events(aggregate.todays_events)

    def merge_study_events(self, events: Iterable[StudyEvent]) -> None:
        fresh = {event.id: event for event in events}
        if not fresh:
            return

        merged = []
        for item in self._collections[ResourceKey.STUDY_EVENTS]:
            merged.append(fresh.pop(item.id, item))
        merged.extend(fresh.values())

        self._collections[ResourceKey.STUDY_EVENTS] = tuple(merged)


def _collection_key(key: ResourceKey | str) -> ResourceKey:
    key = ResourceKey(key)
    if key not in COLLECTION_KEYS:
        raise ValueError(f"{key.value} is not a collection resource")
    return key
