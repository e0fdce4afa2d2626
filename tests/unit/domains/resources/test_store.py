# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for ResourceStore.

Tests cover:
- Replace and append merging with id deduplication
- Isolation of overlapping replace fetches
- Tag safety filtering before merge
- Failure handling per fetch mode
- Local mutation patches and dashboard reconciliation
"""

import asyncio

import pytest

from src.domains.resources.models import (
    DashboardAggregate,
    DashboardUser,
    FetchMode,
    ListPage,
    ListParams,
    MutationKind,
    ResourceKey,
)
from src.domains.resources.store import ResourceStore
from src.infrastructure.http.exceptions import NetworkError, ServerError


def ids(items) -> list[str]:
    return [item.id for item in items]


class TestFetchMerge:
    """Tests for replace/append merge semantics."""

    @pytest.mark.asyncio
    async def test_replace_stores_page(self, store, mock_api, make_document, make_page) -> None:
        """Test that a replace fetch stores the page in order."""
        mock_api.list_page.return_value = make_page(
            [make_document("a"), make_document("b")], has_more=True, total=30
        )

        result = await store.fetch(ResourceKey.DOCUMENTS, ListParams(limit=16, offset=0))

        assert ids(store.documents) == ["a", "b"]
        assert result.has_more is True
        assert result.total == 30
        assert result.applied is True
        assert store.is_loading(ResourceKey.DOCUMENTS) is False
        assert store.error(ResourceKey.DOCUMENTS) is None

    @pytest.mark.asyncio
    async def test_replace_deduplicates_within_page(
        self, store, mock_api, make_document, make_page
    ) -> None:
        """Test that duplicate ids in one page keep the first occurrence."""
        mock_api.list_page.return_value = make_page(
            [make_document("a", title="first"), make_document("b"), make_document("a", title="again")]
        )

        await store.fetch(ResourceKey.DOCUMENTS)

        assert ids(store.documents) == ["a", "b"]
        assert store.documents[0].title == "first"

    @pytest.mark.asyncio
    async def test_append_skips_seen_ids(self, store, mock_api, make_document, make_page) -> None:
        """Test that appended pages only add unseen ids in arrival order."""
        mock_api.list_page.return_value = make_page([make_document("a"), make_document("b")], has_more=True)
        await store.fetch(ResourceKey.DOCUMENTS)

        mock_api.list_page.return_value = make_page(
            [make_document("b", title="shifted"), make_document("c"), make_document("d")]
        )
        result = await store.fetch(
            ResourceKey.DOCUMENTS, ListParams(limit=12, offset=2), FetchMode.APPEND
        )

        assert ids(store.documents) == ["a", "b", "c", "d"]
        assert store.documents[1].title == "Document b"
        assert result.has_more is False

    @pytest.mark.asyncio
    async def test_has_more_follows_server_total(self, store, mock_api, make_document) -> None:
        """Test has_more over three appended pages of a 25 item result."""
        documents = [make_document(f"d{i}") for i in range(25)]

        async def list_page(key, params):
            window = documents[params.offset:params.offset + params.limit]
            return ListPage(items=window, has_more=params.offset + params.limit < 25, total=25)

        mock_api.list_page.side_effect = list_page

        results = [
            await store.fetch(ResourceKey.DOCUMENTS, ListParams(limit=10, offset=offset), FetchMode.APPEND)
            for offset in (0, 10, 20)
        ]

        assert [result.has_more for result in results] == [True, True, False]
        assert len(store.documents) == 25

    @pytest.mark.asyncio
    async def test_fetch_only_touches_its_own_resource(
        self, store, mock_api, make_document, make_page
    ) -> None:
        """Test that fetching one resource leaves the others untouched."""
        store.record_error(ResourceKey.VIDEOS, "old failure")
        mock_api.list_page.return_value = make_page([make_document("a")])

        await store.fetch(ResourceKey.DOCUMENTS)

        assert store.error(ResourceKey.VIDEOS) == "old failure"
        assert store.videos == ()

    @pytest.mark.asyncio
    async def test_dashboard_is_not_a_collection(self, store) -> None:
        """Test that the dashboard cannot be fetched as a list."""
        with pytest.raises(ValueError):
            await store.fetch(ResourceKey.DASHBOARD)


class TestReplaceIsolation:
    """Tests for overlapping replace fetches."""

    @pytest.mark.asyncio
    async def test_stale_replace_is_discarded(self, store, mock_api, make_document, make_page) -> None:
        """Test that a slow response for an abandoned filter never commits."""
        release_physics = asyncio.Event()

        async def list_page(key, params):
            if params.subject == "Physics":
                await release_physics.wait()
                return make_page([make_document("p1", subject="Physics")], has_more=True)
            return make_page([make_document("c1", subject="Chemistry")])

        mock_api.list_page.side_effect = list_page

        physics = asyncio.create_task(
            store.fetch(ResourceKey.DOCUMENTS, ListParams(subject="Physics"))
        )
        await asyncio.sleep(0)
        chemistry = await store.fetch(ResourceKey.DOCUMENTS, ListParams(subject="Chemistry"))

        assert ids(store.documents) == ["c1"]
        assert store.is_loading(ResourceKey.DOCUMENTS) is True

        release_physics.set()
        stale = await physics

        assert chemistry.applied is True
        assert stale.applied is False
        assert ids(store.documents) == ["c1"]
        assert store.is_loading(ResourceKey.DOCUMENTS) is False

    @pytest.mark.asyncio
    async def test_append_issued_before_replace_is_discarded(
        self, store, mock_api, make_document, make_page
    ) -> None:
        """Test that a page of the old query cannot land in the new one."""
        release_append = asyncio.Event()

        async def list_page(key, params):
            if params.offset == 2:
                await release_append.wait()
                return make_page([make_document("old-3")])
            if params.subject == "Biology":
                return make_page([make_document("bio-1")])
            return make_page([make_document("old-1"), make_document("old-2")], has_more=True)

        mock_api.list_page.side_effect = list_page
        await store.fetch(ResourceKey.DOCUMENTS, ListParams(offset=0))

        append = asyncio.create_task(
            store.fetch(ResourceKey.DOCUMENTS, ListParams(offset=2), FetchMode.APPEND)
        )
        await asyncio.sleep(0)
        await store.fetch(ResourceKey.DOCUMENTS, ListParams(subject="Biology", offset=0))
        release_append.set()
        result = await append

        assert result.applied is False
        assert ids(store.documents) == ["bio-1"]

    @pytest.mark.asyncio
    async def test_documents_cleared_when_replace_starts(
        self, store, mock_api, make_document, make_page
    ) -> None:
        """Test that documents are emptied before the new response arrives."""
        mock_api.list_page.return_value = make_page([make_document("a")])
        await store.fetch(ResourceKey.DOCUMENTS)

        release = asyncio.Event()

        async def slow_page(key, params):
            await release.wait()
            return make_page([make_document("b")])

        mock_api.list_page.side_effect = slow_page
        task = asyncio.create_task(store.fetch(ResourceKey.DOCUMENTS))
        await asyncio.sleep(0)

        assert store.documents == ()
        assert store.loading["documents"] is True

        release.set()
        await task

        assert ids(store.documents) == ["b"]

    @pytest.mark.asyncio
    async def test_other_collections_kept_until_response(
        self, store, mock_api, make_event, make_page
    ) -> None:
        """Test that non-cleared collections keep items while loading."""
        mock_api.list_page.return_value = make_page([make_event("e1")])
        await store.fetch(ResourceKey.STUDY_EVENTS)

        release = asyncio.Event()

        async def slow_page(key, params):
            await release.wait()
            return make_page([make_event("e2")])

        mock_api.list_page.side_effect = slow_page
        task = asyncio.create_task(store.fetch(ResourceKey.STUDY_EVENTS))
        await asyncio.sleep(0)

        assert ids(store.study_events) == ["e1"]

        release.set()
        await task

        assert ids(store.study_events) == ["e2"]


class TestTagSafety:
    """Tests for filtering fetched pages before they are merged."""

    @pytest.mark.asyncio
    async def test_excluded_tag_never_visible(self, store, mock_api, make_document, make_page) -> None:
        """Test that items carrying the excluded tag are dropped."""
        mock_api.list_page.return_value = make_page(
            [
                make_document("exam", tags=["past-exam"]),
                make_document("notes", tags=["notes"]),
                make_document("plain"),
            ]
        )

        await store.fetch(ResourceKey.DOCUMENTS, ListParams(exclude_tag="past-exam"))

        assert ids(store.documents) == ["notes", "plain"]

    @pytest.mark.asyncio
    async def test_required_tag_drops_untagged(self, store, mock_api, make_document, make_page) -> None:
        """Test that untagged items never satisfy a required tag."""
        mock_api.list_page.return_value = make_page(
            [make_document("exam", tags=["past-exam"]), make_document("plain")]
        )

        await store.fetch(ResourceKey.DOCUMENTS, ListParams(tag="past-exam"))

        assert ids(store.documents) == ["exam"]

    @pytest.mark.asyncio
    async def test_filter_applied_on_append(self, store, mock_api, make_document, make_page) -> None:
        """Test that appended pages are filtered too."""
        mock_api.list_page.return_value = make_page([make_document("a", tags=["notes"])], has_more=True)
        await store.fetch(ResourceKey.DOCUMENTS, ListParams(exclude_tag="past-exam"))

        mock_api.list_page.return_value = make_page([make_document("b", tags=["past-exam"])])
        await store.fetch(
            ResourceKey.DOCUMENTS,
            ListParams(exclude_tag="past-exam", offset=1),
            FetchMode.APPEND,
        )

        assert ids(store.documents) == ["a"]


class TestFetchFailures:
    """Tests for failure handling."""

    @pytest.mark.asyncio
    async def test_failed_replace_clears_and_records_error(
        self, store, mock_api, make_event, make_page
    ) -> None:
        """Test that a failed replace leaves an empty collection and an error."""
        mock_api.list_page.return_value = make_page([make_event("e1")])
        await store.fetch(ResourceKey.STUDY_EVENTS)

        mock_api.list_page.side_effect = ServerError("Database unavailable", status_code=503)
        result = await store.fetch(ResourceKey.STUDY_EVENTS)

        assert store.study_events == ()
        assert store.error(ResourceKey.STUDY_EVENTS) == "Database unavailable"
        assert store.is_loading(ResourceKey.STUDY_EVENTS) is False
        assert result.has_more is False

    @pytest.mark.asyncio
    async def test_failed_append_keeps_items(self, store, mock_api, make_document, make_page) -> None:
        """Test that a failed append keeps what is already shown."""
        mock_api.list_page.return_value = make_page([make_document("a")], has_more=True)
        await store.fetch(ResourceKey.DOCUMENTS)

        mock_api.list_page.side_effect = NetworkError("offline")
        result = await store.fetch(ResourceKey.DOCUMENTS, ListParams(offset=1), FetchMode.APPEND)

        assert ids(store.documents) == ["a"]
        assert store.error(ResourceKey.DOCUMENTS) == "offline"
        assert result.has_more is False

    @pytest.mark.asyncio
    async def test_next_fetch_clears_error(self, store, mock_api, make_document, make_page) -> None:
        """Test that starting a new fetch clears the previous error."""
        mock_api.list_page.side_effect = NetworkError("offline")
        await store.fetch(ResourceKey.DOCUMENTS)

        mock_api.list_page.side_effect = None
        mock_api.list_page.return_value = make_page([make_document("a")])
        await store.fetch(ResourceKey.DOCUMENTS)

        assert store.error(ResourceKey.DOCUMENTS) is None
        assert store.errors["documents"] is None


class TestLocalMutations:
    """Tests for apply_local_mutation."""

    def test_create_prepends(self, store, make_document) -> None:
        """Test that a created entity is placed first."""
        store.apply_local_mutation(ResourceKey.DOCUMENTS, MutationKind.CREATE, make_document("a"))
        store.apply_local_mutation(ResourceKey.DOCUMENTS, MutationKind.CREATE, make_document("b"))

        assert ids(store.documents) == ["b", "a"]

    def test_create_existing_id_keeps_one_copy(self, store, make_document) -> None:
        """Test that creating an already-cached id does not duplicate it."""
        store.apply_local_mutation(ResourceKey.DOCUMENTS, MutationKind.CREATE, make_document("a"))
        store.apply_local_mutation(ResourceKey.DOCUMENTS, MutationKind.CREATE, make_document("b"))
        store.apply_local_mutation(
            ResourceKey.DOCUMENTS, MutationKind.CREATE, make_document("a", title="new")
        )

        assert ids(store.documents) == ["a", "b"]
        assert store.documents[0].title == "new"

    def test_update_replaces_in_place(self, store, make_document) -> None:
        """Test that an update keeps the entity's position."""
        for doc_id in ("c", "b", "a"):
            store.apply_local_mutation(ResourceKey.DOCUMENTS, MutationKind.CREATE, make_document(doc_id))

        store.apply_local_mutation(
            ResourceKey.DOCUMENTS, MutationKind.UPDATE, make_document("b", title="edited")
        )

        assert ids(store.documents) == ["a", "b", "c"]
        assert store.get(ResourceKey.DOCUMENTS, "b").title == "edited"

    def test_update_of_uncached_entity_is_noop(self, store, make_document) -> None:
        """Test that updating an unknown id does not insert it."""
        store.apply_local_mutation(ResourceKey.DOCUMENTS, MutationKind.UPDATE, make_document("x"))

        assert store.documents == ()

    def test_delete_by_id(self, store, make_document) -> None:
        """Test that delete removes the entity with the id."""
        store.apply_local_mutation(ResourceKey.DOCUMENTS, MutationKind.CREATE, make_document("a"))
        store.apply_local_mutation(ResourceKey.DOCUMENTS, MutationKind.CREATE, make_document("b"))

        store.apply_local_mutation(ResourceKey.DOCUMENTS, MutationKind.DELETE, "a")

        assert ids(store.documents) == ["b"]

    def test_accepts_string_keys(self, store, make_document) -> None:
        """Test that resource keys may be given by their string value."""
        store.apply_local_mutation("documents", "create", make_document("a"))

        assert ids(store.collection("documents")) == ["a"]


class TestDashboardReconciliation:
    """Tests for merging the dashboard's events into the study events."""

    def test_commit_merges_todays_events(self, store, make_event, today) -> None:
        """Test that cached events are replaced in place and new ones appended."""
        store.apply_local_mutation(ResourceKey.STUDY_EVENTS, MutationKind.CREATE, make_event("later"))
        store.apply_local_mutation(ResourceKey.STUDY_EVENTS, MutationKind.CREATE, make_event("e1"))

        aggregate = DashboardAggregate(
            user=DashboardUser(id="u1", name="Amara"),
            todays_events=(make_event("e1", is_completed=True), make_event("e2")),
        )
        store.commit_dashboard(aggregate)

        assert store.dashboard is aggregate
        assert ids(store.study_events) == ["e1", "later", "e2"]
        assert store.get(ResourceKey.STUDY_EVENTS, "e1").is_completed is True

    def test_one_copy_per_id(self, store, make_event) -> None:
        """Test that the dashboard and the planner never hold diverging copies."""
        store.apply_local_mutation(ResourceKey.STUDY_EVENTS, MutationKind.CREATE, make_event("e1"))
        fresh = make_event("e1", title="Renamed")

        store.commit_dashboard(DashboardAggregate(user=DashboardUser(id="u1"), todays_events=(fresh,)))

        assert store.study_events == (fresh,)
        assert store.dashboard.todays_events[0] == store.study_events[0]


def test_custom_clear_policy(mock_api) -> None:
    """Test that the clear-before-fetch policy is configurable."""
    store = ResourceStore(mock_api, clear_before_fetch=["videos"])

    assert store.clear_before_fetch == frozenset({ResourceKey.VIDEOS})
