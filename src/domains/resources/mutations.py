# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Mutation gateway: create, update and delete through the backend.

Every mutation awaits the backend first and patches the store only after
the server confirmed it. There is no optimistic write and therefore no
rollback: when the call fails the error propagates to the caller (so a
form can show it and keep its input) and the store is exactly as before.

After a confirmed mutation the invalidation coordinator is notified so
dependent views such as the dashboard can be refetched.
"""

import datetime
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from src.domains.resources.api import ResourceAPI
from src.domains.resources.invalidation import InvalidationCoordinator, MutationContext
from src.domains.resources.models import (
    Document,
    ForumPost,
    MutationKind,
    ResourceKey,
    StudyEvent,
    User,
    VideoLesson,
)
from src.domains.resources.store import ResourceStore
from src.utils.datetime import local_today

logger = logging.getLogger(__name__)


class MutationGateway:
    """Server-confirmed writes for every resource collection."""

    def __init__(
        self,
        api: ResourceAPI,
        store: ResourceStore,
        coordinator: InvalidationCoordinator,
        today_provider: Callable[[], datetime.date] = local_today,
    ):
        self._api = api
        self._store = store
        self._coordinator = coordinator
        self._today = today_provider

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def create_document(self, fields: Mapping[str, Any]) -> Document:
        return await self._create(ResourceKey.DOCUMENTS, fields)

    async def update_document(self, document_id: str, changes: Mapping[str, Any]) -> Document:
        return await self._update(ResourceKey.DOCUMENTS, document_id, changes)

    async def delete_document(self, document_id: str) -> None:
        await self._delete(ResourceKey.DOCUMENTS, document_id)

    # ------------------------------------------------------------------
    # Videos
    # ------------------------------------------------------------------

    async def create_video(self, fields: Mapping[str, Any]) -> VideoLesson:
        """Create a video from view-model fields (``isPremium`` etc.)."""
        return await self._create(ResourceKey.VIDEOS, fields)

    async def update_video(self, video_id: str, changes: Mapping[str, Any]) -> VideoLesson:
        """Update a video.

        ``changes`` may use the view-model name ``isPremium`` or the wire
        name ``is_premium``; it is translated into a new payload and the
        caller's mapping is left as it was.
        """
        return await self._update(ResourceKey.VIDEOS, video_id, changes)

    async def delete_video(self, video_id: str) -> None:
        await self._delete(ResourceKey.VIDEOS, video_id)

    # ------------------------------------------------------------------
    # Forum posts
    # ------------------------------------------------------------------

    async def create_forum_post(self, fields: Mapping[str, Any]) -> ForumPost:
        return await self._create(ResourceKey.FORUM_POSTS, fields)

    async def update_forum_post(self, post_id: str, changes: Mapping[str, Any]) -> ForumPost:
        """Update a forum post.

        The update response carries no list-only fields (author, comment
        count), so the returned fields are laid over the cached post.
        """
        return await self._update(ResourceKey.FORUM_POSTS, post_id, changes, merge=True)

    async def delete_forum_post(self, post_id: str) -> None:
        await self._delete(ResourceKey.FORUM_POSTS, post_id)

    # ------------------------------------------------------------------
    # Study events
    # ------------------------------------------------------------------

    async def create_study_event(self, fields: Mapping[str, Any]) -> StudyEvent:
        return await self._create(ResourceKey.STUDY_EVENTS, fields)

    async def create_study_events(self, batch: Iterable[Mapping[str, Any]]) -> list[StudyEvent]:
        """Create several study events, e.g. from a generated study plan.

        Events are created one by one. Dependent views are refreshed once
        for the whole batch, including when a later event fails; that
        failure is then raised and the events created before it stay.
        """
        created: list[StudyEvent] = []
        contexts: list[MutationContext] = []
        try:
            for fields in batch:
                event = await self._api.create(ResourceKey.STUDY_EVENTS, fields)
                self._store.apply_local_mutation(ResourceKey.STUDY_EVENTS, MutationKind.CREATE, event)
                created.append(event)
                contexts.append(
                    self._context(ResourceKey.STUDY_EVENTS, MutationKind.CREATE, entity=event)
                )
        finally:
            if contexts:
                await self._coordinator.notify(*contexts)

        logger.info("Created %d study events", len(created))
        return created

    async def update_study_event(self, event_id: str, changes: Mapping[str, Any]) -> StudyEvent:
        return await self._update(ResourceKey.STUDY_EVENTS, event_id, changes)

    async def delete_study_event(self, event_id: str) -> None:
        await self._delete(ResourceKey.STUDY_EVENTS, event_id)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def update_user_status(self, user_id: str, is_premium: bool) -> User | None:
        """Grant or revoke premium status.

        The endpoint returns no entity, so the cached user is patched with
        the confirmed flag.

        Returns:
            The patched user, or None if the user is not cached.
        """
        previous = self._store.get(ResourceKey.USERS, user_id)
        await self._api.update_user_premium(user_id, is_premium)

        updated = None
        if previous is not None:
            updated = previous.model_copy(update={"is_premium": is_premium})
            self._store.apply_local_mutation(ResourceKey.USERS, MutationKind.UPDATE, updated)

        await self._coordinator.notify(
            self._context(
                ResourceKey.USERS,
                MutationKind.UPDATE,
                entity=updated,
                previous=previous,
                changes=frozenset({"is_premium"}),
            )
        )
        return updated

    # ------------------------------------------------------------------
    # Generic paths
    # ------------------------------------------------------------------

    async def _create(self, key: ResourceKey, fields: Mapping[str, Any]) -> Any:
        created = await self._api.create(key, fields)
        self._store.apply_local_mutation(key, MutationKind.CREATE, created)
        logger.info("Created %s id=%s", key.value, created.id)

        await self._coordinator.notify(self._context(key, MutationKind.CREATE, entity=created))
        return created

    async def _update(
        self,
        key: ResourceKey,
        entity_id: str,
        changes: Mapping[str, Any],
        merge: bool = False,
    ) -> Any:
        previous = self._store.get(key, entity_id)
        updated = await self._api.update(key, entity_id, changes)

        if merge and previous is not None:
            updated = previous.model_copy(update=updated.model_dump(exclude_unset=True))

        self._store.apply_local_mutation(key, MutationKind.UPDATE, updated)
        logger.info("Updated %s id=%s fields=%s", key.value, entity_id, sorted(changes))

        await self._coordinator.notify(
            self._context(
                key,
                MutationKind.UPDATE,
                entity=updated,
                previous=previous,
                changes=frozenset(self._api.to_wire(key, changes)),
            )
        )
        return updated

    async def _delete(self, key: ResourceKey, entity_id: str) -> None:
        # Captured before the call; the entity is gone afterwards
        previous = self._store.get(key, entity_id)
        await self._api.delete(key, entity_id)

        self._store.apply_local_mutation(key, MutationKind.DELETE, entity_id)
        logger.info("Deleted %s id=%s", key.value, entity_id)

        await self._coordinator.notify(
            self._context(key, MutationKind.DELETE, previous=previous)
        )

    def _context(
        self,
        key: ResourceKey,
        kind: MutationKind,
        entity: Any = None,
        previous: Any = None,
        changes: frozenset[str] = frozenset(),
    ) -> MutationContext:
        return MutationContext(
            resource=key,
            kind=kind,
            today=self._today(),
            entity=entity,
            previous=previous,
            changes=changes,
        )
