# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""REST endpoints of the synchronized resources.

ResourceAPI knows where each resource lives, which key its list response
uses and how its entities cross the boundary. It performs no caching; the
ResourceStore and MutationGateway are its only callers.

Consumed shapes:
    GET    /<resource>?subject=&grade=&search=&tag=&excludeTag=&limit=&offset=
           -> {<items_key>: [...], pagination: {hasMore, total}}
    POST   /<resource>          -> created entity
    PUT    /<resource>/{id}     -> updated entity
    DELETE /<resource>/{id}     -> no content
    GET    /dashboard?date=YYYY-MM-DD -> dashboard aggregate
"""

import datetime
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from src.domains.resources.mappers import (
    study_event_from_api,
    study_event_payload_to_api,
    translate_fields,
    user_from_api,
    video_from_api,
    video_payload_to_api,
)
from src.domains.resources.models import (
    DashboardAggregate,
    Document,
    ForumPost,
    ListPage,
    ListParams,
    ResourceKey,
)
from src.infrastructure.http.client import APIClient
from src.infrastructure.http.exceptions import APIError

logger = logging.getLogger(__name__)


def _as_is(fields: Mapping[str, Any]) -> dict[str, Any]:
    return translate_fields(fields, {})


@dataclass(frozen=True)
class ResourceEndpoint:
    """How one resource collection maps onto the REST backend.

    Attributes:
        path: Collection path, e.g. ``/documents``.
        items_key: Key of the item list in list responses, or None when
            the endpoint returns a bare, unpaginated list.
        parse: Converts one wire item into the store's entity.
        to_wire: Converts outgoing fields into a wire payload.
    """

    path: str
    items_key: str | None
    parse: Callable[[Any], Any]
    to_wire: Callable[[Mapping[str, Any]], dict[str, Any]] = _as_is


ENDPOINTS: dict[ResourceKey, ResourceEndpoint] = {
    ResourceKey.DOCUMENTS: ResourceEndpoint("/documents", "documents", Document.model_validate),
    ResourceKey.VIDEOS: ResourceEndpoint("/videos", "videos", video_from_api, video_payload_to_api),
    ResourceKey.FORUM_POSTS: ResourceEndpoint("/forum/posts", "posts", ForumPost.model_validate),
    ResourceKey.STUDY_EVENTS: ResourceEndpoint(
        "/planner/events", None, study_event_from_api, study_event_payload_to_api
    ),
    ResourceKey.USERS: ResourceEndpoint("/admin/users", "users", user_from_api),
}


class ResourceAPI:
    """Typed access to the resource endpoints.

    Attributes:
        client: Transport used for every request.
    """

    def __init__(self, client: APIClient):
        self.client = client

    def endpoint(self, key: ResourceKey) -> ResourceEndpoint:
        try:
            return ENDPOINTS[key]
        except KeyError:
            raise ValueError(f"{key.value} is not a collection resource") from None

    def to_wire(self, key: ResourceKey, fields: Mapping[str, Any]) -> dict[str, Any]:
        """Translate outgoing fields for a resource without touching the input."""
        return self.endpoint(key).to_wire(fields)

    async def list_page(self, key: ResourceKey, params: ListParams) -> ListPage:
        """Fetch one page of a collection.

        Raises:
            APIError: If the request fails or the response is malformed.
        """
        endpoint = self.endpoint(key)
        data = await self.client.get(endpoint.path, params=params.to_query())

        if endpoint.items_key is None:
            raw_items = data if isinstance(data, list) else []
            pagination: Mapping[str, Any] = {}
        else:
            data = data if isinstance(data, Mapping) else {}
            raw_items = data.get(endpoint.items_key) or []
            pagination = data.get("pagination") or {}
            if not isinstance(pagination, Mapping):
                logger.warning("Ignoring malformed pagination in %s response", key.value)
                pagination = {}

        items = self._parse_many(key, raw_items)
        return ListPage(
            items=items,
            has_more=bool(pagination.get("hasMore", False)),
            total=pagination.get("total"),
        )

    async def create(self, key: ResourceKey, fields: Mapping[str, Any]) -> Any:
        endpoint = self.endpoint(key)
        data = await self.client.post(endpoint.path, json=endpoint.to_wire(fields))
        return self._parse_one(key, data)

    async def update(self, key: ResourceKey, entity_id: str, changes: Mapping[str, Any]) -> Any:
        endpoint = self.endpoint(key)
        data = await self.client.put(f"{endpoint.path}/{entity_id}", json=endpoint.to_wire(changes))
        return self._parse_one(key, data)

    async def delete(self, key: ResourceKey, entity_id: str) -> None:
        endpoint = self.endpoint(key)
        await self.client.delete(f"{endpoint.path}/{entity_id}")

    async def update_user_premium(self, user_id: str, is_premium: bool) -> None:
        """Grant or revoke a user's premium status (admin only)."""
        await self.client.put(
            f"{ENDPOINTS[ResourceKey.USERS].path}/{user_id}/premium",
            json={"isPremium": is_premium},
        )

    async def get_dashboard(self, today: datetime.date) -> DashboardAggregate:
        """Fetch the dashboard aggregate for the given local date.

        The backend omits the date of ``todaysEvents``; every one of them is
        stamped with ``today`` so it can be merged into the study events.
        """
        data = await self.client.get("/dashboard", params={"date": today.isoformat()})
        if not isinstance(data, Mapping):
            raise APIError(message="Malformed dashboard response")

        payload = dict(data)
        payload["todaysEvents"] = [
            {**event, "date": today} for event in payload.get("todaysEvents") or []
        ]

        try:
            return DashboardAggregate.model_validate(payload)
        except PydanticValidationError as e:
            raise APIError(
                message="Malformed dashboard response",
                details={"errors": e.error_count()},
            ) from e

    def _parse_one(self, key: ResourceKey, data: Any) -> Any:
        try:
            return self.endpoint(key).parse(data)
        except (PydanticValidationError, KeyError, TypeError) as e:
            raise APIError(
                message=f"Malformed {key.value} response",
                details={"error_type": type(e).__name__},
            ) from e

    def _parse_many(self, key: ResourceKey, raw_items: Any) -> list[Any]:
        if not isinstance(raw_items, list):
            logger.warning("Ignoring non-list %s payload", key.value)
            return []
        return [self._parse_one(key, item) for item in raw_items]
