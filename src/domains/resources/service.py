# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Data service: one wired instance of the synchronization layer.

DataService builds the store, the mutation gateway, the invalidation
coordinator and the dashboard builder around one API client, and exposes
the fetch operations screens call by name.

Example:
    async with DataService.from_settings() as data:
        library = data.paginator(ResourceKey.DOCUMENTS)
        await library.apply_filters(exclude_tag="past-exam")
        await data.fetch_dashboard()
        await data.mutations.update_study_event("ev-1", {"isCompleted": True})
"""

import datetime
import logging
from collections.abc import Callable
from typing import Any

import httpx

from src.core.config.settings import Settings, get_settings
from src.domains.resources.api import ResourceAPI
from src.domains.resources.dashboard import DashboardAggregateBuilder
from src.domains.resources.invalidation import InvalidationCoordinator
from src.domains.resources.models import (
    DashboardAggregate,
    FetchMode,
    FetchResult,
    ListParams,
    ResourceKey,
)
from src.domains.resources.mutations import MutationGateway
from src.domains.resources.pagination import PaginationController
from src.domains.resources.store import ResourceStore
from src.infrastructure.http.client import APIClient
from src.utils.datetime import local_today
from src.utils.logging import setup_logging

logger = logging.getLogger(__name__)


class DataService:
    """Facade over the resource synchronization components.

    Attributes:
        api: Endpoint access.
        store: Owner of all client state.
        dashboard: Dashboard aggregate builder.
        invalidation: Invalidation coordinator.
        mutations: Mutation gateway.
    """

    def __init__(
        self,
        client: APIClient,
        settings: Settings | None = None,
        today_provider: Callable[[], datetime.date] = local_today,
    ):
        """Wire the components around an API client.

        Args:
            client: Transport shared by every component.
            settings: Application settings. Uses get_settings() if None.
            today_provider: Source of the local calendar date.
        """
        self._settings = settings or get_settings()
        self._client = client

        self.api = ResourceAPI(client)
        self.store = ResourceStore(
            self.api,
            clear_before_fetch=self._settings.pagination.clear_before_fetch,
        )
        self.dashboard = DashboardAggregateBuilder(self.api, self.store, today_provider)
        self.invalidation = InvalidationCoordinator()
        self.invalidation.register(ResourceKey.DASHBOARD, self.dashboard.refresh)
        self.mutations = MutationGateway(self.api, self.store, self.invalidation, today_provider)
        logger.debug("Data service ready for %s", client.base_url)

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "DataService":
        """Create a service for an application process.

        Configures logging and builds the API client from settings.
        """
        settings = settings or get_settings()
        setup_logging(settings)
        client = APIClient.from_settings(settings.api, transport=transport)
        return cls(client, settings)

    async def __aenter__(self) -> "DataService":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.close()

    def paginator(self, key: ResourceKey | str) -> PaginationController:
        """Create a pagination controller for one scrolling screen."""
        return PaginationController(
            self.store,
            key,
            initial_limit=self._settings.pagination.initial_limit,
            page_size=self._settings.pagination.load_more_limit,
        )

    async def fetch_documents(self, append: bool = False, **params: Any) -> FetchResult:
        return await self._fetch(ResourceKey.DOCUMENTS, append, params)

    async def fetch_more_documents(self, **params: Any) -> FetchResult:
        return await self._fetch(ResourceKey.DOCUMENTS, True, params)

    async def fetch_videos(self, append: bool = False, **params: Any) -> FetchResult:
        return await self._fetch(ResourceKey.VIDEOS, append, params)

    async def fetch_more_videos(self, **params: Any) -> FetchResult:
        return await self._fetch(ResourceKey.VIDEOS, True, params)

    async def fetch_forum_posts(self, append: bool = False, **params: Any) -> FetchResult:
        return await self._fetch(ResourceKey.FORUM_POSTS, append, params)

    async def fetch_study_events(self, **params: Any) -> FetchResult:
        """Fetch planner events (date, type, completed, archived filters)."""
        return await self._fetch(ResourceKey.STUDY_EVENTS, False, params)

    async def fetch_users(self, append: bool = False, **params: Any) -> FetchResult:
        return await self._fetch(ResourceKey.USERS, append, params)

    async def fetch_dashboard(self) -> DashboardAggregate | None:
        return await self.dashboard.refresh()

    async def _fetch(self, key: ResourceKey, append: bool, params: dict[str, Any]) -> FetchResult:
        mode = FetchMode.APPEND if append else FetchMode.REPLACE
        return await self.store.fetch(key, ListParams(**params), mode)
