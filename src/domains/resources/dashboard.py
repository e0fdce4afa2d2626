# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Dashboard aggregate refetch and reconciliation.

The dashboard is composed by the server and fetched as one unit. After a
successful fetch its ``todays_events`` are merged into the study events by
id, so one event id never has two diverging copies in memory.

Failure policy favours availability on the landing screen: when the fetch
fails for connectivity reasons (network or timeout) and an aggregate is
already cached, the cached one stays and nothing is surfaced. Any other
failure, or a connectivity failure with nothing cached, is recorded in the
dashboard error state.
"""

import datetime
import logging
from collections.abc import Callable

from src.domains.resources.api import ResourceAPI
from src.domains.resources.models import DashboardAggregate, ResourceKey
from src.domains.resources.store import ResourceStore
from src.infrastructure.http.exceptions import APIError, NetworkError
from src.utils.datetime import local_today

logger = logging.getLogger(__name__)


class DashboardAggregateBuilder:
    """Fetches the dashboard aggregate into the store."""

    def __init__(
        self,
        api: ResourceAPI,
        store: ResourceStore,
        today_provider: Callable[[], datetime.date] = local_today,
    ):
        self._api = api
        self._store = store
        self._today = today_provider

    async def refresh(self) -> DashboardAggregate | None:
        """Refetch the dashboard aggregate.

        Failures are absorbed into the store's dashboard error state (or
        swallowed, see the module docstring); nothing is raised.

        Returns:
            The aggregate now cached in the store, or None.
        """
        key = ResourceKey.DASHBOARD
        sequence = self._store.next_sequence(key)
        self._store.start_request(key)
        try:
            aggregate = await self._api.get_dashboard(self._today())
        except APIError as e:
            if self._store.is_current(key, sequence):
                self._handle_failure(e)
            return self._store.dashboard
        finally:
            self._store.finish_request(key)

        if not self._store.is_current(key, sequence):
            logger.debug("Discarding superseded dashboard response")
            return self._store.dashboard

        self._store.commit_dashboard(aggregate)
        logger.info(
            "Dashboard refreshed: todays_events=%d recent_bookmarks=%d",
            len(aggregate.todays_events),
            len(aggregate.recent_bookmarks),
        )
        return aggregate

    def _handle_failure(self, error: APIError) -> None:
        if isinstance(error, NetworkError) and self._store.dashboard is not None:
            logger.warning("Dashboard fetch failed, using cached data: %s", error)
            return

        logger.error("Dashboard fetch failed: %s", error)
        self._store.record_error(
            ResourceKey.DASHBOARD,
            error.message or "Failed to fetch dashboard data",
        )
