# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Resource synchronization domain.

This package keeps the client's view of the backend consistent:
- ResourceStore: Collections, loading/error state, dashboard cache
- PaginationController: Infinite-scroll cursor per listing screen
- MutationGateway: Server-confirmed create/update/delete
- InvalidationCoordinator: Rule table of dependent refetches
- DashboardAggregateBuilder: Dashboard refetch and reconciliation
- DataService: All of the above wired around one API client

Usage:
    from src.domains.resources import DataService, ResourceKey

    async with DataService.from_settings() as data:
        await data.fetch_documents(subject="Physics", limit=16, offset=0)
"""

from src.domains.resources.api import ENDPOINTS, ResourceAPI, ResourceEndpoint
from src.domains.resources.dashboard import DashboardAggregateBuilder
from src.domains.resources.invalidation import (
    DEFAULT_RULES,
    InvalidationCoordinator,
    InvalidationRule,
    MutationContext,
)
from src.domains.resources.models import (
    COLLECTION_KEYS,
    BookmarkSummary,
    DashboardAggregate,
    DashboardProgress,
    DashboardUser,
    Document,
    FetchMode,
    FetchResult,
    ForumPost,
    ListPage,
    ListParams,
    MutationKind,
    PaginationState,
    ResourceKey,
    StudyEvent,
    StudyEventType,
    User,
    Video,
    VideoLesson,
)
from src.domains.resources.mutations import MutationGateway
from src.domains.resources.pagination import PaginationController
from src.domains.resources.service import DataService
from src.domains.resources.store import ResourceStore

__all__ = [
    # Components
    "DataService",
    "ResourceStore",
    "PaginationController",
    "MutationGateway",
    "InvalidationCoordinator",
    "InvalidationRule",
    "MutationContext",
    "DEFAULT_RULES",
    "DashboardAggregateBuilder",
    "ResourceAPI",
    "ResourceEndpoint",
    "ENDPOINTS",
    # Models
    "ResourceKey",
    "COLLECTION_KEYS",
    "FetchMode",
    "FetchResult",
    "MutationKind",
    "ListParams",
    "ListPage",
    "PaginationState",
    "Document",
    "Video",
    "VideoLesson",
    "ForumPost",
    "StudyEvent",
    "StudyEventType",
    "User",
    "DashboardAggregate",
    "DashboardUser",
    "DashboardProgress",
    "BookmarkSummary",
]
