# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across the unit tests:
- A fixed "today" for date-dependent rules
- Entity factories
- A mocked ResourceAPI and a store built on it
"""

import datetime
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.domains.resources.api import ENDPOINTS, ResourceAPI
from src.domains.resources.models import (
    Document,
    ListPage,
    ResourceKey,
    StudyEvent,
    StudyEventType,
)
from src.domains.resources.store import ResourceStore


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# =============================================================================
# Date Fixtures
# =============================================================================


@pytest.fixture
def today() -> datetime.date:
    """Provide a fixed local date standing in for today."""
    return datetime.date(2025, 3, 14)


@pytest.fixture
def today_provider(today: datetime.date) -> Callable[[], datetime.date]:
    """Provide a clock returning the fixed date."""
    return lambda: today


# =============================================================================
# Entity Factories
# =============================================================================


@pytest.fixture
def make_document() -> Callable[..., Document]:
    """Provide a factory for documents."""

    def factory(doc_id: str, **fields: Any) -> Document:
        data = {"id": doc_id, "title": f"Document {doc_id}", "subject": "Physics", "grade": 11}
        data.update(fields)
        return Document.model_validate(data)

    return factory


@pytest.fixture
def make_event(today: datetime.date) -> Callable[..., StudyEvent]:
    """Provide a factory for study events, dated today by default."""

    def factory(event_id: str, **fields: Any) -> StudyEvent:
        data = {
            "id": event_id,
            "title": f"Event {event_id}",
            "subject": "Mathematics",
            "date": today,
            "type": StudyEventType.REVISION,
        }
        data.update(fields)
        return StudyEvent.model_validate(data)

    return factory


@pytest.fixture
def make_page() -> Callable[..., ListPage]:
    """Provide a factory for list pages."""

    def factory(items: list[Any], has_more: bool = False, total: int | None = None) -> ListPage:
        return ListPage(items=list(items), has_more=has_more, total=total)

    return factory


# =============================================================================
# Component Fixtures
# =============================================================================


@pytest.fixture
def mock_api() -> MagicMock:
    """Create a mocked ResourceAPI.

    Network methods are AsyncMocks; to_wire uses the real field translation.
    """
    api = MagicMock(spec=ResourceAPI)
    api.list_page = AsyncMock(return_value=ListPage())
    api.create = AsyncMock()
    api.update = AsyncMock()
    api.delete = AsyncMock(return_value=None)
    api.update_user_premium = AsyncMock(return_value=None)
    api.get_dashboard = AsyncMock()
    api.to_wire = MagicMock(
        side_effect=lambda key, fields: ENDPOINTS[ResourceKey(key)].to_wire(fields)
    )
    return api


@pytest.fixture
def store(mock_api: MagicMock) -> ResourceStore:
    """Create an empty store on the mocked API."""
    return ResourceStore(mock_api)
