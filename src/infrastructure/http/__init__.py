# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Async HTTP transport for the StudySync REST backend.

Usage:
    from src.infrastructure.http import APIClient, NetworkError

    async with APIClient.from_settings() as client:
        data = await client.get("/dashboard", params={"date": "2025-01-05"})
"""

from src.infrastructure.http.client import APIClient
from src.infrastructure.http.exceptions import (
    APIError,
    NetworkError,
    NotFoundError,
    RequestTimeoutError,
    ServerError,
    ValidationError,
)

__all__ = [
    "APIClient",
    "APIError",
    "NetworkError",
    "RequestTimeoutError",
    "ValidationError",
    "NotFoundError",
    "ServerError",
]
