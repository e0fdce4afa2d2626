# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Async HTTP client for the StudySync REST backend.

The client handles:
- Bearer authentication and JSON headers
- Unwrapping the backend's ``{"success": true, "data": ...}`` envelope
- Classifying failures into the exceptions in
  ``src.infrastructure.http.exceptions``
- Retrying transient failures with exponential backoff (tenacity). Network
  errors and timeouts are retried for every method; 5xx responses only for
  reads, so a write is never replayed after the server answered

Example:
    async with APIClient.from_settings() as client:
        page = await client.get("/documents", params={"limit": 16, "offset": 0})
        await client.put("/documents/doc-1", json={"title": "Kinematics"})
"""

import logging
from functools import partial
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from src.core.config.settings import APISettings, get_settings
from src.infrastructure.http.exceptions import (
    APIError,
    NetworkError,
    NotFoundError,
    RequestTimeoutError,
    ServerError,
    ValidationError,
)

logger = logging.getLogger(__name__)

READ_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


def _is_retryable(method: str, error: BaseException) -> bool:
    """Whether a failed request may be sent again.

    A request that never got a response is always retried. A transient
    response (5xx) is retried only for read-only methods.
    """
    if not isinstance(error, APIError) or not error.transient:
        return False
    return error.status_code is None or method in READ_METHODS


class APIClient:
    """Async HTTP client for the StudySync backend.

    Attributes:
        base_url: Base URL of the backend API.
        max_retries: Retry attempts for transient failures.
        retry_delay: Initial backoff delay in seconds.
    """

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the API client.

        Args:
            base_url: Base URL of the backend API.
            headers: Extra headers sent with every request.
            timeout: Request timeout in seconds.
            max_retries: Retry attempts for transient failures.
            retry_delay: Initial backoff delay in seconds, doubled per attempt.
            transport: Optional httpx transport (used by tests).
        """
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
                **(headers or {}),
            },
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: APISettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "APIClient":
        """Create a client from API settings.

        Args:
            settings: API settings. Uses get_settings().api if None.
            transport: Optional httpx transport.

        Returns:
            Configured APIClient.
        """
        settings = settings or get_settings().api
        return cls(
            base_url=settings.base_url,
            headers=settings.auth_headers,
            timeout=settings.timeout,
            max_retries=settings.max_retries,
            retry_delay=settings.retry_delay,
            transport=transport,
        )

    async def __aenter__(self) -> "APIClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Send a request, retrying transient failures.

        Args:
            method: HTTP method.
            path: Path relative to the base URL.
            params: Query parameters; None values are dropped.
            json: JSON request body.

        Returns:
            The decoded response payload, unwrapped from the success envelope.
            None for empty responses.

        Raises:
            APIError: A subclass describing the failure, after retries are
                exhausted for transient failures.
        """
        retrying = AsyncRetrying(
            retry=retry_if_exception(partial(_is_retryable, method.upper())),
            wait=wait_exponential(multiplier=self.retry_delay),
            stop=stop_after_attempt(self.max_retries + 1),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    return await self._send(method, path, params=params, json=json)
        except APIError as e:
            logger.error("API request failed: %s %s: %s", method, path, e)
            raise

    async def _send(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None,
        json: Any,
    ) -> Any:
        query = {k: v for k, v in (params or {}).items() if v is not None}

        try:
            response = await self._client.request(
                method,
                path,
                params=query or None,
                json=json,
            )
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(
                message="Connection timeout. The server is taking too long to respond.",
                details={"error_type": type(e).__name__},
            ) from e
        except httpx.TransportError as e:
            raise NetworkError(
                message=f"Failed to connect to backend: {str(e)}",
                details={"error_type": type(e).__name__},
            ) from e

        return self._handle_response(response)

    def _handle_response(self, response: httpx.Response) -> Any:
        """Decode a response and raise the matching error for failures."""
        payload = _decode_json(response)

        if response.is_error:
            message, errors = _error_message(payload)
            message = message or f"HTTP {response.status_code}: {response.reason_phrase}"

            if response.status_code == 404:
                raise NotFoundError(message=message, status_code=404)
            if response.status_code >= 500:
                raise ServerError(message=message, status_code=response.status_code)
            raise ValidationError(
                message=message,
                status_code=response.status_code,
                validation_errors=errors,
            )

        if isinstance(payload, dict):
            if payload.get("success") is False:
                message, errors = _error_message(payload)
                message = message or "An error occurred"
                if "timeout" in message.lower():
                    raise RequestTimeoutError(message=message, status_code=response.status_code)
                raise ValidationError(
                    message=message,
                    status_code=response.status_code,
                    validation_errors=errors,
                )

            if payload.get("success") is True and "data" in payload:
                return payload["data"]

        return payload


def _decode_json(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def _error_message(payload: Any) -> tuple[str | None, list[str]]:
    """Extract a message and individual validation errors from an error body."""
    if not isinstance(payload, dict):
        return None, []

    errors: list[str] = []
    raw_errors = payload.get("errors")
    if isinstance(raw_errors, list):
        for error in raw_errors:
            if isinstance(error, dict):
                errors.append(error.get("msg") or error.get("message") or "Validation error")
            else:
                errors.append(str(error))

    if errors:
        return ", ".join(errors), errors
    return payload.get("message"), errors
