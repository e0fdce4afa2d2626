# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Client-side safety filters applied to list responses.

The backend is expected to apply tag filters itself, but tag arrays can be
missing or malformed, so the store re-checks every page before it is
merged. An untagged item never matches a required tag and never matches an
excluded one.
"""

from collections.abc import Iterable, Sequence
from typing import Any, TypeVar

T = TypeVar("T")


def _tags_of(item: Any) -> Sequence[str] | None:
    tags = getattr(item, "tags", None)
    if isinstance(tags, (list, tuple)):
        return tags
    return None


def apply_tag_filters(
    items: Iterable[T],
    tag: str | None = None,
    exclude_tag: str | None = None,
) -> list[T]:
    """Keep only items consistent with the requested tag filters.

    Args:
        items: Fetched items, in arrival order.
        tag: Tag every kept item must carry.
        exclude_tag: Tag no kept item may carry.

    Returns:
        The kept items, in arrival order.
    """
    kept = list(items)

    if exclude_tag:
        kept = [
            item for item in kept
            if (tags := _tags_of(item)) is None or exclude_tag not in tags
        ]

    if tag:
        kept = [
            item for item in kept
            if (tags := _tags_of(item)) is not None and tag in tags
        ]

    return kept
