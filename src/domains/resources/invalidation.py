# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cross-resource invalidation after confirmed mutations.

A mutation on one resource can make a server-composed view stale. The
relationships are declared as a rule table of ``(resource, kind,
predicate) -> target`` entries; the coordinator evaluates the table after
every confirmed mutation and runs the registered refresher of each
matching target once.

Default rules (all targeting the dashboard aggregate):
- a study event created for today
- a study event update whose patch contains the completion flag, whatever
  its date, since completion changes XP and level
- a study event deleted while it was dated today (checked against the
  cached entity captured before the delete)
"""

import datetime
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from src.domains.resources.models import MutationKind, ResourceKey

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MutationContext:
    """What a confirmed mutation changed.

    Attributes:
        resource: Mutated collection.
        kind: Mutation kind.
        entity: Entity confirmed by the server (None for deletes).
        previous: Cached entity before the mutation, if it was cached.
        changes: Wire names of the fields sent in the patch.
        today: Local calendar date when the mutation completed.
    """

    resource: ResourceKey
    kind: MutationKind
    today: datetime.date
    entity: Any = None
    previous: Any = None
    changes: frozenset[str] = field(default_factory=frozenset)


Predicate = Callable[[MutationContext], bool]
Refresher = Callable[[], Awaitable[Any]]


def _always(ctx: MutationContext) -> bool:
    return True


@dataclass(frozen=True)
class InvalidationRule:
    """One declarative invalidation rule."""

    resource: ResourceKey
    kind: MutationKind
    target: ResourceKey
    predicate: Predicate = _always
    description: str = ""

    def matches(self, ctx: MutationContext) -> bool:
        return ctx.resource is self.resource and ctx.kind is self.kind and self.predicate(ctx)


def created_for_today(ctx: MutationContext) -> bool:
    return ctx.entity is not None and ctx.entity.date == ctx.today


def completion_changed(ctx: MutationContext) -> bool:
    return "is_completed" in ctx.changes


def deleted_while_today(ctx: MutationContext) -> bool:
    return ctx.previous is not None and ctx.previous.date == ctx.today


DEFAULT_RULES: tuple[InvalidationRule, ...] = (
    InvalidationRule(
        resource=ResourceKey.STUDY_EVENTS,
        kind=MutationKind.CREATE,
        target=ResourceKey.DASHBOARD,
        predicate=created_for_today,
        description="new event for today",
    ),
    InvalidationRule(
        resource=ResourceKey.STUDY_EVENTS,
        kind=MutationKind.UPDATE,
        target=ResourceKey.DASHBOARD,
        predicate=completion_changed,
        description="completion toggled",
    ),
    InvalidationRule(
        resource=ResourceKey.STUDY_EVENTS,
        kind=MutationKind.DELETE,
        target=ResourceKey.DASHBOARD,
        predicate=deleted_while_today,
        description="today's event deleted",
    ),
)


class InvalidationCoordinator:
    """Evaluates invalidation rules and runs target refreshers."""

    def __init__(self, rules: Iterable[InvalidationRule] = DEFAULT_RULES):
        self.rules = tuple(rules)
        self._refreshers: dict[ResourceKey, Refresher] = {}

    def register(self, target: ResourceKey, refresher: Refresher) -> None:
        """Register the coroutine function that refetches a target."""
        self._refreshers[target] = refresher

    def targets_for(self, *contexts: MutationContext) -> list[ResourceKey]:
        """Return the distinct targets invalidated by the given mutations."""
        targets: list[ResourceKey] = []
        for ctx in contexts:
            for rule in self.rules:
                if rule.target not in targets and rule.matches(ctx):
                    logger.debug(
                        "Rule matched: %s %s -> %s (%s)",
                        ctx.kind.value,
                        ctx.resource.value,
                        rule.target.value,
                        rule.description,
                    )
                    targets.append(rule.target)
        return targets

    async def notify(self, *contexts: MutationContext) -> list[ResourceKey]:
        """Refresh every target invalidated by the given mutations, once each.

        Returns:
            The targets that were refreshed.
        """
        refreshed = []
        for target in self.targets_for(*contexts):
            refresher = self._refreshers.get(target)
            if refresher is None:
                logger.warning("No refresher registered for %s", target.value)
                continue
            logger.info("Refreshing %s after mutation", target.value)
            await refresher()
            refreshed.append(target)
        return refreshed
