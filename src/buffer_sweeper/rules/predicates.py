# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""
Predicate evaluators used by the rule engine.

Every predicate is a pure function of a resource and the EvaluationContext
of the current sweep. The context carries the single "now" snapshot taken
at the start of the sweep, so every resource in one sweep is judged
against the same clock.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from buffer_sweeper.rules.types import ConfigurationError, Property
from buffer_sweeper.schemas import Resource

DEFAULT_SPECIAL_KINDS: tuple[str, ...] = ("special",)


@dataclass(frozen=True)
class EvaluationContext:
    """Per-sweep inputs shared by all predicates.

    Attributes:
        now: Time snapshot (epoch seconds) for the whole sweep.
        inactivity_threshold: Idle seconds before a resource is inactive.
        rendered: Names of resources shown in any viewport or tab.
        associations: Linked peers per resource name for this sweep.
        special_kinds: Kinds that mark a resource as special.
    """

    now: float
    inactivity_threshold: float
    rendered: frozenset[str] = frozenset()
    associations: Mapping[str, frozenset[str]] = field(default_factory=dict)
    special_kinds: frozenset[str] = frozenset(DEFAULT_SPECIAL_KINDS)


def idle_seconds(resource: Resource, now: float) -> float | None:
    """Seconds since the resource was last seen, or None if never seen.

    Both the sweeper's own activity stamp and the host's display time may
    be stale, so the more recent of the two wins.
    """
    stamps = [t for t in (resource.last_activity, resource.display_time) if t is not None]
    if not stamps:
        return None
    return now - max(stamps)


def is_inactive(resource: Resource, ctx: EvaluationContext) -> bool:
    idle = idle_seconds(resource, ctx.now)
    if idle is None:
        return True
    return idle >= ctx.inactivity_threshold


def is_visible(resource: Resource, ctx: EvaluationContext) -> bool:
    """True if the resource, or any resource linked to it, is rendered."""
    if resource.name in ctx.rendered:
        return True
    peers = ctx.associations.get(resource.name, frozenset())
    return any(peer in ctx.rendered for peer in peers)


def is_special(resource: Resource, ctx: EvaluationContext) -> bool:
    """True for internal/ephemeral resources such as ``*scratch*``.

    A resource with a backing file or directory is never special, whatever
    its name.
    """
    if resource.backing_id:
        return False
    name = resource.name
    if name.startswith(" "):
        return True
    if len(name) >= 2 and name.startswith("*") and name.endswith("*"):
        return True
    return any(kind in ctx.special_kinds for kind in resource.category_names)


def has_process(resource: Resource, ctx: EvaluationContext) -> bool:
    process = resource.process
    return process is not None and process.is_alive()


def has_file(resource: Resource, ctx: EvaluationContext) -> bool:
    return resource.backing_id is not None


_PROPERTY_CHECKS = {
    Property.SPECIAL: is_special,
    Property.PROCESS: has_process,
    Property.VISIBLE: is_visible,
    Property.INACTIVE: is_inactive,
    Property.FILE: has_file,
}


def check_property(prop: Property, resource: Resource, ctx: EvaluationContext) -> bool:
    """Dispatch a keep-property / kill-property check.

    Raises:
        ConfigurationError: If prop is not a known Property.
    """
    check = _PROPERTY_CHECKS.get(prop)
    if check is None:
        raise ConfigurationError(f"Unknown resource property {prop!r}")
    return check(resource, ctx)


def matches_name(resource: Resource, names: Iterable[str]) -> bool:
    return resource.name in names


def matches_name_regexp(resource: Resource, patterns: Iterable[re.Pattern]) -> bool:
    return any(pattern.search(resource.name) for pattern in patterns)


def matches_kind(resource: Resource, kinds: Iterable[str]) -> bool:
    """True if the resource's kind, or any kind it derives from, is listed."""
    wanted = set(kinds)
    return any(kind in wanted for kind in resource.category_names)
