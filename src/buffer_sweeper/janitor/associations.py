# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""Association resolution for a sweep batch.

Two resources are linked when one is a secondary view of the other
(``base_name``) or an embedded-edit child of the other
(``edit_parent_name``). Links are symmetric and transitive: every resource
in a connected group is associated with every other member, so showing any
member protects the whole group from the visibility check.

Associations are rebuilt from scratch at the start of every sweep because
views are split and closed between sweeps.
"""

from collections import defaultdict
from typing import Callable, Iterable

from buffer_sweeper.schemas import Resource


def resolve_associations(
    resources: Iterable[Resource],
    is_live: Callable[[Resource], bool],
) -> dict[str, frozenset[str]]:
    """Compute linked peers for each resource in the batch.

    Args:
        resources: Resources in the current batch.
        is_live: Liveness check from the host.

    Returns:
        Mapping of resource name to the names of its linked peers. Resources
        without links are omitted.
    """
    live = {r.name: r for r in resources if is_live(r)}
    edges: dict[str, set[str]] = defaultdict(set)

    for name, resource in live.items():
        for peer in (resource.base_name, resource.edit_parent_name):
            if peer and peer != name and peer in live:
                edges[name].add(peer)
                edges[peer].add(name)

    associations: dict[str, frozenset[str]] = {}
    for start in edges:
        if start in associations:
            continue
        # Walk the connected group once and share it among its members
        group = {start}
        stack = [start]
        while stack:
            for peer in edges[stack.pop()]:
                if peer not in group:
                    group.add(peer)
                    stack.append(peer)
        for member in group:
            associations[member] = frozenset(group - {member})

    return associations
