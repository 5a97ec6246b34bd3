# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""Local in-memory implementation of ResourceHost.

Keeps resources in a dict and models focus, rendering and destruction
guards explicitly. Suitable for:
- Development and testing
- Scripted cleanups of resources managed in-process
- Embedding the sweeper in hosts that mirror their state into it

Example:
    >>> host = LocalResourceHost()
    >>> host.add(Resource(name="notes.txt", file_path="/tmp/notes.txt"))
    >>> host.show("notes.txt")
    >>> sorted(host.rendered_names())
    ['notes.txt']
"""

import logging
from typing import Optional

from buffer_sweeper.protocols import DEBUG_RESOURCE_NAME, ResourceGoneError
from buffer_sweeper.schemas import Resource

logger = logging.getLogger(__name__)


class DuplicateResourceError(Exception):
    """Raised when adding a resource whose name is already taken."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Resource with name '{name}' already exists")


class LocalResourceHost:
    """In-memory ResourceHost.

    Attributes:
        notices: User-visible notices emitted via notify().
        destroyed: Names destroyed through destroy(), in order.
    """

    def __init__(self) -> None:
        self._resources: dict[str, Resource] = {}
        self._rendered: set[str] = set()
        self._guarded: set[str] = set()
        self._current: Optional[str] = None
        self._debug_lines: list[str] = []
        self.notices: list[str] = []
        self.destroyed: list[str] = []

    # -- Registry management ----------------------------------------------

    def add(self, resource: Resource) -> Resource:
        if resource.name in self._resources:
            raise DuplicateResourceError(resource.name)
        resource.alive = True
        self._resources[resource.name] = resource
        return resource

    def get(self, name: str) -> Optional[Resource]:
        return self._resources.get(name)

    def remove(self, name: str) -> None:
        """Drop a resource as if something outside the sweeper destroyed it."""
        resource = self._resources.pop(name, None)
        if resource is None:
            return
        resource.alive = False
        self._rendered.discard(name)
        self._guarded.discard(name)
        if self._current == name:
            self._current = None

    def show(self, name: str) -> None:
        self._require(name)
        self._rendered.add(name)

    def hide(self, name: str) -> None:
        self._rendered.discard(name)

    def focus(self, name: Optional[str]) -> None:
        if name is not None:
            self._require(name)
        self._current = name

    def guard(self, name: str) -> None:
        """Make destroy() decline for this resource (e.g. a kill guard hook)."""
        self._guarded.add(name)

    def unguard(self, name: str) -> None:
        self._guarded.discard(name)

    @property
    def debug_lines(self) -> list[str]:
        return list(self._debug_lines)

    def _require(self, name: str) -> Resource:
        resource = self._resources.get(name)
        if resource is None:
            raise KeyError(f"Unknown resource '{name}'")
        return resource

    # -- ResourceHost protocol --------------------------------------------

    def live_resources(self) -> list[Resource]:
        return list(self._resources.values())

    def is_live(self, resource: Resource) -> bool:
        return resource.alive and self._resources.get(resource.name) is resource

    def current_resource(self) -> Optional[Resource]:
        if self._current is None:
            return None
        return self._resources.get(self._current)

    def rendered_names(self) -> set[str]:
        return set(self._rendered)

    def destroy(self, resource: Resource) -> bool:
        if not self.is_live(resource):
            raise ResourceGoneError(resource.name)
        if resource.name in self._guarded:
            logger.debug(f"Destruction of '{resource.name}' declined by guard")
            return False
        self.remove(resource.name)
        self.destroyed.append(resource.name)
        return True

    def notify(self, message: str) -> None:
        self.notices.append(message)

    def append_debug(self, message: str) -> None:
        if DEBUG_RESOURCE_NAME not in self._resources:
            self.add(Resource(name=DEBUG_RESOURCE_NAME, kind="special"))
        self._debug_lines.append(message)
