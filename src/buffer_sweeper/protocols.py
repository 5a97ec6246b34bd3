# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""
Host collaborator protocol.

The sweeper never owns resources. It talks to the host (an editor, a
terminal multiplexer, a session manager) through ResourceHost, which the
host implements. LocalResourceHost in buffer_sweeper.providers.local is the
in-memory implementation used for tests and scripting.

All calls are synchronous; the sweep runs to completion on the host's
logical thread.
"""

from typing import Optional, Protocol, runtime_checkable

from buffer_sweeper.schemas import Resource

# Name of the introspection resource that receives debug traces
DEBUG_RESOURCE_NAME = "*buffer-sweeper:debug*"


class ResourceGoneError(Exception):
    """Raised by a host when asked to destroy a resource that no longer exists."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Resource '{name}' no longer exists")


@runtime_checkable
class ResourceHost(Protocol):
    """Interface a host exposes to the sweeper."""

    def live_resources(self) -> list[Resource]:
        """Return a snapshot of all live resources."""
        ...

    def is_live(self, resource: Resource) -> bool:
        """Check whether a resource still exists.

        Resources can disappear at any time (a process exits, the user
        closes a view), so the sweeper calls this before every use.
        """
        ...

    def current_resource(self) -> Optional[Resource]:
        """Return the focused resource, or None."""
        ...

    def rendered_names(self) -> set[str]:
        """Return names of resources currently shown in any viewport or tab."""
        ...

    def destroy(self, resource: Resource) -> bool:
        """Destroy a resource without asking for confirmation.

        Returns:
            True if destroyed, False if the host declined.

        Raises:
            ResourceGoneError: If the resource was already destroyed.
        """
        ...

    def notify(self, message: str) -> None:
        """Show a user-visible notice."""
        ...

    def append_debug(self, message: str) -> None:
        """Append a line to the debug introspection resource."""
        ...
