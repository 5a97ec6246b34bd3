# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""Activity timestamp recording.

The host calls ActivityRecorder whenever a resource is displayed, focused
or resized. This is the only place the sweeper writes
``Resource.last_activity``.
"""

import logging
import time
from typing import Callable, Optional

from buffer_sweeper.protocols import ResourceHost
from buffer_sweeper.schemas import Resource

logger = logging.getLogger(__name__)


class ActivityRecorder:
    """Stamps resources with the time they were last in use.

    Example:
        >>> recorder = ActivityRecorder(host)
        >>> host_events.on_window_change(lambda: recorder.record())
    """

    def __init__(self, host: ResourceHost, clock: Callable[[], float] = time.time):
        self.host = host
        self.clock = clock

    def record(self, resource: Optional[Resource] = None) -> Optional[Resource]:
        """Stamp a resource (default: the focused one) with the current time.

        Args:
            resource: Resource to stamp; the host's current resource if None.

        Returns:
            The stamped resource, or None if there was nothing live to stamp.
        """
        if resource is None:
            resource = self.host.current_resource()
        if resource is None or not self.host.is_live(resource):
            return None
        resource.last_activity = self.clock()
        return resource

    def record_rendered(self) -> int:
        """Stamp every resource currently shown in a viewport.

        Returns:
            Number of resources stamped.
        """
        rendered = self.host.rendered_names()
        now = self.clock()
        count = 0
        for resource in self.host.live_resources():
            if resource.name in rendered:
                resource.last_activity = now
                count += 1
        logger.debug(f"Recorded activity for {count} rendered resources")
        return count
