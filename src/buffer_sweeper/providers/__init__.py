# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""ResourceHost implementations."""

from buffer_sweeper.providers.local import (
    DEBUG_RESOURCE_NAME,
    DuplicateResourceError,
    LocalResourceHost,
)

__all__ = ["DEBUG_RESOURCE_NAME", "DuplicateResourceError", "LocalResourceHost"]
