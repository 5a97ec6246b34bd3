# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""Sweep orchestration and scheduling.

Provides:
- SweepRunner: applies pre-flight gates and the rule chain, destroys KILLs
- SweepScheduler: periodic timer driving SweepRunner.run()
- ActivityRecorder: stamps resources with their last activity time
- resolve_associations: per-sweep links between related resources
"""

from buffer_sweeper.janitor.activity import ActivityRecorder
from buffer_sweeper.janitor.associations import resolve_associations
from buffer_sweeper.janitor.runner import SweepRunner
from buffer_sweeper.janitor.scheduler import (
    SchedulerState,
    SweepScheduler,
    loop_timer,
    threading_timer,
)

__all__ = [
    "ActivityRecorder",
    "SchedulerState",
    "SweepRunner",
    "SweepScheduler",
    "loop_timer",
    "resolve_associations",
    "threading_timer",
]
