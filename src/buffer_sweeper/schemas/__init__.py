# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""
Resource and sweep result schemas.

Defines the host-owned Resource record the sweeper observes, the Verdict
produced for each resource, and the SweepReport returned from a sweep.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional, Protocol, runtime_checkable


@runtime_checkable
class ProcessHandle(Protocol):
    """A process attached to a resource (shell, compiler, REPL, ...)."""

    def is_alive(self) -> bool:
        """Return True while the process is running."""
        ...


class Verdict(str, Enum):
    """Outcome of evaluating a resource.

    - KEEP: The resource must survive this sweep.
    - KILL: The resource should be destroyed.
    - NONE: No opinion; the caller's default policy (keep) applies.
    """

    KEEP = "keep"
    KILL = "kill"
    NONE = "none"


@dataclass(eq=False)
class Resource:
    """A long-lived, stateful unit of work owned by the host.

    The host owns the lifetime of every resource. The sweeper only reads
    these attributes, with one exception: ``last_activity`` is written by
    the activity recorder.

    Attributes:
        name: Unique resource name.
        kind: Category tag used by kind rules (e.g. "python", "special").
        kind_lineage: Ancestor kinds; a resource matches these as well.
        file_path: Backing file, if any.
        listing_directory: Directory shown by a directory-listing view.
        modified: Whether there are unsaved changes.
        process: Attached process handle, if any.
        base_name: Primary resource of a secondary (indirect) view.
        edit_parent_name: Parent of an embedded-edit child.
        last_activity: Last time the sweeper saw the resource in use.
        display_time: Last display time reported by the host.
        alive: Liveness flag maintained by the host.
    """

    name: str
    kind: str = "fundamental"
    kind_lineage: tuple[str, ...] = ()
    file_path: Optional[str] = None
    listing_directory: Optional[str] = None
    modified: bool = False
    process: Optional[ProcessHandle] = None
    base_name: Optional[str] = None
    edit_parent_name: Optional[str] = None
    last_activity: Optional[float] = None
    display_time: Optional[float] = None
    alive: bool = True

    @property
    def backing_id(self) -> Optional[str]:
        """File path, or the directory of a directory-listing view."""
        return self.file_path or self.listing_directory

    @property
    def category_names(self) -> tuple[str, ...]:
        return (self.kind, *self.kind_lineage)


@dataclass
class KilledResource:
    """Metadata of a destroyed resource, captured before destruction."""

    name: str
    kind: str
    path: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "kind": self.kind, "path": self.path}


@dataclass
class SweepReport:
    """Result of a single sweep.

    Attributes:
        killed: Resources destroyed (or, for dry runs, that would be).
        processed: Number of resources evaluated.
        kept: Number of resources that survived.
        dry_run: True if nothing was actually destroyed.
        duration_ms: Wall time spent in the sweep.
    """

    killed: list[KilledResource] = field(default_factory=list)
    processed: int = 0
    kept: int = 0
    dry_run: bool = False
    duration_ms: float = 0.0

    @property
    def names(self) -> list[str]:
        return [entry.name for entry in self.killed]

    def __len__(self) -> int:
        return len(self.killed)

    def __iter__(self) -> Iterator[KilledResource]:
        return iter(self.killed)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "killed": [entry.to_dict() for entry in self.killed],
            "processed": self.processed,
            "kept": self.kept,
            "dry_run": self.dry_run,
            "duration_ms": self.duration_ms,
        }


__all__ = [
    "KilledResource",
    "ProcessHandle",
    "Resource",
    "SweepReport",
    "Verdict",
]
