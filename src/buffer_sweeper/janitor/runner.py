# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""Sweep runner.

Applies pre-flight safety gates and the rule chain to every live resource
and destroys those whose verdict is KILL.

Pre-flight gates are checked in order, before the rule chain, and always
win over it:
1. The debug resource is kept while debug mode is on.
2. Modified file-backed resources are kept (protect_unsaved_file_resources).
3. The focused resource is kept (protect_current_resource).

Resources can be destroyed by something else while a sweep is running, so
liveness is checked before a resource is evaluated and again right before
it is destroyed.
"""

import logging
import time
from typing import Callable, Iterable, Optional

from buffer_sweeper.config import SweeperConfig
from buffer_sweeper.janitor.associations import resolve_associations
from buffer_sweeper.protocols import DEBUG_RESOURCE_NAME, ResourceGoneError, ResourceHost
from buffer_sweeper.rules.engine import evaluate
from buffer_sweeper.rules.predicates import EvaluationContext
from buffer_sweeper.rules.types import ConfigurationError, Rule
from buffer_sweeper.schemas import KilledResource, Resource, SweepReport, Verdict

logger = logging.getLogger(__name__)

BeforeSweepHook = Callable[[], None]
AfterSweepHook = Callable[[SweepReport], None]


class SweepRunner:
    """Runs sweeps against a host.

    Attributes:
        host: Host owning the resources.
        config: Sweeper configuration (rule chain, gates, thresholds).
        clock: Returns the current time in epoch seconds.
        before_sweep_hooks: Called with no arguments before each run().
        after_sweep_hooks: Called with the SweepReport after each run().

    Example:
        >>> runner = SweepRunner(host)
        >>> report = runner.apply_rules()
        >>> print(f"Killed {len(report)} resources: {report.names}")
    """

    def __init__(
        self,
        host: ResourceHost,
        config: Optional[SweeperConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the runner.

        Args:
            host: Host implementing ResourceHost.
            config: Configuration (defaults used if not provided).
            clock: Time source, injectable for tests.
        """
        self.host = host
        self.config = config or SweeperConfig()
        self.clock = clock
        self.before_sweep_hooks: list[BeforeSweepHook] = []
        self.after_sweep_hooks: list[AfterSweepHook] = []

    def run(self) -> SweepReport:
        """Run one full sweep wrapped with the before/after hooks.

        This is what the scheduler calls on every tick. A failing hook is
        logged and does not prevent the sweep.
        """
        for hook in list(self.before_sweep_hooks):
            try:
                hook()
            except Exception:
                logger.exception(f"Before-sweep hook {hook!r} failed")

        report = self.apply_rules()

        for hook in list(self.after_sweep_hooks):
            try:
                hook(report)
            except Exception:
                logger.exception(f"After-sweep hook {hook!r} failed")

        return report

    def apply_rules(
        self,
        rules: Optional[Iterable[Rule]] = None,
        resources: Optional[Iterable[Resource]] = None,
        dry_run: bool = False,
    ) -> SweepReport:
        """Evaluate resources and destroy those whose verdict is KILL.

        Args:
            rules: Rule chain (defaults to config.rules).
            resources: Resources to consider (defaults to all live ones).
            dry_run: If True, report what would be destroyed without
                destroying anything.

        Returns:
            SweepReport listing destroyed resources.

        Raises:
            ConfigurationError: If a rule is malformed. The sweep stops at
                that resource; resources already destroyed stay destroyed.
        """
        start = time.perf_counter()
        rule_chain = tuple(self.config.rules if rules is None else rules)
        batch = list(self.host.live_resources() if resources is None else resources)

        ctx = self._build_context(batch)
        current = self.host.current_resource() if self.config.protect_current_resource else None
        report = SweepReport(dry_run=dry_run)

        for resource in batch:
            if not self.host.is_live(resource):
                logger.debug(f"Skipping '{resource.name}': no longer live")
                continue

            report.processed += 1
            try:
                verdict = self._verdict(resource, rule_chain, ctx, current)
            except ConfigurationError as e:
                if e.resource_name is None:
                    raise ConfigurationError(
                        str(e), rule=e.rule, resource_name=resource.name
                    ) from e
                raise

            if verdict is Verdict.KILL and self._destroy(resource, dry_run, report):
                continue
            report.kept += 1

        report.duration_ms = (time.perf_counter() - start) * 1000
        if report.killed:
            logger.info(
                f"Sweep {'(dry run) ' if dry_run else ''}killed {len(report)} of "
                f"{report.processed} resources: {', '.join(report.names)}"
            )
        else:
            logger.debug(f"Sweep processed {report.processed} resources, killed none")
        return report

    def _build_context(self, batch: list[Resource]) -> EvaluationContext:
        # Peers outside an explicit batch still count for visibility
        universe = {r.name: r for r in self.host.live_resources()}
        universe.update((r.name, r) for r in batch)

        return EvaluationContext(
            now=self.clock(),
            inactivity_threshold=self.config.inactivity_threshold_seconds,
            rendered=frozenset(self.host.rendered_names()),
            associations=resolve_associations(universe.values(), self.host.is_live),
            special_kinds=frozenset(self.config.special_kinds),
        )

    def _verdict(
        self,
        resource: Resource,
        rules: tuple[Rule, ...],
        ctx: EvaluationContext,
        current: Optional[Resource],
    ) -> Verdict:
        config = self.config

        if config.debug and resource.name == DEBUG_RESOURCE_NAME:
            return Verdict.KEEP

        if config.protect_unsaved_file_resources and resource.backing_id and resource.modified:
            self._trace(f"[{resource.name}] unsaved changes -> keep")
            return Verdict.KEEP

        if current is not None and resource.name == current.name:
            self._trace(f"[{resource.name}] current resource -> keep")
            return Verdict.KEEP

        trace = self._trace if config.debug else None
        return evaluate(resource, rules, ctx, trace=trace)

    def _destroy(self, resource: Resource, dry_run: bool, report: SweepReport) -> bool:
        if not self.host.is_live(resource):
            logger.debug(f"'{resource.name}' disappeared before it could be destroyed")
            return False

        entry = KilledResource(
            name=resource.name,
            kind=resource.kind,
            path=resource.backing_id,
        )

        if not dry_run:
            try:
                destroyed = self.host.destroy(resource)
            except ResourceGoneError:
                logger.debug(f"'{resource.name}' was already destroyed")
                return False
            if not destroyed:
                logger.warning(f"Host declined to destroy '{resource.name}'")
                return False
            if self.config.verbose:
                self.host.notify(f"Killed resource: '{entry.name}'")

        report.killed.append(entry)
        return True

    def _trace(self, message: str) -> None:
        if not self.config.debug:
            return
        logger.debug(message)
        self.host.append_debug(message)
