"""buffer-sweeper - periodic, rule-driven reclamation of idle resources.

Decides on a fixed cadence which long-lived host resources (open
documents, terminal sessions, ...) to release. Unsaved, displayed,
process-attached and focused resources are protected; idle ones are
reclaimed according to an ordered keep/kill rule chain.

Usage:
    from buffer_sweeper import SweepRunner, SweepScheduler, load_config

    runner = SweepRunner(host, load_config("sweeper.yaml"))
    SweepScheduler(runner).start()

For installation:
    pip install buffer-sweeper
"""

__version__ = "0.1.0"

from buffer_sweeper.config import SweeperConfig, config_from_dict, load_config
from buffer_sweeper.janitor import ActivityRecorder, SweepRunner, SweepScheduler
from buffer_sweeper.rules import ConfigurationError, Rule, RuleKind, parse_rules
from buffer_sweeper.schemas import Resource, SweepReport, Verdict

__all__ = [
    "__version__",
    "ActivityRecorder",
    "ConfigurationError",
    "Resource",
    "Rule",
    "RuleKind",
    "SweepReport",
    "SweepRunner",
    "SweepScheduler",
    "SweeperConfig",
    "Verdict",
    "config_from_dict",
    "load_config",
    "parse_rules",
]
