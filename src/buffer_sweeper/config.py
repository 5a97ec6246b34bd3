# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""
Sweeper configuration.

This module provides:
- SweeperConfig dataclass holding every recognized option
- load_config() to parse a YAML file (top-level ``sweeper:`` mapping)
- config_from_dict() to build a config from already-parsed data
- migrate_legacy_options() to translate obsolete options into rules

Example config file:

    sweeper:
      inactivity_threshold_seconds: 1800
      sweep_interval_seconds: 600
      protect_unsaved_file_resources: true
      rules:
        - keep-name: ["*Messages*"]
        - keep-property: special
        - keep-property: process
        - keep-property: visible
        - kill-property: inactive
"""

import logging
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from buffer_sweeper.rules.predicates import DEFAULT_SPECIAL_KINDS
from buffer_sweeper.rules.types import DEFAULT_RULES, ConfigurationError, Rule, parse_rules

logger = logging.getLogger(__name__)

DEFAULT_INACTIVITY_THRESHOLD_SECONDS = 1800  # 30 minutes
DEFAULT_SWEEP_INTERVAL_SECONDS = 600  # 10 minutes

# Obsolete boolean options and the rule each one stood for
LEGACY_FLAG_RULES = {
    "keep_special_resources": ("keep-property", "special"),
    "keep_resources_with_process": ("keep-property", "process"),
    "keep_visible_resources": ("keep-property", "visible"),
    "keep_file_resources": ("keep-property", "file"),
}

# Obsolete list options and the rule kind each one maps to
LEGACY_KEEP_LISTS = {
    "keep_resource_names": "keep-name",
    "keep_resource_names_regexps": "keep-name-regexp",
    "keep_kinds": "keep-kind",
}
LEGACY_KILL_LISTS = {
    "kill_resource_names": "kill-name",
    "kill_resource_names_regexps": "kill-name-regexp",
    "kill_kinds": "kill-kind",
}

# Obsolete option names that were simply renamed
LEGACY_RENAMES = {
    "inactivity_timeout": "inactivity_threshold_seconds",
    "interval": "sweep_interval_seconds",
}

_BOOL_OPTIONS = (
    "protect_unsaved_file_resources",
    "protect_current_resource",
    "verbose",
    "debug",
)
_DURATION_OPTIONS = ("inactivity_threshold_seconds", "sweep_interval_seconds")


@dataclass
class SweeperConfig:
    """Options controlling what a sweep destroys and how often it runs.

    Attributes:
        inactivity_threshold_seconds: Idle age before a resource is inactive.
        sweep_interval_seconds: Period between timer-driven sweeps.
        rules: Ordered rule chain; the first rule with a verdict wins.
        protect_unsaved_file_resources: Never destroy modified file-backed
            resources.
        protect_current_resource: Never destroy the focused resource.
        verbose: Notify the user for each destroyed resource.
        debug: Trace every rule evaluation into the debug resource.
        special_kinds: Kinds treated as special (internal) resources.
    """

    inactivity_threshold_seconds: float = DEFAULT_INACTIVITY_THRESHOLD_SECONDS
    sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS
    rules: tuple[Rule, ...] = DEFAULT_RULES
    protect_unsaved_file_resources: bool = True
    protect_current_resource: bool = True
    verbose: bool = False
    debug: bool = False
    special_kinds: tuple[str, ...] = DEFAULT_SPECIAL_KINDS

    def to_dict(self) -> dict[str, Any]:
        """Convert to the mapping stored under ``sweeper:`` in YAML."""
        return {
            "inactivity_threshold_seconds": self.inactivity_threshold_seconds,
            "sweep_interval_seconds": self.sweep_interval_seconds,
            "protect_unsaved_file_resources": self.protect_unsaved_file_resources,
            "protect_current_resource": self.protect_current_resource,
            "verbose": self.verbose,
            "debug": self.debug,
            "special_kinds": list(self.special_kinds),
            "rules": [rule.to_config() for rule in self.rules],
        }


def migrate_legacy_options(data: dict[str, Any]) -> tuple[dict[str, Any], list[str]]:
    """Translate obsolete options into the current shape.

    Runs once, before validation. Keep rules translated from legacy options
    are placed first, then kill rules, then the configured (or default)
    rule chain.

    Args:
        data: Raw ``sweeper:`` mapping.

    Returns:
        Tuple of (migrated mapping, list of warning messages).
    """
    data = dict(data)
    messages: list[str] = []

    for old, new in LEGACY_RENAMES.items():
        if old in data:
            value = data.pop(old)
            messages.append(f"'{old}' is obsolete; use '{new}' instead")
            data.setdefault(new, value)

    keep_rules: list[dict[str, Any]] = []
    kill_rules: list[dict[str, Any]] = []

    for option, (kind, value) in LEGACY_FLAG_RULES.items():
        if option not in data:
            continue
        enabled = data.pop(option)
        if enabled:
            keep_rules.append({kind: value})
            messages.append(f"'{option}' is obsolete; add '{kind}: {value}' to rules instead")
        else:
            messages.append(f"'{option}' is obsolete and was ignored")

    for legacy_lists, target in ((LEGACY_KEEP_LISTS, keep_rules), (LEGACY_KILL_LISTS, kill_rules)):
        for option, kind in legacy_lists.items():
            if option not in data:
                continue
            value = data.pop(option)
            if value:
                target.append({kind: value})
                messages.append(f"'{option}' is obsolete; add a '{kind}' rule instead")
            else:
                messages.append(f"'{option}' is obsolete and was ignored")

    if keep_rules or kill_rules:
        configured = data.get("rules")
        if configured is None:
            configured = [rule.to_config() for rule in DEFAULT_RULES]
        elif not isinstance(configured, list):
            raise ConfigurationError(f"rules must be a list, got {configured!r}")
        data["rules"] = keep_rules + kill_rules + list(configured)

    for message in messages:
        logger.warning(message)
        warnings.warn(message, DeprecationWarning, stacklevel=2)

    return data, messages


def _duration(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{name} must be a number of seconds, got {value!r}")
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value!r}")
    return value


def config_from_dict(data: Optional[dict[str, Any]]) -> SweeperConfig:
    """Build a SweeperConfig from a parsed ``sweeper:`` mapping.

    Args:
        data: Option mapping, or None for defaults.

    Returns:
        Validated configuration.

    Raises:
        ConfigurationError: On unknown options, wrong types, or bad rules.
    """
    if data is None:
        return SweeperConfig()
    if not isinstance(data, dict):
        raise ConfigurationError(f"sweeper configuration must be a mapping, got {data!r}")

    data, _ = migrate_legacy_options(data)
    kwargs: dict[str, Any] = {}

    for name, value in data.items():
        if name in _DURATION_OPTIONS:
            kwargs[name] = _duration(name, value)
        elif name in _BOOL_OPTIONS:
            if not isinstance(value, bool):
                raise ConfigurationError(f"{name} must be true or false, got {value!r}")
            kwargs[name] = value
        elif name == "rules":
            kwargs["rules"] = parse_rules(value)
        elif name == "special_kinds":
            if isinstance(value, str):
                value = [value]
            if not isinstance(value, list) or not all(isinstance(k, str) for k in value):
                raise ConfigurationError(f"special_kinds must be a list of strings, got {value!r}")
            kwargs["special_kinds"] = tuple(value)
        else:
            raise ConfigurationError(f"Unknown sweeper option '{name}'")

    return SweeperConfig(**kwargs)


def load_config(path: Union[str, Path]) -> SweeperConfig:
    """Load sweeper configuration from a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        SweeperConfig with settings from the file, or defaults if the file
        does not exist.

    Raises:
        ConfigurationError: If the file cannot be parsed or is invalid.
    """
    config_path = Path(path)

    if not config_path.exists():
        logger.info(f"No sweeper config at {config_path}, using defaults")
        return SweeperConfig()

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}
    except (yaml.YAMLError, OSError) as e:
        raise ConfigurationError(f"Cannot read {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"{config_path}: top level must be a mapping")

    return config_from_dict(data.get("sweeper"))
