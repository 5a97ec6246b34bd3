# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""
Rule model for the sweep rule chain.

A rule is a (kind, value) pair. Rules are validated and normalized when
they are built, so a malformed rule is rejected while the configuration
is loaded rather than half-way through a sweep:

- name and kind rules hold a tuple of strings
- regexp rules hold a tuple of compiled patterns
- property rules hold a Property
- call-function rules hold a callable ("module:attr" paths are imported)
- return rules hold a Verdict or None
"""

import importlib
import re
from enum import Enum
from typing import Any, Callable, Iterable, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from buffer_sweeper.schemas import Verdict


class ConfigurationError(ValueError):
    """Raised for a malformed rule, option, or callback result.

    A bad keep/kill rule must never silently turn into "keep" or "kill",
    so this is always raised to the caller.
    """

    def __init__(
        self,
        message: str,
        rule: Optional[Any] = None,
        resource_name: Optional[str] = None,
    ):
        self.rule = rule
        self.resource_name = resource_name
        if resource_name is not None:
            message = f"{message} (while evaluating '{resource_name}')"
        super().__init__(message)


class RuleKind(str, Enum):
    """Kinds of rules understood by the rule engine."""

    KEEP_PROPERTY = "keep-property"
    KILL_PROPERTY = "kill-property"
    KEEP_NAME = "keep-name"
    KILL_NAME = "kill-name"
    KEEP_NAME_REGEXP = "keep-name-regexp"
    KILL_NAME_REGEXP = "kill-name-regexp"
    KEEP_KIND = "keep-kind"
    KILL_KIND = "kill-kind"
    CALL_FUNCTION = "call-function"
    RETURN = "return"

    @property
    def verdict(self) -> Verdict:
        """Verdict produced when a keep-*/kill-* rule matches."""
        if self.value.startswith("keep-"):
            return Verdict.KEEP
        if self.value.startswith("kill-"):
            return Verdict.KILL
        return Verdict.NONE


class Property(str, Enum):
    """Resource properties usable with keep-property / kill-property."""

    SPECIAL = "special"
    PROCESS = "process"
    VISIBLE = "visible"
    INACTIVE = "inactive"
    FILE = "file"


PROPERTY_KINDS = frozenset({RuleKind.KEEP_PROPERTY, RuleKind.KILL_PROPERTY})
NAME_KINDS = frozenset({RuleKind.KEEP_NAME, RuleKind.KILL_NAME})
REGEXP_KINDS = frozenset({RuleKind.KEEP_NAME_REGEXP, RuleKind.KILL_NAME_REGEXP})
CATEGORY_KINDS = frozenset({RuleKind.KEEP_KIND, RuleKind.KILL_KIND})


def coerce_verdict(value: Any) -> Verdict:
    """Convert a configured or returned value into a Verdict.

    Accepts a Verdict, None, or the strings "keep"/"kill" (a leading colon,
    as in ":keep", is tolerated).

    Raises:
        ConfigurationError: For any other value.
    """
    if value is None:
        return Verdict.NONE
    if isinstance(value, Verdict):
        return value
    if isinstance(value, str):
        token = value.strip().lower().lstrip(":")
        if token in (Verdict.KEEP.value, Verdict.KILL.value):
            return Verdict(token)
    raise ConfigurationError(
        f"Expected 'keep', 'kill' or None, got {value!r}"
    )


def _string_tuple(kind: RuleKind, value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (list, tuple)) and value:
        if all(isinstance(item, str) for item in value):
            return tuple(value)
    raise ValueError(
        f"{kind.value} expects a string or a non-empty list of strings, got {value!r}"
    )


def _compile_patterns(kind: RuleKind, value: Any) -> tuple[re.Pattern, ...]:
    if isinstance(value, re.Pattern):
        return (value,)
    if isinstance(value, (list, tuple)) and value and all(
        isinstance(item, re.Pattern) for item in value
    ):
        return tuple(value)
    patterns = []
    for source in _string_tuple(kind, value):
        try:
            patterns.append(re.compile(source))
        except re.error as e:
            raise ValueError(f"{kind.value}: invalid regular expression {source!r}: {e}")
    return tuple(patterns)


def _resolve_callable(value: Any) -> Callable[..., Any]:
    if isinstance(value, str):
        module_name, sep, attr_path = value.partition(":")
        if not sep or not module_name or not attr_path:
            raise ValueError(
                f"call-function expects a callable or 'module:attr', got {value!r}"
            )
        try:
            target: Any = importlib.import_module(module_name)
            for attr in attr_path.split("."):
                target = getattr(target, attr)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"call-function: cannot resolve {value!r}: {e}")
        value = target
    if not callable(value):
        raise ValueError(f"call-function expects a callable, got {value!r}")
    return value


class Rule(BaseModel):
    """One entry of a rule chain.

    Example:
        >>> Rule(kind="keep-name", value=["*Messages*", "*scratch*"]).value
        ('*Messages*', '*scratch*')
        >>> Rule(kind="kill-property", value="inactive").value
        <Property.INACTIVE: 'inactive'>
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: RuleKind
    value: Any = None

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except ValidationError as e:
            errors = "; ".join(err["msg"] for err in e.errors())
            raise ConfigurationError(f"Invalid rule {data!r}: {errors}", rule=data) from e

    @model_validator(mode="before")
    @classmethod
    def normalize_value(cls, data: Any) -> Any:
        """Validate the value against the rule kind and normalize it."""
        if not isinstance(data, dict):
            raise ValueError(f"rule must be a mapping, got {data!r}")

        raw_kind = data.get("kind")
        if isinstance(raw_kind, str):
            raw_kind = raw_kind.strip().replace("_", "-").lower()
        try:
            kind = RuleKind(raw_kind)
        except (TypeError, ValueError):
            raise ValueError(f"unknown rule kind {data.get('kind')!r}")

        value = data.get("value")
        if kind in PROPERTY_KINDS:
            try:
                value = Property(value)
            except (TypeError, ValueError):
                allowed = ", ".join(p.value for p in Property)
                raise ValueError(f"{kind.value}: unknown property {value!r} (expected one of {allowed})")
        elif kind in NAME_KINDS or kind in CATEGORY_KINDS:
            value = _string_tuple(kind, value)
        elif kind in REGEXP_KINDS:
            value = _compile_patterns(kind, value)
        elif kind is RuleKind.CALL_FUNCTION:
            value = _resolve_callable(value)
        elif kind is RuleKind.RETURN:
            try:
                verdict = coerce_verdict(value)
            except ConfigurationError as e:
                raise ValueError(f"return: {e}")
            value = None if verdict is Verdict.NONE else verdict

        return {"kind": kind, "value": value}

    def describe(self) -> str:
        """Short human-readable form, e.g. ``keep-name=*scratch*``."""
        return f"{self.kind.value}={_render_value(self.value)}"

    def to_config(self) -> dict[str, Any]:
        """Convert back to the ``{kind: value}`` form used in YAML files."""
        return {self.kind.value: _config_value(self.value)}


def _config_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, tuple):
        items = [_config_value(item) for item in value]
        return items[0] if len(items) == 1 else items
    if isinstance(value, re.Pattern):
        return value.pattern
    if callable(value):
        module = getattr(value, "__module__", None)
        qualname = getattr(value, "__qualname__", repr(value))
        return f"{module}:{qualname}" if module else qualname
    return value


def _render_value(value: Any) -> str:
    rendered = _config_value(value)
    if isinstance(rendered, list):
        return ",".join(str(item) for item in rendered)
    return str(rendered)


def parse_rules(data: Iterable[Any]) -> tuple[Rule, ...]:
    """Build a rule chain from configuration data.

    Each entry may be a Rule, a single-key mapping ``{kind: value}``, or a
    ``[kind, value]`` pair.

    Args:
        data: Sequence of rule entries.

    Returns:
        The validated rule chain.

    Raises:
        ConfigurationError: If any entry is malformed.
    """
    if isinstance(data, (str, bytes, dict)) or not isinstance(data, Iterable):
        raise ConfigurationError(f"rules must be a list, got {data!r}")

    rules = []
    for entry in data:
        if isinstance(entry, Rule):
            rules.append(entry)
        elif isinstance(entry, dict):
            if len(entry) != 1:
                raise ConfigurationError(
                    f"rule mapping must have exactly one key, got {entry!r}", rule=entry
                )
            (kind, value), = entry.items()
            rules.append(Rule(kind=kind, value=value))
        elif isinstance(entry, (list, tuple)) and len(entry) == 2:
            rules.append(Rule(kind=entry[0], value=entry[1]))
        else:
            raise ConfigurationError(f"malformed rule entry {entry!r}", rule=entry)
    return tuple(rules)


DEFAULT_RULES: tuple[Rule, ...] = parse_rules(
    [
        {"keep-property": "special"},
        {"keep-property": "process"},
        {"keep-property": "visible"},
        {"kill-property": "inactive"},
    ]
)
