# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""
Rule engine.

Evaluates an ordered rule chain against one resource. The first rule that
yields a verdict wins; later rules are not consulted. If no rule yields a
verdict the result is Verdict.NONE, which callers treat as "keep".
"""

import inspect
from typing import Any, Callable, Iterable, Optional

from buffer_sweeper.rules import predicates
from buffer_sweeper.rules.predicates import EvaluationContext
from buffer_sweeper.rules.types import ConfigurationError, Rule, RuleKind, coerce_verdict
from buffer_sweeper.schemas import Resource, Verdict

TraceFn = Callable[[str], None]


def _takes_no_arguments(fn: Callable[..., Any]) -> bool:
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return False
    return not any(
        p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD, p.VAR_POSITIONAL)
        for p in signature.parameters.values()
    )


def _call_rule_function(fn: Callable[..., Any], resource: Resource) -> Any:
    """Call a call-function callback, passing the resource unless it takes none."""
    if _takes_no_arguments(fn):
        return fn()
    return fn(resource)


def _rule_verdict(rule: Rule, resource: Resource, ctx: EvaluationContext) -> Verdict:
    kind = rule.kind

    if kind in (RuleKind.KEEP_PROPERTY, RuleKind.KILL_PROPERTY):
        matched = predicates.check_property(rule.value, resource, ctx)
    elif kind in (RuleKind.KEEP_NAME, RuleKind.KILL_NAME):
        matched = predicates.matches_name(resource, rule.value)
    elif kind in (RuleKind.KEEP_NAME_REGEXP, RuleKind.KILL_NAME_REGEXP):
        matched = predicates.matches_name_regexp(resource, rule.value)
    elif kind in (RuleKind.KEEP_KIND, RuleKind.KILL_KIND):
        matched = predicates.matches_kind(resource, rule.value)
    elif kind is RuleKind.CALL_FUNCTION:
        try:
            result = _call_rule_function(rule.value, resource)
        except Exception as e:
            raise ConfigurationError(
                f"call-function {rule.describe()} raised: {e}",
                rule=rule,
                resource_name=resource.name,
            ) from e
        try:
            return coerce_verdict(result)
        except ConfigurationError as e:
            raise ConfigurationError(
                f"call-function {rule.describe()} returned an invalid value: {e}",
                rule=rule,
                resource_name=resource.name,
            ) from e
    elif kind is RuleKind.RETURN:
        return coerce_verdict(rule.value)
    else:
        raise ConfigurationError(f"Unhandled rule kind {kind!r}", rule=rule)

    return kind.verdict if matched else Verdict.NONE


def evaluate(
    resource: Resource,
    rules: Iterable[Rule],
    ctx: EvaluationContext,
    trace: Optional[TraceFn] = None,
) -> Verdict:
    """Evaluate a rule chain against a resource.

    Args:
        resource: Resource under evaluation.
        rules: Ordered rule chain.
        ctx: Per-sweep evaluation context.
        trace: Optional callback receiving one line per rule examined.

    Returns:
        KEEP or KILL from the first rule that decides, otherwise NONE.

    Raises:
        ConfigurationError: If a rule is malformed, or a call-function
            callback raises or returns something that is not a verdict.
    """
    for rule in rules:
        if not isinstance(rule, Rule):
            raise ConfigurationError(
                f"Expected a Rule, got {rule!r}", rule=rule, resource_name=resource.name
            )
        verdict = _rule_verdict(rule, resource, ctx)
        if trace is not None:
            trace(f"[{resource.name}] {rule.describe()} -> {verdict.value}")
        if verdict is not Verdict.NONE:
            return verdict
    return Verdict.NONE


__all__ = ["EvaluationContext", "coerce_verdict", "evaluate"]
