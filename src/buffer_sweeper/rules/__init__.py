# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""Rule chain model, predicates and engine."""

from buffer_sweeper.rules.engine import evaluate
from buffer_sweeper.rules.predicates import EvaluationContext
from buffer_sweeper.rules.types import (
    DEFAULT_RULES,
    ConfigurationError,
    Property,
    Rule,
    RuleKind,
    coerce_verdict,
    parse_rules,
)

__all__ = [
    "DEFAULT_RULES",
    "ConfigurationError",
    "EvaluationContext",
    "Property",
    "Rule",
    "RuleKind",
    "coerce_verdict",
    "evaluate",
    "parse_rules",
]
