# Copyright 2024-2025 Amiable Development
# SPDX-License-Identifier: Apache-2.0

"""
Tests for predicate evaluators.
"""

import re

import pytest

from buffer_sweeper.rules import predicates
from buffer_sweeper.rules.predicates import EvaluationContext
from buffer_sweeper.rules.types import ConfigurationError, Property
from buffer_sweeper.schemas import Resource

NOW = 1_700_000_000.0


class Proc:
    def __init__(self, alive=True):
        self.alive = alive

    def is_alive(self):
        return self.alive


def make_ctx(**overrides):
    values = dict(now=NOW, inactivity_threshold=1800)
    values.update(overrides)
    return EvaluationContext(**values)


class TestInactive:
    """Tests for the inactivity predicate."""

    def test_never_observed_is_inactive(self):
        """A resource with no timestamps is maximally idle."""
        assert predicates.is_inactive(Resource(name="a"), make_ctx()) is True
        assert predicates.idle_seconds(Resource(name="a"), NOW) is None

    def test_recent_activity_is_active(self):
        resource = Resource(name="a", last_activity=NOW - 60)
        assert predicates.is_inactive(resource, make_ctx()) is False

    def test_threshold_is_inclusive(self):
        """Idle for exactly the threshold counts as inactive."""
        resource = Resource(name="a", last_activity=NOW - 1800)
        assert predicates.is_inactive(resource, make_ctx()) is True

    def test_host_display_time_alone_is_used(self):
        resource = Resource(name="a", display_time=NOW - 10)
        assert predicates.is_inactive(resource, make_ctx()) is False

    def test_more_recent_timestamp_wins(self):
        """Either source may be stale; the smaller idle age counts."""
        resource = Resource(name="a", last_activity=NOW - 7200, display_time=NOW - 100)
        assert predicates.idle_seconds(resource, NOW) == 100
        assert predicates.is_inactive(resource, make_ctx()) is False

        resource = Resource(name="b", last_activity=NOW - 100, display_time=NOW - 7200)
        assert predicates.is_inactive(resource, make_ctx()) is False


class TestVisible:
    """Tests for the visibility predicate."""

    def test_rendered_resource_is_visible(self):
        ctx = make_ctx(rendered=frozenset({"a"}))
        assert predicates.is_visible(Resource(name="a"), ctx) is True

    def test_hidden_resource_is_not_visible(self):
        ctx = make_ctx(rendered=frozenset({"b"}))
        assert predicates.is_visible(Resource(name="a"), ctx) is False

    def test_visibility_propagates_through_associations(self):
        """A primary is visible if its secondary view is rendered."""
        ctx = make_ctx(
            rendered=frozenset({"B"}),
            associations={"A": frozenset({"B"}), "B": frozenset({"A"})},
        )
        assert predicates.is_visible(Resource(name="A"), ctx) is True


class TestSpecial:
    """Tests for the special-resource predicate."""

    @pytest.mark.parametrize("name", ["*scratch*", " *temp*", " hidden"])
    def test_special_names(self, name):
        assert predicates.is_special(Resource(name=name), make_ctx()) is True

    def test_single_star_is_not_special(self):
        assert predicates.is_special(Resource(name="*"), make_ctx()) is False

    def test_ordinary_name_is_not_special(self):
        assert predicates.is_special(Resource(name="notes"), make_ctx()) is False

    def test_special_kind(self):
        assert predicates.is_special(Resource(name="x", kind="special"), make_ctx()) is True

    def test_special_kind_via_lineage(self):
        resource = Resource(name="x", kind="help", kind_lineage=("special",))
        assert predicates.is_special(resource, make_ctx()) is True

    def test_file_backed_is_never_special(self):
        """A file-backed resource is not special even if named like one."""
        resource = Resource(name="*notes*", kind="special", file_path="/tmp/notes")
        assert predicates.is_special(resource, make_ctx()) is False

    def test_directory_listing_is_never_special(self):
        resource = Resource(name="*dir*", listing_directory="/tmp")
        assert predicates.is_special(resource, make_ctx()) is False


class TestProcessAndFile:
    """Tests for process and file predicates."""

    def test_live_process(self):
        assert predicates.has_process(Resource(name="sh", process=Proc()), make_ctx()) is True

    def test_dead_process(self):
        resource = Resource(name="sh", process=Proc(alive=False))
        assert predicates.has_process(resource, make_ctx()) is False

    def test_no_process(self):
        assert predicates.has_process(Resource(name="sh"), make_ctx()) is False

    def test_has_file(self):
        assert predicates.has_file(Resource(name="a", file_path="/a"), make_ctx()) is True
        assert predicates.has_file(Resource(name="d", listing_directory="/d"), make_ctx()) is True
        assert predicates.has_file(Resource(name="a"), make_ctx()) is False


class TestMatching:
    """Tests for name, regexp and kind matching."""

    def test_matches_name(self):
        assert predicates.matches_name(Resource(name="a"), ("a", "b")) is True
        assert predicates.matches_name(Resource(name="c"), ("a", "b")) is False

    def test_matches_name_regexp_searches(self):
        patterns = (re.compile(r"vterm"),)
        assert predicates.matches_name_regexp(Resource(name="*vterm<2>*"), patterns) is True
        assert predicates.matches_name_regexp(Resource(name="notes"), patterns) is False

    def test_matches_kind_includes_lineage(self):
        resource = Resource(name="a", kind="python-ts", kind_lineage=("python", "prog"))
        assert predicates.matches_kind(resource, ("prog",)) is True
        assert predicates.matches_kind(resource, ("text",)) is False


class TestCheckProperty:
    """Tests for property dispatch."""

    def test_dispatches_each_property(self):
        resource = Resource(name="*x*")
        assert predicates.check_property(Property.SPECIAL, resource, make_ctx()) is True
        assert predicates.check_property(Property.FILE, resource, make_ctx()) is False
        assert predicates.check_property(Property.INACTIVE, resource, make_ctx()) is True

    def test_unknown_property_raises(self):
        with pytest.raises(ConfigurationError):
            predicates.check_property("shiny", Resource(name="a"), make_ctx())
