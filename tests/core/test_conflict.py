"""Tests for ConflictResolver version selection and backtracking.

Each test builds a constraint store by hand, primes the version cache and
runs a single resolution attempt, so the decision for one library can be
checked in isolation from the pass scheduler.
"""

from __future__ import annotations

import asyncio

import pytest

from semver_resolver.core.cache import VersionCache
from semver_resolver.core.conflict import ConflictOutcome, ConflictResolver
from semver_resolver.core.state import BacktrackConstraint, ConstraintStore
from semver_resolver.exceptions import (
    BacktrackedConstraintError,
    RootConflictError,
    UnsatisfiableConstraintError,
)
from semver_resolver.registry.memory import InMemoryRepository

REPOSITORY = InMemoryRepository({
    "a": {"1.0.0": {"c": "^1.0.0"}, "1.1.0": {"c": "^1.1.0"}},
    "b": {"1.0.0": {"c": "1.0.0"}},
    "c": {"1.0.0": {}, "1.1.0": {}, "2.0.0": {}},
})


def _resolver(requirements: dict[str, str]) -> tuple[ConstraintStore, ConflictResolver]:
    store = ConstraintStore(requirements)
    cache = VersionCache(REPOSITORY)
    asyncio.run(cache.prefetch_versions(["a", "b", "c"]))
    return store, ConflictResolver(store, cache)


class TestSelection:
    """Tests for choosing a version without conflicts."""

    def test_no_demand(self) -> None:
        """A library nobody constrains gets no version."""
        store, conflicts = _resolver({"a": "^1.0.0"})
        assert conflicts.resolve("c") == ConflictOutcome()

    def test_narrowing_alone_is_no_demand(self) -> None:
        """A synthetic range without a declaration leaves the library unresolved."""
        store, conflicts = _resolver({})
        store.set_resolved("b", "1.0.0")
        store.attach_dependencies("b", {})
        store.add_backtrack_constraint("b", "c", "2.0.0", due_to="x")
        assert conflicts.resolve("c") == ConflictOutcome()
        assert store.get("b").dependencies["c"].max_satisfying is None

    def test_narrowed_declaration_is_demand(self) -> None:
        """A synthetic range replacing a declared one still needs the library."""
        store, conflicts = _resolver({})
        store.set_resolved("b", "1.0.0")
        store.attach_dependencies("b", {"c": "^1.0.0"})
        store.add_backtrack_constraint("b", "c", "1.1.0", due_to="x")
        assert conflicts.resolve("c").version == "1.0.0"

    def test_single_owner_gets_max_satisfying(self) -> None:
        """With one owner the highest matching version is chosen."""
        store, conflicts = _resolver({"c": "^1.0.0"})
        assert conflicts.resolve("c").version == "1.1.0"

    def test_lowest_of_the_maxima(self) -> None:
        """The lowest per-owner maximum is chosen when all owners accept it."""
        store, conflicts = _resolver({"c": ">=1.0.0"})
        store.set_resolved("a", "1.0.0")
        store.attach_dependencies("a", {"c": "<2.0.0"})
        outcome = conflicts.resolve("c")
        assert outcome.version == "1.1.0"
        assert outcome.requeue == []
        assert outcome.backtracked is None

    def test_max_satisfying_recorded(self) -> None:
        """Each constraint carries the maximum found in this attempt."""
        store, conflicts = _resolver({"c": ">=1.0.0"})
        conflicts.resolve("c")
        [(_, constraint)] = store.constrainers_of("c")
        assert constraint.max_satisfying == "2.0.0"

    def test_precedence_not_lexical(self) -> None:
        """Candidates are compared by SemVer precedence."""
        repository = InMemoryRepository({"d": {"1.9.0": {}, "1.10.0": {}}})
        store = ConstraintStore({"d": "^1.0.0"})
        cache = VersionCache(repository)
        asyncio.run(cache.prefetch_versions(["d"]))
        store.set_resolved("x", "1.0.0")
        store.attach_dependencies("x", {"d": ">=1.9.0"})
        assert ConflictResolver(store, cache).resolve("d").version == "1.10.0"


class TestUnsatisfiable:
    """Tests for ranges that match nothing."""

    def test_root_range_matches_nothing(self) -> None:
        """The error names the library, range and root."""
        store, conflicts = _resolver({"c": "^3.0.0"})
        with pytest.raises(UnsatisfiableConstraintError) as excinfo:
            conflicts.resolve("c")
        assert str(excinfo.value) == "Unable to satisfy version constraint: c@^3.0.0 from root"
        assert excinfo.value.owner == "root"

    def test_owner_range_matches_nothing(self) -> None:
        """A resolved owner is rendered as name@version."""
        store, conflicts = _resolver({})
        store.set_resolved("a", "1.1.0")
        store.attach_dependencies("a", {"c": "^5.0.0"})
        with pytest.raises(UnsatisfiableConstraintError, match="c@\\^5.0.0 from a@1.1.0"):
            conflicts.resolve("c")

    def test_backtracked_range_matches_nothing(self) -> None:
        """An exhausted synthetic range reports its cause."""
        store, conflicts = _resolver({"a": "^1.0.0"})
        store.set_resolved("b", "1.0.0")
        store.attach_dependencies("b", {})
        store.add_backtrack_constraint("b", "a", "1.0.0", due_to="c")
        with pytest.raises(BacktrackedConstraintError) as excinfo:
            conflicts.resolve("a")
        assert str(excinfo.value) == (
            "Unable to satisfy backtracked version constraint: "
            "a@<1.0.0 from b@1.0.0 due to shared constraint on c"
        )
        assert excinfo.value.due_to == "c"


class TestBacktracking:
    """Tests for conflicts between resolved owners."""

    def _conflicting_store(self) -> tuple[ConstraintStore, ConflictResolver]:
        store, conflicts = _resolver({"a": "^1.0.0", "b": "1.0.0"})
        store.set_resolved("a", "1.1.0")
        store.attach_dependencies("a", {"c": "^1.1.0"})
        store.set_resolved("b", "1.0.0")
        store.attach_dependencies("b", {"c": "1.0.0"})
        store.set_resolved("c", "1.1.0")
        return store, conflicts

    def test_conflict_narrows_the_rejecting_owner(self) -> None:
        """The candidate's owner gains '<current version' on the rejecter."""
        store, conflicts = self._conflicting_store()
        outcome = conflicts.resolve("c")
        assert outcome.version is None
        assert outcome.backtracked == "a"
        constraint = store.get("b").dependencies["a"]
        assert isinstance(constraint, BacktrackConstraint)
        assert constraint.range == "<1.1.0"
        assert constraint.due_to == "c"

    def test_conflict_drops_and_requeues(self) -> None:
        """The rejecting owner and its dependencies are dropped and requeued."""
        store, conflicts = self._conflicting_store()
        outcome = conflicts.resolve("c")
        assert outcome.requeue == ["c", "a"]
        assert "a" not in store
        assert "c" not in store
        assert "b" in store

    def test_first_owner_wins_ties(self) -> None:
        """Equal maxima resolve to the earliest owner in insertion order."""
        store, conflicts = _resolver({"c": "^1.0.0"})
        store.set_resolved("a", "1.1.0")
        store.attach_dependencies("a", {"c": "1.1.0"})
        assert conflicts.resolve("c").version == "1.1.0"

    def test_root_cannot_be_backtracked(self) -> None:
        """A root range rejecting the candidate is a terminal conflict."""
        store, conflicts = _resolver({"c": "^1.1.0"})
        store.set_resolved("b", "1.0.0")
        store.attach_dependencies("b", {"c": "1.0.0"})
        with pytest.raises(RootConflictError) as excinfo:
            conflicts.resolve("c")
        assert str(excinfo.value) == (
            "Unable to satisfy version constraint: c@^1.1.0 "
            "from root due to shared constraint from b@1.0.0"
        )

    def test_scratch_values_are_recomputed(self) -> None:
        """A narrowed constraint gets a fresh maximum on the next attempt."""
        store, conflicts = _resolver({"c": ">=1.0.0"})
        conflicts.resolve("c")
        store.set_resolved("b", "1.0.0")
        store.attach_dependencies("b", {})
        store.add_backtrack_constraint("b", "c", "2.0.0", due_to="x")
        assert conflicts.resolve("c").version == "1.1.0"
        maxima = [c.max_satisfying for _, c in store.constrainers_of("c")]
        assert maxima == ["2.0.0", "1.1.0"]
