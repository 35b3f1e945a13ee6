"""Property-based tests for resolution invariants.

Generates small acyclic repositories (each library may only depend on
libraries after it) and random root requirements, then verifies:
- Consistency: every root range and every declared range of a resolved
  version holds in the resolution.
- Closure: every resolved library is required by the root or by another
  resolved library, so abandoned branches leave nothing behind.
- Determinism: the same inputs give the same answer (or the same error).
- Failures are always solver errors, never crashes.
"""
from __future__ import annotations

import asyncio

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from semver_resolver import ResolverOptions, SemverResolver
from semver_resolver.exceptions import ResolutionError
from semver_resolver.registry.memory import InMemoryRepository
from tests.helpers import assert_consistent


# ---------------------------------------------------------------------------
# Strategies for generating random repositories
# ---------------------------------------------------------------------------

LIBRARIES = ["a", "b", "c", "d"]

version_strings = st.sampled_from(["1.0.0", "1.1.0", "2.0.0"])

range_strings = st.sampled_from([
    "^1.0.0", "^2.0.0", "*", "<2.0.0", "1.1.0", ">=1.1.0", "~1.0.0",
])


@st.composite
def acyclic_repository(draw: st.DrawFn) -> dict[str, dict[str, dict[str, str]]]:
    """Generate {library: {version: {dependency: range}}} without cycles."""
    packages: dict[str, dict[str, dict[str, str]]] = {}
    for index, name in enumerate(LIBRARIES):
        versions = draw(st.lists(version_strings, min_size=1, max_size=3, unique=True))
        later = LIBRARIES[index + 1:]
        packages[name] = {}
        for version in versions:
            deps = draw(
                st.dictionaries(
                    st.sampled_from(later), range_strings, max_size=2
                )
                if later
                else st.just({})
            )
            packages[name][version] = deps
    return packages


requirements_strategy = st.dictionaries(
    st.sampled_from(LIBRARIES), range_strings, min_size=1, max_size=3
)


def _attempt(packages, requirements) -> tuple[str, object]:
    resolver = SemverResolver(
        requirements,
        InMemoryRepository(packages),
        ResolverOptions(max_passes=200),
    )
    try:
        return "ok", asyncio.run(resolver.resolve())
    except ResolutionError as exc:
        return "error", str(exc)


def _required_closure(packages, requirements, resolution) -> set[str]:
    """Libraries the root and the resolved versions actually ask for."""
    needed = set(requirements)
    for library, version in resolution.items():
        needed.update(packages[library][version])
    return needed


# ---------------------------------------------------------------------------
# Consistency and closure
# ---------------------------------------------------------------------------


class TestResolutionSoundness:
    """Successful resolutions satisfy every range in force."""

    @given(packages=acyclic_repository(), requirements=requirements_strategy)
    @settings(max_examples=75, deadline=None, suppress_health_check=[HealthCheck.too_slow])
    def test_resolution_is_consistent(self, packages, requirements) -> None:
        """Root and declared ranges all hold in a successful resolution."""
        outcome, value = _attempt(packages, requirements)
        if outcome == "ok":
            assert_consistent(packages, requirements, value)

    @given(packages=acyclic_repository(), requirements=requirements_strategy)
    @settings(max_examples=75, deadline=None, suppress_health_check=[HealthCheck.too_slow])
    def test_no_orphans(self, packages, requirements) -> None:
        """Nothing outside the required closure is resolved."""
        outcome, value = _attempt(packages, requirements)
        if outcome == "ok":
            assert set(value) == _required_closure(packages, requirements, value)

    @given(packages=acyclic_repository(), requirements=requirements_strategy)
    @settings(max_examples=75, deadline=None, suppress_health_check=[HealthCheck.too_slow])
    def test_resolved_versions_exist(self, packages, requirements) -> None:
        """Every resolved version is one the repository offers."""
        outcome, value = _attempt(packages, requirements)
        if outcome == "ok":
            for library, version in value.items():
                assert version in packages[library]


# ---------------------------------------------------------------------------
# Determinism
# ---------------------------------------------------------------------------


class TestDeterminism:
    """Same inputs -> same resolution."""

    @given(packages=acyclic_repository(), requirements=requirements_strategy)
    @settings(max_examples=50, deadline=None, suppress_health_check=[HealthCheck.too_slow])
    def test_repeatable(self, packages, requirements) -> None:
        """Two independent resolvers agree, including on failures."""
        assert _attempt(packages, requirements) == _attempt(packages, requirements)
