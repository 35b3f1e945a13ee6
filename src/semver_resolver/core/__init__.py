"""Constraint-resolution engine.

All public names are re-exported here, so callers can use
``from semver_resolver.core import X`` regardless of the defining module.

Components, leaves first:

- ``constraints``: semantic versions and range expressions.
- ``cache``: memoised oracle lookups.
- ``state``: the owner graph of ranges and resolved versions.
- ``conflict``: per-library version choice and structural backtracking.
- ``resolver``: the fixpoint pass scheduler.
"""

from semver_resolver.core.cache import VersionCache, gather_fail_fast
from semver_resolver.core.conflict import ConflictOutcome, ConflictResolver
from semver_resolver.core.constraints import (
    Version,
    VersionRange,
    max_satisfying,
    parse_range,
    satisfies,
    sort_descending,
    version_key,
)
from semver_resolver.core.resolver import SemverResolver, resolve, resolve_sync
from semver_resolver.core.state import (
    BacktrackConstraint,
    ConstraintStore,
    DeclaredConstraint,
    DependencyConstraint,
    OwnerKey,
    OwnerState,
    RootOwner,
)

__all__ = [
    "BacktrackConstraint",
    "ConflictOutcome",
    "ConflictResolver",
    "ConstraintStore",
    "DeclaredConstraint",
    "DependencyConstraint",
    "OwnerKey",
    "OwnerState",
    "RootOwner",
    "SemverResolver",
    "Version",
    "VersionCache",
    "VersionRange",
    "gather_fail_fast",
    "max_satisfying",
    "parse_range",
    "resolve",
    "resolve_sync",
    "satisfies",
    "sort_descending",
    "version_key",
]
