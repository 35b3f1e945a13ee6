"""Per-library version selection with structural backtracking.

For one library with outstanding demand, ``ConflictResolver`` picks the lowest
of the per-owner maximum satisfying versions and verifies it against every
other owner's range. When some resolved owner rejects the candidate, the
resolver does not undo a decision stack. It injects a narrower synthetic
constraint (``<current version`` of the rejecting owner) into the graph on
behalf of the owner that produced the candidate, drops the rejecting owner's
resolution and lets the ordinary fixpoint passes re-derive a consistent state.

Worked example::

    root requires a@^1.0.0 and b@1.0.0
    a@1.1.0 requires c@^1.1.0         b@1.0.0 requires c@1.0.0

    c: max satisfying is 1.1.0 for a@1.1.0 and 1.0.0 for b@1.0.0.
       The candidate 1.0.0 (from b) violates a@1.1.0's ^1.1.0, so b gains
       the synthetic constraint a@<1.1.0 and a is queued again. The next
       pass resolves a to 1.0.x, whose ranges admit c@1.0.0.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from semver_resolver.core.cache import VersionCache
from semver_resolver.core.constraints import Version
from semver_resolver.core.state import (
    BacktrackConstraint,
    ConstraintStore,
    DependencyConstraint,
    OwnerKey,
)
from semver_resolver.exceptions import (
    BacktrackedConstraintError,
    RootConflictError,
    UnsatisfiableConstraintError,
)

logger = logging.getLogger(__name__)


@dataclass
class ConflictOutcome:
    """Result of one resolution attempt for a library.

    Attributes:
        version: The chosen version, or None when there is no resolution this
            pass (no declared demand, or a backtrack was triggered).
        requeue: Libraries whose resolution was discarded and which must be
            calculated again on the next pass.
        backtracked: The owner that was sent back to an earlier version, if
            the attempt triggered a backtrack.
    """

    version: str | None = None
    requeue: list[str] = field(default_factory=list)
    backtracked: str | None = None


class ConflictResolver:
    """Chooses a version for a library or triggers a backtrack.

    Args:
        store: The constraint store, read for existing ranges and written
            with synthetic constraints and drops.
        cache: Version cache; the library's versions must already be cached.
    """

    def __init__(self, store: ConstraintStore, cache: VersionCache) -> None:
        self._store = store
        self._cache = cache

    def _unsatisfiable(
        self, library: str, owner: OwnerKey, constraint: DependencyConstraint
    ) -> UnsatisfiableConstraintError:
        rendered = self._store.describe_owner(owner)
        if isinstance(constraint, BacktrackConstraint):
            return BacktrackedConstraintError(
                library, constraint.range, rendered, constraint.due_to
            )
        return UnsatisfiableConstraintError(library, constraint.range, rendered)

    def resolve(self, library: str) -> ConflictOutcome:
        """Attempt to choose a version of *library*.

        Raises:
            UnsatisfiableConstraintError: Some owner's range matches no
                available version (``BacktrackedConstraintError`` when that
                range was synthetic).
            RootConflictError: The candidate violates a root requirement.
        """
        store = self._store
        constrainers = store.constrainers_of(library)
        if not any(constraint.demands for _, constraint in constrainers):
            return ConflictOutcome()

        versions = self._cache.versions_of(library)
        for owner, constraint in constrainers:
            # Scratch values from an earlier attempt are never reused.
            constraint.max_satisfying = None
            found = next((v for v in versions if constraint.satisfies(v)), None)
            if found is None:
                raise self._unsatisfiable(library, owner, constraint)
            constraint.max_satisfying = found

        # Lowest max-satisfying version; first owner wins ties.
        constraining_owner, lowest = constrainers[0]
        candidate = Version.parse(lowest.max_satisfying)
        for owner, constraint in constrainers[1:]:
            version = Version.parse(constraint.max_satisfying)
            if version < candidate:
                constraining_owner, lowest, candidate = owner, constraint, version
        chosen = lowest.max_satisfying

        for owner, constraint in constrainers:
            if owner == constraining_owner or constraint.satisfies(chosen):
                continue
            conflicting = store.get(owner)
            if conflicting is None or conflicting.version is None:
                raise RootConflictError(
                    library, constraint.range, store.describe_owner(constraining_owner)
                )
            # Send the conflicting owner back below its current version so
            # that the candidate becomes acceptable.
            store.add_backtrack_constraint(
                constraining_owner, owner, conflicting.version, due_to=library
            )
            logger.debug(
                "Backtracking %s@%s: its range %s on %s rejects %s from %s",
                owner,
                conflicting.version,
                constraint.range,
                library,
                chosen,
                store.describe_owner(constraining_owner),
            )
            requeue = store.drop_library(owner)
            requeue.append(owner)
            return ConflictOutcome(requeue=requeue, backtracked=owner)

        return ConflictOutcome(version=chosen)
