"""Constraint store: the owner graph the resolver reasons over.

The store maps *owner keys* to ``OwnerState`` records. An owner is either the
synthetic root (whose dependencies are the caller's requirements) or a library
that currently holds a resolved version. Each owner's ``dependencies`` map
names the libraries it constrains and the ``DependencyConstraint`` it places
on each of them.

All mutation goes through ``ConstraintStore`` so that its invariants hold in
one place:

- A non-root owner is present if and only if it holds a resolved version.
- Dropping an owner drops, transitively, every library it constrained, since
  those resolutions were derived under constraints that no longer exist.
- Synthetic backtrack constraints only enter through
  ``add_backtrack_constraint``.
"""

from __future__ import annotations

import logging
import uuid
from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Union

from semver_resolver.core.constraints import parse_range

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Owner keys
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RootOwner:
    """Opaque key of the synthetic root owner.

    Each store mints its own token, so the root can never collide with a
    library name and two stores never share a root.
    """

    token: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __str__(self) -> str:
        return "root"


OwnerKey = Union[RootOwner, str]


# ---------------------------------------------------------------------------
# Dependency constraints
# ---------------------------------------------------------------------------


@dataclass
class DependencyConstraint:
    """A range one owner places on one library.

    Attributes:
        range: Version range expression.
        max_satisfying: Scratch value, the highest available version matching
            ``range``. Recomputed at the start of every resolution attempt for
            the constrained library and meaningless outside it.
    """

    range: str
    max_satisfying: str | None = field(default=None, compare=False)

    @property
    def backtracked_due_to(self) -> str | None:
        return None

    @property
    def demands(self) -> bool:
        """Whether this constraint requires the library to be resolved at all."""
        return True

    def satisfies(self, version: str) -> bool:
        return parse_range(self.range).satisfies(version)


@dataclass
class DeclaredConstraint(DependencyConstraint):
    """A range declared upstream, by a library version or by the root."""


@dataclass
class BacktrackConstraint(DependencyConstraint):
    """A synthetic ``<version`` narrowing injected by the conflict resolver.

    It forces the constrained library to an earlier version so that a shared
    dependency can be satisfied.

    Attributes:
        due_to: The library whose conflict produced this narrowing.
        narrows: The declared range this constraint replaced under the same
            key, if any. A version must satisfy it as well.
    """

    due_to: str = ""
    narrows: str | None = None

    @property
    def backtracked_due_to(self) -> str | None:
        return self.due_to

    @property
    def demands(self) -> bool:
        # Only a narrowed declaration pulls the library in.
        return self.narrows is not None

    def satisfies(self, version: str) -> bool:
        if self.narrows is not None and not parse_range(self.narrows).satisfies(version):
            return False
        return parse_range(self.range).satisfies(version)


@dataclass
class OwnerState:
    """State of one owner in the store.

    Attributes:
        version: Resolved version; None for the root.
        dependencies: Constraints this owner places on other libraries. None
            until the owner's dependency ranges have been installed, during
            which time the owner contributes no constraints.
    """

    version: str | None = None
    dependencies: dict[str, DependencyConstraint] | None = None


# ---------------------------------------------------------------------------
# ConstraintStore
# ---------------------------------------------------------------------------


class ConstraintStore:
    """The mutable owner graph plus the resolved version of each library.

    Owners iterate in insertion order: the root first, then libraries in the
    order they were (most recently) resolved. The conflict resolver relies on
    this order to break ties deterministically.

    Thread safety: This class is NOT thread-safe. The resolver only mutates it
    between awaits on a single event loop.
    """

    def __init__(self, requirements: Mapping[str, str]) -> None:
        self.root = RootOwner()
        self._owners: dict[OwnerKey, OwnerState] = {
            self.root: OwnerState(
                dependencies={
                    name: DeclaredConstraint(range_)
                    for name, range_ in requirements.items()
                }
            )
        }

    def __contains__(self, owner: object) -> bool:
        return owner in self._owners

    def __len__(self) -> int:
        return len(self._owners)

    def get(self, owner: OwnerKey) -> OwnerState | None:
        """Return the state of *owner*, or None if it is not present."""
        return self._owners.get(owner)

    def set_resolved(self, library: str, version: str) -> OwnerState:
        """Record *version* as the resolution of *library*.

        The new owner has no dependencies until ``attach_dependencies`` runs.
        """
        state = OwnerState(version=version)
        self._owners[library] = state
        return state

    def attach_dependencies(self, library: str, ranges: Mapping[str, str]) -> list[str]:
        """Install the declared dependency ranges of a resolved library.

        Fresh constraint objects are built on every install, so scratch values
        and later backtrack rewrites never leak into the caller's mapping.

        Returns:
            The dependency names introduced, in declaration order. Empty if
            *library* is no longer present.
        """
        state = self._owners.get(library)
        if state is None:
            return []
        state.dependencies = {
            name: DeclaredConstraint(range_) for name, range_ in ranges.items()
        }
        return list(state.dependencies)

    def add_backtrack_constraint(
        self, owner: OwnerKey, library: str, below: str, due_to: str
    ) -> BacktrackConstraint:
        """Constrain *library* to versions below *below* on behalf of *owner*.

        Any constraint *owner* already places on *library* is replaced. A
        replaced declared range is kept as ``narrows`` so the original
        declaration still holds.

        Raises:
            KeyError: If *owner* is not present or has no installed
                dependencies.
        """
        state = self._owners[owner]
        if state.dependencies is None:
            raise KeyError(owner)
        previous = state.dependencies.get(library)
        if isinstance(previous, BacktrackConstraint):
            narrows = previous.narrows
        elif previous is not None:
            narrows = previous.range
        else:
            narrows = None
        constraint = BacktrackConstraint(f"<{below}", due_to=due_to, narrows=narrows)
        state.dependencies[library] = constraint
        return constraint

    def constrainers_of(self, library: str) -> list[tuple[OwnerKey, DependencyConstraint]]:
        """Every present owner constraining *library*, with its constraint."""
        found: list[tuple[OwnerKey, DependencyConstraint]] = []
        for owner, state in self._owners.items():
            if state.dependencies and library in state.dependencies:
                found.append((owner, state.dependencies[library]))
        return found

    def is_reachable(self, owner: OwnerKey) -> bool:
        """True for the root, or when some present owner depends on *owner*.

        A synthetic narrowing alone limits which versions are acceptable but
        does not make *owner* needed.
        """
        if owner == self.root:
            return True
        for state in self._owners.values():
            constraint = (state.dependencies or {}).get(owner)
            if constraint is not None and constraint.demands:
                return True
        return False

    def drop_library(self, library: str) -> list[str]:
        """Remove *library* and, transitively, every library it constrained.

        The cascade is unconditional: a dependency shared with a surviving
        owner is still dropped, because its resolution may have been derived
        from the constraint that just vanished. Implemented as a work-list
        drained to completion, so cyclic declarations terminate.

        Returns:
            Names of dependencies whose resolution was discarded or whose
            constraint provider vanished; callers queue them for
            recalculation. *library* itself is not included.
        """
        requeue: list[str] = []
        pending: deque[str] = deque([library])
        while pending:
            name = pending.popleft()
            state = self._owners.pop(name, None)
            if state is None:
                continue
            logger.debug("Dropped %s@%s", name, state.version)
            for dependency in state.dependencies or ():
                requeue.append(dependency)
                pending.append(dependency)
        return requeue

    def describe_owner(self, owner: OwnerKey) -> str:
        """Render *owner* for messages: ``root`` or ``name@version``."""
        state = self._owners.get(owner)
        if state is None or state.version is None:
            return "root"
        return f"{owner}@{state.version}"

    def resolution(self) -> dict[str, str]:
        """Mapping of every resolved library to its version (root excluded)."""
        return {
            str(owner): state.version
            for owner, state in self._owners.items()
            if owner != self.root and state.version is not None
        }
