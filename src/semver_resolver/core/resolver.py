"""Fixpoint scheduler driving semantic-version resolution.

``SemverResolver`` repeatedly runs a four-step pass over two work queues
until no library is left awaiting a version decision:

1. ``cache_versions``: fetch the version lists of queued libraries.
2. ``resolve_versions``: run the conflict resolver for each queued library.
3. ``cache_dependencies``: fetch the dependency ranges of new resolutions.
4. ``refill_queues``: install those ranges and queue the libraries they name.

Only steps 1 and 3 suspend (on oracle lookups, all issued concurrently). The
constraint store is mutated synchronously in steps 2 and 4, so no half-applied
update is ever observable.

Usage::

    resolver = SemverResolver({"left-pad": "^1.3.0"}, NpmRegistryOracle())
    resolution = await resolver.resolve()
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping

from semver_resolver.config import ResolverOptions
from semver_resolver.core.cache import VersionCache
from semver_resolver.core.conflict import ConflictResolver
from semver_resolver.core.state import ConstraintStore
from semver_resolver.exceptions import CycleSuspectedError
from semver_resolver.registry.base import (
    CallableOracle,
    GetDependencies,
    GetVersions,
    VersionOracle,
)

logger = logging.getLogger(__name__)


class SemverResolver:
    """Resolves root version ranges to one concrete version per library.

    A resolver instance owns its constraint store and caches and is meant to
    be resolved once. Any exception leaves it in an undefined intermediate
    state; discard it.

    Args:
        requirements: Root requirements, library name -> range expression.
        oracle: Source of versions and dependency ranges.
        options: Resolution limits. Defaults to ``ResolverOptions()``.

    Attributes:
        store: The constraint store.
        cache: The memoised oracle view.
        queued_calculations: Libraries needing a version decision.
        queued_constraint_updates: Resolved libraries whose dependency ranges
            still need installing.
        passes: Number of completed fixpoint passes.
    """

    def __init__(
        self,
        requirements: Mapping[str, str],
        oracle: VersionOracle,
        options: ResolverOptions | None = None,
    ) -> None:
        self.options = options or ResolverOptions()
        self.store = ConstraintStore(requirements)
        self.cache = VersionCache(oracle)
        self.conflicts = ConflictResolver(self.store, self.cache)
        self.queued_calculations: list[str] = list(requirements)
        self.queued_constraint_updates: list[str] = []
        self.passes = 0

    @classmethod
    def from_callables(
        cls,
        requirements: Mapping[str, str],
        get_versions: GetVersions,
        get_dependencies: GetDependencies | None = None,
        options: ResolverOptions | None = None,
    ) -> SemverResolver:
        """Build a resolver from plain lookup functions (sync or async)."""
        return cls(requirements, CallableOracle(get_versions, get_dependencies), options)

    # -- queue maintenance -------------------------------------------------

    def clean_queued_calculations(self) -> None:
        """Drop queued calculations no present owner depends on any more."""
        self.queued_calculations = [
            library
            for library in self.queued_calculations
            if self.store.is_reachable(library)
        ]

    def clean_queued_constraint_updates(self) -> None:
        """Drop queued updates for libraries that have left the store."""
        self.queued_constraint_updates = [
            library
            for library in self.queued_constraint_updates
            if library in self.store
        ]

    # -- pass steps --------------------------------------------------------

    async def cache_versions(self) -> None:
        """Step 1: fetch version lists for every queued calculation."""
        await self.cache.prefetch_versions(self.queued_calculations)

    def resolve_versions(self) -> None:
        """Step 2: choose versions for the queued calculations."""
        queued = list(dict.fromkeys(self.queued_calculations))
        next_queue: list[str] = []
        self.queued_calculations = next_queue
        for library in queued:
            # Re-queued by a backtrack earlier in this step: it may have
            # been orphaned, so wait for the next pass.
            if library in next_queue:
                continue
            outcome = self.conflicts.resolve(library)
            if outcome.version is not None:
                self.store.set_resolved(library, outcome.version)
                self.queued_constraint_updates.append(library)
            else:
                next_queue.extend(outcome.requeue)
        self.clean_queued_constraint_updates()

    async def cache_dependencies(self) -> None:
        """Step 3: fetch dependency ranges of freshly resolved libraries."""
        pairs: list[tuple[str, str]] = []
        for library in self.queued_constraint_updates:
            state = self.store.get(library)
            if state is not None and state.version is not None:
                pairs.append((library, state.version))
        await self.cache.prefetch_dependencies(pairs)

    def update_constraints(self, library: str) -> None:
        """Install the dependency ranges of *library* and queue its dependencies.

        A library dropped earlier in the same step is skipped: the ranges it
        would install are stale.
        """
        state = self.store.get(library)
        if state is None or state.version is None:
            return
        ranges = self.cache.dependencies_of(library, state.version)
        for dependency in self.store.attach_dependencies(library, ranges):
            # Any earlier resolution of the dependency ignored this range.
            self.queued_calculations.extend(self.store.drop_library(dependency))
            self.queued_calculations.append(dependency)

    def refill_queues(self) -> None:
        """Step 4: install pending constraints, then prune orphans."""
        updates = list(dict.fromkeys(self.queued_constraint_updates))
        self.queued_constraint_updates = []
        for library in updates:
            self.update_constraints(library)
        self.clean_queued_calculations()
        self.clean_queued_constraint_updates()

    async def run_pass(self) -> None:
        """Run one full fetch/resolve/fetch/install pass."""
        await self.cache_versions()
        self.resolve_versions()
        await self.cache_dependencies()
        self.refill_queues()
        self.passes += 1
        logger.debug(
            "Pass %d complete: %d resolved, %d queued",
            self.passes,
            len(self.store) - 1,
            len(self.queued_calculations),
        )

    async def resolve(self) -> dict[str, str]:
        """Run passes to the fixpoint and return the resolution.

        Returns:
            Mapping of every transitively required library to its version.

        Raises:
            OracleError: A version or dependency lookup failed.
            ResolutionError: The constraints cannot be satisfied, or the pass
                cap was exceeded (``CycleSuspectedError``).
        """
        max_passes = self.options.max_passes
        while self.queued_calculations:
            if max_passes is not None and self.passes >= max_passes:
                raise CycleSuspectedError(self.passes, self.queued_calculations)
            await self.run_pass()
        resolution = self.store.resolution()
        logger.info(
            "Resolved %d libraries in %d passes", len(resolution), self.passes
        )
        return resolution


async def resolve(
    requirements: Mapping[str, str],
    oracle: VersionOracle,
    options: ResolverOptions | None = None,
) -> dict[str, str]:
    """Resolve *requirements* against *oracle* with a fresh resolver."""
    return await SemverResolver(requirements, oracle, options).resolve()


def resolve_sync(
    requirements: Mapping[str, str],
    oracle: VersionOracle,
    options: ResolverOptions | None = None,
) -> dict[str, str]:
    """Run ``resolve`` to completion in a new event loop."""
    return asyncio.run(resolve(requirements, oracle, options))
