"""Memoising layer between the resolver and its version oracle.

Version lists are cached per library and dependency maps per library+version
for the lifetime of one resolver. Entries are never invalidated: the ranges a
published library version declares are immutable upstream data. Failed
lookups are not cached, so a transient failure never poisons later lookups.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Iterable, Sequence
from typing import TypeVar

from semver_resolver.core.constraints import Version, sort_descending
from semver_resolver.exceptions import InvalidVersionError
from semver_resolver.registry.base import VersionOracle

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def gather_fail_fast(awaitables: Iterable[Awaitable[T]]) -> list[T]:
    """Run *awaitables* concurrently and return their results in order.

    The first failure cancels every task still in flight and is re-raised.
    """
    tasks = [asyncio.ensure_future(aw) for aw in awaitables]
    if not tasks:
        return []
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        raise


def _valid_versions(library: str, versions: Iterable[str]) -> list[str]:
    valid: list[str] = []
    for version in versions:
        try:
            Version.parse(version)
        except InvalidVersionError:
            logger.warning("Ignoring invalid version %r of %s", version, library)
            continue
        valid.append(version)
    return valid


class VersionCache:
    """Memoised view of a ``VersionOracle``.

    Attributes:
        versions: library -> available versions, highest first.
        dependencies: library -> version -> declared dependency ranges.
    """

    def __init__(self, oracle: VersionOracle) -> None:
        self._oracle = oracle
        self.versions: dict[str, list[str]] = {}
        self.dependencies: dict[str, dict[str, dict[str, str]]] = {}

    def has_versions(self, library: str) -> bool:
        return library in self.versions

    def has_dependencies(self, library: str, version: str) -> bool:
        return version in self.dependencies.get(library, {})

    def versions_of(self, library: str) -> list[str]:
        """Return the cached version list of *library*.

        Raises:
            KeyError: If the versions of *library* have not been fetched yet.
        """
        return self.versions[library]

    def dependencies_of(self, library: str, version: str) -> dict[str, str]:
        """Return the cached dependency ranges of *library* at *version*.

        Raises:
            KeyError: If that pair has not been fetched yet.
        """
        return self.dependencies[library][version]

    async def get_versions(self, library: str) -> list[str]:
        """Fetch (once) and return the versions of *library*, highest first."""
        cached = self.versions.get(library)
        if cached is not None:
            return cached
        fetched = await self._oracle.get_versions(library)
        ordered = sort_descending(_valid_versions(library, fetched))
        self.versions[library] = ordered
        logger.debug("Cached %d versions of %s", len(ordered), library)
        return ordered

    async def get_dependencies(self, library: str, version: str) -> dict[str, str]:
        """Fetch (once) and return the dependency ranges of *library*@*version*."""
        by_version = self.dependencies.get(library)
        if by_version is not None and version in by_version:
            return by_version[version]
        fetched = await self._oracle.get_dependencies(library, version)
        ranges = dict(fetched or {})
        self.dependencies.setdefault(library, {})[version] = ranges
        return ranges

    async def prefetch_versions(self, libraries: Iterable[str]) -> None:
        """Concurrently fetch every uncached version list in *libraries*."""
        missing = [
            library
            for library in dict.fromkeys(libraries)
            if not self.has_versions(library)
        ]
        await gather_fail_fast(self.get_versions(library) for library in missing)

    async def prefetch_dependencies(self, pairs: Sequence[tuple[str, str]]) -> None:
        """Concurrently fetch every uncached (library, version) dependency map."""
        missing = [
            (library, version)
            for library, version in dict.fromkeys(pairs)
            if not self.has_dependencies(library, version)
        ]
        await gather_fail_fast(
            self.get_dependencies(library, version) for library, version in missing
        )
