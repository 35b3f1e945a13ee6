"""Base classes for version data sources ("oracles").

Defines the ``VersionOracle`` abstract base class that every data source the
resolver reads from implements, and ``CallableOracle``, which adapts a pair
of plain functions (synchronous or asynchronous) to that interface.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Union

GetVersions = Callable[[str], Union[Sequence[str], Awaitable[Sequence[str]]]]
GetDependencies = Callable[
    [str, str], Union[Mapping[str, str], Awaitable[Mapping[str, str]]]
]


class VersionOracle(ABC):
    """Abstract source of available versions and declared dependency ranges.

    Subclasses must implement ``get_versions``. ``get_dependencies`` defaults
    to "no dependencies", which makes every resolved library a leaf.

    Both lookups may raise (typically ``UnknownLibraryError`` or
    ``UnknownVersionError``); the resolver propagates such failures verbatim.
    """

    @abstractmethod
    async def get_versions(self, library: str) -> Sequence[str]:
        """Return every published version of *library*, in any order.

        Args:
            library: Library name.

        Returns:
            Version strings.
        """

    async def get_dependencies(self, library: str, version: str) -> Mapping[str, str]:
        """Return the dependency ranges declared by *library* at *version*.

        Args:
            library: Library name.
            version: A version previously returned by ``get_versions``.

        Returns:
            Mapping of dependency name to range expression.
        """
        return {}


async def _maybe_await(value):
    if inspect.isawaitable(value):
        return await value
    return value


class CallableOracle(VersionOracle):
    """Oracle backed by two caller-supplied functions.

    Either function may be a coroutine function or a plain function.

    Args:
        get_versions: ``(library) -> versions``.
        get_dependencies: ``(library, version) -> {name: range}``. If None,
            every library is treated as having no dependencies.
    """

    def __init__(
        self,
        get_versions: GetVersions,
        get_dependencies: GetDependencies | None = None,
    ) -> None:
        self._get_versions = get_versions
        self._get_dependencies = get_dependencies

    async def get_versions(self, library: str) -> Sequence[str]:
        return await _maybe_await(self._get_versions(library))

    async def get_dependencies(self, library: str, version: str) -> Mapping[str, str]:
        if self._get_dependencies is None:
            return {}
        result = await _maybe_await(self._get_dependencies(library, version))
        return result or {}
