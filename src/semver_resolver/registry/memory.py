"""In-memory repository oracle.

Serves versions and dependency ranges from a nested mapping::

    {
        "left-pad": {
            "1.0.0": {},
            "1.1.0": {"repeat-string": "^1.0.0"},
        },
        "repeat-string": {"1.0.0": {}},
    }

The mapping can be loaded from a JSON or YAML file, which makes it the
natural fixture format for tests and for offline CLI use.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from semver_resolver.exceptions import (
    SemverResolverError,
    UnknownLibraryError,
    UnknownVersionError,
)
from semver_resolver.registry.base import VersionOracle


class InMemoryRepository(VersionOracle):
    """Oracle over a ``{library: {version: {dependency: range}}}`` mapping.

    Args:
        packages: The repository contents. A version mapped to ``None`` has no
            dependencies.
    """

    def __init__(self, packages: Mapping[str, Mapping[str, Mapping[str, str] | None]]) -> None:
        self._packages = {
            library: {
                str(version): {
                    str(name): str(range_)
                    for name, range_ in (dependencies or {}).items()
                }
                for version, dependencies in versions.items()
            }
            for library, versions in packages.items()
        }

    @classmethod
    def from_file(cls, path: str | Path) -> InMemoryRepository:
        """Load a repository document from a JSON or YAML file.

        Raises:
            SemverResolverError: If the file does not hold a mapping of
                mappings.
        """
        data = load_mapping(path)
        for library, versions in data.items():
            if not isinstance(versions, Mapping):
                raise SemverResolverError(
                    f"{path}: versions of {library!r} must be a mapping"
                )
        return cls(data)

    @property
    def libraries(self) -> list[str]:
        return sorted(self._packages)

    async def get_versions(self, library: str) -> list[str]:
        versions = self._packages.get(library)
        if versions is None:
            raise UnknownLibraryError(library)
        return list(versions)

    async def get_dependencies(self, library: str, version: str) -> dict[str, str]:
        versions = self._packages.get(library)
        if versions is None:
            raise UnknownLibraryError(library)
        if version not in versions:
            raise UnknownVersionError(library, version)
        return dict(versions[version])


def load_mapping(path: str | Path) -> dict[str, Any]:
    """Read a JSON or YAML file whose top level is a mapping.

    JSON is a subset of YAML, so one ``yaml.safe_load`` covers both.

    Raises:
        SemverResolverError: If the file cannot be parsed or is not a mapping.
    """
    target = Path(path)
    try:
        data = yaml.safe_load(target.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise SemverResolverError(f"{target}: cannot parse: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SemverResolverError(f"{target}: top level must be a mapping")
    return data
