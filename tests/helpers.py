"""Shared test helpers: fixture repositories and consistency checks."""

from __future__ import annotations
from collections.abc import Mapping
from pathlib import Path

from semver_resolver.core.constraints import satisfies
from semver_resolver.registry.memory import InMemoryRepository

REPOSITORIES_DIR = Path(__file__).parent / "fixtures" / "repositories"


def load_repository(name: str) -> InMemoryRepository:
    """Load a fixture repository by file stem (JSON first, then YAML)."""
    for suffix in (".json", ".yaml"):
        path = REPOSITORIES_DIR / f"{name}{suffix}"
        if path.exists():
            return InMemoryRepository.from_file(path)
    raise FileNotFoundError(name)


def assert_consistent(
    packages: Mapping[str, Mapping[str, Mapping[str, str]]],
    requirements: Mapping[str, str],
    resolution: Mapping[str, str],
) -> None:
    """Every root range and every declared range of a resolved version holds."""
    for name, range_ in requirements.items():
        assert name in resolution, f"{name} required by root is missing"
        assert satisfies(resolution[name], range_), (name, range_, resolution[name])
    for library, version in resolution.items():
        for dependency, range_ in (packages[library][version] or {}).items():
            assert dependency in resolution, f"{dependency} required by {library} is missing"
            assert satisfies(resolution[dependency], range_), (
                library,
                dependency,
                range_,
                resolution[dependency],
            )
