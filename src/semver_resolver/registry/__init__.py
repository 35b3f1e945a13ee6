"""Version data sources for the resolver.

``VersionOracle`` is the interface the resolver consumes. Two concrete
oracles ship with the package: ``InMemoryRepository`` for fixture documents
and ``NpmRegistryOracle`` for npm-compatible registries.
"""

from semver_resolver.registry.base import CallableOracle, VersionOracle
from semver_resolver.registry.memory import InMemoryRepository
from semver_resolver.registry.npm import NpmRegistryOracle

__all__ = [
    "CallableOracle",
    "InMemoryRepository",
    "NpmRegistryOracle",
    "VersionOracle",
]
