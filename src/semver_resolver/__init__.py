"""semver-resolver: Incremental semantic-version constraint resolution with structural backtracking."""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

from semver_resolver.config import ResolverOptions
from semver_resolver.core.resolver import SemverResolver, resolve, resolve_sync
from semver_resolver.registry.base import CallableOracle, VersionOracle

__all__ = [
    "CallableOracle",
    "ResolverOptions",
    "SemverResolver",
    "VersionOracle",
    "resolve",
    "resolve_sync",
]
