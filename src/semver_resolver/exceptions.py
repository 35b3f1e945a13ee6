"""semver-resolver exception hierarchy.

All public exceptions inherit from SemverResolverError, giving callers a single
base class to catch when they want to handle any resolution-specific failure
without swallowing unrelated errors.

Every error raised while resolving is terminal: the resolver never retries
internally, and the half-built constraint store is discarded with the
resolver instance.
"""

from __future__ import annotations

from collections.abc import Iterable


class SemverResolverError(Exception):
    """Base exception for all semver-resolver errors."""


class InvalidVersionError(SemverResolverError, ValueError):
    """Raised when a string is not a valid semantic version."""


class InvalidRangeError(SemverResolverError, ValueError):
    """Raised when a version range expression cannot be parsed."""


# ---------------------------------------------------------------------------
# Data source failures
# ---------------------------------------------------------------------------


class OracleError(SemverResolverError):
    """Raised when the version data source cannot answer a lookup.

    Oracle failures propagate verbatim through the cache layer and abort the
    resolution. They are never cached, so a later lookup retries the source.
    """


class UnknownLibraryError(OracleError):
    """Raised when the data source has no record of a library."""

    def __init__(self, library: str) -> None:
        self.library = library
        super().__init__(f"No such library: {library}")


class UnknownVersionError(OracleError):
    """Raised when the data source knows a library but not the requested version."""

    def __init__(self, library: str, version: str) -> None:
        self.library = library
        self.version = version
        super().__init__(f"No such version: {library}@{version}")


class RegistryError(OracleError):
    """Raised on transport or HTTP failures while talking to a remote registry."""


# ---------------------------------------------------------------------------
# Solver failures
# ---------------------------------------------------------------------------


class ResolutionError(SemverResolverError):
    """Raised when dependency resolution fails.

    Covers unsatisfiable version constraints, conflicts that would require
    revising the root requirements, and runaway resolutions that exceed the
    configured pass cap.
    """


class UnsatisfiableConstraintError(ResolutionError):
    """No available version of ``library`` matches ``range``.

    Attributes:
        library: The library whose versions were searched.
        range: The range that matched nothing.
        owner: Rendered constraining owner, ``root`` or ``name@version``.
    """

    def __init__(self, library: str, range: str, owner: str) -> None:
        self.library = library
        self.range = range
        self.owner = owner
        super().__init__(self._message())

    def _message(self) -> str:
        return (
            f"Unable to satisfy version constraint: "
            f"{self.library}@{self.range} from {self.owner}"
        )


class BacktrackedConstraintError(UnsatisfiableConstraintError):
    """A synthetic narrowed range produced by backtracking matched nothing.

    ``due_to`` names the library whose conflict produced the narrowing, which
    gives the caller a causal trail back to the shared constraint.
    """

    def __init__(self, library: str, range: str, owner: str, due_to: str) -> None:
        self.due_to = due_to
        super().__init__(library, range, owner)

    def _message(self) -> str:
        return (
            f"Unable to satisfy backtracked version constraint: "
            f"{self.library}@{self.range} from {self.owner} "
            f"due to shared constraint on {self.due_to}"
        )


class RootConflictError(ResolutionError):
    """A root requirement conflicts with a constraint from a resolved library.

    Root requirements cannot be revised, so the conflict has no resolution.

    Attributes:
        library: The shared library both constraints apply to.
        range: The root's range that the candidate version violates.
        owner: Rendered owner (``name@version``) of the constraint that
            produced the candidate.
    """

    def __init__(self, library: str, range: str, owner: str) -> None:
        self.library = library
        self.range = range
        self.owner = owner
        super().__init__(
            f"Unable to satisfy version constraint: {library}@{range} "
            f"from root due to shared constraint from {owner}"
        )


class CycleSuspectedError(ResolutionError):
    """Raised when resolution has not reached its fixpoint within the pass cap.

    Usually caused by cyclic dependency declarations, which keep re-queuing
    each other indefinitely.
    """

    def __init__(self, passes: int, pending: Iterable[str]) -> None:
        self.passes = passes
        self.pending = sorted(set(pending))
        super().__init__(
            f"Resolution did not converge after {passes} passes; "
            f"still pending: {', '.join(self.pending)} (dependency cycle suspected)"
        )
