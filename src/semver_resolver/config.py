"""Resolver configuration and shared defaults."""

from __future__ import annotations

from dataclasses import dataclass

# Fixpoint passes allowed before a resolution is declared non-convergent.
DEFAULT_MAX_PASSES: int = 1000

# Public npm registry used by the CLI when no repository file is given.
DEFAULT_REGISTRY_URL: str = "https://registry.npmjs.org"

# Timeout for registry HTTP requests (seconds).
DEFAULT_TIMEOUT: float = 30.0

# User-Agent sent with every registry request.
USER_AGENT: str = "semver-resolver/0.1"


@dataclass(frozen=True)
class ResolverOptions:
    """Tunable limits for a single resolution.

    Attributes:
        max_passes: Upper bound on fixpoint passes. ``None`` removes the cap,
            in which case a cyclic input may loop forever.
    """

    max_passes: int | None = DEFAULT_MAX_PASSES

    def __post_init__(self) -> None:
        if self.max_passes is not None and self.max_passes < 1:
            raise ValueError(f"max_passes must be positive, got {self.max_passes}")
