"""Semantic versions and npm-style version ranges.

This module provides the foundational value types the resolver reasons over:
``Version`` (a parsed SemVer 2.0.0 version with precedence ordering) and
``VersionRange`` (a parsed range expression that can test candidate
versions).

Range semantics follow the npm ``semver`` grammar:

- Primitive comparators: ``<``, ``<=``, ``>``, ``>=``, ``=`` (``==`` is an
  accepted alias) and ``!=``.
- Caret (``^1.2.3``), tilde (``~1.2.3`` or ``~>1.2.3``), X-ranges (``1.x``,
  ``1.2.*``, ``*``, bare partial versions such as ``1.2``) and hyphen ranges
  (``1.2.3 - 2.3.4``).
- Comparators separated by whitespace (or commas) must all hold; comparator
  sets separated by ``||`` are alternatives.
- A pre-release version only satisfies a comparator set that itself names a
  pre-release on the same ``major.minor.patch`` tuple.

References
----------
.. [SemVer] Preston-Werner, T. (2013). "Semantic Versioning 2.0.0."
   https://semver.org/
.. [npm-semver] "The semantic versioner for npm."
   https://github.com/npm/node-semver#ranges
"""

from __future__ import annotations

import functools
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import NamedTuple

from semver_resolver.exceptions import InvalidRangeError, InvalidVersionError


# ---------------------------------------------------------------------------
# Version: a parsed semantic version
# ---------------------------------------------------------------------------

_IDENTIFIERS = r"[0-9A-Za-z\-]+(?:\.[0-9A-Za-z\-]+)*"

_SEMVER_RE = re.compile(
    r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    rf"(?:-(?P<pre>{_IDENTIFIERS}))?"
    rf"(?:\+(?P<build>{_IDENTIFIERS}))?$"
)


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    """A semantic version with SemVer 2.0.0 precedence.

    Build metadata is carried for display but does not affect precedence or
    equality (section 10). Pre-release versions have lower precedence than the
    associated normal version; pre-release identifiers compare numerically
    when all digits and lexically otherwise, numeric below alphanumeric
    (section 11).

    Attributes:
        major: Major version number.
        minor: Minor version number.
        patch: Patch version number.
        prerelease: Dot-separated pre-release identifiers, empty for releases.
        build: Dot-separated build metadata identifiers.
    """

    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()
    build: tuple[str, ...] = ()

    @classmethod
    def parse(cls, text: str) -> Version:
        """Parse a semantic version string.

        A single leading ``v`` or ``=`` is tolerated, as npm does.

        Args:
            text: Version string (e.g., "1.2.3", "v0.1.0-alpha.1+build.5").

        Returns:
            The parsed ``Version``.

        Raises:
            InvalidVersionError: If the string is not a semantic version.
        """
        stripped = text.strip()
        if stripped[:1] in ("v", "="):
            stripped = stripped[1:].lstrip()
        m = _SEMVER_RE.match(stripped)
        if not m:
            raise InvalidVersionError(f"Invalid semantic version: {text!r}")
        prerelease = tuple(m.group("pre").split(".")) if m.group("pre") else ()
        for ident in prerelease:
            if ident.isdigit() and len(ident) > 1 and ident[0] == "0":
                raise InvalidVersionError(f"Invalid semantic version: {text!r}")
        build = tuple(m.group("build").split(".")) if m.group("build") else ()
        return cls(
            int(m.group("major")),
            int(m.group("minor")),
            int(m.group("patch")),
            prerelease,
            build,
        )

    @property
    def release(self) -> tuple[int, int, int]:
        """The (major, minor, patch) tuple without pre-release or build."""
        return self.major, self.minor, self.patch

    def _precedence_key(self) -> tuple:
        if not self.prerelease:
            return (self.major, self.minor, self.patch, 1, ())
        idents = tuple(
            (0, int(ident), "") if ident.isdigit() else (1, 0, ident)
            for ident in self.prerelease
        )
        return (self.major, self.minor, self.patch, 0, idents)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence_key() == other._precedence_key()

    def __lt__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence_key() < other._precedence_key()

    def __hash__(self) -> int:
        return hash(self._precedence_key())

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(self.prerelease)
        if self.build:
            text += "+" + ".".join(self.build)
        return text


def version_key(version: str) -> Version:
    """Sort key for version strings by SemVer precedence."""
    return Version.parse(version)


def sort_descending(versions: Iterable[str]) -> list[str]:
    """Return version strings sorted highest precedence first.

    Raises:
        InvalidVersionError: If any entry is not a semantic version.
    """
    return sorted(versions, key=version_key, reverse=True)


# ---------------------------------------------------------------------------
# Range grammar
# ---------------------------------------------------------------------------

_WILDCARDS = frozenset({"x", "X", "*"})

_PARTIAL_RE = re.compile(
    r"^v?(?P<major>0|[1-9]\d*|[xX*])"
    r"(?:\.(?P<minor>0|[1-9]\d*|[xX*])"
    r"(?:\.(?P<patch>0|[1-9]\d*|[xX*])"
    rf"(?:-(?P<pre>{_IDENTIFIERS}))?"
    rf"(?:\+{_IDENTIFIERS})?"
    r")?)?$"
)

# Operators may be separated from their version by whitespace (">= 1.2.3").
_OP_SPACE_RE = re.compile(r"(<=|>=|==|!=|~>|<|>|=|\^|~)\s+")

_HYPHEN_RE = re.compile(r"^\s*(?P<low>\S+)\s+-\s+(?P<high>\S+)\s*$")

_TOKEN_RE = re.compile(r"^(?P<op><=|>=|==|!=|~>|<|>|=|\^|~)?(?P<ver>\S+)$")


class _Partial(NamedTuple):
    """A possibly incomplete version; missing or wildcard parts are None."""

    major: int | None
    minor: int | None
    patch: int | None
    prerelease: tuple[str, ...]

    @property
    def complete(self) -> bool:
        return self.patch is not None

    def floor(self) -> Version:
        """Lowest version the partial covers (wildcards filled with zero)."""
        return Version(
            self.major or 0,
            self.minor or 0,
            self.patch or 0,
            self.prerelease if self.complete else (),
        )


def _parse_partial(text: str, raw: str) -> _Partial:
    m = _PARTIAL_RE.match(text)
    if not m:
        raise InvalidRangeError(f"Invalid version range: {raw!r}")
    parts: list[int | None] = []
    for name in ("major", "minor", "patch"):
        value = m.group(name)
        # Everything after the first wildcard is a wildcard too.
        if value is None or value in _WILDCARDS or (parts and parts[-1] is None):
            parts.append(None)
        else:
            parts.append(int(value))
    prerelease = tuple(m.group("pre").split(".")) if m.group("pre") else ()
    return _Partial(parts[0], parts[1], parts[2], prerelease if parts[2] is not None else ())


def _upper(major: int, minor: int = 0, patch: int = 0) -> _Comparator:
    """Exclusive upper bound below every pre-release of the given release."""
    return _Comparator("<", Version(major, minor, patch, ("0",)))


_NOTHING = ("<", Version(0, 0, 0, ("0",)))


@dataclass(frozen=True)
class _Comparator:
    """A single ``<op><version>`` test."""

    op: str
    version: Version

    def test(self, candidate: Version) -> bool:
        op = self.op
        if op == "=":
            return candidate == self.version
        elif op == "!=":
            return candidate != self.version
        elif op == ">=":
            return candidate >= self.version
        elif op == "<=":
            return candidate <= self.version
        elif op == ">":
            return candidate > self.version
        elif op == "<":
            return candidate < self.version
        else:  # pragma: no cover
            raise ValueError(f"Unknown operator: {op!r}")

    def __str__(self) -> str:
        return f"{self.op}{self.version}"


def _primitive(op: str, p: _Partial, raw: str) -> list[_Comparator]:
    """Desugar ``<op><partial>`` into plain comparators."""
    if op in ("", "=", "=="):
        if p.major is None:
            return []
        if p.minor is None:
            return [_Comparator(">=", p.floor()), _upper(p.major + 1)]
        if p.patch is None:
            return [_Comparator(">=", p.floor()), _upper(p.major, p.minor + 1)]
        return [_Comparator("=", p.floor())]
    if op == "!=":
        if not p.complete:
            raise InvalidRangeError(f"Invalid version range: {raw!r}")
        return [_Comparator("!=", p.floor())]
    if op == ">":
        if p.major is None:
            return [_Comparator(*_NOTHING)]
        if p.minor is None:
            return [_Comparator(">=", Version(p.major + 1, 0, 0))]
        if p.patch is None:
            return [_Comparator(">=", Version(p.major, p.minor + 1, 0))]
        return [_Comparator(">", p.floor())]
    if op == ">=":
        if p.major is None:
            return []
        return [_Comparator(">=", p.floor())]
    if op == "<":
        if p.major is None:
            return [_Comparator(*_NOTHING)]
        if not p.complete:
            return [_upper(p.major, p.minor or 0)]
        return [_Comparator("<", p.floor())]
    # op == "<="
    if p.major is None:
        return []
    if p.minor is None:
        return [_upper(p.major + 1)]
    if p.patch is None:
        return [_upper(p.major, p.minor + 1)]
    return [_Comparator("<=", p.floor())]


def _tilde(p: _Partial) -> list[_Comparator]:
    """``~1.2.3`` allows patch-level changes; ``~1`` allows minor-level changes."""
    if p.major is None:
        return []
    if p.minor is None:
        return [_Comparator(">=", p.floor()), _upper(p.major + 1)]
    return [_Comparator(">=", p.floor()), _upper(p.major, p.minor + 1)]


def _caret(p: _Partial) -> list[_Comparator]:
    """``^`` allows changes that keep the left-most non-zero part unchanged."""
    if p.major is None:
        return []
    lower = _Comparator(">=", p.floor())
    if p.minor is None:
        return [lower, _upper(p.major + 1)]
    if p.major > 0:
        return [lower, _upper(p.major + 1)]
    if p.patch is None or p.minor > 0:
        return [lower, _upper(0, p.minor + 1)]
    return [lower, _upper(0, 0, p.patch + 1)]


def _hyphen(low: _Partial, high: _Partial) -> list[_Comparator]:
    """``1.2.3 - 2.3.4`` is an inclusive range; partial ends widen it."""
    comparators: list[_Comparator] = []
    if low.major is not None:
        comparators.append(_Comparator(">=", low.floor()))
    if high.major is None:
        pass
    elif high.minor is None:
        comparators.append(_upper(high.major + 1))
    elif high.patch is None:
        comparators.append(_upper(high.major, high.minor + 1))
    else:
        comparators.append(_Comparator("<=", high.floor()))
    return comparators


def _parse_comparator_set(text: str, raw: str) -> tuple[_Comparator, ...]:
    text = text.replace(",", " ")
    hyphen = _HYPHEN_RE.match(text)
    if hyphen:
        return tuple(
            _hyphen(
                _parse_partial(hyphen.group("low"), raw),
                _parse_partial(hyphen.group("high"), raw),
            )
        )
    comparators: list[_Comparator] = []
    for token in _OP_SPACE_RE.sub(r"\1", text).split():
        m = _TOKEN_RE.match(token)
        if not m:  # pragma: no cover
            raise InvalidRangeError(f"Invalid version range: {raw!r}")
        op = m.group("op") or ""
        partial = _parse_partial(m.group("ver"), raw)
        if op == "^":
            comparators.extend(_caret(partial))
        elif op in ("~", "~>"):
            comparators.extend(_tilde(partial))
        else:
            comparators.extend(_primitive(op, partial, raw))
    return tuple(comparators)


def _test_set(comparators: tuple[_Comparator, ...], candidate: Version) -> bool:
    for comparator in comparators:
        if not comparator.test(candidate):
            return False
    if candidate.prerelease:
        # Pre-releases are opt-in per release tuple.
        for comparator in comparators:
            bound = comparator.version
            if bound.prerelease and bound.release == candidate.release:
                return True
        return False
    return True


# ---------------------------------------------------------------------------
# VersionRange: Declarative version requirement
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VersionRange:
    """A parsed version range expression, analogous to npm range syntax.

    The expression is parsed eagerly, so constructing a ``VersionRange`` from
    malformed text fails immediately rather than at first use.

    Attributes:
        raw: The range string as authored (e.g., "^1.2.3 || >=2.0.0 <3").
    """

    raw: str
    _sets: tuple[tuple[_Comparator, ...], ...] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        sets = tuple(
            _parse_comparator_set(alternative, self.raw)
            for alternative in self.raw.split("||")
        )
        object.__setattr__(self, "_sets", sets)

    def satisfies(self, version: str | Version) -> bool:
        """Check whether a version satisfies any comparator set of this range.

        Args:
            version: A semantic version string or parsed ``Version``.

        Returns:
            True if at least one ``||`` alternative accepts the version.

        Raises:
            InvalidVersionError: If *version* is not a valid semantic version.
        """
        candidate = version if isinstance(version, Version) else Version.parse(version)
        return any(_test_set(comparators, candidate) for comparators in self._sets)

    def __str__(self) -> str:
        return self.raw

    def __repr__(self) -> str:
        return f"VersionRange({self.raw!r})"


@functools.lru_cache(maxsize=4096)
def parse_range(raw: str) -> VersionRange:
    """Parse and memoise a range expression.

    Raises:
        InvalidRangeError: If the expression is malformed.
    """
    return VersionRange(raw)


def satisfies(version: str, range_: str) -> bool:
    """Return True if *version* matches the range expression *range_*."""
    return parse_range(range_).satisfies(version)


def max_satisfying(versions: Sequence[str], range_: str) -> str | None:
    """Return the highest version in *versions* that matches *range_*.

    Args:
        versions: Candidate versions sorted highest first, as produced by
            ``sort_descending``. The scan stops at the first match.
        range_: Range expression to match.

    Returns:
        The first (highest) matching version, or None if nothing matches.
    """
    parsed = parse_range(range_)
    for version in versions:
        if parsed.satisfies(version):
            return version
    return None
