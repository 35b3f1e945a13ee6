"""``semver-resolver resolve <requirements>`` — Resolve version ranges.

Reads root requirements (a ``{name: range}`` mapping, or a ``package.json``
whose ``dependencies`` key is used) and resolves them against either a
repository file or an npm-compatible registry.

Exit Codes:
    0 — Resolution succeeded.
    1 — Resolution failed (unsatisfiable constraints, unknown library, ...).
    2 — The input files could not be used.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import Mapping
from pathlib import Path

import click

from semver_resolver.config import (
    DEFAULT_MAX_PASSES,
    DEFAULT_REGISTRY_URL,
    ResolverOptions,
)
from semver_resolver.core.resolver import SemverResolver
from semver_resolver.exceptions import SemverResolverError
from semver_resolver.registry.base import VersionOracle
from semver_resolver.registry.memory import InMemoryRepository, load_mapping
from semver_resolver.registry.npm import NpmRegistryOracle


def _is_package_manifest(path: str, data: Mapping) -> bool:
    """True for a package.json, named as such or shaped like one."""
    if Path(path).name == "package.json" or isinstance(data.get("dependencies"), Mapping):
        return True
    return isinstance(data.get("name"), str) and isinstance(data.get("version"), str)


def _load_requirements(path: str) -> dict[str, str]:
    """Load root requirements from a JSON/YAML file.

    Raises:
        SemverResolverError: If the file is unreadable or malformed.
    """
    data = load_mapping(path)
    if _is_package_manifest(path, data):
        data = data.get("dependencies") or {}
        if not isinstance(data, Mapping):
            raise SemverResolverError(f"{path}: dependencies must be a mapping")
    requirements: dict[str, str] = {}
    for name, range_ in data.items():
        if not isinstance(range_, (str, int, float)):
            raise SemverResolverError(
                f"{path}: range for {name!r} must be a string"
            )
        requirements[str(name)] = str(range_)
    return requirements


async def _run(
    requirements: dict[str, str],
    oracle: VersionOracle,
    options: ResolverOptions,
) -> dict[str, str]:
    try:
        return await SemverResolver(requirements, oracle, options).resolve()
    finally:
        if isinstance(oracle, NpmRegistryOracle):
            await oracle.aclose()


@click.command("resolve")
@click.argument("requirements", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--repository", "-r",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON/YAML repository file ({library: {version: {dep: range}}}).",
)
@click.option(
    "--registry",
    default=DEFAULT_REGISTRY_URL,
    show_default=True,
    help="npm registry URL, used when no --repository is given.",
)
@click.option(
    "--max-passes",
    type=click.IntRange(min=0),
    default=DEFAULT_MAX_PASSES,
    show_default=True,
    help="Give up after this many resolution passes (0 = unlimited).",
)
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
@click.option("--verbose", "-v", is_flag=True, help="Log resolution progress.")
def resolve_command(
    requirements: str,
    repository: str | None,
    registry: str,
    max_passes: int,
    output_format: str,
    verbose: bool,
) -> None:
    """Resolve REQUIREMENTS to one concrete version per library.

    Examples:

        semver-resolver resolve deps.json --repository repo.yaml

        semver-resolver resolve package.json --format json
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
        )

    try:
        wanted = _load_requirements(requirements)
        oracle: VersionOracle = (
            InMemoryRepository.from_file(repository)
            if repository
            else NpmRegistryOracle(registry)
        )
    except SemverResolverError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    options = ResolverOptions(max_passes=max_passes or None)
    try:
        installed = asyncio.run(_run(wanted, oracle, options))
    except SemverResolverError as exc:
        if output_format == "json":
            click.echo(json.dumps({"success": False, "error": str(exc)}, indent=2))
        else:
            from semver_resolver.cli.output import print_resolution_summary
            print_resolution_summary(success=False, installed={}, conflicts=[str(exc)])
        sys.exit(1)

    if output_format == "json":
        click.echo(json.dumps({"success": True, "resolution": installed}, indent=2, sort_keys=True))
    else:
        from semver_resolver.cli.output import print_resolution_summary
        print_resolution_summary(
            success=True,
            installed=installed,
            conflicts=[],
            requirements=wanted,
        )
    sys.exit(0)
