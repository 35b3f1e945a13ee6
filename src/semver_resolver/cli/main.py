"""semver-resolver CLI — Resolve semantic-version ranges to concrete versions.

Entry point for the ``semver-resolver`` command-line tool. Registers all
subcommands under a single Click group.

Commands:
    resolve — Resolve a requirements file against a repository or registry.

Usage::

    semver-resolver resolve deps.json --repository repo.yaml
    semver-resolver resolve package.json
    semver-resolver resolve package.json --registry https://registry.example.com
"""

from __future__ import annotations

import click

from semver_resolver import __version__
from semver_resolver.cli.resolve_cmd import resolve_command


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """semver-resolver: Incremental semantic-version constraint resolution.

    Resolves a set of version ranges, and the ranges their dependencies
    declare, into one concrete version per library, backtracking when two
    branches of the graph disagree on a shared dependency.
    """


# Register all subcommands
cli.add_command(resolve_command)
