"""Shared fixtures for semver-resolver tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.helpers import REPOSITORIES_DIR


@pytest.fixture
def repository_dir() -> Path:
    """Directory holding the fixture repository documents."""
    return REPOSITORIES_DIR


@pytest.fixture
def requirements_file(tmp_path: Path) -> Path:
    """A requirements file resolvable against the backtracking fixture."""
    path = tmp_path / "requirements.json"
    path.write_text('{"test2": "^0.1.0", "test3": "0.1.0"}')
    return path
