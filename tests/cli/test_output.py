"""Tests for CLI output formatting helpers.

Verifies:
    - Successful summaries list every library with its origin.
    - Failure summaries show each conflict verbatim.
"""

from __future__ import annotations

from semver_resolver.cli.output import print_resolution_summary


class TestPrintResolutionSummary:
    """Tests for print_resolution_summary output."""

    def test_success_summary(self, capsys) -> None:
        """Successful resolution should show resolved libraries."""
        print_resolution_summary(
            success=True,
            installed={"left-pad": "1.3.0", "repeat-string": "1.6.1"},
            conflicts=[],
            requirements={"left-pad": "^1.3.0"},
        )
        captured = capsys.readouterr()
        assert "successful" in captured.out.lower()
        assert "left-pad" in captured.out
        assert "^1.3.0" in captured.out
        assert "(transitive)" in captured.out

    def test_success_without_requirements(self, capsys) -> None:
        """Without requirements every library is shown as transitive."""
        print_resolution_summary(
            success=True, installed={"a": "1.0.0"}, conflicts=[]
        )
        captured = capsys.readouterr()
        assert "(transitive)" in captured.out

    def test_empty_success(self, capsys) -> None:
        """An empty resolution says so."""
        print_resolution_summary(success=True, installed={}, conflicts=[])
        captured = capsys.readouterr()
        assert "No libraries to resolve" in captured.out

    def test_failure_summary(self, capsys) -> None:
        """Failed resolution should show conflicts."""
        print_resolution_summary(
            success=False,
            installed={},
            conflicts=["Unable to satisfy version constraint: b@[1.0.0] from root"],
        )
        captured = capsys.readouterr()
        assert "failed" in captured.out.lower()
        assert "b@[1.0.0] from root" in captured.out
