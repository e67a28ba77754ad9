"""Tests for the console module."""

import unittest
from unittest.mock import patch

from rich.console import Console

from solution_sbom import console as console_module
from solution_sbom._graph import ComponentIdentity, ResolutionError, ResolutionErrorKind
from solution_sbom.console import (
    console,
    gha_error,
    gha_warning,
    print_banner,
    print_degraded_items,
    print_enrichment_summary,
    print_final_failure,
    print_final_success,
    print_summary_table,
)
from solution_sbom.pipeline import DegradedItems


class RecordingConsoleMixin:
    """Swap the shared console for one that records its output."""

    def setUp(self):
        self.recorder = Console(record=True, width=200, theme=console_module.custom_theme)
        patcher = patch.object(console_module, "console", self.recorder)
        patcher.start()
        self.addCleanup(patcher.stop)

    def output(self):
        return self.recorder.export_text()


class TestConsole(unittest.TestCase):
    """Tests for console instance and banner."""

    def test_console_writes_to_stderr(self):
        self.assertTrue(console.stderr)

    def test_print_banner_runs(self):
        print_banner("0.1.0")

    def test_print_banner_unknown_version(self):
        print_banner("unknown")


class TestGHAAnnotations(unittest.TestCase):
    """Tests for GitHub Actions annotations."""

    def test_gha_warning_gha_mode(self):
        with patch.object(console_module, "IS_GITHUB_ACTIONS", True), patch("builtins.print") as mock_print:
            gha_warning("Test warning")
            mock_print.assert_called_with("::warning::Test warning")

    def test_gha_error_with_title_gha_mode(self):
        with patch.object(console_module, "IS_GITHUB_ACTIONS", True), patch("builtins.print") as mock_print:
            gha_error("Test error", title="Oops")
            mock_print.assert_called_with("::error title=Oops::Test error")

    def test_gha_warning_local(self):
        with patch.object(console_module, "IS_GITHUB_ACTIONS", False), patch("builtins.print") as mock_print:
            gha_warning("Test warning")
            mock_print.assert_not_called()


class TestSummaryTable(RecordingConsoleMixin, unittest.TestCase):
    """Tests for summary tables."""

    def test_summary_table_filters_zeros(self):
        print_summary_table("Test Summary", [("Metric 1", 10), ("Metric 2", 0)])
        text = self.output()
        self.assertIn("Metric 1", text)
        self.assertNotIn("Metric 2", text)

    def test_summary_table_empty(self):
        print_summary_table("Test Summary", [("Metric", 0)])
        self.assertEqual(self.output(), "")

    def test_summary_table_show_if_empty(self):
        print_summary_table("Test Summary", [("Metric", 0)], show_if_empty=True)
        self.assertIn("Metric", self.output())

    def test_enrichment_summary_with_sources(self):
        stats = {
            "total": 5,
            "enriched": 3,
            "licenses": 3,
            "vendors": 1,
            "skipped": 2,
            "timed_out": 0,
            "sources": {"nuget.org": 2, "github.com": 1},
        }
        print_enrichment_summary(stats)
        text = self.output()
        self.assertIn("3/5", text)
        self.assertIn("nuget.org", text)
        self.assertIn("github.com", text)


class TestDegradedItems(RecordingConsoleMixin, unittest.TestCase):
    """Tests for the incomplete-SBOM report."""

    def test_nothing_printed_when_complete(self):
        print_degraded_items(DegradedItems())
        self.assertEqual(self.output(), "")

    def test_all_sections(self):
        degraded = DegradedItems(
            failed_projects=[
                ResolutionError("src/Broken.csproj", ResolutionErrorKind.RESTORE_MISSING, "no assets file")
            ],
            conflicts={("nuget", "Newtonsoft.Json"): ["12.0.1", "13.0.3"]},
            unresolved=[ComponentIdentity("nuget", "Missing", "1.0.0")],
            unenriched=[ComponentIdentity("nuget", "Obscure", "0.1.0")],
        )
        print_degraded_items(degraded)
        text = self.output()
        self.assertIn("src/Broken.csproj", text)
        self.assertIn("RestoreMissing", text)
        self.assertIn("12.0.1, 13.0.3", text)
        self.assertIn("Unresolved dependencies (1)", text)
        self.assertIn("Components without metadata (1)", text)

    def test_long_lists_truncated(self):
        unresolved = [ComponentIdentity("nuget", f"Pkg{i:02d}", "1.0.0") for i in range(5)]
        print_degraded_items(DegradedItems(unresolved=unresolved), limit=2)
        self.assertIn("... and 3 more", self.output())


class TestFinalMessages(RecordingConsoleMixin, unittest.TestCase):
    """Tests for final success/failure messages."""

    def test_final_success(self):
        with patch.object(console_module, "IS_GITHUB_ACTIONS", False):
            print_final_success("out/bom.json")
        self.assertIn("out/bom.json", self.output())

    def test_final_failure(self):
        with patch.object(console_module, "IS_GITHUB_ACTIONS", False):
            print_final_failure("Everything broke")
        self.assertIn("Everything broke", self.output())


if __name__ == "__main__":
    unittest.main()
