"""Tests for the diagnostics runner and offline entry point."""

from __future__ import annotations

from diagnostics.models import DiagnosticResult, DiagnosticStatus
from diagnostics.run import main
from diagnostics.runner import exit_code, format_results, run_diagnostics


def test_raising_probe_is_reported_as_failure() -> None:
    def exploding_probe() -> DiagnosticResult:
        raise RuntimeError("boom")

    results = run_diagnostics([exploding_probe])

    assert results[0].status is DiagnosticStatus.FAIL
    assert results[0].name == "exploding_probe"
    assert exit_code(results) == 1
    assert "boom" in format_results(results)


def test_offline_run_succeeds(capsys) -> None:
    assert main(["--offline"]) == 0

    output = capsys.readouterr().out
    assert "PesoBuddy diagnostics" in output
    assert "[PASS] speech" in output
