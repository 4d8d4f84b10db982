"""Diagnostics routines for the core subsystem."""

from __future__ import annotations

import importlib.util

from diagnostics.models import DiagnosticResult, DiagnosticStatus


def probe() -> DiagnosticResult:
    """Validate logging readiness and the pipeline clock."""

    name = "core"
    from core import logging as core_logging
    from core.timing import millis

    if core_logging.logger is None:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details="Core logger failed to initialize",
        )
    first = millis()
    if millis() < first:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details="Monotonic clock went backwards",
        )
    rich_available = importlib.util.find_spec("rich") is not None
    details = "Rich logging enabled" if rich_available else "Rich logging not available (fallback)"
    return DiagnosticResult(name=name, status=DiagnosticStatus.PASS, details=details)
