"""Diagnostics routines for the speech subsystem."""

from __future__ import annotations

import importlib.util

from diagnostics.models import DiagnosticResult, DiagnosticStatus
from interaction.speech import Pyttsx3Backend, SpeechSettings
from interaction.speech_hal import SpeechBackend


def probe(
    backend: SpeechBackend | None = None,
    settings: SpeechSettings | None = None,
) -> DiagnosticResult:
    """Run a speech probe to validate engine availability.

    Args:
        backend: Optional offline speech backend for testing.
        settings: Optional speech settings used for the pyttsx3 engine.

    Returns:
        Diagnostic result indicating speech output readiness.
    """

    name = "speech"

    if backend is None:
        if importlib.util.find_spec("pyttsx3") is None:
            return DiagnosticResult(
                name=name,
                status=DiagnosticStatus.FAIL,
                details="pyttsx3 is not installed",
            )
        backend = Pyttsx3Backend(settings)

    try:
        backend.open()
        voices = backend.list_voices()
        backend.close()
    except Exception as exc:  # noqa: BLE001 - probe should not raise
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details=f"Speech engine probe failed: {exc}",
        )

    if not voices:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.WARN,
            details="Speech engine reports no voices",
        )
    return DiagnosticResult(
        name=name,
        status=DiagnosticStatus.PASS,
        details=f"{len(voices)} voice(s) available",
    )
