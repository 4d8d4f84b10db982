"""Diagnostics routines for the detection model."""

from __future__ import annotations

import importlib.util
from pathlib import Path

from diagnostics.models import DiagnosticResult, DiagnosticStatus
from vision.detector import DetectorSettings


def probe(
    settings: DetectorSettings | None = None,
    base_dir: Path | None = None,
    ultralytics_available: bool | None = None,
) -> DiagnosticResult:
    """Check that ultralytics is importable and the model file exists."""

    name = "vision"
    settings = settings or DetectorSettings()
    if ultralytics_available is None:
        ultralytics_available = importlib.util.find_spec("ultralytics") is not None
    if not ultralytics_available:
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details="ultralytics is not installed",
        )

    model_path = Path(settings.model_path)
    if base_dir is not None and not model_path.is_absolute():
        model_path = base_dir / model_path
    if not model_path.exists():
        return DiagnosticResult(
            name=name,
            status=DiagnosticStatus.FAIL,
            details=f"Detection model missing at {model_path}",
        )
    return DiagnosticResult(
        name=name,
        status=DiagnosticStatus.PASS,
        details=f"Model {model_path.name} (min_confidence={settings.min_confidence:.2f})",
    )
