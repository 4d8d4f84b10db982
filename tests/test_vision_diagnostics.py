"""Tests for detection model diagnostics."""

from __future__ import annotations

from diagnostics.models import DiagnosticStatus
from vision.detector import DetectorSettings
from vision.diagnostics import probe


def test_vision_probe_passes_with_model_file(tmp_path) -> None:
    (tmp_path / "models").mkdir()
    (tmp_path / "models" / "pesos.pt").write_bytes(b"")

    result = probe(
        settings=DetectorSettings(model_path="models/pesos.pt"),
        base_dir=tmp_path,
        ultralytics_available=True,
    )
    assert result.status is DiagnosticStatus.PASS


def test_vision_probe_fails_without_model_or_library(tmp_path) -> None:
    missing_model = probe(base_dir=tmp_path, ultralytics_available=True)
    missing_library = probe(base_dir=tmp_path, ultralytics_available=False)

    assert missing_model.status is DiagnosticStatus.FAIL
    assert missing_library.status is DiagnosticStatus.FAIL
    assert "ultralytics" in missing_library.details
