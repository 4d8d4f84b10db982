"""Tests for hardware diagnostics."""

from __future__ import annotations

from diagnostics.models import DiagnosticStatus
from hardware.diagnostics import HardwareProbeConfig, probe


def test_hardware_probe_warns_on_missing_camera() -> None:
    """Hardware probe should warn when only optional deps are missing."""

    result = probe(
        config=HardwareProbeConfig(require_all=False),
        available_modules={"numpy", "PIL"},
    )
    assert result.status is DiagnosticStatus.WARN
    assert "picamera2" in result.details


def test_hardware_probe_fails_when_required() -> None:
    """Hardware probe should fail when required deps are missing."""

    result = probe(
        config=HardwareProbeConfig(require_all=True),
        available_modules={"numpy"},
    )
    assert result.status is DiagnosticStatus.FAIL


def test_hardware_probe_requires_smbus_for_illumination() -> None:
    result = probe(
        config=HardwareProbeConfig(require_illumination=True),
        available_modules={"numpy", "PIL", "picamera2"},
    )
    assert result.status is DiagnosticStatus.FAIL
    assert "smbus" in result.details


def test_hardware_probe_passes_with_everything() -> None:
    result = probe(available_modules={"numpy", "PIL", "picamera2", "smbus"})
    assert result.status is DiagnosticStatus.PASS
