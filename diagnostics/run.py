"""Command-line entry point for running diagnostics."""

from __future__ import annotations

import argparse
from pathlib import Path
import tempfile

import yaml

from config.diagnostics import probe as config_probe
from core.diagnostics import probe as core_probe
from core.logging import logger as LOGGER
from diagnostics.models import DiagnosticResult
from diagnostics.runner import exit_code, format_results, run_diagnostics
from hardware.diagnostics import HardwareProbeConfig, probe as hardware_probe
from interaction.diagnostics import probe as speech_probe
from interaction.speech_hal import FakeSpeechBackend
from vision.detector import DetectorSettings
from vision.diagnostics import probe as vision_probe

_OFFLINE_CONFIG = """\
notification:
  confidence_threshold: 0.90
  cooldown_ms: 2000
"""


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""

    parser = argparse.ArgumentParser(description="Run PesoBuddy diagnostics probes.")
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Run probes against a temporary offline directory and fake engines.",
    )
    parser.add_argument(
        "--base-dir",
        type=Path,
        default=None,
        help="Optional base directory holding config/ and the model file.",
    )
    return parser.parse_args(argv)


def run_offline() -> list[DiagnosticResult]:
    """Run every probe without touching real hardware or engines."""

    with tempfile.TemporaryDirectory() as tmp_dir:
        tmp_base = Path(tmp_dir)
        config_dir = tmp_base / "config"
        config_dir.mkdir(parents=True, exist_ok=True)
        (config_dir / "default.yaml").write_text(_OFFLINE_CONFIG, encoding="utf-8")
        model_dir = tmp_base / "models"
        model_dir.mkdir(parents=True, exist_ok=True)
        (model_dir / "offline.pt").write_bytes(b"")

        return run_diagnostics(
            [
                lambda: config_probe(base_dir=tmp_base),
                core_probe,
                lambda: hardware_probe(
                    config=HardwareProbeConfig(require_all=False),
                    available_modules={"numpy", "PIL", "smbus", "picamera2"},
                ),
                lambda: vision_probe(
                    settings=DetectorSettings(model_path="models/offline.pt"),
                    base_dir=tmp_base,
                    ultralytics_available=True,
                ),
                lambda: speech_probe(backend=FakeSpeechBackend()),
            ]
        )


def run_live(base_dir: Path | None = None) -> list[DiagnosticResult]:
    """Run every probe against the installed libraries and devices."""

    from config import ConfigController

    try:
        config = ConfigController.get_instance().get_config()
    except (OSError, yaml.YAMLError) as exc:
        LOGGER.warning("[DIAG] Config unavailable, using defaults: %s", exc)
        config = {}
    return run_diagnostics(
        [
            lambda: config_probe(base_dir=base_dir),
            core_probe,
            lambda: hardware_probe(config=HardwareProbeConfig(require_all=False)),
            lambda: vision_probe(
                settings=DetectorSettings.from_config(config),
                base_dir=base_dir,
            ),
            speech_probe,
        ]
    )


def main(argv: list[str] | None = None) -> int:
    """Run diagnostics and return an exit code."""

    args = parse_args(argv)
    if args.offline and args.base_dir is None:
        results = run_offline()
    else:
        results = run_live(args.base_dir)

    print(format_results(results))
    return exit_code(results)


if __name__ == "__main__":
    raise SystemExit(main())
