"""Command-line entry point for the PesoBuddy runtime."""

from __future__ import annotations

import argparse
from pathlib import Path
import sys
import threading
from typing import Any, Mapping

from config import ConfigController
from core.logging import enable_file_logging, logger, set_level
from core.pipeline import DetectionPipeline
from hardware.camera_controller import CameraController, CameraSettings
from hardware.illumination import IlluminationSettings, create_illumination
from interaction.commands import ConsoleCommandReader
from interaction.speech import SpeechPlayer, SpeechPolicy, SpeechSettings
from services.health_probes import probe_analyzer, probe_pipeline, probe_speech, summarize
from vision.analyzer import FrameAnalyzer
from vision.detector import DetectorSettings, YoloDetector
from vision.notification_gate import NotificationGateConfig

DEFAULT_GREETING = "PesoBuddy is ready to detect. Please place the item in front of the camera."


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Raw command-line arguments.

    Returns:
        Parsed arguments namespace.
    """

    parser = argparse.ArgumentParser(
        description="Detect peso bills and coins on camera and announce them by speech."
    )
    parser.add_argument(
        "--diagnostics",
        action="store_true",
        help="Run diagnostics probes and exit.",
    )
    parser.add_argument(
        "--no-camera",
        action="store_true",
        help="Run without the camera (commands and speech only).",
    )
    parser.add_argument(
        "--no-console",
        action="store_true",
        help="Do not read toggle commands from stdin; stop with Ctrl-C.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Override the configured logging level (DEBUG, INFO, ...).",
    )
    return parser.parse_args(argv)


def build_runtime_status(
    analyzer_status: Mapping[str, Any],
    pipeline_status: Mapping[str, Any],
    speech_status: Mapping[str, Any],
    camera_alive: bool = False,
) -> dict[str, Any]:
    """Merge component status into one mapping with an overall health verdict.

    Analyzer and speech keys are prefixed so they never shadow pipeline keys.
    """

    status: dict[str, Any] = dict(pipeline_status)
    status.update({f"analyzer_{key}": value for key, value in analyzer_status.items()})
    status.update({f"speech_{key}": value for key, value in speech_status.items()})
    status["camera_alive"] = int(camera_alive)

    health = summarize(
        [
            probe_pipeline(pipeline_status),
            probe_analyzer(analyzer_status),
            probe_speech(speech_status),
        ]
    )
    status["health"] = health.status.value
    status["health_summary"] = health.summary
    return status


def run_diagnostics_and_report() -> int:
    from diagnostics.run import run_live
    from diagnostics.runner import exit_code, format_results

    results = run_live()
    print(format_results(results))
    return exit_code(results)


def main(argv: list[str] | None = None) -> int:
    """Application entry point.

    Args:
        argv: Optional list of command-line arguments.

    Returns:
        Process exit code.
    """

    if argv is None:
        argv = sys.argv[1:]

    args = parse_args(argv)
    if args.diagnostics:
        return run_diagnostics_and_report()

    config_controller = ConfigController.get_instance()
    config = config_controller.get_config()
    set_level(args.log_level or config.get("logging_level", "INFO"))
    if config.get("file_logging_enabled", False):
        log_file_path = Path(config.get("log_file_path", "log/pesobuddy.log"))
        enable_file_logging(log_file_path)
        logger.info("Writing logs to %s", log_file_path)

    logger.info("Starting speech output...")
    speech = SpeechPlayer(settings=SpeechSettings.from_config(config))
    if speech.wait_ready(timeout=5.0):
        speech.speak(config.get("greeting_message") or DEFAULT_GREETING, SpeechPolicy.INTERRUPT)
    else:
        logger.warning("Speech output unavailable; announcements will only be logged")

    illumination = create_illumination(IlluminationSettings.from_config(config))

    try:
        logger.info("Loading detection model...")
        detector = YoloDetector(DetectorSettings.from_config(config))
    except Exception as exc:
        logger.exception("Detector startup failed: %s", exc)
        speech.close()
        return 1

    pipeline = DetectionPipeline(
        speech,
        illumination=illumination,
        gate_config=NotificationGateConfig.from_config(config),
    )
    analyzer = FrameAnalyzer(detector, on_result=pipeline.on_analysis_result)
    pipeline.start()
    analyzer.start()

    camera: CameraController | None = None
    camera_settings = CameraSettings.from_config(config)
    if args.no_camera or not camera_settings.enabled:
        logger.info("Camera disabled; running without frames")
    else:
        try:
            logger.info("Starting camera controller...")
            camera = CameraController(camera_settings, on_frame=analyzer.submit)
            camera.start()
        except Exception as exc:
            logger.warning("Camera controller unavailable: %s", exc)
            camera = None

    def runtime_status() -> dict[str, Any]:
        return build_runtime_status(
            analyzer.get_runtime_status(),
            pipeline.get_runtime_status(),
            speech.get_status(),
            camera_alive=bool(camera and camera.is_capture_alive()),
        )

    stop_requested = threading.Event()
    reader: ConsoleCommandReader | None = None
    if not args.no_console:
        reader = ConsoleCommandReader(pipeline.submit_command, status=runtime_status)
        stop_requested = reader.quit_requested
        reader.start()

    try:
        while not stop_requested.wait(timeout=0.5):
            pass
        logger.info("Quit requested")
    except KeyboardInterrupt:
        logger.info("Program terminated by user")
    except Exception as exc:
        logger.exception("An unexpected error occurred: %s", exc)
    finally:
        final_status = runtime_status()
        if camera:
            camera.stop()
        analyzer.stop()
        pipeline.stop()
        speech.close()
        if illumination is not None and pipeline.toggles.flash_on:
            illumination.set_enabled(False)
        logger.info("Final status: %s", final_status)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
