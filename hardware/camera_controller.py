"""Camera controller delivering frames to the analysis worker."""

from __future__ import annotations

from dataclasses import dataclass
import importlib
import importlib.util
import threading
import time
from typing import Any, Callable, Mapping

from core.logging import logger
from core.timing import millis
from vision.detections import Frame

FrameCallback = Callable[[Frame], None]


def _require_camera_deps() -> Any:
    if importlib.util.find_spec("picamera2") is None:
        raise RuntimeError("picamera2 is required for CameraController")
    if importlib.util.find_spec("numpy") is None:
        raise RuntimeError("numpy is required for CameraController")

    picamera2 = importlib.import_module("picamera2")
    return picamera2.Picamera2


@dataclass(frozen=True)
class CameraSettings:
    """Capture geometry and orientation of the camera."""

    enabled: bool = True
    width: int = 640
    height: int = 480
    rotation_degrees: int = 0
    front_facing: bool = False
    fps_cap: int = 10

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "CameraSettings":
        section = config.get("camera") if isinstance(config, Mapping) else None
        if not isinstance(section, Mapping):
            return cls()
        return cls(
            enabled=bool(section.get("enabled", True)),
            width=int(section.get("width", 640)),
            height=int(section.get("height", 480)),
            rotation_degrees=int(section.get("rotation_degrees", 0)),
            front_facing=bool(section.get("front_facing", False)),
            fps_cap=max(1, int(section.get("fps_cap", 10))),
        )


class CameraController:
    """Background capture loop handing every frame to ``on_frame``.

    Backpressure is the consumer's job: the analyzer keeps only the latest
    frame, so the loop never blocks on analysis.
    """

    def __init__(
        self,
        settings: CameraSettings,
        on_frame: FrameCallback,
        camera: Any | None = None,
    ) -> None:
        self.settings = settings
        self._on_frame = on_frame
        if camera is None:
            Picamera2 = _require_camera_deps()
            camera = Picamera2()
            configuration = camera.create_preview_configuration(
                main={"size": (settings.width, settings.height), "format": "RGB888"},
                buffer_count=2,
            )
            camera.configure(configuration)
        self.picam2 = camera
        self._started = False
        self._capture_thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._frame_id = 0
        self._capture_errors = 0

    def start(self) -> None:
        if self._capture_thread is not None and self._capture_thread.is_alive():
            return
        if not self._started:
            self.picam2.start()
            self._started = True
        self._stop_event.clear()
        self._capture_thread = threading.Thread(
            target=self._capture_loop,
            name="camera-capture",
            daemon=True,
        )
        self._capture_thread.start()
        logger.info(
            "[CAMERA] Capture started (%sx%s rotation=%s front=%s fps_cap=%s)",
            self.settings.width,
            self.settings.height,
            self.settings.rotation_degrees,
            self.settings.front_facing,
            self.settings.fps_cap,
        )

    def stop(self) -> None:
        if self._capture_thread is not None:
            self._stop_event.set()
            self._capture_thread.join(timeout=2.0)
            if self._capture_thread.is_alive():
                logger.warning("[CAMERA] Capture loop did not stop within timeout")
            else:
                logger.info("[CAMERA] Capture loop stopped at frame: %s", self._frame_id)
            self._capture_thread = None
        if self._started:
            for method_name in ("stop", "close"):
                method = getattr(self.picam2, method_name, None)
                if callable(method):
                    try:
                        method()
                    except Exception:
                        logger.exception("[CAMERA] Failed to %s camera", method_name)
            self._started = False

    def is_capture_alive(self) -> bool:
        return self._capture_thread is not None and self._capture_thread.is_alive()

    def capture_frame(self) -> Frame:
        """Capture one frame from the main stream."""

        pixels = self.picam2.capture_array("main")
        height, width = pixels.shape[:2]
        self._frame_id += 1
        return Frame(
            buffer=pixels,
            width=int(width),
            height=int(height),
            rotation_degrees=self.settings.rotation_degrees,
            front_facing=self.settings.front_facing,
            frame_id=self._frame_id,
            timestamp_ms=millis(),
        )

    def _capture_loop(self) -> None:
        period_s = 1.0 / max(1, self.settings.fps_cap)
        while not self._stop_event.is_set():
            loop_start = time.monotonic()
            try:
                frame = self.capture_frame()
                self._on_frame(frame)
            except Exception as exc:
                self._capture_errors += 1
                logger.exception("[CAMERA] Error in capture loop (retrying): %s", exc)
                self._stop_event.wait(0.5)
                continue
            elapsed_s = time.monotonic() - loop_start
            self._stop_event.wait(max(0.0, period_s - elapsed_s))
