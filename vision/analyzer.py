"""Frame analysis worker: normalize, detect and select one frame at a time."""

from __future__ import annotations

from dataclasses import dataclass
import threading
import time
from typing import Callable

from core.logging import logger
from core.timing import Clock, millis
from vision.detections import Detection, DetectionEvent, Frame
from vision.detector import Detector
from vision.normalizer import FrameNormalizer
from vision.selector import select_detection


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of one analysis cycle."""

    event: DetectionEvent
    selected: Detection | None


ResultCallback = Callable[[AnalysisResult], None]


class FrameAnalyzer:
    """Single background worker with a keep-only-latest frame mailbox.

    A frame submitted while another one is still waiting replaces it; the
    replaced frame is counted as dropped and never analyzed.
    """

    def __init__(
        self,
        detector: Detector,
        on_result: ResultCallback | None = None,
        normalizer: FrameNormalizer | None = None,
        clock: Clock = millis,
    ) -> None:
        self._detector = detector
        self._on_result = on_result
        self._normalizer = normalizer or FrameNormalizer()
        self._clock = clock

        self._lock = threading.Lock()
        self._cond = threading.Condition(self._lock)
        self._pending: Frame | None = None
        self._worker_thread: threading.Thread | None = None
        self._worker_stop = threading.Event()
        self._frame_counter = 0

        self._submitted = 0
        self._analyzed = 0
        self._dropped = 0
        self._skipped = 0
        self._detector_failures = 0
        self._last_inference_ms = -1

    def set_result_callback(self, on_result: ResultCallback | None) -> None:
        self._on_result = on_result

    def start(self) -> None:
        """Start the analysis worker (safe to call repeatedly)."""

        with self._lock:
            if self._worker_thread is not None and self._worker_thread.is_alive():
                return
            self._worker_stop.clear()
            self._worker_thread = threading.Thread(
                target=self._worker_loop,
                name="frame-analyzer",
                daemon=True,
            )
            self._worker_thread.start()

    def stop(self, timeout_s: float = 2.0) -> None:
        """Stop the worker; a frame still waiting is discarded."""

        with self._cond:
            worker = self._worker_thread
            self._worker_stop.set()
            self._pending = None
            self._cond.notify_all()
        if worker is not None:
            worker.join(timeout=timeout_s)
            if worker.is_alive():
                logger.warning("[ANALYZER] Worker did not stop within timeout")
                return
        with self._lock:
            if self._worker_thread is worker:
                self._worker_thread = None

    def submit(self, frame: Frame) -> None:
        """Hand a frame to the worker, replacing any frame not yet picked up."""

        with self._cond:
            self._submitted += 1
            if self._pending is not None:
                self._dropped += 1
            self._pending = frame
            self._cond.notify()

    def analyze(self, frame: Frame) -> AnalysisResult | None:
        """Run one synchronous analysis cycle; ``None`` when the frame is skipped."""

        normalized = self._normalizer.normalize(frame)
        if normalized is None:
            with self._lock:
                self._skipped += 1
            return None

        started = time.monotonic()
        try:
            detections = list(self._detector.infer(normalized))
        except Exception:
            logger.exception("[ANALYZER] Detector failed on frame id=%s", normalized.frame_id)
            detections = []
            with self._lock:
                self._detector_failures += 1
        inference_ms = int((time.monotonic() - started) * 1000)

        with self._lock:
            self._analyzed += 1
            self._last_inference_ms = inference_ms
            if normalized.frame_id is None:
                self._frame_counter += 1
                frame_id = self._frame_counter
            else:
                frame_id = normalized.frame_id

        event = DetectionEvent(
            timestamp_ms=normalized.timestamp_ms or self._clock(),
            detections=detections,
            frame_id=frame_id,
            inference_ms=inference_ms,
        )
        logger.debug(
            "[ANALYZER] frame=%s detections=%d inference=%dms",
            frame_id,
            len(detections),
            inference_ms,
        )
        return AnalysisResult(event=event, selected=select_detection(detections))

    def get_runtime_status(self) -> dict[str, int]:
        with self._lock:
            worker_alive = bool(self._worker_thread and self._worker_thread.is_alive())
            return {
                "loop_alive": int(worker_alive),
                "frames_submitted": self._submitted,
                "frames_analyzed": self._analyzed,
                "frames_dropped": self._dropped,
                "frames_skipped": self._skipped,
                "detector_failures": self._detector_failures,
                "last_inference_ms": self._last_inference_ms,
            }

    def _next_frame(self) -> Frame | None:
        with self._cond:
            while self._pending is None and not self._worker_stop.is_set():
                self._cond.wait(timeout=0.1)
            if self._worker_stop.is_set():
                return None
            frame = self._pending
            self._pending = None
            return frame

    def _worker_loop(self) -> None:
        while not self._worker_stop.is_set():
            frame = self._next_frame()
            if frame is None:
                continue
            try:
                result = self.analyze(frame)
            except Exception:
                logger.exception("[ANALYZER] Analysis cycle failed")
                continue
            if result is None or self._on_result is None:
                continue
            try:
                self._on_result(result)
            except Exception:
                logger.exception("[ANALYZER] Result callback failed")
