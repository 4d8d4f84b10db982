"""Single-threaded actor owning notification, accumulator and toggle state."""

from __future__ import annotations

import threading
from typing import Any

from core.event_queue import PipelineEvent, PipelineEventKind, PipelineEventQueue
from core.logging import logger
from core.timing import Clock, millis
from hardware.illumination import IlluminationControl
from interaction.speech import SpeechOutput
from interaction.toggles import ModeToggleController, ToggleCommand
from vision.accumulator import ValueAccumulator
from vision.analyzer import AnalysisResult
from vision.notification_gate import NotificationGate, NotificationGateConfig

_IDLE_WAIT_S = 0.25


class DetectionPipeline:
    """Routes analysis results, user commands and cool-down expiry through one queue.

    Producers on any thread call :meth:`on_analysis_result` and
    :meth:`submit_command`; only the actor thread (or a test calling
    :meth:`process_pending`) touches the gate, accumulator and toggles.
    """

    def __init__(
        self,
        speech: SpeechOutput,
        illumination: IlluminationControl | None = None,
        gate_config: NotificationGateConfig | None = None,
        clock: Clock = millis,
        event_queue: PipelineEventQueue | None = None,
    ) -> None:
        self._clock = clock
        self.accumulator = ValueAccumulator()
        self.gate = NotificationGate(self.accumulator, speech, gate_config, clock)
        self.toggles = ModeToggleController(self.accumulator, speech, illumination)
        self._queue = event_queue or PipelineEventQueue()

        self._worker_thread: threading.Thread | None = None
        self._worker_stop = threading.Event()
        self._lock = threading.Lock()
        self._detections_received = 0
        self._commands_handled = 0
        self._commands_rejected = 0
        self._last_inference_ms = -1
        self._status: dict[str, Any] = {}
        self._publish_status()

    def on_analysis_result(self, result: AnalysisResult) -> None:
        """Queue one analyzed frame for the gate (thread-safe)."""

        self._queue.publish(PipelineEvent(kind=PipelineEventKind.DETECTION, payload=result))

    def submit_command(self, command: ToggleCommand) -> None:
        """Queue a user toggle command (thread-safe)."""

        self._queue.publish(PipelineEvent(kind=PipelineEventKind.COMMAND, payload=command))

    def start(self) -> None:
        if self._worker_thread is not None and self._worker_thread.is_alive():
            return
        self._worker_stop.clear()
        self._worker_thread = threading.Thread(
            target=self._worker_loop,
            name="detection-pipeline",
            daemon=True,
        )
        self._worker_thread.start()
        logger.info("[PIPELINE] Started")

    def stop(self, timeout_s: float = 2.0) -> None:
        worker = self._worker_thread
        if worker is None:
            return
        self._worker_stop.set()
        self._queue.publish(PipelineEvent(kind=PipelineEventKind.STOP))
        worker.join(timeout=timeout_s)
        if worker.is_alive():
            logger.warning("[PIPELINE] Worker did not stop within timeout")
            return
        self._worker_thread = None
        logger.info("[PIPELINE] Stopped")

    def process_pending(self) -> int:
        """Drain queued events on the calling thread; return how many ran.

        Only for use while the actor thread is not running.
        """

        handled = 0
        self.gate.on_deadline(self._clock())
        for event in self._queue.drain():
            self.dispatch(event)
            handled += 1
        return handled

    def dispatch(self, event: PipelineEvent) -> None:
        """Apply one event to the owned state."""

        if event.kind is PipelineEventKind.DETECTION:
            self._handle_detection(event.payload)
        elif event.kind is PipelineEventKind.COMMAND:
            self._handle_command(event.payload)
        elif event.kind is PipelineEventKind.STOP:
            self._worker_stop.set()
        self._publish_status()

    def get_runtime_status(self) -> dict[str, Any]:
        worker = self._worker_thread
        with self._lock:
            status = dict(self._status)
        status["loop_alive"] = int(bool(worker and worker.is_alive()))
        return status

    def _handle_detection(self, result: AnalysisResult) -> None:
        self._detections_received += 1
        self._last_inference_ms = result.event.inference_ms
        self.gate.on_detection(result.selected, self._clock())

    def _handle_command(self, command: ToggleCommand) -> None:
        try:
            accepted = self.toggles.handle(command)
        except ValueError:
            logger.exception("[PIPELINE] Unknown command %r", command)
            accepted = False
        if accepted:
            self._commands_handled += 1
        else:
            self._commands_rejected += 1

    def _worker_loop(self) -> None:
        while not self._worker_stop.is_set():
            remaining_ms = self.gate.time_until_resume_ms(self._clock())
            timeout_s = _IDLE_WAIT_S if remaining_ms is None else remaining_ms / 1000.0
            event = self._queue.get_next(timeout=timeout_s)
            try:
                if self.gate.on_deadline(self._clock()):
                    self._publish_status()
                if event is not None:
                    self.dispatch(event)
            except Exception:
                logger.exception("[PIPELINE] Failed to handle %s event", event.kind.value if event else "timer")

    def _publish_status(self) -> None:
        status = {
            "gate_state": self.gate.state.value,
            "resume_deadline_ms": self.gate.resume_deadline_ms,
            "announcements": self.gate.announcements,
            "detections_received": self._detections_received,
            "commands_handled": self._commands_handled,
            "commands_rejected": self._commands_rejected,
            "last_inference_ms": self._last_inference_ms,
            "total": self.accumulator.total,
            "counter_on": int(self.toggles.counter_on),
            "flash_on": int(self.toggles.flash_on),
            "queue_dropped": self._queue.dropped,
        }
        with self._lock:
            self._status = status
