"""Debounced gate deciding when a detection is announced."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import math
from typing import Any, Mapping

from core.logging import logger
from core.timing import Clock, millis
from interaction.speech import SpeechOutput
from vision.accumulator import ValueAccumulator
from vision.detections import Detection


class GateState(str, Enum):
    """Announcement gate states."""

    ACTIVE = "active"
    COOLING = "cooling"


@dataclass(frozen=True)
class NotificationGateConfig:
    """Threshold and cool-down for the announcement gate."""

    confidence_threshold: float = 0.90
    cooldown_ms: int = 2000

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "NotificationGateConfig":
        section = config.get("notification") if isinstance(config, Mapping) else None
        if not isinstance(section, Mapping):
            return cls()
        return cls(
            confidence_threshold=float(section.get("confidence_threshold", 0.90)),
            cooldown_ms=max(0, int(section.get("cooldown_ms", 2000))),
        )


class NotificationGate:
    """Two-state machine allowing at most one announcement per cool-down window.

    ACTIVE accepts qualifying detections. A detection with confidence at or
    above the threshold is announced once and moves the gate to COOLING until
    ``now + cooldown_ms``; everything arriving while COOLING, and everything
    below the threshold, is discarded without side effects.
    """

    def __init__(
        self,
        accumulator: ValueAccumulator,
        speech: SpeechOutput,
        config: NotificationGateConfig | None = None,
        clock: Clock = millis,
    ) -> None:
        self.config = config or NotificationGateConfig()
        self._accumulator = accumulator
        self._speech = speech
        self._clock = clock
        self._state = GateState.ACTIVE
        self._resume_deadline_ms: int | None = None
        self._announcements = 0

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def resume_deadline_ms(self) -> int | None:
        return self._resume_deadline_ms

    @property
    def announcements(self) -> int:
        return self._announcements

    def is_paused(self, now_ms: int | None = None) -> bool:
        """Return whether the gate is cooling at ``now_ms``."""

        if self._resume_deadline_ms is None:
            return False
        now_ms = self._clock() if now_ms is None else now_ms
        return now_ms < self._resume_deadline_ms

    def on_detection(self, detection: Detection | None, now_ms: int | None = None) -> bool:
        """Offer the frame's selected detection; return True if it was announced."""

        if detection is None:
            return False
        now_ms = self._clock() if now_ms is None else now_ms
        self._expire(now_ms)

        if self._state is GateState.COOLING:
            return False

        confidence = float(detection.confidence)
        if math.isnan(confidence) or confidence < self.config.confidence_threshold:
            logger.debug(
                "[GATE] Detection confidence too low: %.2f (%s). Skipping speech.",
                confidence,
                detection.label,
            )
            return False

        announcement = self._accumulator.on_qualifying_detection(detection.label)
        self._speech.speak(announcement.text, announcement.policy)
        self._announcements += 1
        self._state = GateState.COOLING
        self._resume_deadline_ms = now_ms + self.config.cooldown_ms
        logger.info(
            "[GATE] active -> cooling (%s:%.2f, resume in %dms)",
            detection.label,
            confidence,
            self.config.cooldown_ms,
        )
        return True

    def on_deadline(self, now_ms: int | None = None) -> bool:
        """Timer callback; return True if the gate went back to ACTIVE."""

        now_ms = self._clock() if now_ms is None else now_ms
        return self._expire(now_ms)

    def time_until_resume_ms(self, now_ms: int | None = None) -> int | None:
        """Milliseconds left in the cool-down, or ``None`` while ACTIVE."""

        if self._resume_deadline_ms is None:
            return None
        now_ms = self._clock() if now_ms is None else now_ms
        return max(0, self._resume_deadline_ms - now_ms)

    def reset(self) -> None:
        self._state = GateState.ACTIVE
        self._resume_deadline_ms = None

    def _expire(self, now_ms: int) -> bool:
        if self._state is not GateState.COOLING or self._resume_deadline_ms is None:
            return False
        if now_ms < self._resume_deadline_ms:
            return False
        self.reset()
        logger.debug("[GATE] cooling -> active")
        return True
