"""User mode toggles for illumination assist and accumulation."""

from __future__ import annotations

from enum import Enum

from core.logging import logger
from hardware.illumination import IlluminationControl
from interaction.speech import SpeechOutput, SpeechPolicy
from vision.accumulator import ValueAccumulator

FLASH_ON_MESSAGE = "Flash is On"
FLASH_OFF_MESSAGE = "Flash is Off"


class ToggleCommand(str, Enum):
    """Discrete user commands."""

    TOGGLE_ILLUMINATION = "toggle_illumination"
    TOGGLE_ACCUMULATION = "toggle_accumulation"


class ModeToggleController:
    """Owns the flash flag; the counter flag is the accumulator's own state."""

    def __init__(
        self,
        accumulator: ValueAccumulator,
        speech: SpeechOutput,
        illumination: IlluminationControl | None = None,
    ) -> None:
        self._accumulator = accumulator
        self._speech = speech
        self._illumination = illumination
        self._flash_on = False

    @property
    def flash_on(self) -> bool:
        return self._flash_on

    @property
    def counter_on(self) -> bool:
        return self._accumulator.active

    def set_illumination(self, illumination: IlluminationControl | None) -> None:
        self._illumination = illumination

    def handle(self, command: ToggleCommand) -> bool:
        if command is ToggleCommand.TOGGLE_ILLUMINATION:
            return self.toggle_illumination()
        if command is ToggleCommand.TOGGLE_ACCUMULATION:
            return self.toggle_accumulation()
        raise ValueError(f"Unsupported toggle command: {command!r}")

    def toggle_illumination(self) -> bool:
        """Flip the light; rejected without a working illumination control."""

        if self._illumination is None:
            logger.error("[TOGGLE] Illumination control unavailable; cannot toggle flash.")
            return False

        target = not self._flash_on
        try:
            ok = bool(self._illumination.set_enabled(target))
        except Exception:
            logger.exception("[TOGGLE] Illumination control raised while switching")
            ok = False
        if not ok:
            logger.error("[TOGGLE] Illumination control fault; flash left %s", self._state_word())
            return False

        self._flash_on = target
        message = FLASH_ON_MESSAGE if self._flash_on else FLASH_OFF_MESSAGE
        self._speech.speak(message, SpeechPolicy.INTERRUPT)
        return True

    def toggle_accumulation(self) -> bool:
        announcement = self._accumulator.set_active(not self._accumulator.active)
        self._speech.speak(announcement.text, announcement.policy)
        return True

    def _state_word(self) -> str:
        return "on" if self._flash_on else "off"
