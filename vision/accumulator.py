"""Label value extraction and running-total accumulation."""

from __future__ import annotations

from core.logging import logger
from interaction.speech import Announcement, SpeechPolicy

COUNTER_ON_MESSAGE = "Counter is On"
COUNTER_OFF_MESSAGE = "Counter is Off"

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1


def extract_value(label: str) -> int:
    """Return the integer in the first whitespace-delimited token, else 0."""

    tokens = (label or "").split()
    if not tokens:
        return 0
    token = tokens[0]
    digits = token[1:] if token[0] in "+-" else token
    # Plain ASCII digits only; int() would also take "1_0" and non-ASCII numerals.
    if not (digits.isascii() and digits.isdigit()):
        return 0
    value = int(token)
    if not _INT32_MIN <= value <= _INT32_MAX:
        return 0
    return value


def detection_phrase(label: str) -> str:
    return f"Detected {label} pesos"


class ValueAccumulator:
    """Running total of detected values while accumulation mode is active."""

    def __init__(self) -> None:
        self._total = 0
        self._active = False

    @property
    def total(self) -> int:
        return self._total

    @property
    def active(self) -> bool:
        return self._active

    def on_qualifying_detection(self, label: str) -> Announcement:
        """Return the announcement for a detection, adding to the total if active."""

        phrase = detection_phrase(label)
        if not self._active:
            return Announcement(text=phrase, policy=SpeechPolicy.APPEND)

        # Negative labels would break the non-negative total.
        value = max(0, extract_value(label))
        self._total += value
        logger.info("[COUNTER] +%d -> total=%d (%s)", value, self._total, label)
        return Announcement(
            text=(
                f'<speak>{phrase}<break time="1000ms"/>'
                f"Total: {self._total} pesos</speak>"
            ),
            policy=SpeechPolicy.INTERRUPT,
        )

    def set_active(self, active: bool) -> Announcement:
        """Switch accumulation mode; turning it off resets the total."""

        was_active = self._active
        self._active = bool(active)
        if not self._active:
            if was_active and self._total:
                logger.info("[COUNTER] Reset total from %d", self._total)
            self._total = 0
        message = COUNTER_ON_MESSAGE if self._active else COUNTER_OFF_MESSAGE
        return Announcement(text=message, policy=SpeechPolicy.INTERRUPT)
