"""Thin speech-engine HAL for the speech player and offline diagnostics."""

from __future__ import annotations

from dataclasses import dataclass, field
import threading
from typing import Protocol


class SpeechBackend(Protocol):
    """Minimal text-to-speech engine interface."""

    def open(self) -> None:
        """Initialize the engine on the calling (worker) thread."""

    def list_voices(self) -> list[str]:
        """Return available voice identifiers."""

    def say(self, text: str) -> None:
        """Speak ``text`` and block until it finishes or is stopped."""

    def stop(self) -> None:
        """Stop the utterance in progress, if any."""

    def close(self) -> None:
        """Release the engine."""


@dataclass
class FakeSpeechBackend:
    """Recording backend for tests and offline diagnostics."""

    voices: list[str] = field(default_factory=lambda: ["offline-voice"])
    can_open: bool = True
    fail_on: set[str] = field(default_factory=set)
    spoken: list[str] = field(default_factory=list)
    stop_calls: int = 0
    opened: bool = False
    closed: bool = False

    def __post_init__(self) -> None:
        self.spoken_event = threading.Event()

    def open(self) -> None:
        if not self.can_open:
            raise RuntimeError("Failed to open fake speech engine")
        self.opened = True

    def list_voices(self) -> list[str]:
        return list(self.voices)

    def say(self, text: str) -> None:
        if text in self.fail_on:
            raise RuntimeError(f"Fake speech failure for {text!r}")
        self.spoken.append(text)
        self.spoken_event.set()

    def stop(self) -> None:
        self.stop_calls += 1

    def close(self) -> None:
        self.closed = True
