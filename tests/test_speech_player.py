"""Tests for speech queueing policies."""

from __future__ import annotations

import queue
import threading

from interaction.speech import SpeechPlayer, SpeechPolicy, SpeechSettings, strip_markup
from interaction.speech_hal import FakeSpeechBackend


class _GatedBackend(FakeSpeechBackend):
    """Fake backend whose first utterance blocks until released."""

    def __post_init__(self) -> None:
        super().__post_init__()
        self.speaking = threading.Event()
        self.release = threading.Event()

    def say(self, text: str) -> None:
        if not self.spoken:
            self.speaking.set()
            self.release.wait(timeout=2.0)
        super().say(text)


def _wait_for(backend: FakeSpeechBackend, count: int) -> None:
    for _ in range(200):
        if len(backend.spoken) >= count:
            return
        backend.spoken_event.wait(timeout=0.01)
        backend.spoken_event.clear()


def test_strip_markup_renders_break_as_pause() -> None:
    text = '<speak>Detected 10 pesos pesos<break time="1000ms"/>Total: 10 pesos</speak>'

    assert strip_markup(text) == "Detected 10 pesos pesos, Total: 10 pesos"
    assert strip_markup("Counter is On") == "Counter is On"


def test_append_speaks_in_order() -> None:
    backend = FakeSpeechBackend()
    player = SpeechPlayer(backend=backend)
    try:
        assert player.wait_ready(timeout=2.0) is True
        player.speak("Detected 5 pesos pesos")
        player.speak("Detected 1 peso pesos", SpeechPolicy.APPEND)
        _wait_for(backend, 2)
    finally:
        player.close()

    assert backend.spoken == ["Detected 5 pesos pesos", "Detected 1 peso pesos"]
    assert backend.closed is True


def test_interrupt_flushes_queue_and_stops_current() -> None:
    backend = _GatedBackend()
    player = SpeechPlayer(backend=backend)
    try:
        player.wait_ready(timeout=2.0)
        player.speak("first")
        assert backend.speaking.wait(timeout=2.0)
        player.speak("queued one")
        player.speak("queued two")
        player.speak("Counter is On", SpeechPolicy.INTERRUPT)
        backend.release.set()
        _wait_for(backend, 2)
    finally:
        player.close()

    assert backend.spoken == ["first", "Counter is On"]
    assert backend.stop_calls >= 1


def test_markup_is_kept_when_stripping_disabled() -> None:
    backend = FakeSpeechBackend()
    player = SpeechPlayer(backend=backend, settings=SpeechSettings(strip_markup=False))
    try:
        player.wait_ready(timeout=2.0)
        player.speak("<speak>Total: 5 pesos</speak>")
        _wait_for(backend, 1)
    finally:
        player.close()

    assert backend.spoken == ["<speak>Total: 5 pesos</speak>"]


def test_engine_open_failure_disables_output() -> None:
    backend = FakeSpeechBackend(can_open=False)
    player = SpeechPlayer(backend=backend)
    try:
        assert player.wait_ready(timeout=2.0) is False
        player.speak("Detected 5 pesos pesos")
        assert player.get_status()["available"] == 0
    finally:
        player.close()

    assert backend.spoken == []


def test_failed_utterance_does_not_stop_worker() -> None:
    backend = FakeSpeechBackend(fail_on={"broken"})
    player = SpeechPlayer(backend=backend)
    try:
        player.wait_ready(timeout=2.0)
        player.speak("broken")
        player.speak("Detected 20 pesos pesos")
        _wait_for(backend, 1)
    finally:
        player.close()

    assert backend.spoken == ["Detected 20 pesos pesos"]
    assert player.get_status()["failures"] == 1


def test_settings_from_config_clamps_volume() -> None:
    settings = SpeechSettings.from_config({"speech": {"rate_wpm": 120, "volume": 3.0, "voice": "en"}})

    assert settings.rate_wpm == 120
    assert settings.volume == 1.0
    assert settings.voice == "en"


class _PausingQueue(queue.Queue):
    """Queue that holds the worker right after it dequeues ``hold_text``."""

    def __init__(self, hold_text: str) -> None:
        super().__init__(maxsize=16)
        self.hold_text = hold_text
        self.dequeued = threading.Event()
        self.release = threading.Event()

    def get(self, block: bool = True, timeout: float | None = None):
        item = super().get(block, timeout)
        if item is not None and item[1] == self.hold_text:
            self.dequeued.set()
            self.release.wait(timeout=2.0)
        return item


def test_interrupt_drops_utterance_already_taken_by_worker() -> None:
    backend = FakeSpeechBackend()
    player = SpeechPlayer(backend=backend)
    pausing = _PausingQueue("Total: 10 pesos")
    try:
        player.wait_ready(timeout=2.0)
        player._q = pausing
        player.speak("Total: 10 pesos")
        assert pausing.dequeued.wait(timeout=2.0)
        player.speak("Total: 30 pesos", SpeechPolicy.INTERRUPT)
        pausing.release.set()
        _wait_for(backend, 1)
    finally:
        player.close()

    assert backend.spoken == ["Total: 30 pesos"]
