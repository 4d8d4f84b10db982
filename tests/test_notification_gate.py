"""Tests for the announcement gate state machine."""

from __future__ import annotations

from interaction.speech import SpeechPolicy
from vision.accumulator import ValueAccumulator
from vision.detections import Detection
from vision.notification_gate import GateState, NotificationGate, NotificationGateConfig


class _RecordingSpeech:
    def __init__(self) -> None:
        self.calls: list[tuple[str, SpeechPolicy]] = []

    def speak(self, text: str, policy: SpeechPolicy = SpeechPolicy.APPEND) -> None:
        self.calls.append((text, policy))


class _FakeClock:
    def __init__(self, now_ms: int = 0) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms


def _detection(confidence: float, label: str = "5 pesos") -> Detection:
    return Detection(label=label, confidence=confidence, bbox=(0.0, 0.0, 0.5, 0.5))


def _gate(config: NotificationGateConfig | None = None) -> tuple[NotificationGate, _RecordingSpeech, _FakeClock]:
    speech = _RecordingSpeech()
    clock = _FakeClock(1000)
    gate = NotificationGate(ValueAccumulator(), speech, config, clock)
    return gate, speech, clock


def test_low_confidence_detection_changes_nothing() -> None:
    gate, speech, _ = _gate()

    for confidence in (0.0, 0.5, 0.8999):
        assert gate.on_detection(_detection(confidence)) is False

    assert speech.calls == []
    assert gate.state is GateState.ACTIVE
    assert gate.resume_deadline_ms is None


def test_threshold_is_inclusive() -> None:
    gate, speech, _ = _gate()

    assert gate.on_detection(_detection(0.90)) is True
    assert len(speech.calls) == 1


def test_qualifying_detection_announces_once_then_cools() -> None:
    gate, speech, clock = _gate()

    assert gate.on_detection(_detection(0.95)) is True
    assert gate.state is GateState.COOLING
    assert gate.resume_deadline_ms == 3000

    clock.now_ms = 2999
    assert gate.on_detection(_detection(0.99, "10 pesos")) is False
    assert gate.on_detection(_detection(1.0, "20 pesos")) is False

    assert speech.calls == [("Detected 5 pesos pesos", SpeechPolicy.APPEND)]
    assert gate.announcements == 1


def test_deadline_returns_gate_to_active() -> None:
    gate, speech, clock = _gate()
    gate.on_detection(_detection(0.95))

    clock.now_ms = 2500
    assert gate.on_deadline() is False
    assert gate.time_until_resume_ms() == 500
    assert gate.is_paused() is True

    clock.now_ms = 3000
    assert gate.on_deadline() is True
    assert gate.state is GateState.ACTIVE
    assert gate.time_until_resume_ms() is None
    assert speech.calls == [("Detected 5 pesos pesos", SpeechPolicy.APPEND)]

    assert gate.on_detection(_detection(0.97, "20 pesos")) is True
    assert speech.calls[-1] == ("Detected 20 pesos pesos", SpeechPolicy.APPEND)


def test_late_detection_expires_cooldown_lazily() -> None:
    gate, speech, clock = _gate()
    gate.on_detection(_detection(0.95))

    clock.now_ms = 10_000
    assert gate.on_detection(_detection(0.95, "1 peso")) is True
    assert gate.resume_deadline_ms == 12_000
    assert len(speech.calls) == 2


def test_missing_detection_is_ignored() -> None:
    gate, speech, _ = _gate()

    assert gate.on_detection(None) is False
    assert speech.calls == []


def test_config_overrides_threshold_and_cooldown() -> None:
    gate, speech, clock = _gate(NotificationGateConfig(confidence_threshold=0.5, cooldown_ms=100))

    assert gate.on_detection(_detection(0.6)) is True
    assert gate.resume_deadline_ms == clock.now_ms + 100
    assert len(speech.calls) == 1


def test_config_from_mapping_uses_defaults_when_missing() -> None:
    assert NotificationGateConfig.from_config({}) == NotificationGateConfig()

    loaded = NotificationGateConfig.from_config(
        {"notification": {"confidence_threshold": 0.75, "cooldown_ms": 1500}}
    )

    assert loaded.confidence_threshold == 0.75
    assert loaded.cooldown_ms == 1500


def test_active_accumulator_announces_with_interrupt() -> None:
    speech = _RecordingSpeech()
    accumulator = ValueAccumulator()
    accumulator.set_active(True)
    gate = NotificationGate(accumulator, speech, clock=_FakeClock(0))

    gate.on_detection(_detection(0.95, "10 pesos"))

    text, policy = speech.calls[0]
    assert policy is SpeechPolicy.INTERRUPT
    assert text.endswith("Total: 10 pesos</speak>")
    assert accumulator.total == 10


def test_cooling_discard_does_not_touch_accumulator() -> None:
    speech = _RecordingSpeech()
    accumulator = ValueAccumulator()
    accumulator.set_active(True)
    clock = _FakeClock(0)
    gate = NotificationGate(accumulator, speech, clock=clock)

    gate.on_detection(_detection(0.95, "10 pesos"))
    clock.now_ms = 1000
    gate.on_detection(_detection(0.95, "20 pesos"))

    assert accumulator.total == 10


def test_nan_confidence_never_qualifies() -> None:
    gate, speech, _ = _gate()

    assert gate.on_detection(_detection(float("nan"))) is False

    assert speech.calls == []
    assert gate.state is GateState.ACTIVE
    assert gate.resume_deadline_ms is None
