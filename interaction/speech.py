"""Speech output with interrupt and append queueing policies."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import importlib
import importlib.util
import queue
import re
import threading
from typing import Any, Mapping, Protocol

from core.logging import log_announcement, logger
from interaction.speech_hal import SpeechBackend


class SpeechPolicy(str, Enum):
    """How a new utterance relates to speech already queued or playing."""

    INTERRUPT = "interrupt"
    APPEND = "append"


@dataclass(frozen=True)
class Announcement:
    """Text to speak together with its queueing policy."""

    text: str
    policy: SpeechPolicy = SpeechPolicy.APPEND


class SpeechOutput(Protocol):
    """Fire-and-forget speech sink used by the pipeline."""

    def speak(self, text: str, policy: SpeechPolicy = SpeechPolicy.APPEND) -> None:
        """Queue ``text`` according to ``policy`` without blocking."""


@dataclass(frozen=True)
class SpeechSettings:
    """Speech engine settings."""

    rate_wpm: int = 165
    volume: float = 1.0
    voice: str | None = None
    strip_markup: bool = True
    max_queue: int = 16

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "SpeechSettings":
        speech_cfg = config.get("speech") if isinstance(config, Mapping) else None
        if not isinstance(speech_cfg, Mapping):
            return cls()
        voice = speech_cfg.get("voice")
        return cls(
            rate_wpm=int(speech_cfg.get("rate_wpm", 165)),
            volume=max(0.0, min(1.0, float(speech_cfg.get("volume", 1.0)))),
            voice=str(voice) if voice else None,
            strip_markup=bool(speech_cfg.get("strip_markup", True)),
            max_queue=max(1, int(speech_cfg.get("max_queue", 16))),
        )


_BREAK_TAG = re.compile(r"<break\b[^>]*/?>", re.IGNORECASE)
_ANY_TAG = re.compile(r"<[^>]+>")
_SPACES = re.compile(r"\s+")


def strip_markup(text: str) -> str:
    """Render prosody markup as plain text, turning pauses into commas."""

    plain = _BREAK_TAG.sub(", ", text)
    plain = _ANY_TAG.sub("", plain)
    return _SPACES.sub(" ", plain).strip()


class Pyttsx3Backend:
    """pyttsx3 engine wrapper; the engine is created on the worker thread."""

    def __init__(self, settings: SpeechSettings | None = None) -> None:
        if importlib.util.find_spec("pyttsx3") is None:
            raise RuntimeError("pyttsx3 is required for Pyttsx3Backend")
        self._pyttsx3 = importlib.import_module("pyttsx3")
        self._settings = settings or SpeechSettings()
        self._engine: Any = None
        self._lock = threading.Lock()

    def open(self) -> None:
        engine = self._pyttsx3.init()
        engine.setProperty("rate", int(self._settings.rate_wpm))
        engine.setProperty("volume", float(self._settings.volume))
        if self._settings.voice:
            voice_id = self._find_voice(engine, self._settings.voice)
            if voice_id is None:
                logger.error("[SPEECH] Voice not supported: %s", self._settings.voice)
            else:
                engine.setProperty("voice", voice_id)
        with self._lock:
            self._engine = engine

    def list_voices(self) -> list[str]:
        engine = self._engine or self._pyttsx3.init()
        return [str(getattr(voice, "id", voice)) for voice in engine.getProperty("voices") or []]

    def say(self, text: str) -> None:
        with self._lock:
            engine = self._engine
        if engine is None:
            raise RuntimeError("Speech engine not opened")
        engine.say(text)
        engine.runAndWait()

    def stop(self) -> None:
        with self._lock:
            engine = self._engine
        if engine is not None:
            engine.stop()

    def close(self) -> None:
        self.stop()
        with self._lock:
            self._engine = None

    def _find_voice(self, engine: Any, wanted: str) -> str | None:
        wanted_lower = wanted.lower()
        for voice in engine.getProperty("voices") or []:
            voice_id = str(getattr(voice, "id", ""))
            name = str(getattr(voice, "name", ""))
            languages = [str(item) for item in getattr(voice, "languages", []) or []]
            if wanted_lower in (voice_id.lower(), name.lower()):
                return voice_id
            if any(wanted_lower in language.lower() for language in languages):
                return voice_id
        return None


class SpeechPlayer:
    """Speech playback controller with a background worker."""

    def __init__(
        self,
        backend: SpeechBackend | None = None,
        settings: SpeechSettings | None = None,
    ) -> None:
        self.settings = settings or SpeechSettings()
        self._backend: SpeechBackend = backend or Pyttsx3Backend(self.settings)
        self._q: queue.Queue[tuple[int, str] | None] = queue.Queue(maxsize=self.settings.max_queue)
        self._stop = threading.Event()
        self._ready = threading.Event()
        self._lock = threading.Lock()
        self._available = False
        self._spoken = 0
        self._failures = 0
        self._generation = 0
        self._t = threading.Thread(target=self._worker, name="speech-worker", daemon=True)
        self._t.start()

    @property
    def available(self) -> bool:
        with self._lock:
            return self._available

    def wait_ready(self, timeout: float | None = None) -> bool:
        """Block until the engine finished opening; return its availability."""

        self._ready.wait(timeout=timeout)
        return self.available

    def speak(self, text: str, policy: SpeechPolicy = SpeechPolicy.APPEND) -> None:
        """Queue text for playback; INTERRUPT drops queued and current speech."""

        if not text or self._stop.is_set():
            return
        rendered = strip_markup(text) if self.settings.strip_markup else text
        log_announcement(rendered, policy.value)
        if self._ready.is_set() and not self.available:
            logger.warning("[SPEECH] Speech engine unavailable; not spoken")
            return

        if policy is SpeechPolicy.INTERRUPT:
            # Anything queued or already dequeued before this point is stale.
            with self._lock:
                self._generation += 1
            self.flush()
            try:
                self._backend.stop()
            except Exception:
                logger.exception("[SPEECH] Failed to stop current utterance")

        with self._lock:
            generation = self._generation
        try:
            self._q.put_nowait((generation, rendered))
        except queue.Full:
            logger.warning("[SPEECH] Speech queue full; dropping: %s", rendered)

    def flush(self) -> int:
        """Clear queued utterances and return how many were dropped."""

        removed = 0
        try:
            while True:
                self._q.get_nowait()
                removed += 1
        except queue.Empty:
            pass
        if removed:
            logger.debug("[SPEECH] Flushed %d queued utterance(s)", removed)
        return removed

    def get_status(self) -> dict[str, int]:
        with self._lock:
            return {
                "available": int(self._available),
                "spoken": self._spoken,
                "failures": self._failures,
                "queued": self._q.qsize(),
            }

    def close(self) -> None:
        """Stop the worker and release the engine."""

        self._stop.set()
        self.flush()
        try:
            self._q.put_nowait(None)
        except queue.Full:
            pass
        try:
            self._backend.stop()
        except Exception:
            logger.exception("[SPEECH] Failed to stop speech engine")
        self._t.join(timeout=1.0)

    def _worker(self) -> None:
        try:
            self._backend.open()
            with self._lock:
                self._available = True
        except Exception:
            logger.exception("[SPEECH] Text-to-speech initialization failed")
            self._ready.set()
            return
        self._ready.set()

        try:
            while not self._stop.is_set():
                try:
                    item = self._q.get(timeout=0.1)
                except queue.Empty:
                    continue
                if item is None:
                    break
                generation, text = item
                with self._lock:
                    stale = generation != self._generation
                if stale:
                    logger.debug("[SPEECH] Dropping interrupted utterance: %s", text)
                    continue
                try:
                    self._backend.say(text)
                    with self._lock:
                        self._spoken += 1
                except Exception:
                    with self._lock:
                        self._failures += 1
                    logger.exception("[SPEECH] Failed to speak: %s", text)
        finally:
            try:
                self._backend.close()
            except Exception:
                logger.exception("[SPEECH] Failed to close speech engine")
