"""Detector interface and the ultralytics YOLO backend."""

from __future__ import annotations

from dataclasses import dataclass
import importlib
import importlib.util
import math
from pathlib import Path
from typing import Any, Mapping, Protocol

from core.logging import logger
from vision.detections import Detection, Frame


class Detector(Protocol):
    """Object detector consuming one normalized frame."""

    def infer(self, frame: Frame) -> list[Detection]:
        """Return zero or more detections for ``frame``."""


@dataclass(frozen=True)
class DetectorSettings:
    """Runtime settings for the YOLO detector."""

    model_path: str = "models/pesos.pt"
    min_confidence: float = 0.25

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "DetectorSettings":
        section = config.get("detector") if isinstance(config, Mapping) else None
        if not isinstance(section, Mapping):
            return cls()
        return cls(
            model_path=str(section.get("model_path", "models/pesos.pt")),
            min_confidence=float(section.get("min_confidence", 0.25)),
        )


class YoloDetector:
    """ultralytics YOLO model producing normalized detections."""

    def __init__(self, settings: DetectorSettings | None = None, model: Any | None = None) -> None:
        self.settings = settings or DetectorSettings()
        self.model = model if model is not None else self._load_model(self.settings.model_path)

    def infer(self, frame: Frame) -> list[Detection]:
        results = self.model.predict(frame.buffer, verbose=False)
        if not results:
            return []
        result = results[0]
        names = getattr(result, "names", None) or getattr(self.model, "names", {}) or {}
        boxes = getattr(result, "boxes", None)
        if boxes is None:
            return []

        detections: list[Detection] = []
        for box in boxes:
            detection = self._convert_box(box, names)
            if detection is None:
                continue
            if detection.confidence < self.settings.min_confidence:
                continue
            detections.append(detection)
        detections.sort(key=lambda item: item.confidence, reverse=True)
        return detections

    def _load_model(self, model_path: str) -> Any:
        if importlib.util.find_spec("ultralytics") is None:
            raise RuntimeError("ultralytics is required for YoloDetector")
        if not Path(model_path).exists():
            raise RuntimeError(f"Detection model not found at {model_path}")
        ultralytics = importlib.import_module("ultralytics")
        logger.info("[DETECTOR] Loading model %s", model_path)
        return ultralytics.YOLO(model_path)

    def _convert_box(self, box: Any, names: Mapping[int, str]) -> Detection | None:
        try:
            class_id = int(_first(box.cls))
            confidence = float(_first(box.conf))
            x1, y1, x2, y2 = (float(value) for value in _flat(box.xyxyn)[:4])
        except (AttributeError, IndexError, TypeError, ValueError):
            logger.debug("[DETECTOR] Skipping malformed box %r", box)
            return None
        if any(math.isnan(value) or math.isinf(value) for value in (confidence, x1, y1, x2, y2)):
            return None

        x = max(0.0, min(1.0, x1))
        y = max(0.0, min(1.0, y1))
        width = max(0.0, min(1.0 - x, x2 - x1))
        height = max(0.0, min(1.0 - y, y2 - y1))
        label = str(names.get(class_id, class_id)).strip() or "unknown"
        return Detection(
            label=label,
            confidence=max(0.0, min(1.0, confidence)),
            bbox=(x, y, width, height),
            metadata={"class_id": class_id},
        )


def _flat(value: Any) -> list[Any]:
    if hasattr(value, "reshape"):
        value = value.reshape(-1)
    if hasattr(value, "tolist"):
        value = value.tolist()
    if isinstance(value, (list, tuple)):
        flat: list[Any] = []
        for item in value:
            flat.extend(_flat(item) if isinstance(item, (list, tuple)) else [item])
        return flat
    return [value]


def _first(value: Any) -> Any:
    return _flat(value)[0]
