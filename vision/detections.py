"""Frame and detection schemas for the announcement pipeline.

Bounding boxes are normalized to the source frame dimensions and represented as
``(x, y, width, height)`` with each value expected in the inclusive range
``[0.0, 1.0]``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Frame:
    """Raw camera frame handed to the pipeline for one analysis cycle.

    ``rotation_degrees`` is the clockwise rotation needed to bring the buffer
    upright; ``front_facing`` marks selfie sensors whose image is mirrored.
    """

    buffer: Any
    width: int
    height: int
    rotation_degrees: int = 0
    front_facing: bool = False
    frame_id: int | None = None
    timestamp_ms: int = 0

    @property
    def area(self) -> int:
        return max(0, int(self.width)) * max(0, int(self.height))


@dataclass(frozen=True)
class Detection:
    """Single object detection result."""

    label: str
    confidence: float
    bbox: tuple[float, float, float, float]
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def area(self) -> float:
        _, _, width, height = self.bbox
        return max(0.0, float(width)) * max(0.0, float(height))


@dataclass(frozen=True)
class DetectionEvent:
    """Detection snapshot for one analyzed frame."""

    timestamp_ms: int
    detections: list[Detection]
    frame_id: int | None = None
    source: str = "camera"
    inference_ms: int = 0
