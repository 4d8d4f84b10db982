"""Best-detection selection for a single analyzed frame."""

from __future__ import annotations

from typing import Sequence

from vision.detections import Detection


def select_detection(detections: Sequence[Detection]) -> Detection | None:
    """Return the most relevant detection of a frame, or ``None``.

    Detector output order is not trusted: candidates are ranked by confidence
    and, on equal confidence, by the larger box area. Only one detection per
    frame is ever announced.
    """

    if not detections:
        return None
    ranked = sorted(
        detections,
        key=lambda detection: (float(detection.confidence), detection.area),
        reverse=True,
    )
    return ranked[0]
