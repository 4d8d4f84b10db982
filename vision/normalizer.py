"""Geometry correction for raw camera frames."""

from __future__ import annotations

from dataclasses import replace

import numpy as np
from PIL import Image

from core.logging import logger
from vision.detections import Frame


class FrameNormalizer:
    """Rotate and mirror frames into the orientation the detector expects."""

    def normalize(self, frame: Frame) -> Frame | None:
        """Return an upright copy of ``frame`` or ``None`` for unusable frames.

        Rotation is applied first and the horizontal mirror second; reversing
        the order swaps left and right for rotated front-facing frames.
        """

        pixels = self._as_array(frame)
        if pixels is None:
            logger.debug("[NORMALIZER] Dropping zero-area frame id=%s", frame.frame_id)
            return None

        rotated = self._rotate(pixels, frame.rotation_degrees)
        if frame.front_facing:
            rotated = np.fliplr(rotated)
        corrected = np.ascontiguousarray(rotated)

        height, width = corrected.shape[:2]
        return replace(
            frame,
            buffer=corrected,
            width=int(width),
            height=int(height),
            rotation_degrees=0,
            front_facing=False,
        )

    def _as_array(self, frame: Frame) -> np.ndarray | None:
        if frame.buffer is None or frame.width <= 0 or frame.height <= 0:
            return None
        try:
            pixels = np.asarray(frame.buffer)
        except (TypeError, ValueError):
            return None
        if pixels.ndim < 2 or pixels.size == 0:
            return None
        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            return None
        return pixels

    def _rotate(self, pixels: np.ndarray, rotation_degrees: float) -> np.ndarray:
        degrees = float(rotation_degrees) % 360.0
        if degrees == 0.0:
            return pixels
        if degrees % 90.0 == 0.0:
            # numpy turns counter-clockwise for positive k.
            return np.rot90(pixels, k=-int(degrees // 90.0))
        return self._rotate_affine(pixels, degrees)

    def _rotate_affine(self, pixels: np.ndarray, degrees: float) -> np.ndarray:
        image = Image.fromarray(pixels)
        # Pillow rotates counter-clockwise; the frame asks for clockwise.
        rotated = image.rotate(-degrees, resample=Image.Resampling.BILINEAR, expand=True)
        return np.asarray(rotated)
