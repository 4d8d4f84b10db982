"""Hardware controller package."""

from hardware.camera_controller import CameraController, CameraSettings
from hardware.illumination import IlluminationSettings, Pca9685Illumination, create_illumination

__all__ = [
    "CameraController",
    "CameraSettings",
    "IlluminationSettings",
    "Pca9685Illumination",
    "create_illumination",
]
