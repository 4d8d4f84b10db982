"""Vision package exports."""

from vision.accumulator import ValueAccumulator
from vision.analyzer import AnalysisResult, FrameAnalyzer
from vision.detections import Detection, DetectionEvent, Frame
from vision.normalizer import FrameNormalizer
from vision.notification_gate import GateState, NotificationGate, NotificationGateConfig
from vision.selector import select_detection

__all__ = [
    "AnalysisResult",
    "Detection",
    "DetectionEvent",
    "Frame",
    "FrameAnalyzer",
    "FrameNormalizer",
    "GateState",
    "NotificationGate",
    "NotificationGateConfig",
    "ValueAccumulator",
    "select_detection",
]
