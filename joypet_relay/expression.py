"""
Smile detection from per-frame face inference results.

Two interchangeable scoring strategies are provided: one reads MediaPipe
blend-shape scores, the other measures the mouth from raw face-mesh landmarks.
``SmileDetector`` wraps either and makes sure each frame is evaluated once.
"""

import logging
import math
from typing import Protocol

from .config import SmileConfig
from .models import FaceSample, Landmark, VisionFrame

logger = logging.getLogger(__name__)

SMILE_LEFT = "mouthSmileLeft"
SMILE_RIGHT = "mouthSmileRight"
JAW_OPEN = "jawOpen"

# MediaPipe face-mesh indices
MOUTH_LEFT_CORNER = 61
MOUTH_RIGHT_CORNER = 291
UPPER_LIP_INNER = 13
LOWER_LIP_INNER = 14


class SmileStrategy(Protocol):
    threshold: float

    def score(self, face: FaceSample) -> float | None: ...

    def detects(self, face: FaceSample) -> bool: ...


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


class BlendshapeSmile:
    """
    Average of the left and right mouth-corner smile scores.

    A wide-open jaw counts as an alternate joy signal when
    ``jaw_open_threshold`` is set; it is OR-ed with the smile, not combined.
    """

    def __init__(
        self, threshold: float = 0.5, jaw_open_threshold: float | None = None
    ) -> None:
        self.threshold = threshold
        self.jaw_open_threshold = jaw_open_threshold

    def score(self, face: FaceSample) -> float | None:
        if face.blendshapes is None:
            return None
        left = face.blendshapes.get(SMILE_LEFT, 0.0)
        right = face.blendshapes.get(SMILE_RIGHT, 0.0)
        return _clamp((left + right) / 2)

    def detects(self, face: FaceSample) -> bool:
        intensity = self.score(face)
        if intensity is None:
            return False
        if intensity > self.threshold:
            return True
        if self.jaw_open_threshold is not None:
            jaw = face.blendshapes.get(JAW_OPEN, 0.0)
            return jaw > self.jaw_open_threshold
        return False


class GeometricSmile:
    """Mouth opening relative to mouth width, from face-mesh landmarks."""

    def __init__(self, threshold: float = 0.22) -> None:
        self.threshold = threshold

    @staticmethod
    def _distance(a: Landmark, b: Landmark) -> float:
        return math.hypot(a.x - b.x, a.y - b.y)

    def score(self, face: FaceSample) -> float | None:
        points = face.landmarks
        if points is None or len(points) <= MOUTH_RIGHT_CORNER:
            return None

        width = self._distance(points[MOUTH_LEFT_CORNER], points[MOUTH_RIGHT_CORNER])
        if width == 0:
            return 0.0
        height = self._distance(points[UPPER_LIP_INNER], points[LOWER_LIP_INNER])
        return _clamp(height / width)

    def detects(self, face: FaceSample) -> bool:
        intensity = self.score(face)
        return intensity is not None and intensity > self.threshold


def build_strategy(config: SmileConfig) -> SmileStrategy:
    """Create the scoring strategy named in the configuration."""
    if config.strategy == "geometric":
        if config.threshold is None:
            return GeometricSmile()
        return GeometricSmile(threshold=config.threshold)

    if config.threshold is None:
        return BlendshapeSmile(jaw_open_threshold=config.jaw_open_threshold)
    return BlendshapeSmile(
        threshold=config.threshold, jaw_open_threshold=config.jaw_open_threshold
    )


class SmileDetector:
    """Evaluates a strategy at most once per distinct frame timestamp."""

    def __init__(self, strategy: SmileStrategy) -> None:
        self.strategy = strategy
        self._last_timestamp: float | None = None

    def process(self, frame: VisionFrame) -> bool:
        """
        Decide whether a frame shows a smile.

        Returns:
            True when the frame is new, has a face, and the strategy detects
            a smile; False otherwise
        """
        if frame.timestamp == self._last_timestamp:
            return False
        self._last_timestamp = frame.timestamp

        if frame.face is None:
            return False

        detected = self.strategy.detects(frame.face)
        if detected:
            logger.debug("Smile detected at frame %.3f", frame.timestamp)
        return detected
