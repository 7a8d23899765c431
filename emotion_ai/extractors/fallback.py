"""Placeholder output used when a model is unavailable."""

import math
from typing import List, Optional
import numpy as np

from ..models.schemas import EMOTION_LABELS, EmotionPrediction, FacialKeypoints

# Mean landmark positions of a frontal face in a 96x96 frame
TEMPLATE_KEYPOINTS = [
    [66.0, 39.0],  # left eye center
    [30.0, 38.0],  # right eye center
    [59.0, 40.0],  # left eye inner corner
    [73.0, 40.0],  # left eye outer corner
    [37.0, 39.0],  # right eye inner corner
    [22.0, 38.0],  # right eye outer corner
    [57.0, 30.0],  # left eyebrow inner end
    [80.0, 31.0],  # left eyebrow outer end
    [39.0, 30.0],  # right eyebrow inner end
    [16.0, 30.0],  # right eyebrow outer end
    [48.0, 63.0],  # nose tip
    [63.0, 76.0],  # mouth left corner
    [33.0, 76.0],  # mouth right corner
    [48.0, 73.0],  # mouth center top lip
    [48.0, 83.0],  # mouth center bottom lip
]


class FallbackGenerator:
    """Random stand-ins for model output."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = np.random.default_rng(seed)

    def emotion(self) -> EmotionPrediction:
        """Random label with confidence in [0.5, 1.0)."""
        label = EMOTION_LABELS[int(self._rng.integers(len(EMOTION_LABELS)))]
        # Truncated to keep the upper bound exclusive
        confidence = math.floor(float(self._rng.uniform(0.5, 1.0)) * 1000) / 1000
        return EmotionPrediction(emotion=label, confidence=confidence, source="fallback")

    def keypoints(self, size: int = 96, jitter: float = 2.0) -> FacialKeypoints:
        """Template face keypoints with a little noise, clipped to the frame."""
        scale = size / 96.0
        points: List[List[float]] = []
        for x, y in TEMPLATE_KEYPOINTS:
            dx, dy = self._rng.normal(0.0, jitter, size=2)
            px = float(np.clip(x * scale + dx, 0, size - 1))
            py = float(np.clip(y * scale + dy, 0, size - 1))
            points.append([round(px, 2), round(py, 2)])
        return FacialKeypoints(points=points, source="fallback")
