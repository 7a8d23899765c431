"""Shared handling of classifier output."""

from typing import Optional, Sequence
import numpy as np

from ..errors import PredictionError
from ..models.schemas import EMOTION_LABELS, EmotionPrediction
from ..utils.labels import normalize_label


def first_row(output) -> np.ndarray:
    """First row of a batched model output, flattened."""
    arr = np.asarray(output, dtype=np.float32)
    if arr.size == 0:
        raise PredictionError(f"Unexpected prediction format: {output!r}")
    if arr.ndim == 0:
        raise PredictionError("Prediction is a scalar")
    if arr.ndim > 1:
        arr = arr[0]
    return arr.reshape(-1)


def top_emotion(probabilities: np.ndarray, labels: Optional[Sequence[str]] = None) -> EmotionPrediction:
    """
    Pick the most probable emotion.

    Args:
        probabilities: One probability per label
        labels: Label for each index (defaults to the closed emotion set)

    Returns:
        EmotionPrediction with per-label scores
    """
    labels = [normalize_label(l) for l in (labels if labels is not None else EMOTION_LABELS)]
    if np.isnan(probabilities).any():
        raise PredictionError("Prediction contains NaN")

    index = int(np.argmax(probabilities))
    if index >= len(labels):
        raise PredictionError("Invalid emotion index predicted")
    emotion = labels[index]
    if emotion not in EMOTION_LABELS:
        raise PredictionError(f"Predicted label outside the emotion set: {emotion}")

    scores = {
        label: round(float(p), 4)
        for label, p in zip(labels, probabilities)
        if label in EMOTION_LABELS
    }
    confidence = float(np.clip(probabilities[index], 0.0, 1.0))
    return EmotionPrediction(
        emotion=emotion,
        confidence=round(confidence, 4),
        source="model",
        scores=scores,
    )
