"""Data models for the emotion analysis demo."""

from .schemas import (
    EMOTION_LABELS,
    EmotionPrediction,
    FacialKeypoints,
    AudioFeatures,
    EmotionData,
    AnalysisResult,
    ModelLoadingStatus,
    ModelFile,
    SessionState,
)

__all__ = [
    "EMOTION_LABELS",
    "EmotionPrediction",
    "FacialKeypoints",
    "AudioFeatures",
    "EmotionData",
    "AnalysisResult",
    "ModelLoadingStatus",
    "ModelFile",
    "SessionState",
]
