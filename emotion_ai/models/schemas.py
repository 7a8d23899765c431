"""Pydantic schemas for data models."""

from datetime import datetime
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, Field, field_validator


EMOTION_LABELS: List[str] = ["happy", "sad", "angry", "surprised", "neutral", "fearful"]
NUM_KEYPOINTS = 15

EmotionLabel = Literal["happy", "sad", "angry", "surprised", "neutral", "fearful"]
PredictionSource = Literal["model", "fallback"]
UploadStatus = Literal["pending", "uploading", "success", "error"]


class EmotionPrediction(BaseModel):
    """Emotion predicted for one modality."""
    emotion: EmotionLabel = Field(description="Predicted emotion label")
    confidence: float = Field(ge=0.0, le=1.0, description="Confidence for the predicted label")
    source: PredictionSource = Field(default="model", description="model output or fallback placeholder")
    scores: Optional[Dict[str, float]] = Field(default=None, description="Probability per label")


class FacialKeypoints(BaseModel):
    """Facial landmark coordinates in the captured image frame."""
    points: List[List[float]] = Field(description="15 [x, y] pairs")
    source: PredictionSource = Field(default="model")

    @field_validator("points")
    @classmethod
    def check_pairs(cls, v):
        if len(v) != NUM_KEYPOINTS:
            raise ValueError(f"expected {NUM_KEYPOINTS} keypoints, got {len(v)}")
        for point in v:
            if len(point) != 2:
                raise ValueError("each keypoint must be an [x, y] pair")
        return v


class AudioFeatures(BaseModel):
    """Feature vector consumed by the speech emotion model."""
    duration: float = Field(description="Clip duration in seconds")
    pitch: float = Field(description="Mean voiced pitch in Hz")
    speech_rate: float = Field(description="Onsets per second")
    jitter: float = Field(description="Relative period-to-period pitch variation")
    shimmer: float = Field(description="Relative frame-to-frame amplitude variation")
    mfcc_mean: float = Field(description="Mean of all MFCC coefficients")
    sentiment_score: float = Field(default=0.0, description="Sentiment in [-1, 1]")

    def as_vector(self) -> List[float]:
        return [
            self.duration,
            self.pitch,
            self.speech_rate,
            self.jitter,
            self.shimmer,
            self.mfcc_mean,
            self.sentiment_score,
        ]


class ModalityConfidence(BaseModel):
    facial: Optional[float] = None
    speech: Optional[float] = None


class EmotionData(BaseModel):
    """Emotion label and confidence per modality, as shown in the results view."""
    facial: Optional[EmotionLabel] = None
    speech: Optional[EmotionLabel] = None
    confidence: ModalityConfidence = Field(default_factory=ModalityConfidence)

    @property
    def has_results(self) -> bool:
        return self.facial is not None or self.speech is not None


class AnalysisResult(BaseModel):
    """Complete result of one capture analysis."""
    session_id: Optional[str] = None
    emotion_data: EmotionData
    facial: EmotionPrediction
    speech: EmotionPrediction
    keypoints: FacialKeypoints
    audio_features: Optional[AudioFeatures] = None
    created_at: datetime = Field(default_factory=datetime.now)


class ModelLoadingStatus(BaseModel):
    """Which models were loaded from the models directory."""
    keyfacial: bool = False
    facial_emotion: bool = False
    speech_emotion: bool = False
    is_loading: bool = False
    error: Optional[str] = None

    @property
    def all_loaded(self) -> bool:
        return self.keyfacial and self.facial_emotion and self.speech_emotion


class ModelFile(BaseModel):
    """Upload indicator for one model's artifact files."""
    key: str
    name: str
    description: str
    path: str
    status: UploadStatus = "pending"
    progress: float = Field(default=0.0, ge=0.0, le=100.0)
    error: Optional[str] = None


class SessionState(BaseModel):
    """Public snapshot of a capture session."""
    session_id: str
    has_image: bool
    has_audio: bool
    audio_mime: Optional[str] = None
    is_recording: bool
    recording_time: int
    recording_seconds: int
    is_analyzing: bool
    can_analyze: bool
    active_tab: Literal["capture", "results"]
    facial_keypoints: Optional[List[List[float]]] = None
    emotion_data: EmotionData
