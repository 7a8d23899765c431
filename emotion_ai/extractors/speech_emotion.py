"""Speech emotion classification with the MLP + XGBoost ensemble."""

from typing import Optional, Tuple
import numpy as np

from ..config import CaptureConfig, InferenceConfig
from ..errors import EmotionAnalysisError, PredictionError
from ..models.schemas import AudioFeatures, EMOTION_LABELS, EmotionPrediction
from ..registry import ModelRegistry, SpeechEnsemble
from ..utils.audio import load_audio_bytes
from .audio_features import AudioFeatureExtractor
from .classification import first_row, top_emotion
from .fallback import FallbackGenerator


class SpeechEmotionClassifier:
    """Classify a recorded clip into one of the six emotions."""

    def __init__(
        self,
        registry: ModelRegistry,
        capture_config: Optional[CaptureConfig] = None,
        inference_config: Optional[InferenceConfig] = None,
        fallback: Optional[FallbackGenerator] = None,
        feature_extractor: Optional[AudioFeatureExtractor] = None,
    ):
        self.registry = registry
        self.capture_config = capture_config or CaptureConfig()
        self.inference_config = inference_config or InferenceConfig()
        self.fallback = fallback or FallbackGenerator(self.inference_config.fallback_seed)
        self.feature_extractor = feature_extractor or AudioFeatureExtractor()

    def predict_clip(
        self,
        data: bytes,
        suffix: str = ".webm",
    ) -> Tuple[EmotionPrediction, Optional[AudioFeatures]]:
        """
        Decode an encoded clip, extract features and classify it.

        Returns:
            Tuple of (prediction, features or None when decoding failed)
        """
        features = None
        try:
            audio, sr = load_audio_bytes(data, suffix=suffix, target_sr=self.capture_config.sample_rate)
            features = self.feature_extractor.extract(audio, sr)
            return self.classify(features), features
        except EmotionAnalysisError as e:
            print(f"Error predicting speech emotion: {e}")
            if not self.inference_config.random_fallback:
                raise
            prediction = self.fallback.emotion()
            print(f"Using fallback speech emotion: {prediction.emotion} ({prediction.confidence:.2f})")
            return prediction, features

    def classify(self, features: AudioFeatures) -> EmotionPrediction:
        """Run the ensemble on an extracted feature vector."""
        ensemble: SpeechEnsemble = self.registry.get("speech_emotion")
        vector = np.asarray([features.as_vector()], dtype=np.float32)

        try:
            if ensemble.scaler is not None:
                vector = np.asarray(ensemble.scaler.transform(vector), dtype=np.float32)
            with self.registry.device_scope():
                probabilities = first_row(ensemble.mlp.predict(vector, verbose=0))
            if ensemble.xgb is not None:
                xgb_probabilities = first_row(ensemble.xgb.predict_proba(vector))
                if xgb_probabilities.shape == probabilities.shape:
                    probabilities = (probabilities + xgb_probabilities) / 2.0
                else:
                    print(
                        f"Warning: XGBoost output size {xgb_probabilities.shape[0]} does not match "
                        f"MLP output size {probabilities.shape[0]}, using MLP only"
                    )
        except EmotionAnalysisError:
            raise
        except Exception as e:
            raise PredictionError(f"Speech emotion model failed: {e}") from e

        labels = list(ensemble.encoder.classes_) if ensemble.encoder is not None else EMOTION_LABELS
        return top_emotion(probabilities, labels)
