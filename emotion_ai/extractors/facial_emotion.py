"""Facial emotion classification."""

from typing import Optional
from PIL import Image

from ..config import CaptureConfig, InferenceConfig
from ..errors import EmotionAnalysisError, PredictionError
from ..models.schemas import EmotionPrediction
from ..registry import ModelRegistry
from .classification import first_row, top_emotion
from .fallback import FallbackGenerator
from .image import input_channels, preprocess_image


class FacialEmotionClassifier:
    """Classify the captured face into one of the six emotions."""

    def __init__(
        self,
        registry: ModelRegistry,
        capture_config: Optional[CaptureConfig] = None,
        inference_config: Optional[InferenceConfig] = None,
        fallback: Optional[FallbackGenerator] = None,
    ):
        self.registry = registry
        self.capture_config = capture_config or CaptureConfig()
        self.inference_config = inference_config or InferenceConfig()
        self.fallback = fallback or FallbackGenerator(self.inference_config.fallback_seed)

    def predict(self, image: Image.Image) -> EmotionPrediction:
        try:
            model = self.registry.get("facial_emotion")
            batch = preprocess_image(image, self.capture_config.image_size, input_channels(model))
            try:
                with self.registry.device_scope():
                    output = model.predict(batch, verbose=0)
            except Exception as e:
                raise PredictionError(f"Facial emotion model failed: {e}") from e
            return top_emotion(first_row(output))
        except EmotionAnalysisError as e:
            print(f"Error predicting facial emotion: {e}")
            if not self.inference_config.random_fallback:
                raise
            return self.fallback.emotion()
