"""Facial keypoint detection."""

from typing import Optional
import numpy as np
from PIL import Image

from ..config import CaptureConfig, InferenceConfig
from ..errors import EmotionAnalysisError, PredictionError
from ..models.schemas import FacialKeypoints, NUM_KEYPOINTS
from ..registry import ModelRegistry
from .classification import first_row
from .fallback import FallbackGenerator
from .image import input_channels, preprocess_image


class KeypointDetector:
    """Predict 15 facial keypoints with the key facial points model."""

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

    def predict(self, image: Image.Image) -> FacialKeypoints:
        try:
            return self._predict(image)
        except EmotionAnalysisError as e:
            print(f"Error predicting facial keypoints: {e}")
            if not self.inference_config.random_fallback:
                raise
            return self.fallback.keypoints(self.capture_config.image_size)

    def _predict(self, image: Image.Image) -> FacialKeypoints:
        model = self.registry.get("keyfacial")
        batch = preprocess_image(image, self.capture_config.image_size, input_channels(model))
        try:
            with self.registry.device_scope():
                output = model.predict(batch, verbose=0)
        except Exception as e:
            raise PredictionError(f"Key facial points model failed: {e}") from e
        return self.to_keypoints(output)

    @staticmethod
    def to_keypoints(output) -> FacialKeypoints:
        """Pair the first 30 output values into 15 [x, y] coordinates."""
        flat = first_row(output)
        needed = NUM_KEYPOINTS * 2
        if len(flat) < needed:
            raise PredictionError(
                f"Insufficient keypoint values in prediction: {len(flat)}"
            )
        if np.isnan(flat[:needed]).any():
            raise PredictionError("Keypoint prediction contains NaN")
        points = [
            [round(float(flat[i]), 2), round(float(flat[i + 1]), 2)]
            for i in range(0, needed, 2)
        ]
        return FacialKeypoints(points=points, source="model")
