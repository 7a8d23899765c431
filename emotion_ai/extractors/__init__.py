"""Feature extraction and model prediction modules."""

from .image import decode_image, preprocess_image
from .audio_features import AudioFeatureExtractor
from .fallback import FallbackGenerator
from .keypoints import KeypointDetector
from .facial_emotion import FacialEmotionClassifier
from .speech_emotion import SpeechEmotionClassifier

__all__ = [
    "decode_image",
    "preprocess_image",
    "AudioFeatureExtractor",
    "FallbackGenerator",
    "KeypointDetector",
    "FacialEmotionClassifier",
    "SpeechEmotionClassifier",
]
