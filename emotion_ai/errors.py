"""Exceptions raised by the emotion analysis package."""


class EmotionAnalysisError(Exception):
    """Base class for all emotion analysis errors."""


class ImageDecodeError(EmotionAnalysisError):
    """Captured image could not be decoded."""


class AudioDecodeError(EmotionAnalysisError):
    """Recorded audio clip could not be decoded."""


class ModelNotLoadedError(EmotionAnalysisError):
    """A model required for a prediction is not loaded."""


class PredictionError(EmotionAnalysisError):
    """A model produced output that cannot be interpreted."""


class MissingDataError(EmotionAnalysisError):
    """Analysis was requested before an image and audio clip exist."""


class AnalysisInProgressError(EmotionAnalysisError):
    """An analysis is already running for this session."""


class RecordingStateError(EmotionAnalysisError):
    """Recording operation not valid in the current state."""


class SessionNotFoundError(EmotionAnalysisError):
    """No session with the given id."""


class UploadError(EmotionAnalysisError):
    """Model artifact upload was rejected or failed."""
