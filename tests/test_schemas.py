"""Tests for data schemas."""

import pytest
from pydantic import ValidationError


class TestSchemas:
    """Tests for Pydantic schemas."""

    def test_emotion_prediction_validation(self):
        """Test EmotionPrediction label and confidence bounds."""
        from emotion_ai.models.schemas import EmotionPrediction

        valid = EmotionPrediction(emotion="happy", confidence=0.85)
        assert valid.source == "model"

        with pytest.raises(ValidationError):
            EmotionPrediction(emotion="happy", confidence=1.5)

        with pytest.raises(ValidationError):
            EmotionPrediction(emotion="happy", confidence=-0.1)

        with pytest.raises(ValidationError):
            EmotionPrediction(emotion="disgusted", confidence=0.5)

    def test_emotion_labels_order(self):
        """Model output index order is fixed."""
        from emotion_ai.models.schemas import EMOTION_LABELS

        assert EMOTION_LABELS == ["happy", "sad", "angry", "surprised", "neutral", "fearful"]

    def test_facial_keypoints_count(self):
        """Test FacialKeypoints requires 15 [x, y] pairs."""
        from emotion_ai.models.schemas import FacialKeypoints

        points = [[float(i), float(i)] for i in range(15)]
        assert len(FacialKeypoints(points=points).points) == 15

        with pytest.raises(ValidationError):
            FacialKeypoints(points=points[:14])

        with pytest.raises(ValidationError):
            FacialKeypoints(points=[[1.0, 2.0, 3.0]] + points[1:])

    def test_audio_features_vector(self):
        """Test AudioFeatures vector order."""
        from emotion_ai.models.schemas import AudioFeatures

        features = AudioFeatures(
            duration=10.0,
            pitch=180.0,
            speech_rate=3.2,
            jitter=0.01,
            shimmer=0.05,
            mfcc_mean=-2.5,
            sentiment_score=0.3,
        )

        assert features.as_vector() == [10.0, 180.0, 3.2, 0.01, 0.05, -2.5, 0.3]

    def test_emotion_data_has_results(self):
        """Test EmotionData.has_results."""
        from emotion_ai.models.schemas import EmotionData

        assert not EmotionData().has_results
        assert EmotionData(speech="sad").has_results
        assert EmotionData(facial="happy").confidence.facial is None

    def test_model_loading_status(self):
        """Test ModelLoadingStatus.all_loaded."""
        from emotion_ai.models.schemas import ModelLoadingStatus

        assert not ModelLoadingStatus(keyfacial=True, facial_emotion=True).all_loaded
        assert ModelLoadingStatus(keyfacial=True, facial_emotion=True, speech_emotion=True).all_loaded

    def test_model_file_progress_bounds(self):
        """Test ModelFile progress and status validation."""
        from emotion_ai.models.schemas import ModelFile

        f = ModelFile(key="keyfacial", name="Facial Keypoint Model", description="", path="models/keyfacial")
        assert f.status == "pending"
        assert f.progress == 0.0

        with pytest.raises(ValidationError):
            ModelFile(key="k", name="n", description="", path="p", progress=120)

        with pytest.raises(ValidationError):
            ModelFile(key="k", name="n", description="", path="p", status="done")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
