"""Tests for labels, the results view and the keypoint overlay."""

import pytest
from PIL import Image


def _result(facial_source="model"):
    from emotion_ai.models.schemas import (
        AnalysisResult,
        AudioFeatures,
        EmotionData,
        EmotionPrediction,
        FacialKeypoints,
        ModalityConfidence,
    )
    from emotion_ai.extractors.fallback import TEMPLATE_KEYPOINTS

    facial = EmotionPrediction(emotion="happy", confidence=0.876, source=facial_source)
    speech = EmotionPrediction(emotion="fearful", confidence=0.5)
    return AnalysisResult(
        emotion_data=EmotionData(
            facial="happy",
            speech="fearful",
            confidence=ModalityConfidence(facial=0.876, speech=0.5),
        ),
        facial=facial,
        speech=speech,
        keypoints=FacialKeypoints(points=TEMPLATE_KEYPOINTS),
        audio_features=AudioFeatures(
            duration=10.0, pitch=181.25, speech_rate=2.5,
            jitter=0.0123, shimmer=0.0456, mfcc_mean=-4.2,
        ),
    )


class TestLabels:
    """Tests for emotion label helpers."""

    def test_descriptions(self):
        from emotion_ai.utils.labels import describe_emotion

        assert describe_emotion("happy") == "Positive emotion with signs of joy and contentment"
        assert describe_emotion("bored") == "Unknown emotional state"
        assert describe_emotion(None) == "No emotion detected"

    def test_normalize_label(self):
        from emotion_ai.utils.labels import normalize_label

        assert normalize_label("Sadness") == "sad"
        assert normalize_label(" FEAR ") == "fearful"
        assert normalize_label("angry") == "angry"

    def test_confidence_percent(self):
        from emotion_ai.utils.labels import confidence_percent

        assert confidence_percent(0.876) == 88
        assert confidence_percent(None) == 0


class TestReport:
    """Tests for the HTML results view."""

    def test_empty_report(self):
        from emotion_ai.utils.reporting import EMPTY_RESULTS_MESSAGE, generate_html_report

        html = generate_html_report(None)
        assert EMPTY_RESULTS_MESSAGE in html
        assert "Facial Emotion Analysis" not in html

    def test_report_content(self, tmp_path):
        from emotion_ai.utils.reporting import generate_html_report

        output_path = tmp_path / "report" / "result.html"
        html = generate_html_report(_result(), output_path=output_path, keypoint_png=b"png")

        assert "HAPPY" in html
        assert "88%" in html
        assert "FEARFUL" in html
        assert "50%" in html
        assert "181.2 Hz" in html or "181.3 Hz" in html
        assert "data:image/png;base64,cG5n" in html
        assert "placeholder result" not in html
        assert output_path.read_text(encoding="utf-8") == html

    def test_fallback_note(self):
        from emotion_ai.utils.reporting import generate_html_report

        html = generate_html_report(_result(facial_source="fallback"))
        assert "Model unavailable: placeholder result" in html


class TestOverlay:
    """Tests for the keypoint overlay."""

    def test_overlay_size_and_colour(self):
        from emotion_ai.extractors.fallback import TEMPLATE_KEYPOINTS
        from emotion_ai.utils.overlay import draw_keypoints

        image = Image.new("RGB", (120, 100), (0, 0, 0))
        canvas = draw_keypoints(image, TEMPLATE_KEYPOINTS, size=96, scale=2)

        assert canvas.size == (192, 192)
        x, y = TEMPLATE_KEYPOINTS[10]
        assert canvas.getpixel((int(x * 2), int(y * 2))) == (74, 222, 128)

    def test_overlay_without_points(self):
        from emotion_ai.utils.overlay import draw_keypoints, to_png_bytes

        canvas = draw_keypoints(Image.new("RGB", (50, 50)), None)
        assert canvas.size == (96, 96)
        assert to_png_bytes(canvas)[:4] == b"\x89PNG"


class TestPipeline:
    """Tests for result persistence."""

    def test_save_result(self, app_config, registry):
        from emotion_ai.pipeline import EmotionAnalysisPipeline

        pipeline = EmotionAnalysisPipeline(app_config, registry=registry)
        json_path = pipeline.save_result(_result(), "capture", Image.new("RGB", (96, 96)))

        assert json_path.name == "capture_emotions.json"
        assert '"emotion": "happy"' in json_path.read_text(encoding="utf-8")
        assert (app_config.output_dir / "capture_emotions.html").exists()

    def test_analyze_files_checks_paths(self, app_config, registry, tmp_path, png_bytes):
        from emotion_ai.pipeline import EmotionAnalysisPipeline

        pipeline = EmotionAnalysisPipeline(app_config, registry=registry)
        image_path = tmp_path / "face.png"
        image_path.write_bytes(png_bytes)
        audio_path = tmp_path / "clip.txt"
        audio_path.write_bytes(b"x")

        with pytest.raises(FileNotFoundError):
            pipeline.analyze_files(tmp_path / "missing.png", audio_path)
        with pytest.raises(ValueError):
            pipeline.analyze_files(image_path, audio_path)

    def test_analyze_files(self, app_config, registry, tmp_path, png_bytes, wav_bytes):
        from emotion_ai.pipeline import EmotionAnalysisPipeline

        pipeline = EmotionAnalysisPipeline(app_config, registry=registry)
        image_path = tmp_path / "face.png"
        image_path.write_bytes(png_bytes)
        audio_path = tmp_path / "clip.wav"
        audio_path.write_bytes(wav_bytes)

        result, picture = pipeline.analyze_files(image_path, audio_path)

        assert picture.size == (120, 100)
        assert result.facial.emotion == "surprised"
        assert result.speech.emotion == "sad"
        assert result.keypoints.source == "model"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
