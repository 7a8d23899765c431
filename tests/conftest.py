"""Shared fixtures: tiny images, audio clips and stand-in models."""

import base64
import io

import numpy as np
import pytest
import soundfile as sf
from PIL import Image


class FakeModel:
    """Stands in for a Keras model: fixed output, records input shapes."""

    def __init__(self, output, input_shape=(None, 96, 96, 3)):
        self.output = np.asarray(output, dtype=np.float32)
        self.input_shape = input_shape
        self.calls = []

    def predict(self, x, verbose=0):
        self.calls.append(np.asarray(x).shape)
        return self.output


class FakeXGB:
    def __init__(self, output):
        self.output = np.asarray(output, dtype=np.float32)

    def predict_proba(self, x):
        return self.output


class FakeScaler:
    def __init__(self):
        self.seen = None

    def transform(self, x):
        self.seen = np.asarray(x)
        return np.asarray(x) * 0.0


class FakeEncoder:
    def __init__(self, classes):
        self.classes_ = np.asarray(classes)


KEYPOINT_OUTPUT = [[float(v) for v in range(30)]]
FACIAL_OUTPUT = [[0.05, 0.05, 0.05, 0.7, 0.1, 0.05]]   # surprised
SPEECH_OUTPUT = [[0.1, 0.6, 0.1, 0.1, 0.05, 0.05]]     # sad


@pytest.fixture
def png_bytes():
    image = Image.new("RGB", (120, 100), (200, 150, 120))
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def data_url(png_bytes):
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")


@pytest.fixture
def wav_bytes():
    sample_rate = 16000
    duration = 2.0
    t = np.linspace(0, duration, int(sample_rate * duration), endpoint=False)
    audio = 0.3 * np.sin(2 * np.pi * 200 * t)
    buf = io.BytesIO()
    sf.write(buf, audio, sample_rate, format="WAV")
    return buf.getvalue()


@pytest.fixture
def app_config(tmp_path):
    from emotion_ai.config import AppConfig, CaptureConfig, InferenceConfig, ModelConfig, SessionConfig

    return AppConfig(
        models=ModelConfig(models_dir=tmp_path / "models", device="cpu", load_on_startup=False),
        capture=CaptureConfig(tick_interval=0.01),
        inference=InferenceConfig(random_fallback=True, fallback_seed=0),
        sessions=SessionConfig(max_sessions=8),
        output_dir=tmp_path / "outputs",
    )


def make_registry(config, models):
    """Registry pre-populated with stand-in models, skipping disk loading."""
    from emotion_ai.registry import ModelRegistry

    registry = ModelRegistry(config.models)
    registry._models = dict(models)
    registry._loaded_once = True
    return registry


@pytest.fixture
def fake_models():
    from emotion_ai.registry import SpeechEnsemble

    return {
        "keyfacial": FakeModel(KEYPOINT_OUTPUT),
        "facial_emotion": FakeModel(FACIAL_OUTPUT),
        "speech_emotion": SpeechEnsemble(FakeModel(SPEECH_OUTPUT, input_shape=(None, 7))),
    }


@pytest.fixture
def registry(app_config, fake_models):
    return make_registry(app_config, fake_models)


@pytest.fixture
def empty_registry(app_config):
    return make_registry(app_config, {})
