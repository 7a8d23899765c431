"""Tests for model loading and model artifact uploads."""

import contextlib
import threading
import time
from types import SimpleNamespace

import pytest

from conftest import FakeModel, KEYPOINT_OUTPUT


class DeviceModel(FakeModel):
    """Loaded model that notes the device scope active when built and run."""

    def __init__(self, keras, output):
        super().__init__(output)
        self.keras = keras
        self.built_on = keras.active
        self.predicted_on = []

    def load_weights(self, path):
        pass

    def predict(self, x, verbose=0):
        self.predicted_on.append(self.keras.active)
        return super().predict(x, verbose)


class FakeKeras:
    """Just enough of the keras module for the registry loaders."""

    def __init__(self, output):
        self.output = output
        self.active = None
        self.models = SimpleNamespace(
            model_from_json=lambda text: DeviceModel(self, self.output),
            load_model=lambda path, compile=True: DeviceModel(self, self.output),
        )

    @contextlib.contextmanager
    def device(self, name):
        previous, self.active = self.active, name
        try:
            yield
        finally:
            self.active = previous


def _write_keyfacial(models_dir, with_architecture=True):
    folder = models_dir / "keyfacial"
    folder.mkdir(parents=True, exist_ok=True)
    (folder / "best_model.h5").write_bytes(b"weights")
    if with_architecture:
        (folder / "model_keyfacial_architecture.json").write_text("{}", encoding="utf-8")


class TestModelRegistry:
    """Tests for ModelRegistry."""

    def test_empty_models_dir(self, app_config):
        """Test every model fails independently and the first error is kept."""
        from emotion_ai.registry import ModelRegistry

        registry = ModelRegistry(app_config.models)
        status = registry.load_models()

        assert status.keyfacial is False
        assert status.facial_emotion is False
        assert status.speech_emotion is False
        assert status.is_loading is False
        assert status.all_loaded is False
        assert status.error == "Failed to load key facial points model"

    def test_get_missing_model(self, app_config):
        from emotion_ai.errors import ModelNotLoadedError
        from emotion_ai.registry import ModelRegistry

        registry = ModelRegistry(app_config.models)
        with pytest.raises(ModelNotLoadedError):
            registry.get("facial_emotion")
        assert registry.status.error is not None

    def test_model_dirs(self, app_config):
        from emotion_ai.registry import ModelRegistry

        registry = ModelRegistry(app_config.models)
        assert registry.model_dir("keyfacial") == app_config.models.models_dir / "keyfacial"
        assert registry.model_dir("speech_emotion").name == "speech_emotion"

    def test_status_is_a_copy(self, registry):
        status = registry.status
        status.keyfacial = True
        assert registry.status.keyfacial is False

    def test_preloaded_models(self, registry, fake_models):
        assert registry.get("keyfacial") is fake_models["keyfacial"]
        assert registry.ensure_loaded() == registry.status

    def test_concurrent_first_use_loads_once(self, app_config):
        """Test simultaneous first requests share one load."""
        from emotion_ai.registry import ModelRegistry

        registry = ModelRegistry(app_config.models)
        calls = []

        def slow_load(key):
            calls.append(key)
            time.sleep(0.05)
            raise FileNotFoundError(key)

        registry._load_keras_model = slow_load
        threads = [threading.Thread(target=registry.ensure_loaded) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert calls.count("keyfacial") == 1
        assert registry.status.error == "Failed to load key facial points model"

    def test_models_built_on_configured_device(self, app_config, monkeypatch):
        from emotion_ai import registry as registry_module

        keras = FakeKeras(KEYPOINT_OUTPUT)
        monkeypatch.setattr(registry_module, "_import_keras", lambda backend: keras)
        _write_keyfacial(app_config.models.models_dir)

        registry = registry_module.ModelRegistry(app_config.models)
        status = registry.load_models()

        assert status.keyfacial is True
        assert registry.get("keyfacial").built_on == "cpu"

    def test_gpu_index_reaches_loader(self, app_config, monkeypatch):
        from emotion_ai import registry as registry_module

        keras = FakeKeras(KEYPOINT_OUTPUT)
        monkeypatch.setattr(registry_module, "_import_keras", lambda backend: keras)
        _write_keyfacial(app_config.models.models_dir, with_architecture=False)
        app_config.models.device = "cuda"
        app_config.models.gpu_index = 1

        registry = registry_module.ModelRegistry(app_config.models)
        registry.load_models()

        assert registry.device == "cuda:1"
        assert registry.get("keyfacial").built_on == "cuda:1"

    def test_predictions_run_on_configured_device(self, app_config, monkeypatch, png_bytes):
        from emotion_ai import registry as registry_module
        from emotion_ai.extractors.image import decode_image
        from emotion_ai.extractors.keypoints import KeypointDetector

        keras = FakeKeras(KEYPOINT_OUTPUT)
        monkeypatch.setattr(registry_module, "_import_keras", lambda backend: keras)
        _write_keyfacial(app_config.models.models_dir)
        registry = registry_module.ModelRegistry(app_config.models)
        registry.load_models()

        detector = KeypointDetector(registry, app_config.capture, app_config.inference)
        keypoints = detector.predict(decode_image(png_bytes))

        assert keypoints.source == "model"
        assert registry.get("keyfacial").predicted_on == ["cpu"]
        assert keras.active is None


class TestModelUploadTracker:
    """Tests for ModelUploadTracker."""

    def test_initial_files(self, empty_registry):
        from emotion_ai.registry import ModelUploadTracker

        tracker = ModelUploadTracker(empty_registry)
        files = tracker.files()

        assert [f.key for f in files] == ["keyfacial", "facial_emotion", "speech_emotion"]
        assert all(f.status == "pending" and f.progress == 0.0 for f in files)
        assert files[0].path == "models/keyfacial"
        assert tracker.all_uploaded is False

    def test_store_files(self, empty_registry, app_config):
        """Test uploaded artifacts land in the model folder with success status."""
        from emotion_ai.registry import ModelUploadTracker

        tracker = ModelUploadTracker(empty_registry)
        stored = tracker.store(
            "keyfacial",
            [("model_keyfacial_architecture.json", b"{}"), ("best_model.h5", b"\x89HDF")],
            reload=False,
        )

        assert stored.status == "success"
        assert stored.progress == 100.0
        assert stored.error is None
        folder = app_config.models.models_dir / "keyfacial"
        assert (folder / "best_model.h5").read_bytes() == b"\x89HDF"
        assert (folder / "model_keyfacial_architecture.json").exists()

    def test_filename_path_stripped(self, empty_registry, app_config):
        from emotion_ai.registry import ModelUploadTracker

        tracker = ModelUploadTracker(empty_registry)
        tracker.store("speech_emotion", [("../../stdscaler.pkl", b"x")], reload=False)

        assert (app_config.models.models_dir / "speech_emotion" / "stdscaler.pkl").exists()
        assert not (app_config.models.models_dir.parent / "stdscaler.pkl").exists()

    def test_bad_extension(self, empty_registry):
        from emotion_ai.errors import UploadError
        from emotion_ai.registry import ModelUploadTracker

        tracker = ModelUploadTracker(empty_registry)
        with pytest.raises(UploadError):
            tracker.store("facial_emotion", [("weights.bin", b"x")], reload=False)

        state = tracker.get("facial_emotion")
        assert state.status == "error"
        assert "weights.bin" in state.error

    def test_unknown_model_and_empty_upload(self, empty_registry):
        from emotion_ai.errors import UploadError
        from emotion_ai.registry import ModelUploadTracker

        tracker = ModelUploadTracker(empty_registry)
        with pytest.raises(UploadError):
            tracker.store("voice", [("a.h5", b"x")])
        with pytest.raises(UploadError):
            tracker.store("keyfacial", [])
        with pytest.raises(UploadError):
            tracker.get("voice")

    def test_reload_after_upload(self, empty_registry):
        """Test a store triggers a registry reload by default."""
        from emotion_ai.registry import ModelUploadTracker

        tracker = ModelUploadTracker(empty_registry)
        tracker.store("keyfacial", [("notes.json", b"{}")])

        # Weights are still missing, so the reload records the failure
        assert empty_registry.status.keyfacial is False
        assert empty_registry.status.error == "Failed to load key facial points model"


class TestDevice:
    """Tests for device resolution."""

    def test_resolve_device(self):
        from emotion_ai.utils.device import get_optimal_device, resolve_device

        assert resolve_device("cpu") == "cpu"
        assert resolve_device("cuda", gpu_index=1) == "cuda:1"
        assert resolve_device("auto") == get_optimal_device()
        assert get_optimal_device(prefer_gpu=False) == "cpu"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
