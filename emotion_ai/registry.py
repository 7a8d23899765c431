"""Loading of pre-trained model artifacts from the models directory.

Expected layout under ``models_dir``::

    keyfacial/       model_keyfacial_architecture.json, best_model.h5
    facial_emotion/  model_facial_architecture.json, facial.weights.h5
    speech_emotion/  model_mlp_architecture.json, mlp_model.weights.h5,
                     xgb_model.json, stdscaler.pkl, mood_encode.pkl
"""

import contextlib
import os
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .config import ModelConfig
from .errors import ModelNotLoadedError, UploadError
from .models.schemas import ModelFile, ModelLoadingStatus
from .utils.device import resolve_device


MODEL_SPECS: Dict[str, Dict[str, str]] = {
    "keyfacial": {
        "name": "Facial Keypoint Model",
        "description": "Detects 15 facial keypoints",
        "dir": "keyfacial",
        "architecture": "model_keyfacial_architecture.json",
        "weights": "best_model.h5",
        "error": "Failed to load key facial points model",
    },
    "facial_emotion": {
        "name": "Facial Emotion Model",
        "description": "Classifies facial expressions into emotions",
        "dir": "facial_emotion",
        "architecture": "model_facial_architecture.json",
        "weights": "facial.weights.h5",
        "error": "Failed to load facial emotion model",
    },
    "speech_emotion": {
        "name": "Speech Emotion Model",
        "description": "Ensemble model (MLP + XGBoost) for speech emotion",
        "dir": "speech_emotion",
        "architecture": "model_mlp_architecture.json",
        "weights": "mlp_model.weights.h5",
        "error": "Failed to load speech emotion models",
    },
}

UPLOAD_EXTENSIONS = {".h5", ".json", ".pkl"}


class SpeechEnsemble:
    """MLP plus the optional XGBoost, scaler and label encoder around it."""

    def __init__(self, mlp, xgb=None, scaler=None, encoder=None):
        self.mlp = mlp
        self.xgb = xgb
        self.scaler = scaler
        self.encoder = encoder


def _import_keras(backend: str):
    # The backend is fixed at first import
    os.environ.setdefault("KERAS_BACKEND", backend)
    import keras
    return keras


class ModelRegistry:
    """Load and hold the keypoint, facial emotion and speech emotion models."""

    def __init__(self, config: Optional[ModelConfig] = None):
        self.config = config or ModelConfig()
        self.device = resolve_device(self.config.device, self.config.gpu_index)
        self._models: Dict[str, Any] = {}
        self._status = ModelLoadingStatus()
        self._loaded_once = False
        self._keras = None
        self._lock = threading.Lock()

    @property
    def models_dir(self) -> Path:
        return Path(self.config.models_dir)

    @property
    def status(self) -> ModelLoadingStatus:
        return self._status.model_copy()

    def model_dir(self, key: str) -> Path:
        return self.models_dir / MODEL_SPECS[key]["dir"]

    def ensure_loaded(self) -> ModelLoadingStatus:
        """Load models once, on first use."""
        if not self._loaded_once:
            with self._lock:
                # Another thread may have finished loading while we waited
                if not self._loaded_once:
                    return self._load_all()
        return self.status

    def device_scope(self):
        """Keras device scope for the configured device; a no-op until a Keras model is loaded."""
        if self._keras is None:
            return contextlib.nullcontext()
        return self._keras.device(self.device)

    def load_models(self) -> ModelLoadingStatus:
        """
        Load every model independently.

        A failed model is logged and recorded; the first failure message
        becomes ``status.error`` and the remaining models still load.

        Returns:
            ModelLoadingStatus
        """
        with self._lock:
            return self._load_all()

    def _load_all(self) -> ModelLoadingStatus:
        status = ModelLoadingStatus(is_loading=True)
        self._status = status
        models: Dict[str, Any] = {}

        loaders = {
            "keyfacial": lambda: self._load_keras_model("keyfacial"),
            "facial_emotion": lambda: self._load_keras_model("facial_emotion"),
            "speech_emotion": self._load_speech_models,
        }
        for key, loader in loaders.items():
            spec = MODEL_SPECS[key]
            try:
                print(f"Loading {spec['name'].lower()} on device: {self.device}")
                models[key] = loader()
                setattr(status, key, True)
                print(f"{spec['name']} loaded successfully")
            except Exception as e:
                print(f"Warning: {spec['error']}: {e}")
                if not status.error:
                    status.error = spec["error"]

        status.is_loading = False
        self._models = models
        self._status = status
        self._loaded_once = True
        return status.model_copy()

    def reload(self) -> ModelLoadingStatus:
        return self.load_models()

    def get(self, key: str):
        """Return a loaded model or raise ModelNotLoadedError."""
        self.ensure_loaded()
        model = self._models.get(key)
        if model is None:
            raise ModelNotLoadedError(f"{MODEL_SPECS[key]['name']} not loaded")
        return model

    def _load_keras_model(self, key: str):
        """Build from the architecture JSON and load weights, or load a full saved model."""
        spec = MODEL_SPECS[key]
        folder = self.model_dir(key)
        architecture = folder / spec["architecture"]
        weights = folder / spec["weights"]

        if not weights.exists():
            raise FileNotFoundError(f"Weights not found: {weights}")

        keras = _import_keras(self.config.keras_backend)
        self._keras = keras
        # Weights are created on the device active at build time
        with keras.device(self.device):
            if architecture.exists():
                model = keras.models.model_from_json(architecture.read_text(encoding="utf-8"))
                model.load_weights(str(weights))
                return model
            return keras.models.load_model(str(weights), compile=False)

    def _load_speech_models(self) -> SpeechEnsemble:
        """Load the MLP and whichever ensemble companions are present."""
        folder = self.model_dir("speech_emotion")
        mlp = self._load_keras_model("speech_emotion")

        xgb = None
        xgb_path = folder / "xgb_model.json"
        if xgb_path.exists():
            import xgboost
            xgb = xgboost.XGBClassifier()
            xgb.load_model(str(xgb_path))

        scaler = encoder = None
        scaler_path = folder / "stdscaler.pkl"
        encoder_path = folder / "mood_encode.pkl"
        if scaler_path.exists() or encoder_path.exists():
            import joblib
            if scaler_path.exists():
                scaler = joblib.load(scaler_path)
            if encoder_path.exists():
                encoder = joblib.load(encoder_path)

        return SpeechEnsemble(mlp, xgb=xgb, scaler=scaler, encoder=encoder)


class ModelUploadTracker:
    """Upload indicators for model artifact files placed into the models directory."""

    def __init__(self, registry: ModelRegistry):
        self.registry = registry
        self._files: Dict[str, ModelFile] = {
            key: ModelFile(
                key=key,
                name=spec["name"],
                description=spec["description"],
                path=f"models/{spec['dir']}",
            )
            for key, spec in MODEL_SPECS.items()
        }

    def files(self) -> List[ModelFile]:
        return [f.model_copy() for f in self._files.values()]

    def get(self, key: str) -> ModelFile:
        if key not in self._files:
            raise UploadError(f"Unknown model: {key}")
        return self._files[key].model_copy()

    @property
    def all_uploaded(self) -> bool:
        return all(f.status == "success" for f in self._files.values())

    def store(self, key: str, files: Sequence[Tuple[str, bytes]], reload: bool = True) -> ModelFile:
        """
        Write uploaded artifact files for one model and track progress.

        Args:
            key: Model key (keyfacial/facial_emotion/speech_emotion)
            files: (filename, content) pairs
            reload: Reload the registry after a successful upload

        Returns:
            Final ModelFile state
        """
        if key not in self._files:
            raise UploadError(f"Unknown model: {key}")
        if not files:
            raise UploadError("No files uploaded")

        names = [Path(name).name for name, _ in files]
        for name in names:
            if Path(name).suffix.lower() not in UPLOAD_EXTENSIONS:
                self._set(key, status="error", error=f"Unsupported file type: {name}")
                raise UploadError(
                    f"Unsupported file type: {name}. Allowed: {', '.join(sorted(UPLOAD_EXTENSIONS))}"
                )

        total = sum(len(content) for _, content in files) or 1
        written = 0
        self._set(key, status="uploading", progress=0.0, error=None)

        folder = self.registry.model_dir(key)
        try:
            folder.mkdir(parents=True, exist_ok=True)
            for name, (_, content) in zip(names, files):
                (folder / name).write_bytes(content)
                written += len(content)
                # Capped below 100 until every file is written
                self._set(key, progress=min(99.0, written * 100.0 / total))
        except OSError as e:
            self._set(key, status="error", error=str(e))
            raise UploadError(f"Could not store {MODEL_SPECS[key]['name']}: {e}") from e

        self._set(key, status="success", progress=100.0)
        if reload:
            self.registry.reload()
        return self.get(key)

    def _set(self, key: str, **changes):
        self._files[key] = self._files[key].model_copy(update=changes)
