"""Configuration settings for the emotion analysis demo."""

import os
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "true") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_seed() -> Optional[int]:
    value = os.getenv("FALLBACK_SEED", "").strip()
    return int(value) if value else None


class ModelConfig(BaseModel):
    """Model artifact locations and runtime backend."""
    models_dir: Path = Field(
        default_factory=lambda: Path(os.getenv("MODELS_DIR", "./models")),
        description="Root directory holding keyfacial/, facial_emotion/ and speech_emotion/"
    )
    keras_backend: str = Field(
        default_factory=lambda: os.getenv("KERAS_BACKEND", "torch"),
        description="Keras backend used to run the models (torch/tensorflow/jax)"
    )
    device: str = Field(
        default_factory=lambda: os.getenv("EMOTION_DEVICE", "auto"),
        description="Device to run on (cpu/cuda/cuda:0/mps/auto)"
    )
    gpu_index: int = Field(
        default_factory=lambda: int(os.getenv("EMOTION_GPU", "0")),
        description="GPU index when several are available"
    )
    load_on_startup: bool = Field(
        default_factory=lambda: _env_flag("LOAD_MODELS_ON_STARTUP"),
        description="Load models when the API starts instead of on first use"
    )


class CaptureConfig(BaseModel):
    """Image capture and audio recording settings."""
    image_size: int = Field(default=96, description="Side length of the square face image")
    recording_seconds: int = Field(default=10, description="Length of the recording countdown")
    tick_interval: float = Field(default=1.0, description="Seconds between countdown ticks")
    sample_rate: int = Field(default=16000, description="Sample rate audio is decoded at")


class InferenceConfig(BaseModel):
    """Prediction behaviour when models are missing or misbehave."""
    random_fallback: bool = Field(
        default_factory=lambda: _env_flag("RANDOM_FALLBACK"),
        description="Substitute random output instead of failing the analysis"
    )
    fallback_seed: Optional[int] = Field(
        default_factory=_env_seed,
        description="Seed for fallback output (None for nondeterministic)"
    )


class SessionConfig(BaseModel):
    """In-memory session store settings."""
    max_sessions: int = Field(
        default_factory=lambda: int(os.getenv("MAX_SESSIONS", "64")),
        description="Oldest sessions are evicted beyond this count"
    )


class AppConfig(BaseModel):
    """Main application configuration."""
    models: ModelConfig = Field(default_factory=ModelConfig)
    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    inference: InferenceConfig = Field(default_factory=InferenceConfig)
    sessions: SessionConfig = Field(default_factory=SessionConfig)

    output_dir: Path = Field(default=Path("./outputs"), description="Output directory")

    class Config:
        arbitrary_types_allowed = True


def load_config() -> AppConfig:
    """Load configuration from environment and defaults."""
    return AppConfig()
