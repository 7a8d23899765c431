"""Audio utility functions."""

import os
import tempfile
from pathlib import Path
from typing import Union, Tuple
import numpy as np
import librosa

from ..errors import AudioDecodeError


AUDIO_EXTENSIONS = {".wav", ".mp3", ".m4a", ".flac", ".ogg", ".webm"}

MIME_SUFFIXES = {
    "audio/webm": ".webm",
    "audio/ogg": ".ogg",
    "audio/wav": ".wav",
    "audio/x-wav": ".wav",
    "audio/wave": ".wav",
    "audio/mpeg": ".mp3",
    "audio/mp4": ".m4a",
    "audio/flac": ".flac",
}


def suffix_for_mime(mime: str, default: str = ".webm") -> str:
    """Map a recorder MIME type (e.g. 'audio/webm;codecs=opus') to a file suffix."""
    base = (mime or "").split(";")[0].strip().lower()
    return MIME_SUFFIXES.get(base, default)


def load_audio(
    audio_path: Union[str, Path],
    target_sr: int = 16000,
    mono: bool = True,
) -> Tuple[np.ndarray, int]:
    """
    Load an audio file.

    Args:
        audio_path: Path to audio file
        target_sr: Target sample rate
        mono: Convert to mono

    Returns:
        Tuple of (audio array, sample rate)
    """
    audio, sr = librosa.load(audio_path, sr=target_sr, mono=mono)
    return audio, sr


def load_audio_bytes(
    data: bytes,
    suffix: str = ".webm",
    target_sr: int = 16000,
) -> Tuple[np.ndarray, int]:
    """
    Decode an encoded audio clip held in memory.

    Browser recordings are usually webm/ogg, which need a real file for
    the audioread backend, so the bytes go through a temporary file.

    Args:
        data: Encoded audio bytes
        suffix: File suffix matching the encoding
        target_sr: Target sample rate

    Returns:
        Tuple of (mono audio array, sample rate)
    """
    if not data:
        raise AudioDecodeError("Audio clip is empty")

    with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as tmp:
        tmp.write(data)
        tmp_path = tmp.name

    try:
        audio, sr = load_audio(tmp_path, target_sr=target_sr)
    except Exception as e:
        raise AudioDecodeError(f"Could not decode audio clip: {e}") from e
    finally:
        os.unlink(tmp_path)

    if audio.size == 0:
        raise AudioDecodeError("Audio clip contains no samples")
    return audio, sr
