"""Utility functions."""

from .audio import load_audio, load_audio_bytes, suffix_for_mime
from .labels import describe_emotion, emotion_color, normalize_label
from .overlay import draw_keypoints, to_png_bytes
from .reporting import generate_html_report

__all__ = [
    "load_audio",
    "load_audio_bytes",
    "suffix_for_mime",
    "describe_emotion",
    "emotion_color",
    "normalize_label",
    "draw_keypoints",
    "to_png_bytes",
    "generate_html_report",
]
