"""Emotion Analysis AI: facial and speech emotion demo."""

__version__ = "1.0.0"
